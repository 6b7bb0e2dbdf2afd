# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

import base64
import mimetypes
import posixpath

from coreason_playground.config import PlaygroundConfig
from coreason_playground.models import FileReference
from coreason_playground.runtime import GuestRuntime
from coreason_playground.utils.logger import logger


class ArtifactExtractor:
    """Retrieves the run artifact from the virtual filesystem."""

    def __init__(self, runtime: GuestRuntime, config: PlaygroundConfig | None = None):
        """Initializes the ArtifactExtractor.

        Args:
            runtime: The guest runtime owning the virtual filesystem.
            config: Optional configuration object. If not provided, defaults are used.
        """
        self.runtime = runtime
        self.config = config or PlaygroundConfig()

    async def extract(self) -> bytes | None:
        """Copy the artifact out of the virtual filesystem.

        Independent of whether the run succeeded. The returned bytes are a
        complete copy, unaffected by later runs overwriting the artifact.

        Returns:
            bytes | None: The artifact content, or None if no artifact exists.
        """
        path = self.config.artifact_path
        if not await self.runtime.exists(path):
            logger.info(f"No artifact at {path}")
            return None

        data = bytes(await self.runtime.read_file(path))
        logger.info(f"Extracted artifact {path} ({len(data)} bytes)")
        return data

    def describe(self, data: bytes, filename: str | None = None) -> FileReference:
        """Build a displayable reference for extracted artifact bytes.

        Images are converted to Base64 data URIs.

        Args:
            data: The artifact content.
            filename: The artifact file name. Defaults to the configured artifact name.

        Returns:
            FileReference: A reference object containing metadata and access URL.
        """
        filename = filename or self.config.artifact_name
        mime_type, _ = mimetypes.guess_type(filename)
        if not mime_type:
            mime_type = "application/octet-stream"

        file_ref = FileReference(
            filename=filename,
            path=posixpath.join(self.config.data_dir, filename),
            content_type=mime_type,
            size_bytes=len(data),
        )

        if mime_type.startswith("image/"):
            encoded = base64.b64encode(data).decode("utf-8")
            file_ref.url = f"data:{mime_type};base64,{encoded}"

        return file_ref
