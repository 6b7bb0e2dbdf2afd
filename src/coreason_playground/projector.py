# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

import io
import posixpath
from collections.abc import Iterable
from typing import Any

import pandas as pd

from coreason_playground.config import PlaygroundConfig
from coreason_playground.exceptions import ProjectionError
from coreason_playground.models import InputFile, is_plain_file_name
from coreason_playground.runtime import GuestRuntime
from coreason_playground.utils.logger import logger
from coreason_playground.vfs import VirtualFilesystem


class GuestCapabilities:
    """Guest-callable accessors over the projected input directory.

    Called from inside guest code, so they touch the filesystem store
    synchronously.
    """

    def __init__(self, vfs: VirtualFilesystem, data_dir: str, encoding: str = "utf-8"):
        self.vfs = vfs
        self.data_dir = data_dir
        self.encoding = encoding

    def list_uploaded_files(self) -> list[str]:
        """Names currently in the data directory, or ``[]`` if it does not exist."""
        if not self.vfs.is_dir(self.data_dir):
            return []
        return self.vfs.list(self.data_dir)

    def load_csv(self, name: str, **kwargs: Any) -> pd.DataFrame:
        """Parse an uploaded file as a DataFrame.

        Raises:
            FileNotFoundError: If ``name`` was not uploaded.
        """
        if not is_plain_file_name(name):
            raise FileNotFoundError(name)
        path = posixpath.join(self.data_dir, name)
        if not self.vfs.exists(path):
            raise FileNotFoundError(name)
        raw = self.vfs.read(path)
        kwargs.setdefault("encoding", self.encoding)
        return pd.read_csv(io.BytesIO(raw), **kwargs)


class InputProjector:
    """Projects host-owned input files into the guest's data directory."""

    def __init__(self, runtime: GuestRuntime, config: PlaygroundConfig | None = None):
        """Initializes the InputProjector.

        Args:
            runtime: The guest runtime owning the virtual filesystem.
            config: Optional configuration object. If not provided, defaults are used.
        """
        self.runtime = runtime
        self.config = config or PlaygroundConfig()

    async def project(self, files: Iterable[InputFile]) -> list[str]:
        """Mirror ``files`` into the data directory and register the guest accessors.

        After this returns, the data directory contains exactly the given files.

        Args:
            files: The current input file set.

        Returns:
            list[str]: The sorted names that were projected.

        Raises:
            ProjectionError: If an input uses the artifact name, the directory cannot be
                reset or a file cannot be written.
        """
        data_dir = self.config.data_dir
        files = list(files)
        if any(f.name == self.config.artifact_name for f in files):
            raise ProjectionError(f"Input file name {self.config.artifact_name} is reserved for the run artifact")

        try:
            await self.runtime.reset_dir(data_dir)
        except FileNotFoundError:
            logger.debug(f"{data_dir} did not exist yet; creating it")
            try:
                await self.runtime.make_dirs(data_dir)
            except OSError as e:
                raise ProjectionError(f"Failed to create {data_dir}: {e}") from e
        except OSError as e:
            logger.error(f"Failed to reset {data_dir}: {e}")
            raise ProjectionError(f"Failed to reset {data_dir}: {e}") from e

        for input_file in files:
            path = posixpath.join(data_dir, input_file.name)
            try:
                await self.runtime.write_file(path, input_file.content)
            except OSError as e:
                logger.error(f"Failed to project {input_file.name}: {e}")
                raise ProjectionError(f"Failed to write {path}: {e}") from e

        capabilities = GuestCapabilities(self.runtime.filesystem, data_dir, self.config.text_encoding)
        await self.runtime.register("list_uploaded_files", capabilities.list_uploaded_files)
        await self.runtime.register("load_csv", capabilities.load_csv)

        names = sorted(f.name for f in files)
        logger.info(f"Projected {len(names)} input file(s) into {data_dir}")
        return names
