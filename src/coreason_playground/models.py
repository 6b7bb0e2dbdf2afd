# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

from enum import Enum

from pydantic import BaseModel, Field, field_validator


def is_plain_file_name(name: str) -> bool:
    """True if ``name`` names an entry directly inside a directory."""
    return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


class SessionPhase(str, Enum):
    """Phase of the session controller. Gates re-entrancy of runs."""

    IDLE = "idle"
    LOADING = "loading"
    BUSY = "busy"


class RuntimeState(str, Enum):
    """Initialization state of the embedded runtime."""

    NOT_READY = "not_ready"
    READY = "ready"
    FAILED = "failed"


class ArtifactStatus(str, Enum):
    """What happened to the figure at the end of a run."""

    SAVED = "saved"
    NO_FIGURE = "no_figure"
    SAVE_FAILED = "save_failed"
    NOT_ATTEMPTED = "not_attempted"


class InputFile(BaseModel):
    """A host-owned input file, projected into the guest as ``<data_dir>/<name>``.

    Attributes:
        name: Unique key within the session. Must be a plain file name.
        content: The raw bytes of the file.
    """

    name: str
    content: bytes

    @field_validator("name")
    @classmethod
    def _name_must_be_plain(cls, value: str) -> str:
        if not is_plain_file_name(value):
            raise ValueError(f"Invalid input file name: {value!r}")
        return value

    @classmethod
    def from_text(cls, name: str, text: str, encoding: str = "utf-8") -> "InputFile":
        """Build an InputFile from textual content, encoding it exactly once."""
        return cls(name=name, content=text.encode(encoding))


class FileReference(BaseModel):
    """Represents an artifact extracted from the virtual filesystem.

    Attributes:
        filename: The name of the file.
        path: The path of the file inside the virtual filesystem.
        content_type: The MIME type of the file content.
        size_bytes: The size of the file in bytes.
        url: A data URI to display the file content.
    """

    filename: str
    path: str
    content_type: str | None = None
    size_bytes: int | None = None
    url: str | None = None


class RunResult(BaseModel):
    """The outcome of one run.

    A missing artifact is a valid result, not an error.
    """

    artifact_bytes: bytes | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = Field(default=None, description="Summary of the guest exception, if the code raised.")
    artifact_status: ArtifactStatus = ArtifactStatus.NOT_ATTEMPTED
    execution_duration: float = 0.0

    @property
    def diagnostics(self) -> str:
        """Guest output for display: stdout followed by stderr."""
        parts = [part for part in (self.stdout, self.stderr) if part]
        return "\n".join(part.rstrip("\n") for part in parts)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def has_artifact(self) -> bool:
        return bool(self.artifact_bytes)
