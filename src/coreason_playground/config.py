# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

from pathlib import PurePosixPath

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PlaygroundConfig(BaseSettings):
    """
    Configuration for the playground bridge.
    """

    data_dir: str = "/data"
    artifact_name: str = "plot.png"
    artifact_dpi: int = 150
    backend: str = "Agg"

    preload_packages: list[str] = ["numpy", "pandas", "matplotlib"]
    allowed_packages: set[str] = {
        "numpy",
        "pandas",
        "matplotlib",
    }

    text_encoding: str = "utf-8"
    enable_audit_logging: bool = True

    model_config = SettingsConfigDict(
        env_prefix="COREASON_PLAYGROUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("data_dir")
    @classmethod
    def _data_dir_must_be_absolute(cls, value: str) -> str:
        if not PurePosixPath(value).is_absolute():
            raise ValueError(f"data_dir must be an absolute path, got {value!r}")
        return str(PurePosixPath(value))

    @property
    def artifact_path(self) -> str:
        """Fixed location of the run artifact inside the virtual filesystem."""
        return str(PurePosixPath(self.data_dir) / self.artifact_name)
