# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

"""
coreason-playground
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .artifacts import ArtifactExtractor
from .config import PlaygroundConfig
from .exceptions import (
    InitializationError,
    PlaygroundError,
    ProjectionError,
    RuntimeNotReadyError,
    UserCodeError,
)
from .harness import ExecutionHarness
from .models import ArtifactStatus, FileReference, InputFile, RunResult, RuntimeState, SessionPhase
from .playground import Playground
from .projector import InputProjector
from .runtime import GuestRuntime
from .runtimes.python import InProcessPythonRuntime
from .session import SessionController, SessionListener
from .vfs import VirtualFilesystem

__all__ = [
    "ArtifactExtractor",
    "ArtifactStatus",
    "ExecutionHarness",
    "FileReference",
    "GuestRuntime",
    "InProcessPythonRuntime",
    "InitializationError",
    "InputFile",
    "InputProjector",
    "Playground",
    "PlaygroundConfig",
    "PlaygroundError",
    "ProjectionError",
    "RunResult",
    "RuntimeNotReadyError",
    "RuntimeState",
    "SessionController",
    "SessionListener",
    "SessionPhase",
    "UserCodeError",
    "VirtualFilesystem",
]
