# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

"""Exceptions raised across the host/guest bridge."""


class PlaygroundError(Exception):
    """Base class for all playground errors."""


class InitializationError(PlaygroundError):
    """The embedded runtime failed to load. Fatal for the session."""


class RuntimeNotReadyError(PlaygroundError, RuntimeError):
    """An operation was issued before the embedded runtime finished loading."""


class ProjectionError(PlaygroundError):
    """Input files could not be written into the virtual filesystem."""


class UserCodeError(PlaygroundError):
    """The submitted code fragment raised inside the guest runtime.

    Attributes:
        error: One-line summary of the guest exception, e.g. ``ZeroDivisionError: division by zero``.
        stdout: Guest stdout captured up to the failure.
        stderr: Guest stderr captured up to the failure, including the traceback.
    """

    def __init__(self, error: str, stdout: str = "", stderr: str = ""):
        super().__init__(error)
        self.error = error
        self.stdout = stdout
        self.stderr = stderr
