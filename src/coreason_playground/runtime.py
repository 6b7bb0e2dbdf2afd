# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from coreason_playground.models import RuntimeState
from coreason_playground.vfs import VirtualFilesystem


@dataclass
class GuestOutput:
    """Streams captured from a guest run."""

    stdout: str = ""
    stderr: str = ""


class GuestRuntime(ABC):
    """
    Abstract base class for embedded guest runtimes.
    Follows the Strategy Pattern.

    Every operation is awaited and serialized by the implementation; none may
    run concurrently with a guest run.
    """

    @property
    @abstractmethod
    def state(self) -> RuntimeState:
        """The initialization state of the runtime."""
        pass  # pragma: no cover

    @property
    @abstractmethod
    def filesystem(self) -> VirtualFilesystem:
        """The virtual filesystem store guest capabilities are bound to."""
        pass  # pragma: no cover

    @abstractmethod
    async def start(self) -> None:
        """Load the runtime and its packages.

        Raises:
            InitializationError: If the runtime fails to load.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def wait_until_ready(self) -> None:
        """Suspend until ``start`` has completed.

        Raises:
            InitializationError: If loading failed.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def load_package(self, package_name: str) -> None:
        """Make a package importable by guest code.

        Raises:
            ValueError: If the package is not allowed by policy.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def reset_dir(self, path: str) -> None:
        """Clear and recreate a directory in the virtual filesystem."""
        pass  # pragma: no cover

    @abstractmethod
    async def make_dirs(self, path: str) -> None:
        """Create a directory (and its parents) in the virtual filesystem."""
        pass  # pragma: no cover

    @abstractmethod
    async def write_file(self, path: str, data: bytes) -> None:
        """Write bytes into the virtual filesystem."""
        pass  # pragma: no cover

    @abstractmethod
    async def read_file(self, path: str) -> bytes:
        """Read a copy of a file from the virtual filesystem.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a path exists in the virtual filesystem."""
        pass  # pragma: no cover

    @abstractmethod
    async def list_files(self, path: str) -> list[str]:
        """List the names in a virtual filesystem directory.

        Raises:
            FileNotFoundError: If the directory does not exist.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def register(self, name: str, fn: Callable[..., Any]) -> None:
        """Expose a callable to guest code under ``name``."""
        pass  # pragma: no cover

    @abstractmethod
    async def run(
        self,
        source: str,
        variables: dict[str, Any] | None = None,
    ) -> GuestOutput:
        """Execute guest source code.

        Args:
            source: The guest source to execute.
            variables: Names bound into the guest namespace before execution.

        Returns:
            GuestOutput: Captured stdout and stderr.

        Raises:
            UserCodeError: If the guest code raised.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def read_variable(self, name: str, default: Any = None) -> Any:
        """Read a name from the guest namespace."""
        pass  # pragma: no cover

    @abstractmethod
    async def terminate(self) -> None:
        """Discard the guest namespace and the virtual filesystem contents."""
        pass  # pragma: no cover
