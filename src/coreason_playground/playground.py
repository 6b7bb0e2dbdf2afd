# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

from collections.abc import Iterable
from uuid import uuid4

from coreason_playground.config import PlaygroundConfig
from coreason_playground.models import InputFile, RunResult, SessionPhase
from coreason_playground.runtime import GuestRuntime
from coreason_playground.runtimes.python import InProcessPythonRuntime
from coreason_playground.session import SessionController, SessionListener
from coreason_playground.utils.logger import logger
from coreason_playground.vfs import VirtualFilesystem


class Playground:
    """Async-native playground service.

    Wires the virtual filesystem, the guest runtime and the session
    controller together and owns their lifecycle.
    """

    def __init__(
        self,
        config: PlaygroundConfig | None = None,
        listener: SessionListener | None = None,
        runtime: GuestRuntime | None = None,
    ):
        """Initializes the Playground.

        Args:
            config: Configuration for the playground.
            listener: Optional receiver of bridge notifications.
            runtime: Optional guest runtime. Defaults to an in-process Python runtime.
        """
        self.config = config or PlaygroundConfig()
        self.runtime = runtime or InProcessPythonRuntime(
            self.config, VirtualFilesystem(cwd=self.config.data_dir)
        )
        self.session = SessionController(self.runtime, self.config, listener)
        self.session_id = str(uuid4())

    async def __aenter__(self) -> "Playground":
        """Loads the guest runtime."""
        logger.info(f"Opening playground session {self.session_id}")
        await self.session.initialize()
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """Discards the guest runtime and its virtual filesystem."""
        await self.runtime.terminate()
        logger.info(f"Closed playground session {self.session_id}")

    @property
    def phase(self) -> SessionPhase:
        return self.session.get_phase()

    async def set_input_files(self, files: Iterable[InputFile]) -> None:
        await self.session.set_input_files(files)

    async def add_input_files(self, files: Iterable[InputFile]) -> None:
        await self.session.add_input_files(files)

    async def remove_input_file(self, name: str) -> None:
        await self.session.remove_input_file(name)

    async def run(self, code: str) -> RunResult | None:
        """Runs a code fragment. Returns None if the session rejected the request."""
        return await self.session.request_run(code)

    async def refresh(self) -> list[str]:
        """Lists the guest data directory."""
        return await self.session.request_vfs_refresh()
