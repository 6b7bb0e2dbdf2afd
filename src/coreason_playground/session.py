# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from coreason_playground.artifacts import ArtifactExtractor
from coreason_playground.config import PlaygroundConfig
from coreason_playground.exceptions import InitializationError, ProjectionError
from coreason_playground.harness import ExecutionHarness
from coreason_playground.models import FileReference, InputFile, RunResult, RuntimeState, SessionPhase
from coreason_playground.projector import InputProjector
from coreason_playground.runtime import GuestRuntime
from coreason_playground.utils.audit import AuditLogger
from coreason_playground.utils.logger import logger

NO_ARTIFACT_MESSAGE = "No plot image was produced."


class SessionListener(Protocol):
    """Callbacks from the bridge to the host."""

    def on_artifact_ready(self, data: bytes | None) -> None: ...

    def on_vfs_listing(self, names: list[str]) -> None: ...

    def on_phase_changed(self, phase: SessionPhase) -> None: ...

    def on_diagnostics(self, text: str) -> None: ...


class NullListener:
    """Listener that ignores every notification."""

    def on_artifact_ready(self, data: bytes | None) -> None:
        pass

    def on_vfs_listing(self, names: list[str]) -> None:
        pass

    def on_phase_changed(self, phase: SessionPhase) -> None:
        pass

    def on_diagnostics(self, text: str) -> None:
        pass


@dataclass
class SessionState:
    """The single mutable state of a session."""

    phase: SessionPhase = SessionPhase.IDLE
    input_files: dict[str, InputFile] = field(default_factory=dict)
    artifact: FileReference | None = None
    listing: list[str] = field(default_factory=list)
    last_result: RunResult | None = None


class SessionController:
    """Sequences projection, execution and extraction in response to host events.

    Phases: ``IDLE -> LOADING -> IDLE`` once for runtime initialization, then
    ``IDLE <-> BUSY`` for every run. A run is only accepted while ``IDLE``
    with a ready runtime; anything else is rejected, never queued.
    """

    def __init__(
        self,
        runtime: GuestRuntime,
        config: PlaygroundConfig | None = None,
        listener: SessionListener | None = None,
    ):
        """Initializes the SessionController.

        Args:
            runtime: The guest runtime to drive.
            config: Optional configuration object. If not provided, defaults are used.
            listener: Optional receiver of bridge notifications.
        """
        self.config = config or PlaygroundConfig()
        self.runtime = runtime
        self.listener: SessionListener = listener or NullListener()
        self.state = SessionState()
        self.projector = InputProjector(runtime, self.config)
        self.harness = ExecutionHarness(runtime, self.config)
        self.extractor = ArtifactExtractor(runtime, self.config)
        self.audit = AuditLogger(enabled=self.config.enable_audit_logging)
        # Serializes projection and run cycles against each other.
        self._lock = asyncio.Lock()

    def get_phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def ready(self) -> bool:
        return self.runtime.state is RuntimeState.READY

    def _set_phase(self, phase: SessionPhase) -> None:
        if self.state.phase is phase:
            return
        logger.debug(f"Session phase {self.state.phase.value} -> {phase.value}")
        self.state.phase = phase
        self.listener.on_phase_changed(phase)

    async def initialize(self) -> None:
        """Load the guest runtime and project the current inputs.

        Raises:
            InitializationError: If the runtime failed to load. The session stays unusable.
        """
        if self.state.phase is not SessionPhase.IDLE:
            logger.warning(f"Initialization requested while {self.state.phase.value}; ignoring")
            return

        self._set_phase(SessionPhase.LOADING)
        try:
            await self.runtime.start()
            await self.runtime.wait_until_ready()
        except InitializationError as e:
            logger.error(f"Guest runtime failed to load: {e}")
            self.listener.on_diagnostics(f"Failed to load the runtime: {e}")
            raise
        finally:
            self._set_phase(SessionPhase.IDLE)

        await self._sync_inputs()

    async def set_input_files(self, files: Iterable[InputFile]) -> None:
        """Replace the whole input set."""
        self.state.input_files = {f.name: f for f in files}
        await self._sync_inputs()

    async def add_input_files(self, files: Iterable[InputFile]) -> None:
        """Add files to the input set; a file replaces any earlier one with the same name."""
        for f in files:
            self.state.input_files[f.name] = f
        await self._sync_inputs()

    async def remove_input_file(self, name: str) -> None:
        """Evict a file from the input set."""
        if self.state.input_files.pop(name, None) is None:
            logger.debug(f"Input file {name} not present; nothing to remove")
            return
        await self._sync_inputs()

    async def _sync_inputs(self) -> None:
        if not self.ready:
            logger.debug("Runtime not ready; inputs will be projected after initialization")
            return
        async with self._lock:
            try:
                await self._project()
            except ProjectionError as e:
                logger.error(f"Input projection failed: {e}")
                self.listener.on_diagnostics(f"Failed to sync input files: {e}")
                return
            await self._refresh_listing()

    async def _project(self) -> None:
        await self.projector.project(self.state.input_files.values())

    async def request_run(self, code: str) -> RunResult | None:
        """Run a code fragment.

        Returns:
            RunResult | None: The result, or None if the request was rejected.
        """
        if self.state.phase is not SessionPhase.IDLE or not self.ready:
            logger.warning(
                f"Run rejected: phase={self.state.phase.value}, runtime={self.runtime.state.value}"
            )
            return None

        # Entered before the first suspension point, so a concurrent request sees BUSY.
        self._set_phase(SessionPhase.BUSY)
        try:
            self.state.artifact = None
            self.listener.on_artifact_ready(None)
            async with self._lock:
                result = await self._run_cycle(code)
        except Exception as e:
            logger.exception(f"Run failed inside the bridge: {e}")
            result = RunResult(error=f"Error while running code: {e}")
            self.listener.on_diagnostics(result.error)
        finally:
            self._set_phase(SessionPhase.IDLE)

        self.state.last_result = result
        return result

    async def _run_cycle(self, code: str) -> RunResult:
        self.audit.log_pre_execution(code)

        await self._project()
        result = await self.harness.execute(code)

        data = await self.extractor.extract()
        result = result.model_copy(update={"artifact_bytes": data})
        if data is not None:
            self.state.artifact = self.extractor.describe(data)
        self.listener.on_artifact_ready(data)

        await self._refresh_listing()

        diagnostics = result.diagnostics
        if data is None:
            diagnostics = f"{diagnostics}\n{NO_ARTIFACT_MESSAGE}" if diagnostics else NO_ARTIFACT_MESSAGE
        if result.error:
            diagnostics = f"{diagnostics}\nError while running code: {result.error}"
        self.listener.on_diagnostics(diagnostics)

        logger.info(
            f"Run finished in {result.execution_duration:.4f}s: "
            f"error={result.error is not None}, artifact={result.artifact_status.value}"
        )
        return result

    async def request_vfs_refresh(self) -> list[str]:
        """Re-read the data directory listing.

        While busy or before the runtime is ready, the cached listing is returned.
        """
        if self.state.phase is not SessionPhase.IDLE or not self.ready:
            return list(self.state.listing)
        async with self._lock:
            await self._refresh_listing()
        return list(self.state.listing)

    async def _refresh_listing(self) -> None:
        try:
            names = await self.runtime.list_files(self.config.data_dir)
        except FileNotFoundError:
            names = []
        except OSError as e:
            logger.warning(f"Could not refresh {self.config.data_dir} files: {e}")
            return
        self.state.listing = names
        self.listener.on_vfs_listing(list(names))
