from typing import Any, AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from coreason_playground.config import PlaygroundConfig
from coreason_playground.models import RuntimeState, SessionPhase
from coreason_playground.runtime import GuestOutput
from coreason_playground.runtimes.python import InProcessPythonRuntime
from coreason_playground.vfs import VirtualFilesystem


class RecordingListener:
    """Collects every notification the session controller emits."""

    def __init__(self) -> None:
        self.artifacts: list[bytes | None] = []
        self.listings: list[list[str]] = []
        self.phases: list[SessionPhase] = []
        self.diagnostics: list[str] = []

    def on_artifact_ready(self, data: bytes | None) -> None:
        self.artifacts.append(data)

    def on_vfs_listing(self, names: list[str]) -> None:
        self.listings.append(names)

    def on_phase_changed(self, phase: SessionPhase) -> None:
        self.phases.append(phase)

    def on_diagnostics(self, text: str) -> None:
        self.diagnostics.append(text)


@pytest.fixture
def config() -> PlaygroundConfig:
    return PlaygroundConfig(enable_audit_logging=False)


@pytest.fixture
def vfs() -> VirtualFilesystem:
    return VirtualFilesystem(cwd="/data")


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest_asyncio.fixture
async def runtime(config: PlaygroundConfig) -> AsyncGenerator[InProcessPythonRuntime, None]:
    rt = InProcessPythonRuntime(config)
    await rt.start()
    yield rt
    await rt.terminate()


@pytest.fixture
def mock_runtime() -> Any:
    """A ready runtime double backed by a real VirtualFilesystem."""
    fs = VirtualFilesystem(cwd="/data")
    mock = MagicMock()
    mock.state = RuntimeState.READY
    mock.filesystem = fs
    mock.start = AsyncMock()
    mock.wait_until_ready = AsyncMock()
    mock.terminate = AsyncMock()
    mock.reset_dir = AsyncMock(side_effect=fs.reset)
    mock.make_dirs = AsyncMock(side_effect=fs.makedirs)
    mock.write_file = AsyncMock(side_effect=fs.write)
    mock.read_file = AsyncMock(side_effect=fs.read)
    mock.exists = AsyncMock(side_effect=fs.exists)
    mock.list_files = AsyncMock(side_effect=fs.list)
    mock.register = AsyncMock()
    mock.read_variable = AsyncMock(return_value="no_figure")
    mock.run = AsyncMock(return_value=GuestOutput())
    return mock
