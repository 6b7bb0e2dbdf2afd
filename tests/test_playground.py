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

import matplotlib.image as mpimg
import pytest

from coreason_playground import InputFile, Playground, PlaygroundConfig, SessionPhase
from coreason_playground.exceptions import InitializationError
from coreason_playground.models import ArtifactStatus, RuntimeState
from coreason_playground.session import NO_ARTIFACT_MESSAGE
from tests.conftest import RecordingListener


@pytest.mark.asyncio
async def test_csv_to_plot_end_to_end(config: PlaygroundConfig, listener: RecordingListener) -> None:
    async with Playground(config, listener) as pg:
        await pg.set_input_files([InputFile.from_text("a.csv", "x,y\n1,2\n3,5\n")])
        assert await pg.refresh() == ["a.csv"]

        result = await pg.run("df = load_csv('a.csv')\nplt.plot(df['x'], df['y'])")

        assert result is not None
        assert result.succeeded
        assert result.artifact_status is ArtifactStatus.SAVED
        assert result.artifact_bytes is not None
        image = mpimg.imread(io.BytesIO(result.artifact_bytes), format="png")
        assert image.ndim == 3
        assert listener.artifacts[-1] == result.artifact_bytes
        assert listener.listings[-1] == ["a.csv", "plot.png"]
        assert pg.phase is SessionPhase.IDLE


@pytest.mark.asyncio
async def test_error_run_still_yields_artifact(config: PlaygroundConfig, listener: RecordingListener) -> None:
    async with Playground(config, listener) as pg:
        result = await pg.run("plt.bar(['a', 'b'], [1, 2])\nraise KeyError('column')")

        assert result is not None
        assert result.error == "KeyError: 'column'"
        assert result.has_artifact
        assert "Error while running code: KeyError: 'column'" in listener.diagnostics[-1]


@pytest.mark.asyncio
async def test_stale_artifact_is_not_reused(config: PlaygroundConfig, listener: RecordingListener) -> None:
    async with Playground(config, listener) as pg:
        first = await pg.run("plt.plot([1, 2, 3])")
        assert first is not None and first.has_artifact

        second = await pg.run("total = 1 + 1\nprint(total)")

        assert second is not None
        assert second.artifact_bytes is None
        assert second.stdout.startswith("2\n")
        assert listener.artifacts[-2:] == [None, None]
        assert NO_ARTIFACT_MESSAGE in listener.diagnostics[-1]
        assert await pg.refresh() == []


@pytest.mark.asyncio
async def test_inputs_visible_to_guest_and_removable(config: PlaygroundConfig) -> None:
    async with Playground(config) as pg:
        await pg.add_input_files([InputFile.from_text("a.csv", "v\n1\n"), InputFile.from_text("b.csv", "v\n2\n")])
        await pg.remove_input_file("a.csv")

        result = await pg.run("print(list_uploaded_files())")

        assert result is not None
        assert result.stdout.startswith("['b.csv']\n")


@pytest.mark.asyncio
async def test_initialization_failure_surfaces() -> None:
    config = PlaygroundConfig(enable_audit_logging=False, preload_packages=["definitely_not_an_installed_package"])
    pg = Playground(config)

    with pytest.raises(InitializationError):
        async with pg:
            pass  # pragma: no cover

    assert pg.runtime.state is RuntimeState.FAILED
    assert await pg.run("print(1)") is None


@pytest.mark.asyncio
async def test_exit_discards_virtual_filesystem(config: PlaygroundConfig) -> None:
    pg = Playground(config)
    async with pg:
        await pg.set_input_files([InputFile.from_text("a.csv", "1")])

    assert pg.runtime.state is RuntimeState.NOT_READY
    assert not pg.runtime.filesystem.exists("/data")


@pytest.mark.asyncio
async def test_upload_cannot_pose_as_artifact(config: PlaygroundConfig, listener: RecordingListener) -> None:
    async with Playground(config, listener) as pg:
        await pg.set_input_files([InputFile(name="plot.png", content=b"user upload, not a figure")])
        assert any("reserved for the run artifact" in d for d in listener.diagnostics)

        result = await pg.run("raise ValueError('before any figure')")

        assert result is not None
        assert result.artifact_bytes is None
        assert result.error is not None
        assert listener.artifacts[-1] is None
        assert await pg.refresh() == []


@pytest.mark.asyncio
async def test_unclosed_guest_handle_leaves_no_stale_entry(config: PlaygroundConfig) -> None:
    async with Playground(config) as pg:
        first = await pg.run("f = open('/data/scratch.txt', 'w')\nf.write('x')")
        assert first is not None and first.succeeded

        await pg.set_input_files([InputFile.from_text("a.csv", "x,y\n1,2\n")])
        second = await pg.run("f = None")

        assert second is not None and second.succeeded
        assert await pg.refresh() == ["a.csv"]
