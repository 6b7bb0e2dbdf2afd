# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

import importlib
import shutil
from pathlib import Path
from typing import Generator

import pytest

import coreason_playground.utils.logger as logger_module

LOG_DIR = Path("logs")


@pytest.fixture(autouse=True)
def fresh_logger(capsys: pytest.CaptureFixture[str]) -> Generator[None, None, None]:
    # Request capsys first so the reloaded stderr sink binds to the captured stream
    logger_module.logger.remove()
    if LOG_DIR.exists():
        shutil.rmtree(LOG_DIR)
    importlib.reload(logger_module)
    yield
    # Leave working sinks behind for the rest of the suite
    logger_module.logger.remove()
    shutil.rmtree(LOG_DIR, ignore_errors=True)
    importlib.reload(logger_module)


def test_logger_creates_log_directory() -> None:
    assert LOG_DIR.is_dir()
    assert list(LOG_DIR.glob("app.log*"))


def test_logger_has_stderr_and_file_sinks() -> None:
    assert len(logger_module.logger._core.handlers) == 2


def test_logger_sink_output(capsys: pytest.CaptureFixture[str]) -> None:
    message = "Projected 3 input files."
    logger_module.logger.info(message)

    assert message in capsys.readouterr().err

    # Removing the sinks flushes the enqueued file writer
    logger_module.logger.remove()
    log_content = (LOG_DIR / "app.log").read_text()
    assert '"message": "' + message + '"' in log_content


def test_debug_reaches_file_only(capsys: pytest.CaptureFixture[str]) -> None:
    logger_module.logger.debug("guest namespace rebuilt")

    assert "guest namespace rebuilt" not in capsys.readouterr().err

    logger_module.logger.remove()
    assert "guest namespace rebuilt" in (LOG_DIR / "app.log").read_text()
