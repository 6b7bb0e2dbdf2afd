# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

"""Wraps user code in the fixed guest-side execution template."""

import time

from coreason_playground.config import PlaygroundConfig
from coreason_playground.exceptions import UserCodeError
from coreason_playground.models import ArtifactStatus, RunResult
from coreason_playground.runtime import GuestRuntime
from coreason_playground.utils.logger import logger

USER_CODE_FILENAME = "<playground>"

# Guest-side template. The user fragment is passed in as ``_user_code`` and the
# virtual filesystem's ``open`` as ``_playground_open``. The fragment is
# compiled inside the failure boundary, so syntax errors are reported the same
# way as runtime errors. The figure is saved before a user exception is
# re-raised: a script that plots and then fails still yields its plot.
HARNESS_TEMPLATE = """\
import linecache as _playground_linecache
import traceback as _playground_traceback

import matplotlib
matplotlib.use({backend!r})
import matplotlib.pyplot as plt

plt.close("all")
_artifact_status = "not_attempted"
_playground_linecache.cache[{filename!r}] = (len(_user_code), None, _user_code.splitlines(True), {filename!r})


def _playground_save_figure(_open=_playground_open):
    # Imported locally: user code may rebind io, plt and open.
    global _artifact_status
    import io
    import matplotlib.pyplot as pyplot

    if not pyplot.get_fignums():
        _artifact_status = "no_figure"
        print("NO_FIGURE: no matplotlib figure was produced")
        return
    try:
        fig = pyplot.gcf()
        fig.tight_layout()
        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", dpi={dpi}, bbox_inches="tight")
        with _open({artifact_path!r}, "wb") as fh:
            fh.write(buffer.getvalue())
        _artifact_status = "saved"
    except Exception as exc:
        _artifact_status = "save_failed"
        print("SAVE_ERROR:", exc)


try:
    exec(compile(_user_code, {filename!r}, "exec"), globals())
except BaseException:
    _playground_traceback.print_exc()
    _playground_save_figure()
    raise
else:
    _playground_save_figure()
"""


class ExecutionHarness:
    """Runs user code fragments through the guest template."""

    def __init__(self, runtime: GuestRuntime, config: PlaygroundConfig | None = None):
        self.runtime = runtime
        self.config = config or PlaygroundConfig()

    def render(self) -> str:
        """The guest source for one run, with the configured backend and artifact path filled in."""
        return HARNESS_TEMPLATE.format(
            backend=self.config.backend,
            filename=USER_CODE_FILENAME,
            dpi=int(self.config.artifact_dpi),
            artifact_path=self.config.artifact_path,
        )

    async def execute(self, code: str) -> RunResult:
        """Run ``code`` inside the harness.

        A raising fragment is not an error for the caller: it is reported in
        ``RunResult.error`` with the traceback in ``stderr``. The artifact bytes
        are left for the extractor.

        Args:
            code: The user-submitted code fragment.

        Returns:
            RunResult: Captured diagnostics and the artifact status.
        """
        start_time = time.time()
        error: str | None = None
        try:
            output = await self.runtime.run(
                self.render(),
                {
                    "_user_code": code,
                    "_artifact_status": ArtifactStatus.NOT_ATTEMPTED.value,
                    "_playground_open": self.runtime.filesystem.open,
                },
            )
            stdout, stderr = output.stdout, output.stderr
        except UserCodeError as e:
            logger.warning(f"User code raised: {e.error}")
            stdout, stderr, error = e.stdout, e.stderr, e.error
        duration = time.time() - start_time

        raw_status = await self.runtime.read_variable("_artifact_status", ArtifactStatus.NOT_ATTEMPTED.value)
        try:
            status = ArtifactStatus(raw_status)
        except ValueError:
            status = ArtifactStatus.NOT_ATTEMPTED

        if status is ArtifactStatus.NO_FIGURE:
            logger.info("Run produced no figure")
        elif status is ArtifactStatus.SAVE_FAILED:
            logger.warning("Figure was produced but could not be saved")

        return RunResult(
            stdout=stdout,
            stderr=stderr,
            error=error,
            artifact_status=status,
            execution_duration=duration,
        )
