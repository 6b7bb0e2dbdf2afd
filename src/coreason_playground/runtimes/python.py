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
import builtins
import importlib
import io
import traceback
from collections.abc import Callable
from contextlib import redirect_stderr, redirect_stdout
from types import ModuleType
from typing import Any

import anyio
from packaging.requirements import InvalidRequirement, Requirement

from coreason_playground.config import PlaygroundConfig
from coreason_playground.exceptions import InitializationError, RuntimeNotReadyError, UserCodeError
from coreason_playground.models import RuntimeState
from coreason_playground.runtime import GuestOutput, GuestRuntime
from coreason_playground.utils.logger import logger
from coreason_playground.vfs import VirtualFilesystem

# Names under which preloaded packages appear in the guest namespace.
GUEST_ALIASES = {
    "numpy": "np",
    "pandas": "pd",
}


def _describe(exc: BaseException) -> str:
    return "".join(traceback.format_exception_only(type(exc), exc)).strip()


class InProcessPythonRuntime(GuestRuntime):
    """
    Guest runtime backed by a private namespace in the host interpreter.

    Guest code sees the virtual filesystem through its ``open`` builtin. Other
    host facilities (``os``, ``pathlib``) are not redirected; guest code is
    trusted not to be malicious, only to be buggy.
    """

    def __init__(
        self,
        config: PlaygroundConfig | None = None,
        vfs: VirtualFilesystem | None = None,
    ):
        self.config = config or PlaygroundConfig()
        self.vfs = vfs or VirtualFilesystem(cwd=self.config.data_dir)
        self.namespace: dict[str, Any] = {}
        self._state = RuntimeState.NOT_READY
        self._failure: str | None = None
        self._ready = asyncio.Event()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> RuntimeState:
        return self._state

    @property
    def filesystem(self) -> VirtualFilesystem:
        return self.vfs

    def _ensure_ready(self) -> None:
        if self._state is not RuntimeState.READY:
            raise RuntimeNotReadyError(f"Guest runtime not ready (state: {self._state.value})")

    async def start(self) -> None:
        """
        Load the preloaded packages and build the guest namespace.
        """
        if self._state is RuntimeState.FAILED:
            raise InitializationError(self._failure)

        async with self._lock:
            if self._state is RuntimeState.READY:
                return

            packages = list(self.config.preload_packages)
            logger.info(f"Starting guest runtime with packages {packages}")
            try:
                modules = await anyio.to_thread.run_sync(self._load_packages, packages)
            except Exception as e:
                self._state = RuntimeState.FAILED
                self._failure = f"Failed to load guest runtime: {e}"
                logger.error(self._failure)
                self._ready.set()
                raise InitializationError(self._failure) from e

            self.namespace = {
                "__name__": "__main__",
                "__builtins__": self._guest_builtins(),
                **modules,
            }
            self._state = RuntimeState.READY
            self._ready.set()
            logger.info("Guest runtime ready")

    async def wait_until_ready(self) -> None:
        await self._ready.wait()
        if self._state is RuntimeState.FAILED:
            raise InitializationError(self._failure)

    def _guest_builtins(self) -> dict[str, Any]:
        guest = dict(vars(builtins))
        guest["open"] = self.vfs.open
        return guest

    def _load_packages(self, package_names: list[str]) -> dict[str, ModuleType]:
        """
        Import packages for the guest. Runs synchronously (import bound).
        """
        modules: dict[str, ModuleType] = {}
        for name in package_names:
            module = importlib.import_module(name)
            if name == "matplotlib":
                # Must happen before pyplot is imported anywhere.
                module.use(self.config.backend)
                modules["plt"] = importlib.import_module("matplotlib.pyplot")
            modules[GUEST_ALIASES.get(name, name)] = module
        return modules

    async def load_package(self, package_name: str) -> None:
        """
        Import an allowed package into the guest namespace.
        """
        self._ensure_ready()

        try:
            req = Requirement(package_name)
            base_package_name = req.name.lower()
        except InvalidRequirement as e:
            raise ValueError(f"Invalid package requirement: {package_name}") from e

        allowed_lower = {p.lower() for p in self.config.allowed_packages}
        if base_package_name not in allowed_lower:
            raise ValueError(f"Package {package_name} (base: {base_package_name}) is not in the allowed list.")

        logger.info(f"Loading package {base_package_name} into guest runtime")
        async with self._lock:
            modules = await anyio.to_thread.run_sync(self._load_packages, [base_package_name])
            self.namespace.update(modules)

    async def reset_dir(self, path: str) -> None:
        self._ensure_ready()
        async with self._lock:
            self.vfs.reset(path)

    async def make_dirs(self, path: str) -> None:
        self._ensure_ready()
        async with self._lock:
            self.vfs.makedirs(path)

    async def write_file(self, path: str, data: bytes) -> None:
        self._ensure_ready()
        async with self._lock:
            self.vfs.write(path, data)

    async def read_file(self, path: str) -> bytes:
        self._ensure_ready()
        async with self._lock:
            return self.vfs.read(path)

    async def exists(self, path: str) -> bool:
        self._ensure_ready()
        async with self._lock:
            return self.vfs.exists(path)

    async def list_files(self, path: str) -> list[str]:
        self._ensure_ready()
        async with self._lock:
            return self.vfs.list(path)

    async def register(self, name: str, fn: Callable[..., Any]) -> None:
        self._ensure_ready()
        async with self._lock:
            self.namespace[name] = fn

    async def read_variable(self, name: str, default: Any = None) -> Any:
        self._ensure_ready()
        async with self._lock:
            return self.namespace.get(name, default)

    async def run(self, source: str, variables: dict[str, Any] | None = None) -> GuestOutput:
        """
        Execute guest source in the namespace and capture its output.

        There is no timeout and no cancellation: a guest that never returns
        stalls the runtime.
        """
        self._ensure_ready()
        async with self._lock:
            if variables:
                self.namespace.update(variables)
            return await anyio.to_thread.run_sync(self._run_sync, source)

    def _run_sync(self, source: str) -> GuestOutput:
        stdout = io.StringIO()
        stderr = io.StringIO()
        try:
            with redirect_stdout(stdout), redirect_stderr(stderr):
                exec(compile(source, "<guest>", "exec"), self.namespace)  # noqa: S102
        except (Exception, SystemExit) as e:
            raise UserCodeError(_describe(e), stdout.getvalue(), stderr.getvalue()) from e
        return GuestOutput(stdout=stdout.getvalue(), stderr=stderr.getvalue())

    async def terminate(self) -> None:
        """
        Discard the guest namespace and everything in the virtual filesystem.
        """
        async with self._lock:
            plt = self.namespace.get("plt")
            if plt is not None:
                plt.close("all")
            self.namespace = {}
            self.vfs.clear()
            self._state = RuntimeState.NOT_READY
            self._failure = None
            self._ready = asyncio.Event()
        logger.info("Guest runtime terminated")
