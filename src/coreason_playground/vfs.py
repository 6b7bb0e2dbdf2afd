# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

"""In-memory virtual filesystem visible only to the guest runtime."""

import errno
import io
import os
import posixpath
import threading
import weakref
from itertools import chain
from typing import IO, Any

_MODE_CHARS = set("rwaxbt+")


def _not_found(path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)


class _VirtualFile(io.BytesIO):
    """Binary file handle over a VFS entry. Writes are committed on flush and close."""

    def __init__(
        self,
        vfs: "VirtualFilesystem",
        path: str,
        initial: bytes,
        readable: bool,
        writable: bool,
        append: bool = False,
    ):
        super().__init__(initial)
        self.path = path
        self._vfs = vfs
        self._readable = readable
        self._writable = writable
        # Set once the entry is removed or its directory is reset.
        self.detached = False
        if append:
            self.seek(0, io.SEEK_END)

    def readable(self) -> bool:
        return self._readable

    def writable(self) -> bool:
        return self._writable

    def read(self, size: int | None = -1) -> bytes:
        if not self._readable:
            raise io.UnsupportedOperation("not readable")
        return super().read(size)

    def write(self, data: Any) -> int:
        if not self._writable:
            raise io.UnsupportedOperation("not writable")
        return super().write(data)

    def flush(self) -> None:
        super().flush()
        if self._writable and not self.detached:
            self._vfs.write(self.path, self.getvalue())

    def close(self) -> None:
        if not self.closed:
            self.flush()
        super().close()


class VirtualFilesystem:
    """An isolated, process-local file namespace.

    Paths are POSIX style. Relative paths resolve against ``cwd``. The root
    directory always exists. Conditions are reported with the same ``OSError``
    subclasses a real filesystem raises.
    """

    def __init__(self, cwd: str = "/"):
        self.cwd = cwd
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}
        self._handles: "weakref.WeakSet[_VirtualFile]" = weakref.WeakSet()
        # Guest file handles commit from the worker thread running the guest.
        self._lock = threading.RLock()

    def resolve(self, path: str | os.PathLike[str]) -> str:
        """Normalize ``path`` to an absolute VFS path."""
        raw = os.fspath(path)
        if not raw.startswith("/"):
            raw = posixpath.join(self.cwd, raw)
        normalized = posixpath.normpath("/" + raw.lstrip("/"))
        return normalized

    def exists(self, path: str) -> bool:
        p = self.resolve(path)
        with self._lock:
            return p in self._files or p in self._dirs

    def is_dir(self, path: str) -> bool:
        p = self.resolve(path)
        with self._lock:
            return p in self._dirs

    def _require_parent(self, p: str) -> None:
        parent = posixpath.dirname(p)
        if parent in self._dirs:
            return
        if parent in self._files:
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), parent)
        raise _not_found(parent)

    def makedirs(self, path: str, exist_ok: bool = True) -> None:
        p = self.resolve(path)
        with self._lock:
            if p in self._files:
                raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), p)
            if p in self._dirs:
                if not exist_ok:
                    raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), p)
                return
            current = "/"
            for part in p.strip("/").split("/"):
                current = posixpath.join(current, part)
                if current in self._files:
                    raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), current)
                self._dirs.add(current)

    def write(self, path: str, data: bytes | bytearray | memoryview) -> None:
        p = self.resolve(path)
        with self._lock:
            if p in self._dirs:
                raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), p)
            self._require_parent(p)
            self._files[p] = bytes(data)

    def read(self, path: str) -> bytes:
        p = self.resolve(path)
        with self._lock:
            if p in self._dirs:
                raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), p)
            try:
                return self._files[p]
            except KeyError:
                raise _not_found(p) from None

    def list(self, path: str) -> list[str]:
        """Sorted names of the direct children of ``path``."""
        p = self.resolve(path)
        with self._lock:
            if p in self._files:
                raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), p)
            if p not in self._dirs:
                raise _not_found(p)
            prefix = p.rstrip("/") + "/"
            names = {
                entry[len(prefix) :].split("/", 1)[0]
                for entry in chain(self._files, self._dirs)
                if entry != p and entry.startswith(prefix)
            }
            return sorted(names)

    def remove(self, path: str) -> None:
        p = self.resolve(path)
        with self._lock:
            if p in self._dirs:
                raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), p)
            if self._files.pop(p, None) is None:
                raise _not_found(p)
            self._detach(p)

    def rmtree(self, path: str) -> None:
        p = self.resolve(path)
        with self._lock:
            if p in self._files:
                raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), p)
            if p not in self._dirs:
                raise _not_found(p)
            prefix = p.rstrip("/") + "/"
            self._files = {k: v for k, v in self._files.items() if not k.startswith(prefix)}
            self._dirs = {d for d in self._dirs if d == "/" or not (d == p or d.startswith(prefix))}
            self._detach(p)

    def reset(self, path: str) -> None:
        """Remove ``path`` with everything below it, then recreate it empty."""
        p = self.resolve(path)
        with self._lock:
            if p in self._files:
                del self._files[p]
                self._detach(p)
            elif p in self._dirs:
                self.rmtree(p)
            self.makedirs(p)

    def clear(self) -> None:
        with self._lock:
            self._files.clear()
            self._dirs = {"/"}
            self._detach("/")

    def _detach(self, p: str) -> None:
        """Stop open handles at or below ``p`` from committing their writes."""
        prefix = p.rstrip("/") + "/"
        for handle in list(self._handles):
            if handle.path == p or handle.path.startswith(prefix):
                handle.detached = True

    def open(
        self,
        path: str | os.PathLike[str],
        mode: str = "r",
        buffering: int = -1,
        encoding: str | None = None,
        errors: str | None = None,
        newline: str | None = None,
    ) -> IO[Any]:
        """Open a VFS entry with the semantics of the builtin ``open``."""
        flags = set(mode)
        if (
            not flags <= _MODE_CHARS
            or len(mode) != len(flags)
            or len(flags & set("rwax")) != 1
            or {"b", "t"} <= flags
        ):
            raise ValueError(f"invalid mode: {mode!r}")

        p = self.resolve(path)
        update = "+" in flags
        with self._lock:
            if "r" in flags:
                handle = _VirtualFile(self, p, self.read(p), readable=True, writable=update)
            elif "a" in flags:
                initial = self._files.get(p, b"")
                self.write(p, initial)
                handle = _VirtualFile(self, p, initial, readable=update, writable=True, append=True)
            else:
                if "x" in flags and p in self._files:
                    raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), p)
                self.write(p, b"")
                handle = _VirtualFile(self, p, b"", readable=update, writable=True)
            self._handles.add(handle)

        if "b" in flags:
            return handle
        return io.TextIOWrapper(handle, encoding=encoding or "utf-8", errors=errors, newline=newline)
