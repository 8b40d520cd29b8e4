"""File primitives shared by the local adapters, config loading and auditing.

Writers replace files atomically (temp file in the target directory, fsync,
``os.replace``). Readers and appenders take a ``flock`` on the open handle so
a concurrent writer in another process never interleaves with them.
"""
from __future__ import annotations

import fcntl
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Callable, Iterator, TextIO, Union

PathLike = Union[str, Path]


@contextmanager
def locked(handle: IO, *, exclusive: bool = False) -> Iterator[IO]:
    """Hold an advisory lock on ``handle`` for the duration of the block."""
    fcntl.flock(handle.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
    try:
        yield handle
    finally:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def ensure_parent_dir(path: PathLike) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def ensure_directory(path: PathLike, create: bool = True) -> Path:
    """Return ``path`` as an existing directory.

    Raises NotADirectoryError when something else lives there, and
    FileNotFoundError when it is missing and ``create`` is False.
    """
    directory = Path(path)
    if directory.is_dir():
        return directory
    if directory.exists():
        raise NotADirectoryError(f"Path exists but is not a directory: {directory}")
    if not create:
        raise FileNotFoundError(f"Directory does not exist: {directory}")
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def atomic_write(
    path: PathLike,
    write_fn: Callable[[TextIO], None],
    *,
    encoding: str = "utf-8",
) -> None:
    """Have ``write_fn`` fill a temp file, then swap it in for ``path``.

    The target is either untouched or fully replaced; the temp file is removed
    when ``write_fn`` raises.
    """
    target = Path(path)
    ensure_parent_dir(target)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle, locked(handle, exclusive=True):
            write_fn(handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, target)
    finally:
        tmp.unlink(missing_ok=True)


def read_text(path: PathLike) -> str:
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"Text file not found: {source}")
    return source.read_text(encoding="utf-8")


def write_text(path: PathLike, content: str) -> None:
    atomic_write(path, lambda handle: handle.write(content))


__all__ = [
    "PathLike",
    "locked",
    "ensure_parent_dir",
    "ensure_directory",
    "atomic_write",
    "read_text",
    "write_text",
]
