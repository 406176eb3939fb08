"""Turn a build directory into a single archive blob, and back.

Archives are tarballs with members relative to the source directory, added
in sorted order so the same tree always yields the same member list.
"""

from __future__ import annotations

import io
import os
import tarfile
from pathlib import Path

from kart.core.errors import SourceNotFoundError

_WRITE_MODES: dict[str, str] = {
    "tar.gz": "w:gz",
    "tgz": "w:gz",
    "tar.bz2": "w:bz2",
    "tar.xz": "w:xz",
    "tar": "w",
}

SUPPORTED_EXTENSIONS: tuple[str, ...] = tuple(_WRITE_MODES)


def _write_mode(ext: str) -> str:
    try:
        return _WRITE_MODES[ext]
    except KeyError:
        raise ValueError(
            f"Unsupported archive extension {ext!r}; "
            f"expected one of {', '.join(SUPPORTED_EXTENSIONS)}"
        ) from None


def check_source_dir(source_dir: Path | str) -> Path:
    """Return *source_dir* as a Path, or raise ``SourceNotFoundError``."""
    path = Path(source_dir)
    if not path.is_dir() or not os.access(path, os.R_OK | os.X_OK):
        raise SourceNotFoundError(path)
    return path


def pack_directory(source_dir: Path | str, ext: str = "tar.gz") -> bytes:
    """Archive the contents of *source_dir* and return the bytes."""
    mode = _write_mode(ext)
    source = check_source_dir(source_dir)
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tar:
        for path in sorted(source.rglob("*")):
            tar.add(path, arcname=path.relative_to(source).as_posix(), recursive=False)
    return buf.getvalue()


def unpack_archive(data: bytes, ext: str, dest_dir: Path | str) -> Path:
    """Extract archive *data* into *dest_dir*.

    Uses the ``data`` extraction filter: absolute paths, ``..`` members and
    links escaping *dest_dir* are rejected.
    """
    _write_mode(ext)
    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as tar:
        tar.extractall(dest, filter="data")
    return dest
