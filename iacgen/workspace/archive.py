"""
Deterministic zip packing of a scratch workspace.

Entries are written in lexicographic order of their relative path, with a
fixed timestamp and fixed permission bits, so the same directory tree always
yields the same archive bytes. Empty directories are kept as ``name/`` entries.
"""

from __future__ import annotations

import os
import zipfile
from pathlib import Path
from typing import List, Union

from iacgen.core.errors import ArchiveError

ARCHIVE_MEDIA_TYPE = "application/zip"

# zip cannot represent dates before 1980
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
FILE_MODE = 0o755


def _collect_entries(root: Path) -> List[Path]:
    """All files and directories below root (root excluded), sorted by relative path."""
    entries: List[Path] = []
    for current, dirnames, filenames in os.walk(root):
        current_path = Path(current)
        for name in dirnames:
            entries.append(current_path / name)
        for name in filenames:
            entries.append(current_path / name)
    entries.sort(key=lambda p: p.relative_to(root).as_posix())
    return entries


def _entry_info(name: str, is_dir: bool) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.create_system = 3  # unix, so external_attr carries POSIX mode bits
    if is_dir:
        info.compress_type = zipfile.ZIP_STORED
        info.external_attr = ((0o40000 | FILE_MODE) << 16) | 0x10
    else:
        info.external_attr = (0o100000 | FILE_MODE) << 16
    return info


def archive_directory(root: Union[str, Path], destination: Union[str, Path]) -> Path:
    """
    Pack every file and directory under ``root`` into a zip at ``destination``.

    Entry names are ``root``-relative with forward slashes; file bytes are
    stored unmodified (deflate-compressed).
    """
    root = Path(root)
    destination = Path(destination)
    if not root.is_dir():
        raise ArchiveError(f"Source path is not a directory: {root}")

    try:
        entries = _collect_entries(root)
        with zipfile.ZipFile(destination, "w", zipfile.ZIP_DEFLATED) as zf:
            for path in entries:
                name = path.relative_to(root).as_posix()
                if path.is_dir():
                    zf.writestr(_entry_info(name + "/", is_dir=True), b"")
                elif path.is_file():
                    zf.writestr(_entry_info(name, is_dir=False), path.read_bytes())
    except (OSError, zipfile.BadZipFile, ValueError) as e:
        raise ArchiveError(str(e)) from e

    return destination
