from __future__ import annotations

import os
from pathlib import Path
import shutil
import stat
from typing import Protocol

from blinksync.models import (
    ATTR_ARCHIVE,
    ATTR_HIDDEN,
    ATTR_READONLY,
    ATTR_SYSTEM,
    DirectoryEntry,
    FileEntry,
)


_WINDOWS = os.name == "nt"
_WINDOWS_ATTRIBUTE_MASK = ATTR_READONLY | ATTR_HIDDEN | ATTR_SYSTEM | ATTR_ARCHIVE
_FILE_ATTRIBUTE_NORMAL = 0x80
_WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH


class FileSystem(Protocol):
    """Operations the reconciler needs from a directory tree.

    Every mutating call raises ``OSError`` on failure.
    """

    def is_dir(self, path: Path) -> bool: ...

    def make_dir(self, path: Path) -> None: ...

    def list_files(self, directory: Path) -> list[FileEntry]: ...

    def list_directories(self, directory: Path) -> list[DirectoryEntry]: ...

    def copy_file(self, source: Path, destination: Path) -> None: ...

    def set_attributes(self, path: Path, attributes: int) -> None: ...

    def clear_readonly(self, path: Path) -> None: ...

    def delete_file(self, path: Path) -> None: ...

    def erase_tree(self, directory: Path) -> None: ...


def _attributes_from_stat(name: str, st: os.stat_result) -> int:
    if _WINDOWS:
        return getattr(st, "st_file_attributes", 0) & _WINDOWS_ATTRIBUTE_MASK

    attributes = 0
    if not st.st_mode & stat.S_IWUSR:
        attributes |= ATTR_READONLY
    if name.startswith("."):
        attributes |= ATTR_HIDDEN
    return attributes


def _set_windows_attributes(path: Path, attributes: int) -> None:
    import ctypes

    value = attributes & _WINDOWS_ATTRIBUTE_MASK or _FILE_ATTRIBUTE_NORMAL
    if not ctypes.windll.kernel32.SetFileAttributesW(str(path), value):
        raise ctypes.WinError()


def _make_writable(path: Path) -> None:
    if path.is_symlink():
        return
    mode = path.stat().st_mode
    if not mode & stat.S_IWUSR:
        path.chmod(stat.S_IMODE(mode) | stat.S_IWUSR)


def _remove_link(path: Path) -> None:
    if _WINDOWS and path.is_dir():
        path.rmdir()
    else:
        path.unlink()


def erase_tree(directory: Path) -> None:
    """Delete ``directory`` and everything below it, read-only entries included.

    A symlink is removed itself; its target is left untouched.
    """
    if directory.is_symlink():
        _remove_link(directory)
        return

    _make_writable(directory)
    for root_str, dirs, files in os.walk(directory):
        root = Path(root_str)
        for name in dirs + files:
            _make_writable(root / name)
    shutil.rmtree(directory)


class LocalFileSystem:
    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def make_dir(self, path: Path) -> None:
        path.mkdir(parents=True)

    def list_files(self, directory: Path) -> list[FileEntry]:
        entries: list[FileEntry] = []
        with os.scandir(directory) as scan:
            for entry in scan:
                if not entry.is_file():
                    continue
                st = entry.stat()
                entries.append(
                    FileEntry(
                        name=entry.name,
                        path=Path(entry.path),
                        size=st.st_size,
                        mtime_ns=st.st_mtime_ns,
                        attributes=_attributes_from_stat(entry.name, st),
                    )
                )
        return entries

    def list_directories(self, directory: Path) -> list[DirectoryEntry]:
        entries: list[DirectoryEntry] = []
        with os.scandir(directory) as scan:
            for entry in scan:
                if not entry.is_dir():
                    continue
                entries.append(
                    DirectoryEntry(
                        name=entry.name,
                        path=Path(entry.path),
                        attributes=_attributes_from_stat(entry.name, entry.stat()),
                    )
                )
        return entries

    def copy_file(self, source: Path, destination: Path) -> None:
        if _WINDOWS and destination.exists():
            # Hidden or system targets cannot be truncated in place.
            _set_windows_attributes(destination, 0)
        shutil.copy2(source, destination)

    def set_attributes(self, path: Path, attributes: int) -> None:
        if _WINDOWS:
            _set_windows_attributes(path, attributes)
            return

        mode = stat.S_IMODE(path.stat().st_mode)
        if attributes & ATTR_READONLY:
            wanted = mode & ~_WRITE_BITS
        else:
            wanted = mode | stat.S_IWUSR
        if wanted != mode:
            path.chmod(wanted)

    def clear_readonly(self, path: Path) -> None:
        _make_writable(path)

    def delete_file(self, path: Path) -> None:
        path.unlink()

    def erase_tree(self, directory: Path) -> None:
        erase_tree(directory)
