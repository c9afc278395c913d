from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from blinksync.models import ATTR_HIDDEN, ATTR_READONLY, DirectoryEntry, FileEntry


@dataclass
class MemoryFile:
    data: bytes
    mtime_ns: int
    attributes: int = 0


class MemoryFileSystem:
    """In-memory tree implementing the reconciler's filesystem interface."""

    def __init__(self) -> None:
        self.dirs: dict[Path, int] = {}
        self.files: dict[Path, MemoryFile] = {}
        self.fail_copy_names: set[str] = set()
        self.fail_make_dirs: set[Path] = set()
        self.fail_delete_names: set[str] = set()
        self.fail_erase_dirs: set[Path] = set()
        self.calls: list[tuple[str, Path]] = []

    def add_dir(self, path: Path, attributes: int = 0) -> None:
        for parent in reversed(path.parents):
            self.dirs.setdefault(parent, 0)
        self.dirs[path] = attributes

    def add_file(self, path: Path, data: bytes, mtime_ns: int, attributes: int = 0) -> None:
        if path.parent not in self.dirs:
            self.add_dir(path.parent)
        self.files[path] = MemoryFile(data=data, mtime_ns=mtime_ns, attributes=attributes)

    def is_dir(self, path: Path) -> bool:
        return path in self.dirs

    def make_dir(self, path: Path) -> None:
        self.calls.append(("make_dir", path))
        if path in self.fail_make_dirs:
            raise PermissionError(f"Access denied: {path}")
        self.add_dir(path)

    def list_files(self, directory: Path) -> list[FileEntry]:
        if directory not in self.dirs:
            raise FileNotFoundError(directory)
        return [
            FileEntry(
                name=path.name,
                path=path,
                size=len(item.data),
                mtime_ns=item.mtime_ns,
                attributes=item.attributes,
            )
            for path, item in sorted(self.files.items())
            if path.parent == directory
        ]

    def list_directories(self, directory: Path) -> list[DirectoryEntry]:
        if directory not in self.dirs:
            raise FileNotFoundError(directory)
        return [
            DirectoryEntry(name=path.name, path=path, attributes=attributes)
            for path, attributes in sorted(self.dirs.items())
            if path.parent == directory and path != directory
        ]

    def copy_file(self, source: Path, destination: Path) -> None:
        self.calls.append(("copy_file", destination))
        if source.name in self.fail_copy_names:
            raise PermissionError(f"Access denied: {source}")
        existing = self.files.get(destination)
        if existing is not None and existing.attributes & ATTR_READONLY:
            raise PermissionError(f"Read-only: {destination}")
        item = self.files[source]
        attributes = existing.attributes if existing is not None else 0
        self.files[destination] = MemoryFile(data=item.data, mtime_ns=item.mtime_ns, attributes=attributes)

    def set_attributes(self, path: Path, attributes: int) -> None:
        self.calls.append(("set_attributes", path))
        self.files[path].attributes = attributes

    def clear_readonly(self, path: Path) -> None:
        self.calls.append(("clear_readonly", path))
        self.files[path].attributes &= ~ATTR_READONLY

    def delete_file(self, path: Path) -> None:
        self.calls.append(("delete_file", path))
        if path.name in self.fail_delete_names:
            raise PermissionError(f"Access denied: {path}")
        if self.files[path].attributes & ATTR_READONLY:
            raise PermissionError(f"Read-only: {path}")
        del self.files[path]

    def erase_tree(self, directory: Path) -> None:
        self.calls.append(("erase_tree", directory))
        if directory in self.fail_erase_dirs:
            raise PermissionError(f"Access denied: {directory}")
        for path in [path for path in self.files if directory in path.parents]:
            del self.files[path]
        for path in [path for path in self.dirs if path == directory or directory in path.parents]:
            del self.dirs[path]


SRC_ROOT = Path("/mem/src")
DEST_ROOT = Path("/mem/dest")


def populate(
    fs: MemoryFileSystem,
    root: Path,
    directories: list[str],
    files: list[str],
    hidden: set[str] | None = None,
) -> None:
    """Create ``directories`` and ``files`` (relative, ``/``-separated) under ``root``.

    File contents depend on the root name, so the same relative file created
    under two roots differs in size and timestamp.
    """
    hidden = hidden or set()
    fs.add_dir(root)
    for directory in directories:
        fs.add_dir(root / directory)
    for rel in files:
        data = f"{root.name}:{rel}".encode()
        fs.add_file(
            root / rel,
            data=data,
            mtime_ns=1_700_000_000_000_000_000 + len(data),
            attributes=ATTR_HIDDEN if rel in hidden else 0,
        )


def copy_into(fs: MemoryFileSystem, src_root: Path, dest_root: Path, files: list[str]) -> None:
    """Place exact copies (data, timestamp, attributes) of source files in the destination."""
    for rel in files:
        item = fs.files[src_root / rel]
        fs.add_file(dest_root / rel, data=item.data, mtime_ns=item.mtime_ns, attributes=item.attributes)


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()
