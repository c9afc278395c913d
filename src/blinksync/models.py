from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


# Bit values follow the Windows file attribute word.
ATTR_READONLY = 0x1
ATTR_HIDDEN = 0x2
ATTR_SYSTEM = 0x4
ATTR_ARCHIVE = 0x20


@dataclass(slots=True)
class SyncResults:
    files_copied: int = 0
    files_up_to_date: int = 0
    files_deleted: int = 0
    files_ignored: int = 0
    directories_created: int = 0
    directories_deleted: int = 0
    directories_ignored: int = 0


@dataclass(slots=True, frozen=True)
class FileEntry:
    name: str
    path: Path
    size: int
    mtime_ns: int
    attributes: int = 0

    @property
    def is_hidden(self) -> bool:
        return bool(self.attributes & ATTR_HIDDEN)

    @property
    def is_readonly(self) -> bool:
        return bool(self.attributes & ATTR_READONLY)

    def is_up_to_date_with(self, other: FileEntry) -> bool:
        """True when size, last-write time and attribute flags are all equal."""
        return (
            self.size == other.size
            and self.mtime_ns == other.mtime_ns
            and self.attributes == other.attributes
        )


@dataclass(slots=True, frozen=True)
class DirectoryEntry:
    name: str
    path: Path
    attributes: int = 0

    @property
    def is_hidden(self) -> bool:
        return bool(self.attributes & ATTR_HIDDEN)


@dataclass(slots=True, frozen=True)
class SyncError:
    operation: str
    path: Path
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class SyncOutcome:
    results: SyncResults = field(default_factory=SyncResults)
    error: SyncError | None = None

    @property
    def success(self) -> bool:
        return self.error is None
