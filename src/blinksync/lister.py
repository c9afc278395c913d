from __future__ import annotations

from pathlib import Path

from blinksync.config import SyncOptions
from blinksync.filesystem import FileSystem
from blinksync.filters import should_exclude
from blinksync.models import DirectoryEntry, FileEntry, SyncResults


def list_files(
    fs: FileSystem,
    directory: Path,
    options: SyncOptions | None = None,
    results: SyncResults | None = None,
) -> list[FileEntry]:
    """List the files directly inside ``directory``.

    Without options (or with unfiltered options) every file is returned; this
    is how destination listings are taken. Otherwise hidden files and names
    rejected by the file filespecs are dropped and counted as ignored.
    """
    files = fs.list_files(directory)
    if options is None or not options.is_filtered:
        return files

    kept: list[FileEntry] = []
    for entry in files:
        if (options.exclude_hidden and entry.is_hidden) or should_exclude(
            options.exclude_files, options.include_files, entry.name
        ):
            if results is not None:
                results.files_ignored += 1
            continue
        kept.append(entry)
    return kept


def list_subdirectories(
    fs: FileSystem,
    directory: Path,
    options: SyncOptions | None = None,
    results: SyncResults | None = None,
) -> list[DirectoryEntry]:
    """Directory counterpart of :func:`list_files`, using the directory filespecs."""
    directories = fs.list_directories(directory)
    if options is None or not options.is_filtered:
        return directories

    kept: list[DirectoryEntry] = []
    for entry in directories:
        if (options.exclude_hidden and entry.is_hidden) or should_exclude(
            options.exclude_dirs, options.include_dirs, entry.name
        ):
            if results is not None:
                results.directories_ignored += 1
            continue
        kept.append(entry)
    return kept
