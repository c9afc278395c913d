from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from blinksync.config import SyncOptions, validate_options
from blinksync.filesystem import FileSystem, LocalFileSystem
from blinksync.filters import should_exclude
from blinksync.lister import list_files, list_subdirectories
from blinksync.models import SyncError, SyncOutcome, SyncResults


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def paths_overlap(first: Path, second: Path) -> bool:
    """True when either path equals or lies inside the other.

    Compares whole path components, so ``/data/src2`` is not inside ``/data/src``.
    """
    return first == second or first in second.parents or second in first.parents


def validate_sync_request(
    source: Path,
    destination: Path,
    options: SyncOptions,
    fs: FileSystem,
) -> None:
    validate_options(options)

    if paths_overlap(source.resolve(), destination.resolve()):
        raise ValueError(
            f"source directory {source} and destination directory {destination} "
            "cannot contain each other"
        )

    if not fs.is_dir(source):
        raise ValueError(f"source directory {source} not found")


class _Reconciler:
    def __init__(
        self,
        fs: FileSystem,
        options: SyncOptions,
        results: SyncResults,
        log: ProgressCallback,
    ) -> None:
        self._fs = fs
        self._options = options
        self._results = results
        self._log = log

    def _progress(self, message: str) -> None:
        if not self._options.quiet:
            self._log(message)

    def _fail(self, operation: str, path: Path, message: str) -> SyncError:
        logger.error("Error: %s", message)
        return SyncError(operation=operation, path=path, message=message)

    def process_directory(self, source_dir: Path, dest_dir: Path) -> SyncError | None:
        fs = self._fs
        options = self._options
        results = self._results

        if not fs.is_dir(dest_dir):
            self._progress(f"Creating directory: {dest_dir}")
            try:
                fs.make_dir(dest_dir)
            except OSError as exc:
                return self._fail(
                    "create_directory", dest_dir, f"failed to create directory {dest_dir}. {exc}"
                )
            results.directories_created += 1

        try:
            source_files = list_files(fs, source_dir, options, results)
            dest_files = list_files(fs, dest_dir)
        except OSError as exc:
            return self._fail("list", source_dir, f"failed to list files of {source_dir}. {exc}")

        source_by_name = {entry.name: entry for entry in source_files}
        dest_by_name = {entry.name: entry for entry in dest_files}

        for source_file in source_files:
            dest_file = dest_by_name.get(source_file.name)
            if dest_file is not None and source_file.is_up_to_date_with(dest_file):
                results.files_up_to_date += 1
                continue

            dest_path = dest_dir / source_file.name
            self._progress(f"Copying: {source_file.path} -> {dest_path}")
            try:
                if dest_file is not None and dest_file.is_readonly:
                    fs.clear_readonly(dest_path)
                fs.copy_file(source_file.path, dest_path)
                fs.set_attributes(dest_path, source_file.attributes)
            except OSError as exc:
                return self._fail(
                    "copy",
                    source_file.path,
                    f"failed to copy file from {source_file.path} to {dest_path}. {exc}",
                )
            results.files_copied += 1

        if options.delete_from_dest:
            for dest_file in dest_files:
                if dest_file.name in source_by_name:
                    continue
                if should_exclude(options.delete_exclude_files, None, dest_file.name):
                    continue

                self._progress(f"Deleting: {dest_file.path}")
                try:
                    fs.clear_readonly(dest_file.path)
                    fs.delete_file(dest_file.path)
                except OSError as exc:
                    return self._fail(
                        "delete", dest_file.path, f"failed to delete file {dest_file.path}. {exc}"
                    )
                results.files_deleted += 1

        try:
            source_subdirs = list_subdirectories(fs, source_dir, options, results)
            dest_subdirs = list_subdirectories(fs, dest_dir)
        except OSError as exc:
            return self._fail(
                "list", source_dir, f"failed to list subdirectories of {source_dir}. {exc}"
            )

        source_subdir_names: set[str] = set()
        for source_subdir in source_subdirs:
            source_subdir_names.add(source_subdir.name)
            error = self.process_directory(source_subdir.path, dest_dir / source_subdir.name)
            if error is not None:
                return error

        if options.delete_from_dest:
            for dest_subdir in dest_subdirs:
                if dest_subdir.name in source_subdir_names:
                    continue
                if should_exclude(options.delete_exclude_dirs, None, dest_subdir.name):
                    continue

                self._progress(f"Deleting directory: {dest_subdir.path}")
                try:
                    fs.erase_tree(dest_subdir.path)
                except OSError as exc:
                    return self._fail(
                        "delete_directory",
                        dest_subdir.path,
                        f"failed to delete directory {dest_subdir.path}. {exc}",
                    )
                results.directories_deleted += 1

        return None


def sync_tree(
    source: Path | str,
    destination: Path | str,
    options: SyncOptions,
    fs: FileSystem | None = None,
    log: ProgressCallback | None = None,
) -> SyncOutcome:
    """One-way sync of the ``source`` tree onto ``destination``.

    Preconditions are checked before anything is touched. The first
    filesystem error stops the whole run; counters gathered up to that point
    are kept on the returned outcome.
    """
    fs = fs or LocalFileSystem()
    source_path = Path(os.path.abspath(source))
    destination_path = Path(os.path.abspath(destination))
    outcome = SyncOutcome()

    try:
        validate_sync_request(source_path, destination_path, options, fs)
    except ValueError as exc:
        logger.error("Error: %s", exc)
        outcome.error = SyncError(operation="validate", path=source_path, message=str(exc))
        return outcome

    reconciler = _Reconciler(fs, options, outcome.results, log or logger.info)
    outcome.error = reconciler.process_directory(source_path, destination_path)
    return outcome
