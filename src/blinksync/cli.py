from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

import pathspec

from blinksync.config import SyncOptions, get_job, load_config
from blinksync.filespec import FilespecParseError, compile_filespec_list
from blinksync.mirror_engine import sync_tree
from blinksync.models import SyncResults
from blinksync.run_service import (
    EXIT_INVALID_CONFIG,
    EXIT_SUCCESS,
    EXIT_SYNC_FAILED,
    EXIT_USAGE,
    run_sync_jobs,
)


def _filespec_list(value: str) -> pathspec.PathSpec:
    try:
        return compile_filespec_list(value)
    except FilespecParseError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blinksync", description="One-way directory tree sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync",
        help="Sync a source directory tree onto a destination tree",
        epilog=(
            "Include/exclude files options (-if and -xf) may not be combined. "
            "Include/exclude directories options (-id and -xd) may not be combined. "
            "Exclude-from-deletion options (-ndf and -ndd) require deletion (-d) enabled."
        ),
    )
    sync_parser.add_argument("-q", dest="quiet", action="store_true", help="Quiet")
    sync_parser.add_argument(
        "-d",
        dest="delete_from_dest",
        action="store_true",
        help="Delete files and directories in destination which do not appear in source",
    )
    sync_parser.add_argument(
        "-xh",
        dest="exclude_hidden",
        action="store_true",
        help="Exclude hidden files and directories from source",
    )
    file_filters = sync_parser.add_mutually_exclusive_group()
    file_filters.add_argument(
        "-xf",
        dest="exclude_files",
        metavar="FILESPECS",
        type=_filespec_list,
        help="Exclude files from source that match any of the comma-separated filespecs",
    )
    file_filters.add_argument(
        "-if",
        dest="include_files",
        metavar="FILESPECS",
        type=_filespec_list,
        help="Only include files from source that match one of the filespecs",
    )
    dir_filters = sync_parser.add_mutually_exclusive_group()
    dir_filters.add_argument(
        "-xd",
        dest="exclude_dirs",
        metavar="FILESPECS",
        type=_filespec_list,
        help="Exclude directories from source that match any of the filespecs",
    )
    dir_filters.add_argument(
        "-id",
        dest="include_dirs",
        metavar="FILESPECS",
        type=_filespec_list,
        help="Only include directories from source that match one of the filespecs",
    )
    sync_parser.add_argument(
        "-ndf",
        dest="delete_exclude_files",
        metavar="FILESPECS",
        type=_filespec_list,
        help="Exclude files from deletion that match any of the filespecs",
    )
    sync_parser.add_argument(
        "-ndd",
        dest="delete_exclude_dirs",
        metavar="FILESPECS",
        type=_filespec_list,
        help="Exclude directories from deletion that match any of the filespecs",
    )
    sync_parser.add_argument("source", type=Path)
    sync_parser.add_argument("destination", type=Path)

    run_parser = subparsers.add_parser("run", help="Run sync jobs from a config file")
    run_parser.add_argument("--config", required=True, type=Path)
    run_parser.add_argument("--job", help="Run only one job by name")
    run_parser.add_argument("--stop-on-error", action="store_true")
    run_parser.add_argument("--log-file", type=Path, default=None)

    validate_parser = subparsers.add_parser("validate-config", help="Validate config")
    validate_parser.add_argument("--config", required=True, type=Path)

    list_parser = subparsers.add_parser("list", help="List jobs and their source -> target mapping")
    list_parser.add_argument("--config", required=True, type=Path)
    list_parser.add_argument("--job", help="List only one job by name")

    return parser


def _print_completion(results: SyncResults) -> None:
    print(
        f"Sync completed. {results.files_copied} file(s) copied, "
        f"{results.files_up_to_date} file(s) up to date, "
        f"{results.files_deleted} file(s) deleted, "
        f"{results.directories_deleted} directories deleted"
    )


def cmd_sync(args: argparse.Namespace) -> int:
    options = SyncOptions(
        quiet=args.quiet,
        exclude_hidden=args.exclude_hidden,
        delete_from_dest=args.delete_from_dest,
        exclude_files=args.exclude_files,
        include_files=args.include_files,
        exclude_dirs=args.exclude_dirs,
        include_dirs=args.include_dirs,
        delete_exclude_files=args.delete_exclude_files,
        delete_exclude_dirs=args.delete_exclude_dirs,
    )

    outcome = sync_tree(args.source, args.destination, options, log=print)
    if outcome.error is not None and outcome.error.operation == "validate":
        return EXIT_USAGE
    if not outcome.success:
        print("Sync failed.", file=sys.stderr)
        return EXIT_SYNC_FAILED

    _print_completion(outcome.results)
    return EXIT_SUCCESS


def cmd_run(config_path: Path, job_name: str | None, stop_on_error: bool, log_file: Path | None) -> int:
    logger = logging.getLogger("blinksync.run")
    logger.setLevel(logging.INFO)
    file_handler: RotatingFileHandler | None = None
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(file_handler)

    try:
        exit_code, _ = run_sync_jobs(
            config_path=config_path,
            job_name=job_name,
            continue_on_error=not stop_on_error,
            logger=logger,
        )
    finally:
        if file_handler is not None:
            logger.removeHandler(file_handler)
            file_handler.close()
    return exit_code


def cmd_validate(config_path: Path) -> int:
    try:
        config = load_config(config_path)
    except Exception as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    print(f"Valid config: {config_path} ({len(config.jobs)} job(s))")
    for job in config.jobs:
        print(
            f"  - job={job.name} "
            f"deleteFromDest={str(job.options.delete_from_dest).lower()} "
            f"excludeHidden={str(job.options.exclude_hidden).lower()} "
            f"filtered={str(job.options.is_filtered).lower()}"
        )
    return EXIT_SUCCESS


def cmd_list(config_path: Path, job_name: str | None) -> int:
    try:
        config = load_config(config_path)
        jobs = get_job(config, job_name)
    except Exception as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    for job in jobs:
        print(f"{job.name}: {job.source} -> {job.target}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    if args.command == "sync":
        if (args.delete_exclude_files is not None or args.delete_exclude_dirs is not None) and (
            not args.delete_from_dest
        ):
            parser.error("exclude-from-deletion options (-ndf and -ndd) require deletion (-d) enabled")
        return cmd_sync(args)
    if args.command == "run":
        return cmd_run(
            config_path=args.config,
            job_name=args.job,
            stop_on_error=args.stop_on_error,
            log_file=args.log_file,
        )
    if args.command == "validate-config":
        return cmd_validate(args.config)
    if args.command == "list":
        return cmd_list(config_path=args.config, job_name=args.job)

    parser.print_help()
    return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
