from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging

from blinksync.config import get_job, load_config
from blinksync.mirror_engine import sync_tree
from blinksync.models import SyncResults


EXIT_SUCCESS = 0
EXIT_SYNC_FAILED = 1
EXIT_USAGE = 2
EXIT_INVALID_CONFIG = 3
EXIT_PARTIAL_FAILURES = 4


@dataclass(slots=True)
class RunSummary:
    files_copied: int = 0
    files_up_to_date: int = 0
    files_deleted: int = 0
    files_ignored: int = 0
    directories_created: int = 0
    directories_deleted: int = 0
    directories_ignored: int = 0
    processed_jobs: int = 0
    failed_jobs: int = 0
    partial_failures: bool = False

    def absorb(self, results: SyncResults, success: bool) -> None:
        self.files_copied += results.files_copied
        self.files_up_to_date += results.files_up_to_date
        self.files_deleted += results.files_deleted
        self.files_ignored += results.files_ignored
        self.directories_created += results.directories_created
        self.directories_deleted += results.directories_deleted
        self.directories_ignored += results.directories_ignored
        self.processed_jobs += 1
        if not success:
            self.failed_jobs += 1
            self.partial_failures = True


def run_sync_jobs(
    config_path: Path,
    job_name: str | None = None,
    continue_on_error: bool = True,
    logger: logging.Logger | None = None,
) -> tuple[int, RunSummary]:
    log = logger or logging.getLogger("blinksync.run")

    try:
        config = load_config(config_path)
        jobs = get_job(config, job_name)
    except Exception as exc:
        log.error("Invalid config: %s", exc)
        return EXIT_INVALID_CONFIG, RunSummary(partial_failures=True)

    summary = RunSummary()

    for job in jobs:
        outcome = sync_tree(job.source, job.target, job.options, log=log.info)
        summary.absorb(outcome.results, outcome.success)
        results = outcome.results

        if outcome.success:
            log.info(
                "[%s] %s -> %s | copied=%s upToDate=%s deleted=%s ignored=%s "
                "dirsCreated=%s dirsDeleted=%s dirsIgnored=%s",
                job.name,
                job.source,
                job.target,
                results.files_copied,
                results.files_up_to_date,
                results.files_deleted,
                results.files_ignored,
                results.directories_created,
                results.directories_deleted,
                results.directories_ignored,
            )
            continue

        log.error("[%s] sync failed for %s -> %s: %s", job.name, job.source, job.target, outcome.error)
        if not continue_on_error:
            return EXIT_SYNC_FAILED, summary

    exit_code = EXIT_PARTIAL_FAILURES if summary.partial_failures else EXIT_SUCCESS
    return exit_code, summary
