import logging
from pathlib import Path

import pytest

from blinksync.run_service import (
    EXIT_INVALID_CONFIG,
    EXIT_PARTIAL_FAILURES,
    EXIT_SUCCESS,
    EXIT_SYNC_FAILED,
    run_sync_jobs,
)


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _posix(path: Path) -> str:
    return path.as_posix()


def _config(tmp_path: Path, jobs: list[tuple[str, Path, Path]], extra: str = "") -> Path:
    lines = ["jobs:"]
    for name, source, target in jobs:
        lines.append(f"  - name: {name}")
        lines.append(f"    source: {_posix(source)}")
        lines.append(f"    target: {_posix(target)}")
        if extra:
            lines.append(f"    {extra}")
    config_file = tmp_path / "cfg.yaml"
    config_file.write_text("\n".join(lines), encoding="utf-8")
    return config_file


def test_run_service_runs_job_successfully(tmp_path: Path) -> None:
    src = tmp_path / "repo"
    target = tmp_path / "target"
    _write(src / "a.txt", "1")
    _write(src / "sub" / "b.txt", "2")
    config_file = _config(tmp_path, [("j", src, target)])

    exit_code, summary = run_sync_jobs(config_path=config_file)

    assert exit_code == EXIT_SUCCESS
    assert summary.processed_jobs == 1
    assert summary.files_copied == 2
    assert summary.directories_created == 2
    assert summary.failed_jobs == 0
    assert (target / "sub" / "b.txt").exists()


def test_run_service_logs_progress_and_summary(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    src = tmp_path / "repo"
    target = tmp_path / "target"
    _write(src / "a.txt", "1")
    config_file = _config(tmp_path, [("j", src, target)])

    with caplog.at_level(logging.INFO, logger="blinksync.run"):
        run_sync_jobs(config_path=config_file)

    assert f"Creating directory: {target}" in caplog.text
    assert "[j]" in caplog.text
    assert "copied=1" in caplog.text


def test_run_service_quiet_job_logs_only_summary(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    src = tmp_path / "repo"
    target = tmp_path / "target"
    _write(src / "a.txt", "1")
    config_file = _config(tmp_path, [("j", src, target)], extra="quiet: true")

    with caplog.at_level(logging.INFO, logger="blinksync.run"):
        run_sync_jobs(config_path=config_file)

    assert "Copying:" not in caplog.text
    assert "copied=1" in caplog.text


def test_run_service_selects_job_by_name(tmp_path: Path) -> None:
    src_one = tmp_path / "one"
    src_two = tmp_path / "two"
    _write(src_one / "a.txt", "1")
    _write(src_two / "b.txt", "2")
    config_file = _config(
        tmp_path, [("first", src_one, tmp_path / "out-one"), ("second", src_two, tmp_path / "out-two")]
    )

    exit_code, summary = run_sync_jobs(config_path=config_file, job_name="second")

    assert exit_code == EXIT_SUCCESS
    assert summary.processed_jobs == 1
    assert not (tmp_path / "out-one").exists()
    assert (tmp_path / "out-two" / "b.txt").exists()


def test_run_service_failed_job_is_partial_failure(tmp_path: Path) -> None:
    good = tmp_path / "good"
    _write(good / "a.txt", "1")
    config_file = _config(
        tmp_path,
        [("missing", tmp_path / "nope", tmp_path / "out-missing"), ("good", good, tmp_path / "out-good")],
    )

    exit_code, summary = run_sync_jobs(config_path=config_file)

    assert exit_code == EXIT_PARTIAL_FAILURES
    assert summary.processed_jobs == 2
    assert summary.failed_jobs == 1
    assert summary.partial_failures is True
    assert (tmp_path / "out-good" / "a.txt").exists()


def test_run_service_stops_on_first_failure_when_asked(tmp_path: Path) -> None:
    good = tmp_path / "good"
    _write(good / "a.txt", "1")
    config_file = _config(
        tmp_path,
        [("missing", tmp_path / "nope", tmp_path / "out-missing"), ("good", good, tmp_path / "out-good")],
    )

    exit_code, summary = run_sync_jobs(config_path=config_file, continue_on_error=False)

    assert exit_code == EXIT_SYNC_FAILED
    assert summary.processed_jobs == 1
    assert not (tmp_path / "out-good").exists()


def test_run_service_invalid_config(tmp_path: Path) -> None:
    config_file = tmp_path / "cfg.yaml"
    config_file.write_text("jobs: nope", encoding="utf-8")

    exit_code, summary = run_sync_jobs(config_path=config_file)

    assert exit_code == EXIT_INVALID_CONFIG
    assert summary.partial_failures is True
    assert summary.processed_jobs == 0
