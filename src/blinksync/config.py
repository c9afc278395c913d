from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import json

import pathspec
import yaml

from blinksync.filespec import FilespecParseError, compile_filespecs, parse_filespec_list


@dataclass(slots=True)
class SyncOptions:
    quiet: bool = False
    exclude_hidden: bool = False
    delete_from_dest: bool = False
    exclude_files: pathspec.PathSpec | None = None
    include_files: pathspec.PathSpec | None = None
    exclude_dirs: pathspec.PathSpec | None = None
    include_dirs: pathspec.PathSpec | None = None
    delete_exclude_files: pathspec.PathSpec | None = None
    delete_exclude_dirs: pathspec.PathSpec | None = None

    @property
    def is_filtered(self) -> bool:
        return (
            self.exclude_hidden
            or self.exclude_files is not None
            or self.include_files is not None
            or self.exclude_dirs is not None
            or self.include_dirs is not None
        )


def validate_options(options: SyncOptions) -> None:
    if options.include_files is not None and options.exclude_files is not None:
        raise ValueError("Include and exclude file filespecs may not be combined")
    if options.include_dirs is not None and options.exclude_dirs is not None:
        raise ValueError("Include and exclude directory filespecs may not be combined")
    if (
        options.delete_exclude_files is not None or options.delete_exclude_dirs is not None
    ) and not options.delete_from_dest:
        raise ValueError("Exclude-from-deletion filespecs require deletion from destination")


@dataclass(slots=True)
class JobConfig:
    name: str
    source: Path
    target: Path
    options: SyncOptions


@dataclass(slots=True)
class AppConfig:
    jobs: list[JobConfig]


def _as_path(value: Any, field_name: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string path")
    return Path(value).expanduser()


def _as_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be a boolean")


def _as_filespecs(value: Any, field_name: str) -> pathspec.PathSpec | None:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            patterns = parse_filespec_list(value)
        except FilespecParseError as exc:
            raise ValueError(f"{field_name}: {exc}") from exc
    elif isinstance(value, list) and all(isinstance(item, str) for item in value):
        patterns = [item for item in value if item.strip()]
    else:
        raise ValueError(f"{field_name} must be a filespec list string or a list of strings")
    return compile_filespecs(patterns)


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    else:
        raise ValueError("Config file must be .yaml/.yml or .json")

    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def _parse_options(raw_job: dict[str, Any], prefix: str) -> SyncOptions:
    options = SyncOptions(
        quiet=_as_bool(raw_job.get("quiet"), f"{prefix}.quiet", default=False),
        exclude_hidden=_as_bool(raw_job.get("excludeHidden"), f"{prefix}.excludeHidden", default=False),
        delete_from_dest=_as_bool(
            raw_job.get("deleteFromDest"), f"{prefix}.deleteFromDest", default=False
        ),
        exclude_files=_as_filespecs(raw_job.get("excludeFiles"), f"{prefix}.excludeFiles"),
        include_files=_as_filespecs(raw_job.get("includeFiles"), f"{prefix}.includeFiles"),
        exclude_dirs=_as_filespecs(raw_job.get("excludeDirs"), f"{prefix}.excludeDirs"),
        include_dirs=_as_filespecs(raw_job.get("includeDirs"), f"{prefix}.includeDirs"),
        delete_exclude_files=_as_filespecs(
            raw_job.get("deleteExcludeFiles"), f"{prefix}.deleteExcludeFiles"
        ),
        delete_exclude_dirs=_as_filespecs(
            raw_job.get("deleteExcludeDirs"), f"{prefix}.deleteExcludeDirs"
        ),
    )
    try:
        validate_options(options)
    except ValueError as exc:
        raise ValueError(f"{prefix}: {exc}") from exc
    return options


def load_config(config_path: Path) -> AppConfig:
    raw = _load_raw_config(config_path)
    raw_jobs = raw.get("jobs")
    if not isinstance(raw_jobs, list) or not raw_jobs:
        raise ValueError("Config must contain non-empty 'jobs' list")

    jobs: list[JobConfig] = []
    names: set[str] = set()

    for index, raw_job in enumerate(raw_jobs):
        prefix = f"jobs[{index}]"
        if not isinstance(raw_job, dict):
            raise ValueError(f"{prefix} must be an object")

        name = raw_job.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"{prefix}.name must be a non-empty string")
        if name in names:
            raise ValueError(f"Duplicate job name: {name}")
        names.add(name)

        jobs.append(
            JobConfig(
                name=name,
                source=_as_path(raw_job.get("source"), f"{prefix}.source"),
                target=_as_path(raw_job.get("target"), f"{prefix}.target"),
                options=_parse_options(raw_job, prefix),
            )
        )

    return AppConfig(jobs=jobs)


def get_job(config: AppConfig, job_name: str | None) -> list[JobConfig]:
    if not job_name:
        return config.jobs
    matched = [job for job in config.jobs if job.name == job_name]
    if not matched:
        raise ValueError(f"No job named '{job_name}' found")
    return matched
