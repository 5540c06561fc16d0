from __future__ import annotations

import logging
import os
import yaml
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from infrastructure.paths import default_archive_path, resolve_task_file_path

logger = logging.getLogger("taskflow.config")

USER_CONFIG_PATH = Path.home() / ".taskflow_config.yaml"

ARCHIVE_MODES = ("manual", "auto-on-complete")
DEFAULT_TASK_FILE = "tasks.yaml"
DEFAULT_ARCHIVE_MAX_SIZE = 1000
DEFAULT_ARCHIVE_MAX_AGE_DAYS = 90
DEFAULT_LOG_LEVEL = "WARNING"


def user_config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    override = (env.get("TASKFLOW_CONFIG") or "").strip()
    return Path(override).expanduser() if override else USER_CONFIG_PATH


def _load_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level must be a mapping", path)
        return {}
    return data


def _first(env: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return None


def _int_setting(raw: Any, default: int, name: str) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r, using %d", name, raw, default)
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    task_file: Path
    archive_file: Path
    base_dir: Optional[Path] = None
    archive_mode: str = "manual"
    archive_max_size: int = DEFAULT_ARCHIVE_MAX_SIZE
    archive_max_age_days: int = DEFAULT_ARCHIVE_MAX_AGE_DAYS
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def auto_archive(self) -> bool:
        return self.archive_mode == "auto-on-complete"

    def with_overrides(
        self,
        *,
        task_file: Optional[str] = None,
        archive_file: Optional[str] = None,
        base_dir: Optional[str] = None,
    ) -> "Settings":
        """Apply CLI flags on top of env/config values."""
        base = Path(base_dir).expanduser().resolve() if base_dir else self.base_dir
        updated = replace(self, base_dir=base)
        if task_file or base_dir:
            raw_task = task_file or str(self.task_file)
            new_task = resolve_task_file_path(raw_task, base)
            updated = replace(updated, task_file=new_task)
            if not archive_file and self.archive_file == default_archive_path(self.task_file):
                updated = replace(updated, archive_file=default_archive_path(new_task))
        if archive_file:
            updated = replace(updated, archive_file=resolve_task_file_path(archive_file, base))
        return updated


def load_settings(env: Optional[Mapping[str, str]] = None, config_path: Optional[Path] = None) -> Settings:
    """Environment variables win over the YAML user config, which wins over defaults."""
    env = os.environ if env is None else env
    data = _load_config(config_path or user_config_path(env))

    raw_base = _first(env, "TASK_MANAGER_BASE_DIR") or data.get("base_dir")
    base_dir = Path(str(raw_base)).expanduser().resolve() if raw_base else None

    raw_task = _first(env, "TASK_FILE_PATH", "TASK_MANAGER_FILE_PATH") or data.get("task_file") or DEFAULT_TASK_FILE
    task_file = resolve_task_file_path(str(raw_task), base_dir)

    raw_archive = _first(env, "ARCHIVE_FILE_PATH") or data.get("archive_file")
    archive_file = resolve_task_file_path(str(raw_archive), base_dir) if raw_archive else default_archive_path(task_file)

    mode = str(_first(env, "ARCHIVE_MODE") or data.get("archive_mode") or "manual").strip().lower()
    if mode not in ARCHIVE_MODES:
        logger.warning("Unknown ARCHIVE_MODE %r, falling back to manual", mode)
        mode = "manual"

    return Settings(
        task_file=task_file,
        archive_file=archive_file,
        base_dir=base_dir,
        archive_mode=mode,
        archive_max_size=_int_setting(
            _first(env, "ARCHIVE_MAX_SIZE") or data.get("archive_max_size"),
            DEFAULT_ARCHIVE_MAX_SIZE,
            "ARCHIVE_MAX_SIZE",
        ),
        archive_max_age_days=_int_setting(
            _first(env, "ARCHIVE_MAX_AGE_DAYS") or data.get("archive_max_age_days"),
            DEFAULT_ARCHIVE_MAX_AGE_DAYS,
            "ARCHIVE_MAX_AGE_DAYS",
        ),
        log_level=str(_first(env, "TASKFLOW_LOG_LEVEL") or data.get("log_level") or DEFAULT_LOG_LEVEL).upper(),
    )
