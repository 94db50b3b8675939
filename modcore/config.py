"""Settings for the moderation core.

Loaded from an optional YAML file and overridden by ``MODCORE_*``
environment variables::

    data_dir: /var/lib/modcore
    log_level: INFO
    admin_user_ids: [1, 2]
    report_suspension_days: 7
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from loguru import logger

from modcore.errors import InvalidArgument


@dataclass
class Settings:
    """Runtime configuration."""

    data_dir: str = ""
    log_level: str = "INFO"
    log_file: str = ""
    admin_user_ids: set[int] = field(default_factory=set)
    default_queue_priority: int = 3
    report_suspension_days: int = 7
    rules_file: str = ""
    words_file: str = ""

    def __post_init__(self) -> None:
        self.admin_user_ids = parse_user_ids(self.admin_user_ids)
        if not self.data_dir:
            self.data_dir = str(Path.home() / ".modcore" / "data")
        if self.report_suspension_days <= 0:
            raise InvalidArgument("report_suspension_days must be positive")
        if not 1 <= self.default_queue_priority <= 5:
            raise InvalidArgument("default_queue_priority must be between 1 and 5")


def parse_user_ids(raw: Any) -> set[int]:
    """Parse ``"1,2 3"``, ``"[1, 2]"`` or an iterable into a set of user ids."""
    if raw is None or raw == "":
        return set()
    if isinstance(raw, (list, tuple, set, frozenset)):
        items = list(raw)
    else:
        text = str(raw).strip()
        if text.startswith("["):
            try:
                items = json.loads(text)
            except json.JSONDecodeError:
                raise InvalidArgument(f"unparseable user id list: {text}") from None
        else:
            items = [p for p in re.split(r"[,;\s]+", text) if p]
    ids: set[int] = set()
    for item in items:
        try:
            ids.add(int(item))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-integer admin user id {item!r}")
    return ids


_ENV_KEYS = {
    "MODCORE_DATA_DIR": "data_dir",
    "MODCORE_LOG_LEVEL": "log_level",
    "MODCORE_LOG_FILE": "log_file",
    "MODCORE_ADMIN_USER_IDS": "admin_user_ids",
}


def load_settings(path: Optional[str | Path] = None, env: Optional[dict[str, str]] = None) -> Settings:
    """Build ``Settings`` from *path* (or ``$MODCORE_CONFIG``) plus environment overrides."""
    env = dict(os.environ) if env is None else env
    path = path or env.get("MODCORE_CONFIG")

    data: dict[str, Any] = {}
    if path:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise InvalidArgument(f"config file {path} must contain a mapping")
        data.update(loaded)

    for env_key, attr in _ENV_KEYS.items():
        value = env.get(env_key, "").strip()
        if value:
            data[attr] = value

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown settings: {', '.join(unknown)}")
    return Settings(**{k: v for k, v in data.items() if k in known})
