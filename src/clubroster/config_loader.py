"""Runtime settings from CLUBROSTER_* environment variables or a JSON profile."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from clubroster.config.formations import DEFAULT_FORMATION_ID, find_formation


logger = logging.getLogger(__name__)

_ENV_PREFIX = "CLUBROSTER_"


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_float(name: str, default: float, *, clamp_min: float | None = None, clamp_max: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    if clamp_max is not None:
        value = min(clamp_max, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


@dataclass
class Settings:
    db_path: Optional[str] = None
    default_formation: str = DEFAULT_FORMATION_ID
    upload_endpoint: Optional[str] = None
    upload_preset: Optional[str] = None
    upload_timeout: float = 30.0
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    def __post_init__(self) -> None:
        formation = find_formation(self.default_formation)
        if formation is None:
            logger.warning("Unknown default formation %r; using %s", self.default_formation, DEFAULT_FORMATION_ID)
            self.default_formation = DEFAULT_FORMATION_ID
        else:
            self.default_formation = formation.formation_id
        self.log_level = str(self.log_level).upper()

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            db_path=_env_str(f"{_ENV_PREFIX}DB_PATH", defaults.db_path),
            default_formation=_env_str(f"{_ENV_PREFIX}DEFAULT_FORMATION", defaults.default_formation),
            upload_endpoint=_env_str(f"{_ENV_PREFIX}UPLOAD_ENDPOINT", defaults.upload_endpoint),
            upload_preset=_env_str(f"{_ENV_PREFIX}UPLOAD_PRESET", defaults.upload_preset),
            upload_timeout=_env_float(f"{_ENV_PREFIX}UPLOAD_TIMEOUT", defaults.upload_timeout, clamp_min=1.0),
            log_level=_env_str(f"{_ENV_PREFIX}LOG_LEVEL", defaults.log_level),
            host=_env_str(f"{_ENV_PREFIX}HOST", defaults.host),
            port=_env_int(f"{_ENV_PREFIX}PORT", defaults.port, min_value=1, max_value=65535),
        )

    @classmethod
    def load(cls, path: Path) -> "Settings":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        known = {field.name for field in fields(cls)}
        ignored = sorted(set(data) - known)
        if ignored:
            logger.warning("Ignoring unknown settings in %s: %s", path, ", ".join(ignored))
        return cls(**{key: value for key, value in data.items() if key in known})

    def save(self, path: Path) -> None:
        Path(path).write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
