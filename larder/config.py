"""TOML configuration loader for larder."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .db import DEFAULT_DB_PATH
from .meals import DEFAULT_VOTE_THRESHOLD

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class DatabaseConfig:
    path: str = DEFAULT_DB_PATH
    busy_timeout: float = 5.0


@dataclass
class MatcherConfig:
    min_match_percentage: int = 0


@dataclass
class FamilyConfig:
    default_vote_threshold: int = DEFAULT_VOTE_THRESHOLD


@dataclass
class SchedulerConfig:
    enabled: bool = True
    expiry_schedule: str = "0 8 * * *"
    expiry_days: int = 3
    expired_grace_days: int = 1


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class LarderConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    family: FamilyConfig = field(default_factory=FamilyConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> LarderConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path can be supplied via ``LARDER_DB_PATH`` when the file
    leaves it out.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    dbs = raw.get("database", {})
    mat = raw.get("matcher", {})
    fam = raw.get("family", {})
    sch = raw.get("scheduler", {})
    log = raw.get("logging", {})

    # Resolve database path: config file → environment variable → default
    db_path = dbs.get("path", "") or os.environ.get("LARDER_DB_PATH", "") or DEFAULT_DB_PATH

    return LarderConfig(
        database=DatabaseConfig(
            path=db_path,
            busy_timeout=float(dbs.get("busy_timeout", 5.0)),
        ),
        matcher=MatcherConfig(
            min_match_percentage=mat.get("min_match_percentage", 0),
        ),
        family=FamilyConfig(
            default_vote_threshold=fam.get("default_vote_threshold", DEFAULT_VOTE_THRESHOLD),
        ),
        scheduler=SchedulerConfig(
            enabled=sch.get("enabled", True),
            expiry_schedule=sch.get("expiry_schedule", "0 8 * * *"),
            expiry_days=sch.get("expiry_days", 3),
            expired_grace_days=sch.get("expired_grace_days", 1),
        ),
        logging=LoggingConfig(
            level=str(log.get("level", "WARNING")).upper(),
        ),
    )
