#!/usr/bin/env python3

"""
feindexer.config
----------------
Connection and tuning settings, loaded once at process start.

Two YAML files are merged:

* the *public* config (``config.yml``): index base URL, timeouts, per-indexer
  chunk / batch sizes, logging;
* the *sensitive* config (``.config/sensitive_config.yml[.age]``): database
  URL and credentials, optional SSH bastion.  Files ending in ``.age`` are
  decrypted in memory with the ``age`` CLI (identity from ``$AGE_IDENTITY``).

Precedence is CLI flag > sensitive config > public config > default.  The
result is a frozen :class:`Settings`; nothing re-reads config during a run.
"""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from feindexer.errors import ConfigError

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50_000
DEFAULT_BATCH_SIZE = 5_000
DEFAULT_TIMEOUT = 100.0

_JDBC_DRIVERS = {
    "postgresql": "postgresql+psycopg2",
    "postgres": "postgresql+psycopg2",
    "mysql": "mysql+mysqlconnector",
}


# ───────────────────────────────────────────────────────────────────────────
#  Settings objects
# ───────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    user: Optional[str] = None
    password: Optional[str] = None
    # optional bastion; when set the DB host/port are reached through it
    ssh_host: Optional[str] = None
    ssh_port: int = 22
    ssh_user: Optional[str] = None
    ssh_key_path: Optional[str] = None


@dataclass(frozen=True)
class IndexSettings:
    base_url: str
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class IndexerSettings:
    # None keeps the indexer's own default
    chunk_size: Optional[int] = None
    batch_size: Optional[int] = None


@dataclass(frozen=True)
class Settings:
    db: DatabaseSettings
    index: IndexSettings
    indexers: Mapping[str, IndexerSettings] = field(default_factory=dict)
    log_dir: str = "logs"
    log_level: str = "INFO"
    log_datefmt: str = "%Y-%m-%d %H:%M:%S"
    tz: str = "America/New_York"

    def for_indexer(self, name: str) -> Optional[IndexerSettings]:
        """Configured tuning for one indexer; ``None`` keeps its built-in sizes."""
        return self.indexers.get(name)


# ───────────────────────────────────────────────────────────────────────────
#  Helpers
# ───────────────────────────────────────────────────────────────────────────
def jdbc_to_sqlalchemy(url: str) -> str:
    """
    Accept a JDBC-style URL (``jdbc:postgresql://host:5432/fe``) or a plain
    SQLAlchemy URL and return the latter, with an explicit driver.
    """
    if not url:
        raise ConfigError("database URL is empty", stage="config")
    if url.startswith("jdbc:"):
        url = url[len("jdbc:"):]
    scheme, sep, rest = url.partition("://")
    if not sep:
        raise ConfigError(f"not a database URL: {url!r}", stage="config")
    return f"{_JDBC_DRIVERS.get(scheme, scheme)}://{rest}"


def load_config(path: Path) -> dict:
    """
    If `path` ends in .age, run `age --decrypt` (using $AGE_IDENTITY or default).
    Otherwise load plaintext YAML.  A missing file is an empty config.
    """
    path = Path(path)
    if path.suffix == ".age":
        if not path.exists():
            LOGGER.debug("No encrypted config at %s", path)
            return {}
        cmd = ["age"]
        if identity := os.environ.get("AGE_IDENTITY"):
            cmd += ["--identity", identity]
        cmd += ["--decrypt", str(path)]
        try:
            proc = subprocess.run(cmd, check=True, stdout=subprocess.PIPE)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise ConfigError(f"cannot decrypt {path}: {exc}", stage="config") from exc
        data = proc.stdout.decode()
    elif path.exists():
        data = path.read_text()
    else:
        LOGGER.debug("No config at %s", path)
        return {}
    try:
        return yaml.safe_load(data) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"malformed YAML in {path}: {exc}", stage="config") from exc


def _pick(*candidates: Any) -> Any:
    """First candidate that is not ``None`` (CLI > sensitive > public > default)."""
    for value in candidates:
        if value is not None:
            return value
    return None


def _size(name: str, cfg: Mapping[str, Any], key: str) -> Optional[int]:
    if cfg.get(key) is None:
        return None
    try:
        value = int(cfg[key])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"bad {key} for indexer {name!r}: {exc}", stage="config") from exc
    if value <= 0:
        raise ConfigError(f"{key} for indexer {name!r} must be positive", stage="config")
    return value


def _indexer_settings(raw: Mapping[str, Any]) -> Dict[str, IndexerSettings]:
    out: Dict[str, IndexerSettings] = {}
    for name, cfg in (raw or {}).items():
        cfg = cfg or {}
        out[name] = IndexerSettings(chunk_size=_size(name, cfg, "chunk_size"),
                                    batch_size=_size(name, cfg, "batch_size"))
    return out


# ───────────────────────────────────────────────────────────────────────────
#  Public entry point
# ───────────────────────────────────────────────────────────────────────────
def build_settings(
    public_cfg: Mapping[str, Any],
    sensitive_cfg: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
) -> Settings:
    """Merge already-loaded configs with CLI *overrides* into :class:`Settings`."""
    cli = dict(overrides or {})
    db_cfg = {**(public_cfg.get("db") or {}), **(sensitive_cfg.get("db") or {})}
    index_cfg = {**(public_cfg.get("index") or {}), **(sensitive_cfg.get("index") or {})}
    log_cfg = public_cfg.get("logging") or {}

    db_url = _pick(cli.get("db_url"), db_cfg.get("url"))
    if not db_url:
        raise ConfigError("no database URL (set db.url or pass --db-url)", stage="config")
    index_url = _pick(cli.get("index_url"), index_cfg.get("base_url"))
    if not index_url:
        raise ConfigError("no index base URL (set index.base_url or pass --index-url)", stage="config")

    password = _pick(cli.get("db_password"), db_cfg.get("password"))
    db = DatabaseSettings(
        url=jdbc_to_sqlalchemy(str(db_url)),
        user=_pick(cli.get("db_user"), db_cfg.get("user")),
        password=None if password is None else str(password),
        ssh_host=_pick(cli.get("ssh_host"), db_cfg.get("ssh_host")),
        ssh_port=int(_pick(cli.get("ssh_port"), db_cfg.get("ssh_port"), 22)),
        ssh_user=_pick(cli.get("ssh_user"), db_cfg.get("ssh_user")),
        ssh_key_path=_pick(cli.get("ssh_key_path"), db_cfg.get("ssh_key_path")),
    )
    index = IndexSettings(
        base_url=str(index_url).rstrip("/"),
        timeout=float(_pick(cli.get("index_timeout"), index_cfg.get("timeout"), DEFAULT_TIMEOUT)),
    )
    return Settings(
        db=db,
        index=index,
        indexers=_indexer_settings(public_cfg.get("indexers") or {}),
        log_dir=_pick(cli.get("log_dir"), log_cfg.get("dir"), "logs"),
        log_level=str(_pick(cli.get("log_level"), log_cfg.get("level"), "INFO")).upper(),
        log_datefmt=_pick(cli.get("log_datefmt"), log_cfg.get("datefmt"), "%Y-%m-%d %H:%M:%S"),
        tz=_pick(cli.get("tz"), log_cfg.get("tz"), "America/New_York"),
    )


def load_settings(
    config_path: Path,
    sensitive_path: Path,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Settings:
    """Read both config files and build :class:`Settings`."""
    public_cfg = load_config(config_path)
    sensitive_cfg = load_config(sensitive_path)
    LOGGER.debug("Loaded public config keys %s, sensitive config keys %s",
                 sorted(public_cfg), sorted(sensitive_cfg))
    return build_settings(public_cfg, sensitive_cfg, overrides)
