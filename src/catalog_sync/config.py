"""Configuration for catalog-sync.

Configuration is stored in ~/.catalog-sync/config.toml (override the
directory with CATALOG_SYNC_DIR). The local store lives next to it in
store.db unless ``store_path`` says otherwise.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://localhost:7092/api"


def get_catalog_sync_dir() -> Path:
    """Get the catalog-sync data directory.

    Priority:
    1. CATALOG_SYNC_DIR environment variable
    2. ~/.catalog-sync/
    """
    env_dir = os.environ.get("CATALOG_SYNC_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".catalog-sync"


def _clamp(value: Any, default: float, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


@dataclass(frozen=True)
class SyncConfig:
    """Scheduling and gate settings for the sync coordinator."""

    max_run_seconds: float = 30.0
    debounce_seconds: float = 0.25
    gate_attempts: int = 5
    gate_interval_seconds: float = 0.8
    deferred_retry_seconds: float = 5.0
    probe_interval_seconds: float = 15.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_run_seconds": self.max_run_seconds,
            "debounce_seconds": self.debounce_seconds,
            "gate_attempts": self.gate_attempts,
            "gate_interval_seconds": self.gate_interval_seconds,
            "deferred_retry_seconds": self.deferred_retry_seconds,
            "probe_interval_seconds": self.probe_interval_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        return cls(
            max_run_seconds=_clamp(data.get("max_run_seconds"), 30.0, 1.0, 3600.0),
            debounce_seconds=_clamp(data.get("debounce_seconds"), 0.25, 0.0, 60.0),
            gate_attempts=int(_clamp(data.get("gate_attempts"), 5, 1, 50)),
            gate_interval_seconds=_clamp(data.get("gate_interval_seconds"), 0.8, 0.0, 60.0),
            deferred_retry_seconds=_clamp(data.get("deferred_retry_seconds"), 5.0, 0.1, 3600.0),
            probe_interval_seconds=_clamp(data.get("probe_interval_seconds"), 15.0, 1.0, 3600.0),
        )


@dataclass(frozen=True)
class ApiConfig:
    """Catalog REST API connection settings."""

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 30.0
    api_key: str | None = None
    updated_by: str = "admin"

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
            "api_key": self.api_key,
            "updated_by": self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApiConfig:
        return cls(
            base_url=str(data.get("base_url") or DEFAULT_BASE_URL).rstrip("/"),
            timeout_seconds=_clamp(data.get("timeout_seconds"), 30.0, 1.0, 600.0),
            api_key=data.get("api_key") or None,
            updated_by=str(data.get("updated_by") or "admin"),
        )


@dataclass
class CatalogSyncConfig:
    """Top-level configuration: API, sync behavior and local store location."""

    data_dir: Path = field(default_factory=get_catalog_sync_dir)
    api: ApiConfig = field(default_factory=ApiConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    store_path: Path | None = None
    json_output: bool = False
    version: str = "1.0"

    @property
    def config_path(self) -> Path:
        return self.data_dir / "config.toml"

    @property
    def db_path(self) -> Path:
        return self.store_path or self.data_dir / "store.db"

    @classmethod
    def load(cls, config_path: Path | None = None) -> CatalogSyncConfig:
        """Load configuration from file, or create the default one if missing."""
        if config_path is None:
            data_dir = get_catalog_sync_dir()
            config_path = data_dir / "config.toml"
        else:
            data_dir = config_path.parent

        if not config_path.exists():
            config = cls(data_dir=data_dir)
            config.save()
            logger.info("Created default configuration at %s", config_path)
            return config

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        store = data.get("store", {})
        store_path = store.get("path")
        return cls(
            data_dir=data_dir,
            api=ApiConfig.from_dict(data.get("api", {})),
            sync=SyncConfig.from_dict(data.get("sync", {})),
            store_path=Path(store_path).expanduser() if store_path else None,
            json_output=bool(data.get("cli", {}).get("json_output", False)),
            version=str(data.get("version", "1.0")),
        )

    def save(self) -> None:
        """Save configuration to TOML (atomic write via temp file + rename)."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

        lines = [
            "# catalog-sync configuration",
            "",
            f"version = {json.dumps(self.version)}",
            "",
            "[api]",
            f"base_url = {json.dumps(self.api.base_url)}",
            f"timeout_seconds = {self.api.timeout_seconds}",
            f"updated_by = {json.dumps(self.api.updated_by)}",
        ]
        if self.api.api_key:
            lines.append(f"api_key = {json.dumps(self.api.api_key)}")

        lines += [
            "",
            "[sync]",
            *(f"{key} = {value}" for key, value in self.sync.to_dict().items()),
            "",
            "[store]",
        ]
        if self.store_path is not None:
            lines.append(f"path = {json.dumps(str(self.store_path))}")

        lines += [
            "",
            "[cli]",
            f"json_output = {'true' if self.json_output else 'false'}",
        ]

        content = "\n".join(lines) + "\n"
        fd, tmp_path = tempfile.mkstemp(dir=str(self.data_dir), suffix=".toml.tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            Path(tmp_path).replace(self.config_path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def to_dict(self) -> dict[str, Any]:
        return {
            "data_dir": str(self.data_dir),
            "db_path": str(self.db_path),
            "api": {**self.api.to_dict(), "api_key": "***" if self.api.api_key else None},
            "sync": self.sync.to_dict(),
            "json_output": self.json_output,
            "version": self.version,
        }


_config: CatalogSyncConfig | None = None


def get_config(reload: bool = False) -> CatalogSyncConfig:
    """Get the configuration (singleton).

    Args:
        reload: Force reload from disk
    """
    global _config
    if _config is None or reload:
        _config = CatalogSyncConfig.load()
    return _config
