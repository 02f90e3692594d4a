## csvwatch/schemas.py

from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing import Dict, List, Optional

from .errors import ConfigError


class WatchTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    directory: str = Field(min_length=1)
    interval: float = Field(gt=0, description="seconds between poll cycles")


class ChangeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str


class ImportResult(BaseModel):
    source_file: str
    records: List[Dict[str, str]] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AlertsConfig(BaseModel):
    email: bool = False
    slack: bool = False


class WatchConfig(BaseModel):
    name: str = "csvwatch"
    watch_path: str = Field(min_length=1)
    watch_delay_ms: int = Field(gt=0)
    max_workers: int = Field(default=4, gt=0)
    halt_on_listing_error: bool = False
    log_dir: str = "logs"
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)

    def target(self) -> WatchTarget:
        return WatchTarget(directory=self.watch_path, interval=self.watch_delay_ms / 1000.0)

    @classmethod
    def from_dict(cls, cfg: dict) -> "WatchConfig":
        watcher = cfg.get("watcher") or {}
        try:
            return cls(
                name=cfg.get("name", "csvwatch"),
                watch_path=watcher.get("watch_path", ""),
                watch_delay_ms=watcher.get("watch_delay_ms", 0),
                max_workers=watcher.get("max_workers", 4),
                halt_on_listing_error=watcher.get("halt_on_listing_error", False),
                log_dir=(cfg.get("logging") or {}).get("dir", "logs"),
                alerts=cfg.get("alerts") or {},
            )
        except ValidationError as e:
            raise ConfigError(f"invalid configuration: {e}") from e
