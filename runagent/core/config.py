from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path(os.environ.get("RUNAGENT_CONFIG", "runagent.yaml"))


class LoggingConfig(BaseModel):
    level: str = "INFO"
    # Empty means console only.
    file: str = ""
    # Per-logger levels for the agent loggers, e.g. {"filesync": "WARNING"}.
    loggers: dict[str, str] = Field(default_factory=dict)


class LimitsConfig(BaseModel):
    max_body_bytes: int = Field(default=1 << 30, ge=1)


class JobsConfig(BaseModel):
    # Threads available for blocking spawn+wait; extra jobs queue until one frees up.
    job_workers: int = Field(default=64, ge=1, le=4096)


class SyncConfig(BaseModel):
    # Mode applied to pushed files flagged executable. 0o777 matches what
    # existing controllers expect; 0o755 or 0o700 is the tighter choice.
    executable_mode: int = Field(default=0o777, ge=0, le=0o7777)


class AppConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    jobs: JobsConfig = Field(default_factory=JobsConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    # Loopback by default: the agent has no authentication.
    bind_host: str = "127.0.0.1"
    port: int = Field(default=8765, ge=0, le=65535)


def ensure_runtime_dirs(cfg: AppConfig):
    if cfg.logging.file:
        Path(cfg.logging.file).parent.mkdir(parents=True, exist_ok=True)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    import yaml

    if not path.exists():
        return AppConfig()

    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    cfg = AppConfig.model_validate(data)
    ensure_runtime_dirs(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path = DEFAULT_CONFIG_PATH):
    import yaml

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(cfg.model_dump(), allow_unicode=True, sort_keys=False), encoding="utf-8")
