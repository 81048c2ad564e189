from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"

# Loggers used by the agent itself; job lifecycle lines come from "runner".
AGENT_LOGGERS = ("runner", "filesync", "api")


def _level(name: str, default: int) -> int:
    value = getattr(logging, (name or "").upper(), None)
    return value if isinstance(value, int) else default


def setup_logging(level: str, logfile: str = "", overrides: dict[str, str] | None = None):
    log_level = _level(level, logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)

    # Clear existing handlers to avoid duplicates across restarts/reloads.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(LOG_FORMAT)

    if logfile:
        Path(logfile).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile, encoding="utf-8")
        fh.setLevel(log_level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    # Route uvicorn logs into the same root handlers/file.
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(logger_name)
        logger.handlers.clear()
        logger.setLevel(log_level)
        logger.propagate = True

    # Agent loggers follow the root level unless the config names a level for them.
    overrides = {name: value.upper() for name, value in (overrides or {}).items()}
    for logger_name in (*AGENT_LOGGERS, *overrides):
        logger = logging.getLogger(logger_name)
        logger.handlers.clear()
        logger.setLevel(_level(overrides.get(logger_name, ""), log_level))
        logger.propagate = True

    root.info(
        "logging initialized level=%s file=%s overrides=%s",
        logging.getLevelName(log_level),
        logfile or "-",
        ",".join(f"{k}={v}" for k, v in sorted(overrides.items())) or "-",
    )
