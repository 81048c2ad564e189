from pathlib import Path

import pytest
from pydantic import ValidationError

from runagent.core import config as config_module


def test_load_config_returns_defaults_when_file_missing(tmp_path: Path):
    target = tmp_path / "runagent.yaml"

    cfg = config_module.load_config(target)

    assert not target.exists()
    assert cfg.bind_host == "127.0.0.1"
    assert cfg.port == 8765
    assert cfg.limits.max_body_bytes == 1 << 30
    assert cfg.sync.executable_mode == 0o777


def test_load_config_reads_yaml_values(tmp_path: Path):
    target = tmp_path / "runagent.yaml"
    log_file = tmp_path / "runtime" / "agent.log"
    target.write_text(
        "\n".join(
            [
                "bind_host: 0.0.0.0",
                "port: 9100",
                "logging:",
                "  level: DEBUG",
                f"  file: {log_file}",
                "  loggers:",
                "    filesync: WARNING",
                "jobs:",
                "  job_workers: 4",
                "sync:",
                "  executable_mode: 493",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    cfg = config_module.load_config(target)

    assert cfg.bind_host == "0.0.0.0"
    assert cfg.port == 9100
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.loggers == {"filesync": "WARNING"}
    assert cfg.jobs.job_workers == 4
    assert cfg.sync.executable_mode == 0o755
    assert log_file.parent.is_dir()


def test_load_config_rejects_invalid_values(tmp_path: Path):
    target = tmp_path / "runagent.yaml"
    target.write_text("port: 70000\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        config_module.load_config(target)


def test_save_config_writes_loadable_yaml(tmp_path: Path):
    target = tmp_path / "nested" / "runagent.yaml"
    cfg = config_module.AppConfig()
    cfg.port = 9200
    cfg.limits.max_body_bytes = 1024

    config_module.save_config(cfg, target)
    loaded = config_module.load_config(target)

    assert loaded.port == 9200
    assert loaded.limits.max_body_bytes == 1024
