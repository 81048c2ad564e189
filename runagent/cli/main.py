from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from runagent.client import AgentClient, AgentClientError
from runagent.core.config import DEFAULT_CONFIG_PATH, AppConfig, load_config, save_config
from runagent.core.errors import DecodeError

app = typer.Typer(add_completion=False)
console = Console()

DEFAULT_URL = "http://127.0.0.1:8765"


def _client(url: str) -> AgentClient:
    return AgentClient(url)


@app.command()
def serve(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="YAML config file"),
    host: Optional[str] = typer.Option(None, "--host", help="Override bind_host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Override port"),
):
    """Start the agent HTTP server."""
    from runagent.web.main import serve as serve_app

    cfg = load_config(config)
    if host is not None:
        cfg.bind_host = host
    if port is not None:
        cfg.port = port
    serve_app(cfg)


@app.command("config-show")
def config_show(path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config")):
    """Show the effective configuration."""
    cfg = load_config(path)
    print(json.dumps(cfg.model_dump(), ensure_ascii=False, indent=2))


@app.command("config-init")
def config_init(
    path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Write a config file with default values."""
    if path.exists() and not force:
        console.print(f"[red]{path} already exists[/red] (use --force to overwrite)")
        raise typer.Exit(2)
    save_config(AppConfig(), path)
    print(f"OK: wrote {path}")


@app.command()
def ping(url: str = typer.Option(DEFAULT_URL, "--url")):
    """Check that an agent answers."""
    try:
        alive = _client(url).ping()
    except (AgentClientError, OSError) as e:
        console.print(f"[red]unreachable[/red]: {e}")
        raise typer.Exit(2)
    print("pong" if alive else "unexpected reply")
    if not alive:
        raise typer.Exit(2)


@app.command("exec")
def exec_(
    cmd: List[str] = typer.Argument(..., help="Command and arguments"),
    workdir: str = typer.Option(..., "--workdir", "-C", help="Absolute working directory on the agent"),
    url: str = typer.Option(DEFAULT_URL, "--url"),
):
    """Run a command on the agent and wait for it to finish."""
    client = _client(url)
    try:
        job_id = client.run(workdir, cmd)
        print(job_id)
        ok = client.wait_run(job_id)
    except (AgentClientError, OSError) as e:
        console.print(f"[red]error[/red]: {e}")
        raise typer.Exit(2)
    print("ok" if ok else "failed")
    if not ok:
        raise typer.Exit(1)


@app.command()
def push(
    local_dir: Path = typer.Argument(..., exists=True, file_okay=False, help="Local directory to upload"),
    workdir: str = typer.Argument(..., help="Absolute target directory on the agent"),
    url: str = typer.Option(DEFAULT_URL, "--url"),
    exclude: List[str] = typer.Option([".git", "__pycache__"], "--exclude", help="Directory names to skip"),
):
    """Upload files whose content differs on the agent."""
    try:
        sent = _client(url).sync_dir(local_dir, workdir, exclude_dirs=exclude)
    except (AgentClientError, OSError) as e:
        console.print(f"[red]error[/red]: {e}")
        raise typer.Exit(2)
    table = Table(title=f"pushed to {workdir}")
    table.add_column("File")
    for rel in sent:
        table.add_row(rel)
    console.print(table)
    print(f"OK: {len(sent)} file(s) sent")


@app.command()
def pull(
    workdir: str = typer.Argument(...),
    path: str = typer.Argument(..., help="Path relative to the workdir"),
    url: str = typer.Option(DEFAULT_URL, "--url"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Defaults to the file's base name"),
):
    """Download one file from the agent."""
    try:
        data = _client(url).get_file(workdir, path)
    except (AgentClientError, DecodeError, OSError) as e:
        console.print(f"[red]error[/red]: {e}")
        raise typer.Exit(2)
    target = output or Path(Path(path).name)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    print(f"OK: {target} ({len(data)} bytes)")


@app.command()
def jobs(url: str = typer.Option(DEFAULT_URL, "--url")):
    """List jobs known to the agent."""
    try:
        items = _client(url).jobs()
    except (AgentClientError, OSError) as e:
        console.print(f"[red]error[/red]: {e}")
        raise typer.Exit(2)
    table = Table(title=f"jobs at {url}")
    table.add_column("Id")
    table.add_column("Status")
    table.add_column("Command")
    table.add_column("Workdir")
    table.add_column("Error")
    for item in items:
        table.add_row(
            item.get("id", ""),
            item.get("status", ""),
            " ".join(item.get("command") or []),
            item.get("workdir", ""),
            item.get("error") or "",
        )
    console.print(table)


def main():
    logging.basicConfig(level=logging.WARNING)
    app()


if __name__ == "__main__":
    main()
