"""
Command-line interface for Tech Digest.

Uses Typer to provide commands for the long-running bot, a single manual
tick, and inspecting subscribers. Loads .env files for API keys and tokens.
"""

from __future__ import annotations

from pathlib import Path
import signal
import threading

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
import typer

from .config import AppConfig, load_config
from .core.store import SqliteSubscriberStore
from .core.types import TickReport
from .errors import ConfigError, DigestError
from .llm.tracing import flush, setup_langfuse
from .logging_utils import setup_logging
from .runner import run_once, serve

app = typer.Typer(add_completion=False, help="Scheduled technology news digest for Telegram.")
console = Console()


def _prepare(config: Path | None, log_level: str | None, log_file: bool | None) -> AppConfig:
    # Load environment variables from .env if available
    load_dotenv()
    try:
        cfg = load_config(str(config) if config else None)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file

    setup_logging(cfg.logging)
    setup_langfuse(cfg.langfuse)
    return cfg


ConfigOption = typer.Option(None, "--config", "-c", exists=True, readable=True, help="YAML config file.")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level.")
LogFileOption = typer.Option(None, "--log-file/--no-log-file", help="Enable or disable file logging.")


@app.command("serve")
def serve_command(
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
    log_file: bool | None = LogFileOption,
):
    """Run the Telegram bot and the scheduled digest until interrupted."""
    cfg = _prepare(config, log_level, log_file)
    stop_event = threading.Event()

    def _handle_signal(signum, frame):  # noqa: ANN001, ARG001
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        serve(cfg, stop_event)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    finally:
        flush()


@app.command("run-once")
def run_once_command(
    config: Path | None = ConfigOption,
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the message instead of broadcasting it."),
    log_level: str | None = LogLevelOption,
    log_file: bool | None = LogFileOption,
):
    """Run a single pipeline tick immediately."""
    cfg = _prepare(config, log_level, log_file)
    try:
        result = run_once(cfg, dry_run=dry_run)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    except DigestError as exc:
        console.print(f"[red]Tick aborted:[/red] {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc
    finally:
        flush()

    if isinstance(result, TickReport):
        console.print(
            f"Sent '{result.article_title}' to {result.delivered}/{result.recipients} subscribers"
            + (f", {len(result.failed)} failed" if result.failed else "")
        )
    else:
        console.print(result, markup=False, highlight=False)


@app.command("subscribers")
def subscribers_command(
    config: Path | None = ConfigOption,
):
    """List persisted subscribers."""
    cfg = _prepare(config, None, None)
    if not cfg.subscribers.db_path:
        console.print("Subscriber persistence is disabled (subscribers.db_path is null).")
        return

    store = SqliteSubscriberStore(Path(cfg.subscribers.db_path))
    table = Table(title=f"Subscribers ({store.count()})")
    table.add_column("Chat ID", justify="right")
    table.add_column("Username")
    for chat_id, username in store.load():
        table.add_row(str(chat_id), username or "")
    console.print(table)


if __name__ == "__main__":
    app()
