from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import typer
from pydantic import ValidationError
from rich import box
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .context.engine import ContextEngine, ContextStats
from .context.records import RecordBundle
from .core.config import ConfigLoadResult, ContextConfig, load_config
from .core.console import console, setup_logging, stderr_console
from .core.result import CtxKitError, try_result

app = typer.Typer(help="ctx: assemble bounded LLM context from work items, PRs and projects.")


@dataclass
class AppState:
    config: ContextConfig
    config_meta: ConfigLoadResult
    logger: logging.Logger


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to a ctx config file (TOML or JSON)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    loaded_config, meta = load_config(config_path=config)
    logger = setup_logging(level=loaded_config.log_level, verbose=verbose)

    ctx.obj = AppState(config=loaded_config, config_meta=meta, logger=logger)

    if meta.error:
        stderr_console.print(
            Panel(
                f"[bold red]Configuration Error - Safe Mode Active[/bold red]\n\n"
                f"Failed to load {meta.path}:\n{escape(meta.error)}\n\n"
                f"[yellow]Using default settings.[/yellow]",
                border_style="red",
            )
        )
    else:
        logger.debug(
            "Loaded configuration from %s (env overrides: %s)",
            meta.path,
            sorted(meta.env_overrides),
        )


def _load_bundle(path: Path) -> RecordBundle:
    try:
        return RecordBundle.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        raise CtxKitError(f"Cannot load records from {path}", context={"error": exc}) from exc


def _stats_table(stats: ContextStats, capacity: int) -> Table:
    table = Table(title="Context budget", box=box.SIMPLE_HEAVY)
    table.add_column("Section", style="cyan", no_wrap=True)
    table.add_column("Tokens", justify="right")
    table.add_column("Priority", justify="right")

    for section in stats.sections:
        table.add_row(section.name, str(section.tokens), str(section.priority))

    table.caption = (
        f"{stats.total_tokens}/{capacity} tokens used, "
        f"{stats.remaining_tokens} remaining, {stats.section_count} sections"
    )
    return table


@app.command("assemble")
def assemble(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="JSON file with work_items, pull_requests, projects."),
    budget: int | None = typer.Option(None, "--budget", "-b", min=0, help="Token capacity."),
    max_items: int | None = typer.Option(
        None, "--max-items", "-n", min=1, help="Cap items rendered per section."
    ),
    show_stats: bool = typer.Option(False, "--stats", help="Print token usage to stderr."),
) -> None:
    """Render records into a budgeted context document."""
    state: AppState = ctx.obj
    updates: dict[str, int] = {}
    if budget is not None:
        updates["total_budget"] = budget
    if max_items is not None:
        updates["max_items"] = max_items
    config = state.config.model_copy(update=updates)

    loaded = try_result(lambda: _load_bundle(input_path))
    if loaded.is_err():
        stderr_console.print(f"[red]{escape(str(loaded.error))}[/red]", highlight=False)
        raise typer.Exit(code=1)

    bundle = loaded.value
    engine = ContextEngine(config)
    document = engine.from_records(
        work_items=bundle.work_items,
        pull_requests=bundle.pull_requests,
        projects=bundle.projects,
    )

    console.print(document, markup=False, highlight=False, soft_wrap=True)

    if show_stats:
        stderr_console.print(_stats_table(engine.get_stats(), config.total_budget))


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Show the active configuration and where it came from."""
    state: AppState = ctx.obj
    meta = state.config_meta

    table = Table(title="Config", box=box.SIMPLE, expand=True)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    for key, value in state.config.model_dump().items():
        table.add_row(key, str(value))

    console.print(table)

    meta_lines = [
        f"Path: {meta.path}",
        "File loaded: yes" if meta.file_loaded else "File loaded: no (using defaults + env)",
    ]

    if meta.env_overrides:
        meta_lines.append("Env overrides: " + ", ".join(sorted(meta.env_overrides)))

    console.print(Panel("\n".join(meta_lines), title="Config source", box=box.SIMPLE))


@app.command("version")
def show_version() -> None:
    """Print the ctxkit version."""
    console.print(__version__)


def cli() -> None:
    app()


if __name__ == "__main__":
    cli()
