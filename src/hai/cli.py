"""CLI entry point using typer."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from hai import __version__
from hai.config import (
    CONFIG_FILE,
    ENV_SKIP_SETUP,
    HISTORY_FILE,
    AppConfig,
    ProviderKind,
    default_config_data,
    save_config_data,
)
from hai.errors import HaiError, StorageError
from hai.services.shell import ShellRunner
from hai.services.suggestion import SuggestionPipeline
from hai.storage.history import HistoryStore
from hai.utils.formatting import format_error, history_table

app = typer.Typer(
    name="hai",
    help="Turn natural language into a shell command.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

PROVIDER_CHOICES: dict[str, ProviderKind | None] = {
    "openai": ProviderKind.OPENAI,
    "anthropic": ProviderKind.ANTHROPIC,
    "skip": None,
}


def run_setup(config_file: Path) -> None:
    """Interactive setup wizard."""
    console.print(f"\n[bold]hai v{__version__}[/bold]")
    console.print("Welcome to hai! Let's set up your configuration.")
    console.print("You'll need an API key from OpenAI or Anthropic to use hai.\n")

    console.print("[bold]Step 1:[/bold] AI provider")
    choice = typer.prompt("  Provider (openai, anthropic, skip)", default="openai").strip().lower()
    if choice not in PROVIDER_CHOICES:
        console.print(f"[yellow]Unknown provider '{escape(choice)}', using 'openai'.[/yellow]")
        choice = "openai"
    kind = PROVIDER_CHOICES[choice]

    api_key = ""
    if kind is not None:
        console.print(f"\n[bold]Step 2:[/bold] {kind.value.capitalize()} API key")
        api_key = typer.prompt("  API key (or press Enter to skip)", default="", show_default=False, hide_input=True)

    data = default_config_data(kind or ProviderKind.OPENAI, api_key)
    save_config_data(data, config_file)

    if not api_key:
        console.print("[yellow]You'll need to edit the config file later to add your API key.[/yellow]")
    console.print(f"\n[green]Configuration saved to {config_file}[/green]")
    console.print("You can edit this file anytime to change your settings.\n")


def ensure_configured(config_file: Path, env: dict[str, str]) -> None:
    """Bootstrap the config file on first run."""
    if config_file.exists():
        return

    if env.get(ENV_SKIP_SETUP) or not sys.stdin.isatty():
        save_config_data(default_config_data(), config_file)
        err_console.print(f"[dim]Created default configuration at {config_file}[/dim]")
        return

    run_setup(config_file)


def setup_logging(config: AppConfig | None, verbose: bool = False) -> None:
    """Configure root logging; without a config only stderr at the default level."""
    if verbose:
        level = logging.DEBUG
    elif config is None:
        level = logging.WARNING
    else:
        level = logging.getLevelNamesMapping().get(config.log_level, logging.WARNING)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config is not None and config.log_file:
        log_path = Path(config.log_file).expanduser().resolve()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(str(log_path)))
        except OSError as e:
            raise StorageError(f"Failed to open log file {log_path}: {e}") from e

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def read_prompt(prompt: str) -> str:
    if prompt:
        return prompt
    if sys.stdin.isatty():
        return ""
    return sys.stdin.read()


def report_error(error: HaiError) -> None:
    err_console.print(escape(format_error(error)), highlight=False, soft_wrap=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"hai v{__version__}")
        raise typer.Exit()


@app.command()
def main(
    prompt: str = typer.Argument("", help="What you want to do, in plain language"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Run the command without asking"),
    no_execute: bool = typer.Option(False, "--no-execute", "-n", help="Show the command, but don't run it"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model to use"),
    show_history: bool = typer.Option(False, "--history", "-H", help="Show command history"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Convert a natural-language request into a shell command."""
    env = dict(os.environ)

    try:
        setup_logging(None, verbose)
        ensure_configured(CONFIG_FILE, env)
        pipeline = SuggestionPipeline(
            env=env,
            model_override=model,
            config_path=CONFIG_FILE,
            history_path=HISTORY_FILE,
        )
        config = pipeline.resolve_config()
        setup_logging(config, verbose)

        if show_history:
            history = HistoryStore(HISTORY_FILE, config.history_size).load()
            if not len(history):
                console.print("[dim]No history yet.[/dim]")
            else:
                console.print(history_table(history))
            return

        text = read_prompt(prompt).strip()
        if not text:
            err_console.print("[red]Error: No prompt provided.[/red]")
            raise typer.Exit(1)

        suggestion = asyncio.run(pipeline.suggest(text))
        console.print(f"[bold]Command:[/bold] {escape(suggestion.command)}", highlight=False)

        if no_execute:
            execute = False
        elif yes:
            execute = True
        else:
            try:
                execute = typer.confirm("Looks good?", default=True)
            except typer.Abort:
                execute = False

        pipeline.record(execute)

        if execute:
            asyncio.run(ShellRunner(config.shell).execute(suggestion.command))
    except HaiError as e:
        report_error(e)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
