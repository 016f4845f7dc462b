"""Command-line interface for nodelint."""

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from nodelint import __description__, __version__
from nodelint.config import ConfigError, LogLevel, NodelintConfig, ReportFormat, load_config
from nodelint.models.diagnostic import aggregate_exit_code
from nodelint.output.reporter import render_json, render_rules_json, render_rules_text, render_text
from nodelint.validation.rules import RULE_CATALOG
from nodelint.validator import validate as validate_roots

app = typer.Typer(
    name="nodelint",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()
err_console = Console(stderr=True)

_LOG_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


def _configure_logging(level: str, verbose: bool = False) -> None:
    """Send nodelint log records to stderr at the configured level."""
    log_level = logging.DEBUG if verbose else _LOG_LEVELS[LogLevel(level)]
    logger = logging.getLogger("nodelint")
    logger.setLevel(log_level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked repeatedly.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("[nodelint] %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"nodelint version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True,
                     help="Show version and exit")
    ] = False,
) -> None:
    """nodelint - consistency validator for dual-runtime Node-RED node packages."""


def _load_config(config: Path | None, roots: list[Path]) -> NodelintConfig:
    if config is not None:
        return load_config(config)
    start = roots[0] if roots and roots[0].is_dir() else None
    return load_config(None, start_dir=start)


@app.command()
def validate(
    roots: Annotated[
        list[Path],
        typer.Argument(help="One or more package root directories")
    ],
    format: Annotated[
        Optional[ReportFormat],
        typer.Option("--format", "-f", help="Output format: text, json (default: from config, else text)")
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Promote warnings to errors")
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .nodelint.json)")
    ] = None,
    jobs: Annotated[
        Optional[int],
        typer.Option("--jobs", "-j", min=1, help="Number of package roots validated concurrently")
    ] = None,
    no_hints: Annotated[
        bool,
        typer.Option("--no-hints", help="Omit remediation hints from text output")
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Validate node package roots and report every consistency violation."""
    try:
        nodelint_config = _load_config(config, roots)
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    _configure_logging(nodelint_config.logging.level, verbose=verbose)

    if strict:
        nodelint_config = nodelint_config.model_copy(
            update={"rules": nodelint_config.rules.model_copy(update={"strict": True})}
        )

    results = validate_roots(roots, config=nodelint_config, max_workers=jobs)

    output_format = format.value if format is not None else nodelint_config.output.format
    if output_format == ReportFormat.JSON.value:
        typer.echo(render_json(results))
    else:
        render_text(results, console, show_hints=not no_hints)

    raise typer.Exit(aggregate_exit_code(results))


@app.command("rules")
def list_rules(
    format: Annotated[
        ReportFormat,
        typer.Option("--format", "-f", help="Output format: text, json (default: text)")
    ] = ReportFormat.TEXT,
) -> None:
    """List the rule catalog."""
    rules = list(RULE_CATALOG)
    if format == ReportFormat.JSON:
        typer.echo(render_rules_json(rules))
    else:
        render_rules_text(rules, console)


if __name__ == "__main__":
    app()
