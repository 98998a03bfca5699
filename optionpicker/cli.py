"""Typer CLI entry point for optionpicker.

``select`` runs one contract selection against Alpaca, or against recorded
fixtures with ``--mock``, and prints the outcome. ``check`` confirms that
credentials are present before a live run.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import json
import pathlib
from typing import Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from optionpicker.core.config import (
    SelectionConfig,
    get_alpaca_settings,
    get_selection_config,
    load_selection_config,
    masked_tail,
)
from optionpicker.options.alpaca_source import AlpacaMarketDataSource
from optionpicker.options.chain import MarketDataSource, Selected, SelectionResult
from optionpicker.options.mock_source import MockMarketDataSource
from optionpicker.options.select import ContractSelector
from optionpicker.runtime.logging import setup_logging

EXIT_NOT_FOUND = 3

app = typer.Typer(add_completion=False, help="Options contract selection CLI")
console = Console()


def _load_config(path: Optional[pathlib.Path]) -> SelectionConfig:
    try:
        if path is not None:
            return load_selection_config(path)
        return get_selection_config()
    except (OSError, ValueError, ValidationError) as exc:
        console.print(f"[red]Invalid options configuration:[/red] {exc}")
        raise typer.Exit(code=2) from exc


def _build_source(mock: bool, mock_dir: Optional[pathlib.Path]) -> MarketDataSource:
    if mock:
        return MockMarketDataSource.from_directory(mock_dir)
    return AlpacaMarketDataSource()


def _render(result: SelectionResult) -> None:
    if isinstance(result, Selected):
        table = Table(title=f"Selected {result.side} on {result.underlying}")
        table.add_column("Field")
        table.add_column("Value", justify="right")
        table.add_row("Contract", result.symbol)
        table.add_row("Expiration", result.expiration)
        table.add_row("Strike", f"{result.strike:,.2f}")
        table.add_row("Delta", f"{result.delta:.3f}")
        table.add_row("Mid", f"${result.mid_price:,.2f}")
        table.add_row("Max contracts", str(result.max_contracts))
        console.print(table)
        return
    console.print(
        f"[yellow]No qualifying contract[/yellow] ({result.reason} at stage {result.stage})"
    )


@app.command("check")
def check() -> None:
    """Report whether Alpaca credentials are configured."""

    settings = get_alpaca_settings()
    if not settings.configured:
        console.print("[red]NOT READY[/red]: missing ALPACA_API_KEY_ID / ALPACA_API_SECRET_KEY")
        raise typer.Exit(code=1)
    console.print(
        f"[green]READY[/green] key ...{masked_tail(settings.key_id)} "
        f"({'paper' if settings.paper else 'live'})"
    )


@app.command("select")
def select(
    symbol: str = typer.Argument(..., help="Underlying ticker symbol"),
    direction: str = typer.Option("bullish", "--direction", "-d", help="bullish or bearish"),
    equity: float = typer.Option(..., "--equity", "-e", min=0.01, help="Account equity to size against"),
    config_path: Optional[pathlib.Path] = typer.Option(
        None, "--config", "-c", help="YAML/JSON file with the options policy"
    ),
    mock: bool = typer.Option(False, "--mock", help="Use recorded fixtures instead of Alpaca"),
    mock_dir: Optional[pathlib.Path] = typer.Option(
        None, "--mock-dir", help="Fixture directory (defaults to OPTIONS_MOCK_DIR)"
    ),
    as_of: Optional[str] = typer.Option(
        None, "--as-of", help="Count days to expiration from this date (YYYY-MM-DD)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the outcome as JSON"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
) -> None:
    """Select one contract for SYMBOL in the given direction."""

    load_dotenv(override=False)
    setup_logging(log_level)
    if direction.strip().lower() not in ("bullish", "bearish"):
        console.print("[red]--direction must be either 'bullish' or 'bearish'.[/red]")
        raise typer.Exit(code=2)
    try:
        today = dt.date.fromisoformat(as_of) if as_of else None
    except ValueError as exc:
        console.print(f"[red]--as-of must be an ISO date:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    config = _load_config(config_path)
    selector = ContractSelector(_build_source(mock, mock_dir), config)
    result = asyncio.run(selector.select(symbol, direction, equity, today=today))

    if as_json:
        typer.echo(json.dumps(result.as_dict()))
    else:
        _render(result)
    if not isinstance(result, Selected):
        raise typer.Exit(code=EXIT_NOT_FOUND)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
