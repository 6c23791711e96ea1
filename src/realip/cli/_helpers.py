"""Shared helpers for CLI commands."""

import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from realip.config import Settings, get_settings
from realip.networks import InvalidProxySpec, TrustedProxySet

console = Console()
err_console = Console(stderr=True)


def load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        err_console.print(f"[red]Error:[/red] Invalid configuration\n{e}")
        raise typer.Exit(code=1)


def setup_logging(verbose: bool) -> None:
    if verbose:
        level = "DEBUG"
    else:
        try:
            level = get_settings().log_level
        except ValidationError:
            # Commands given explicit --trusted specs can still run
            level = "INFO"
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_trusted(specs: list[str] | None) -> TrustedProxySet:
    """Parse --trusted options, falling back to REALIP_TRUSTED_PROXIES."""
    if not specs:
        specs = load_settings().trusted_proxies_list
    try:
        return TrustedProxySet.parse(specs)
    except InvalidProxySpec as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
