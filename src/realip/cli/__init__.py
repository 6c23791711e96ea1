"""realip CLI - inspect trusted proxies and dry-run client address resolution."""

from typing import Annotated

import typer

from realip.cli._helpers import setup_logging
from realip.cli.proxies import resolve, trusted

app = typer.Typer(
    name="realip",
    help="realip CLI - inspect trusted proxies and dry-run client address resolution.",
    no_args_is_help=True,
)

app.command("trusted")(trusted)
app.command("resolve")(resolve)


@app.callback()
def callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    setup_logging(verbose)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
