"""Trusted proxy inspection and dry-run resolution commands."""

import ipaddress
from typing import Annotated

import typer
from rich.table import Table

from realip.cli._helpers import console, err_console, load_trusted
from realip.resolver import RealIpResolver

TrustedOption = Annotated[
    list[str] | None,
    typer.Option(
        "--trusted",
        "-t",
        help="Trusted proxy IP or CIDR (repeatable). Defaults to REALIP_TRUSTED_PROXIES.",
    ),
]


def trusted(specs: TrustedOption = None):
    """Validate and show the trusted proxy set."""
    trusted_set = load_trusted(specs)

    if not trusted_set:
        console.print("No trusted proxies configured. Forwarding headers will be ignored.")
        return

    table = Table(title="Trusted Proxies")
    table.add_column("Kind", style="cyan")
    table.add_column("Value")
    table.add_column("Addresses", justify="right")

    for matcher in trusted_set:
        table.add_row(matcher.kind.value, str(matcher), str(matcher.network.num_addresses))

    console.print(table)
    console.print(f"\nTotal: {len(trusted_set)} entr{'y' if len(trusted_set) == 1 else 'ies'}")


def resolve(
    peer: Annotated[str, typer.Option("--peer", "-p", help="Socket peer address")],
    specs: TrustedOption = None,
    forwarded_for: Annotated[
        list[str] | None,
        typer.Option("--forwarded-for", "-f", help="X-Forwarded-For value (repeatable)"),
    ] = None,
    forwarded: Annotated[
        list[str] | None,
        typer.Option("--forwarded", help="Forwarded (RFC 7239) value (repeatable)"),
    ] = None,
    real_ip: Annotated[str | None, typer.Option("--real-ip", "-r", help="X-Real-IP value")] = None,
):
    """Resolve the client address for the given peer and headers."""
    try:
        peer_addr = ipaddress.ip_address(peer.strip())
    except ValueError:
        err_console.print(f"[red]Error:[/red] Invalid peer address: {peer}")
        raise typer.Exit(code=1)

    resolver = RealIpResolver(load_trusted(specs))
    result = resolver.resolve(
        peer_addr,
        forwarded_for_values=forwarded_for or (),
        real_ip_value=real_ip,
        forwarded_values=forwarded or (),
    )

    if result is None:
        console.print("[yellow]unresolved[/yellow]")
        raise typer.Exit(code=2)

    console.print(str(result))
