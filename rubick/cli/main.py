"""rubick command-line interface.

Commands:
    rubick hosts [--json]                        List hosts registered with the backend.
    rubick resources HOST_ID [--kind K] [--json] Load and print a host's resources.
    rubick version                               Print version and exit.

All commands talk to the backend at http://localhost:8080 (configurable via
``--api-url`` or ``RUBICK_API_URL``). Other settings come from the
``RUBICK_*`` environment variables.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click
from pydantic import BaseModel

from rubick import __version__
from rubick.api.client import TransportError
from rubick.api.schemas import ComposeProject, Container, Host, Image, Network, Volume
from rubick.app import RubickConsole
from rubick.config import load_config, parse_api_url
from rubick.models.resources import CacheEntrySnapshot, ResourceKind

_T = TypeVar("_T")

_KIND_TITLES: dict[ResourceKind, str] = {
    ResourceKind.CONTAINER: "Containers",
    ResourceKind.IMAGE: "Images",
    ResourceKind.VOLUME: "Volumes",
    ResourceKind.NETWORK: "Networks",
    ResourceKind.COMPOSE_PROJECT: "Compose Projects",
}

_STATE_COLORS: dict[str, str] = {
    "running": "green",
    "exited": "red",
    "dead": "red",
    "paused": "yellow",
    "restarting": "yellow",
    "created": "white",
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(api_url: str, action: Callable[[RubickConsole], Awaitable[_T]]) -> _T:
    """Start a console against *api_url*, run *action*, and always stop it.

    Raises click.ClickException on configuration or transport errors.
    """
    try:
        config = load_config()
        config.api.url = parse_api_url(api_url)
    except ValueError as err:
        raise click.ClickException(str(err)) from err

    async def _main() -> _T:
        console = RubickConsole(config, json_logs=False)
        await console.start()
        try:
            return await action(console)
        finally:
            await console.stop()

    try:
        return asyncio.run(_main())
    except TransportError as err:
        raise click.ClickException(f"Backend request failed: {err}") from err


def _record_label(record: object) -> str:
    """One-line description of a cached record."""
    if isinstance(record, Container):
        color = _STATE_COLORS.get(record.state, "white")
        return f"{record.name or record.id[:12]}  {click.style(record.state or '?', fg=color)}  {record.image}"
    if isinstance(record, Image):
        return f"{record.name}  {record.size / (1024 * 1024):.1f} MB"
    if isinstance(record, Volume):
        return f"{record.name}  ({record.driver})"
    if isinstance(record, Network):
        return f"{record.name}  ({record.driver}, {record.scope})"
    if isinstance(record, ComposeProject):
        return f"{record.name}  {record.status}"
    return str(record)


def _dump(record: object) -> object:
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    return record


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--api-url",
    default="http://localhost:8080",
    envvar="RUBICK_API_URL",
    show_default=True,
    help="Backend REST API base URL.",
)
@click.pass_context
def cli(ctx: click.Context, api_url: str) -> None:
    """rubick - multi-host container platform console."""
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url


# ---------------------------------------------------------------------------
# rubick version
# ---------------------------------------------------------------------------


@cli.command("version")
def cmd_version() -> None:
    """Print the rubick version and exit."""
    click.echo(f"rubick {__version__}")


# ---------------------------------------------------------------------------
# rubick hosts
# ---------------------------------------------------------------------------


@cli.command("hosts")
@click.option("--json", "output_json", is_flag=True, default=False, help="Print raw JSON.")
@click.pass_context
def cmd_hosts(ctx: click.Context, output_json: bool) -> None:
    """List hosts registered with the backend."""

    async def _action(console: RubickConsole) -> list[Host]:
        return await console.hosts.load_hosts()

    hosts = _run(ctx.obj["api_url"], _action)

    if output_json:
        click.echo(json.dumps([host.model_dump(mode="json") for host in hosts], indent=2))
        return

    if not hosts:
        click.echo("No hosts registered.")
        return

    for host in hosts:
        marker = click.style("*", fg="green", bold=True) if host.is_default else " "
        status = click.style("active", fg="green") if host.is_active else click.style("inactive", fg="red")
        address = host.host or "-"
        click.echo(f"{marker} {host.id}  {click.style(host.name, bold=True)}  [{host.type}] {address}  {status}")


# ---------------------------------------------------------------------------
# rubick resources
# ---------------------------------------------------------------------------


@cli.command("resources")
@click.argument("host_id")
@click.option(
    "--kind",
    "kinds",
    multiple=True,
    type=click.Choice([kind.value for kind in ResourceKind]),
    help="Only show these resource kinds (repeatable). Defaults to all.",
)
@click.option("--json", "output_json", is_flag=True, default=False, help="Print raw JSON.")
@click.pass_context
def cmd_resources(ctx: click.Context, host_id: str, kinds: tuple[str, ...], output_json: bool) -> None:
    """Load and print the resources of HOST_ID."""

    async def _action(console: RubickConsole) -> CacheEntrySnapshot | None:
        await console.cache.load(host_id)
        return console.cache.get(host_id)

    snapshot = _run(ctx.obj["api_url"], _action)
    if snapshot is None:
        raise click.ClickException(f"No resources loaded for host {host_id}")

    selected = [ResourceKind(kind) for kind in kinds] or list(ResourceKind)

    if output_json:
        body = {
            "host_id": snapshot.host_id,
            "state": snapshot.state.value,
            "failed_kinds": sorted(kind.value for kind in snapshot.failed_kinds),
            "resources": {kind.value: [_dump(record) for record in snapshot.of(kind)] for kind in selected},
        }
        click.echo(json.dumps(body, indent=2))
        return

    click.echo(click.style(f"Host {host_id}", bold=True))
    for kind in selected:
        records = snapshot.of(kind)
        title = f"{_KIND_TITLES[kind]} ({len(records)})"
        if kind in snapshot.failed_kinds:
            click.echo(click.style(f"{title} - failed to load", fg="yellow", bold=True))
        else:
            click.echo(click.style(title, bold=True))
        for record in records:
            click.echo(f"  {_record_label(record)}")
