"""CLI entry point for the InkedIn discovery engine.

Provides commands:
  - search: Run a discovery query and print the interleaved results
  - url encode / url decode: Convert between filters and discovery URLs
  - tui: Launch the interactive terminal front-end
  - config: Manage API credentials in the system keyring
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import keyring
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from inkedin.config import API_TOKEN_KEY, GEOCODE_KEY, SERVICE_NAME, load_config
from inkedin.exceptions import DiscoveryError, InputValidationError, InvalidFilterError
from inkedin.filters import mutations
from inkedin.filters.url_codec import decode, encode, parse_query_string, to_query_string
from inkedin.geo.coords import parse_lat_lng
from inkedin.models import FilterState, LocationMode, ResultKind

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="InkedIn discovery - search, filter and page through the tattoo catalog",
    rich_markup_mode="rich",
)
console = Console()

url_app = typer.Typer(help="Encode and decode discovery URLs")
app.add_typer(url_app, name="url")

config_app = typer.Typer(help="Manage configuration (API credentials)")
app.add_typer(config_app, name="config")

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to discovery_config.json"),
]


def _build_state(
    query: str,
    styles: list[int] | None,
    tags: list[int] | None,
    distance: int,
    unit: str,
    near: str | None,
    location: str | None,
    mine: bool,
    books_open: bool,
    studio: int | None,
) -> FilterState:
    """Fold command-line options into a FilterState via the store's mutations."""
    mode = LocationMode.ANY
    if mine:
        mode = LocationMode.MY
    elif near or location:
        mode = LocationMode.CUSTOM

    state = mutations.set_location_mode(FilterState(), mode)
    state = mutations.set_search_string(state, query)
    for style_id in styles or []:
        state = mutations.toggle_style(state, style_id)
    for tag_id in tags or []:
        state = mutations.toggle_tag(state, tag_id)
    state = mutations.set_distance(state, distance)
    state = mutations.set_distance_unit(state, unit)
    if location:
        state = mutations.set_location_text(state, location)
    if near:
        state = mutations.set_coordinates(state, parse_lat_lng(near))
    state = mutations.set_books_open(state, books_open)
    return mutations.set_studio_id(state, studio)


def _print_state(state: FilterState) -> None:
    table = Table(title="Filters", show_header=True, header_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("search", state.search_string or "[dim]-[/dim]")
    table.add_row("styles", ", ".join(str(i) for i in sorted(state.style_ids)) or "[dim]-[/dim]")
    table.add_row("tags", ", ".join(str(i) for i in sorted(state.tag_ids)) or "[dim]-[/dim]")
    table.add_row("location", state.location_mode.value)
    if state.location_text:
        table.add_row("location text", state.location_text)
    if state.coordinates is not None:
        table.add_row("coordinates", str(state.coordinates))
    table.add_row("distance", f"{state.distance} {state.distance_unit.value}")
    table.add_row("books open", "yes" if state.books_open else "no")
    table.add_row("studio", str(state.studio_id) if state.studio_id is not None else "[dim]-[/dim]")
    console.print(table)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Free-text search")] = "",
    style: Annotated[
        list[int] | None, typer.Option("--style", "-s", help="Style id (repeatable)")
    ] = None,
    tag: Annotated[list[int] | None, typer.Option("--tag", "-t", help="Tag id (repeatable)")] = None,
    distance: Annotated[int, typer.Option("--distance", "-d", help="Search radius")] = 50,
    unit: Annotated[str, typer.Option("--unit", help="Radius unit: mi or km")] = "mi",
    near: Annotated[
        str | None, typer.Option("--near", help="Anchor at coordinates 'lat,lng'")
    ] = None,
    location: Annotated[
        str | None, typer.Option("--location", "-l", help="Anchor at a geocoded place name")
    ] = None,
    mine: Annotated[
        bool, typer.Option("--near-me", help="Anchor at the configured device position")
    ] = False,
    books_open: Annotated[
        bool, typer.Option("--books-open", help="Only artists currently taking bookings")
    ] = False,
    studio: Annotated[int | None, typer.Option("--studio", help="Studio id")] = None,
    url: Annotated[
        str | None, typer.Option("--url", "-u", help="Start from a discovery URL query string")
    ] = None,
    pages: Annotated[int, typer.Option("--pages", "-p", help="Pages to load")] = 1,
    config_path: ConfigOption = None,
) -> None:
    """Search the catalog and print interleaved tattoo and promo results."""
    from inkedin.engine.discovery import DiscoveryEngine

    if url is not None:
        query_string = url.split("?", 1)[-1]
    else:
        try:
            state = _build_state(
                query, style, tag, distance, unit, near, location, mine, books_open, studio
            )
        except (InputValidationError, InvalidFilterError) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=1)
        query_string = to_query_string(encode(state))

    config = load_config(config_path)

    async def run() -> DiscoveryEngine:
        engine = DiscoveryEngine.from_config(config)
        try:
            engine.start(query_string)
            await engine.drain()
            for _ in range(pages - 1):
                if not engine.load_more():
                    break
                await engine.drain()
        finally:
            await engine.aclose()
        return engine

    try:
        engine = asyncio.run(run())
    except DiscoveryError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    _print_state(engine.state)
    if engine.location_error is not None:
        console.print(f"[yellow]Location:[/yellow] {engine.location_error}")
    if engine.paginator.error is not None:
        console.print(f"[red]Fetch failed:[/red] {engine.paginator.error}")

    session = engine.paginator.session
    if session is not None and session.fell_back:
        console.print("[dim]No nearby results; showing results from anywhere.[/dim]")

    empty = engine.empty_state
    if empty is not None:
        console.print(Panel(empty.value.replace("_", " "), title="No results", border_style="yellow"))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kind")
    table.add_column("Id", style="cyan")
    table.add_column("Title")
    for i, item in enumerate(engine.items, start=1):
        kind = "[yellow]promo[/yellow]" if item.kind is ResultKind.UNCLAIMED_STUDIO else "tattoo"
        title = item.data.get("title") or item.data.get("name") or ""
        table.add_row(str(i), kind, str(item.id), str(title))
    console.print(table)
    total = session.total if session and session.total is not None else len(engine.items)
    more = " (more available)" if engine.paginator.has_more else ""
    console.print(f"\n[dim]{len(engine.items)} shown of {total}{more}[/dim]")
    console.print(f"[dim]URL: ?{engine.url}[/dim]")


@url_app.command("decode")
def url_decode(
    query_string: Annotated[str, typer.Argument(help="Query string, with or without '?'")],
) -> None:
    """Show the filters a discovery URL describes."""
    filters = decode(parse_query_string(query_string.split("?", 1)[-1]))
    state = mutations.hydrate(FilterState(), filters)
    _print_state(state)
    console.print(f"[dim]Canonical: ?{to_query_string(encode(state))}[/dim]")


@url_app.command("encode")
def url_encode(
    query: Annotated[str, typer.Argument(help="Free-text search")] = "",
    style: Annotated[list[int] | None, typer.Option("--style", "-s")] = None,
    tag: Annotated[list[int] | None, typer.Option("--tag", "-t")] = None,
    distance: Annotated[int, typer.Option("--distance", "-d")] = 50,
    unit: Annotated[str, typer.Option("--unit")] = "mi",
    near: Annotated[str | None, typer.Option("--near")] = None,
    location: Annotated[str | None, typer.Option("--location", "-l")] = None,
    mine: Annotated[bool, typer.Option("--near-me")] = False,
    books_open: Annotated[bool, typer.Option("--books-open")] = False,
    studio: Annotated[int | None, typer.Option("--studio")] = None,
) -> None:
    """Print the canonical discovery query string for the given filters."""
    try:
        state = _build_state(query, style, tag, distance, unit, near, location, mine, books_open, studio)
    except (InputValidationError, InvalidFilterError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"?{to_query_string(encode(state))}", highlight=False)


@app.command()
def tui(
    query_string: Annotated[
        str, typer.Argument(help="Discovery URL query string to start from")
    ] = "",
    config_path: ConfigOption = None,
) -> None:
    """Launch the interactive discovery TUI."""
    from inkedin.tui import run_tui

    run_tui(config_path, initial_query=query_string.split("?", 1)[-1])


def _mask(secret: str) -> str:
    if len(secret) > 8:
        return secret[:8] + "*" * (len(secret) - 8)
    return secret[:2] + "*" * max(1, len(secret) - 2)


def _store_secret(key_name: str, value: str, label: str) -> None:
    if not value or value.strip() == "":
        console.print(f"[red]Error:[/red] {label} cannot be empty")
        raise typer.Exit(code=1)
    try:
        keyring.set_password(SERVICE_NAME, key_name, value)
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to store {label}: {e}")
        raise typer.Exit(code=1)
    console.print(
        f"[green]✓[/green] {label} stored in system keyring (service: {SERVICE_NAME})"
    )


@config_app.command("set-api-token")
def set_api_token(
    token: Annotated[str, typer.Argument(help="Query service bearer token")],
) -> None:
    """Store the query service token in the system keyring."""
    _store_secret(API_TOKEN_KEY, token, "API token")


@config_app.command("get-api-token")
def show_api_token() -> None:
    """Display the stored query service token (masked)."""
    token = keyring.get_password(SERVICE_NAME, API_TOKEN_KEY)
    if not token:
        console.print(
            "[yellow]No API token found in keyring.[/yellow]\n"
            "Set it with: [bold]inkedin config set-api-token TOKEN[/bold]"
        )
        raise typer.Exit(code=1)
    console.print(f"[green]API token:[/green] {_mask(token)}")


@config_app.command("remove-api-token")
def remove_api_token() -> None:
    """Delete the stored query service token."""
    if not keyring.get_password(SERVICE_NAME, API_TOKEN_KEY):
        console.print("[yellow]Warning:[/yellow] No API token found in keyring.\nNothing to remove.")
        return
    try:
        keyring.delete_password(SERVICE_NAME, API_TOKEN_KEY)
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to remove API token: {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] API token removed (service: {SERVICE_NAME})")


@config_app.command("set-geocode-key")
def set_geocode_key(
    key: Annotated[str, typer.Argument(help="Geocoding service API key")],
) -> None:
    """Store the geocoding API key in the system keyring."""
    _store_secret(GEOCODE_KEY, key, "Geocoding key")


@config_app.command("show")
def show_config(config_path: ConfigOption = None) -> None:
    """Print the effective configuration."""
    config = load_config(config_path)
    table = Table(title="Configuration", show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in vars(config).items():
        table.add_row(name, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
