"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig
from ..domain.exceptions import AssetBookingError, SlotConflict
from ..domain.models import Availability, Booking
from ..services.booking_service import BookingService, build_booking_service

app = typer.Typer(
    name="assetbooking",
    help="Browse lab assets, check slot availability and book equipment",
    add_completion=False
)

console = Console()

AVAILABILITY_STYLES = {
    Availability.AVAILABLE: "[green]free[/green]",
    Availability.UNAVAILABLE: "[red]booked[/red]",
    Availability.UNKNOWN: "[yellow]unknown[/yellow]",
}


class CliState:
    """Options shared by every command."""

    def __init__(self, config_file: Optional[Path], local: bool):
        self.config_file = config_file
        self.local = local
        self._service: Optional[BookingService] = None

    def load_config(self) -> AppConfig:
        return AppConfig.load(self.config_file)

    @property
    def service(self) -> BookingService:
        if self._service is None:
            self._service = build_booking_service(self.load_config(), force_local=self.local)
        return self._service


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    local: Annotated[bool, typer.Option("--local", help="Use the local store only, skip the hosted backend.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show log output.")] = False,
):
    """
    Lab asset booking.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=console, rich_tracebacks=True)],
        )
    ctx.obj = CliState(config_file=config_file, local=local)


def _parse_date(value: Optional[str], tz: str):
    """Parse a YYYY-MM-DD option, defaulting to today."""
    if not value:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date '{value}': {e}[/red]")
        raise typer.Exit(1)


def _fail(error: Exception):
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def assets(ctx: typer.Context):
    """
    List all assets.
    """
    state: CliState = ctx.obj
    try:
        asset_list = asyncio.run(state.service.get_assets())
    except (AssetBookingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    if not asset_list:
        console.print("[yellow]No assets found.[/yellow]")
        return

    table = Table(title="Assets", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Calibration")
    table.add_column("Location", style="dim")
    table.add_column("Available")

    for asset in asset_list:
        table.add_row(
            asset.id,
            asset.name,
            asset.type,
            asset.calibration_status.value,
            asset.location or "-",
            "[green]yes[/green]" if asset.available else "[red]no[/red]",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def slots(
    ctx: typer.Context,
    asset_id: Annotated[str, typer.Argument(help="Asset id, e.g. A001")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Day (YYYY-MM-DD), defaults to today")] = None,
):
    """
    Show the bookable slots of an asset for one day.
    """
    state: CliState = ctx.obj
    try:
        service = state.service
        day = _parse_date(date, service.timezone)
        day_slots = asyncio.run(service.generate_time_slots(day, asset_id))
    except (AssetBookingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    console.print(f"\n[bold cyan]{asset_id}[/bold cyan] on {day.format('dddd, DD.MM.YYYY')}\n")
    for slot in day_slots:
        console.print(f"  {slot.format_display()}  {AVAILABILITY_STYLES[slot.availability]}")
    console.print()


@app.command()
def calendar(
    ctx: typer.Context,
    asset_id: Annotated[str, typer.Argument(help="Asset id, e.g. A001")],
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD), defaults to today")] = None,
):
    """
    Show the availability calendar of an asset.
    """
    state: CliState = ctx.obj
    try:
        service = state.service
        first_day = _parse_date(start, service.timezone)
        days = asyncio.run(service.generate_availability_calendar(first_day, asset_id))
    except (AssetBookingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    table = Table(title=f"Availability of {asset_id}", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold")
    table.add_column("Free slots", justify="right")
    table.add_column("Bookable")

    for day in days:
        table.add_row(
            day.date.format("ddd DD.MM.YYYY"),
            f"{day.free_slot_count()}/{len(day.slots)}",
            "[green]yes[/green]" if day.available else "[red]no[/red]",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def check(
    ctx: typer.Context,
    asset_id: Annotated[str, typer.Argument(help="Asset id, e.g. A001")],
    start_time: Annotated[str, typer.Argument(help="Start (HH:MM)")],
    end_time: Annotated[str, typer.Argument(help="End (HH:MM)")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Day (YYYY-MM-DD), defaults to today")] = None,
):
    """
    Check whether an asset is free for a time range.
    """
    state: CliState = ctx.obj
    try:
        service = state.service
        day = _parse_date(date, service.timezone)
        availability = asyncio.run(
            service.check_availability(asset_id, day, start_time, end_time)
        )
    except (AssetBookingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    console.print(
        f"{asset_id} {day.to_date_string()} {start_time}-{end_time}: "
        f"{AVAILABILITY_STYLES[availability]}"
    )
    if availability is not Availability.AVAILABLE:
        raise typer.Exit(2)


@app.command()
def book(
    ctx: typer.Context,
    asset_id: Annotated[str, typer.Argument(help="Asset id, e.g. A001")],
    start_time: Annotated[str, typer.Argument(help="Start (HH:MM)")],
    end_time: Annotated[str, typer.Argument(help="End (HH:MM)")],
    user: Annotated[str, typer.Option("--user", "-u", help="Who books the asset")],
    purpose: Annotated[str, typer.Option("--purpose", "-p", help="What the asset is needed for")] = "",
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Day (YYYY-MM-DD), defaults to today")] = None,
):
    """
    Book a known asset after checking the range is free.
    """
    state: CliState = ctx.obj

    async def _book(service: BookingService, booking: Booking):
        await service.get_asset(booking.asset_id)
        availability = await service.check_availability(
            booking.asset_id, booking.date, booking.start_time, booking.end_time
        )
        if availability is not Availability.AVAILABLE:
            return availability, None
        return availability, await service.save_booking(booking)

    try:
        service = state.service
        day = _parse_date(date, service.timezone)
        booking = Booking(
            asset_id=asset_id,
            user_id=user,
            date=day,
            start_time=start_time,
            end_time=end_time,
            purpose=purpose,
        )
        availability, stored = asyncio.run(_book(service, booking))
    except SlotConflict as e:
        console.print(f"[bold red]✗ Slot already taken:[/bold red] {e}")
        raise typer.Exit(1)
    except (AssetBookingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    if stored is None:
        if availability is Availability.UNKNOWN:
            console.print("[yellow]⚠ Availability could not be checked, booking not placed.[/yellow]")
        else:
            console.print(f"[red]✗ {asset_id} is already booked {start_time}-{end_time} on {day.to_date_string()}.[/red]")
        raise typer.Exit(1)

    console.print(f"[bold green]✓ Booked {stored.asset_id}[/bold green] "
                  f"{stored.date.to_date_string()} {stored.start_time}-{stored.end_time} "
                  f"[dim]({stored.id})[/dim]")


@app.command()
def bookings(
    ctx: typer.Context,
    asset_id: Annotated[Optional[str], typer.Argument(help="Only show bookings of this asset")] = None,
):
    """
    List stored bookings.
    """
    state: CliState = ctx.obj
    try:
        booking_list = asyncio.run(state.service.get_bookings(asset_id))
    except (AssetBookingError, ValueError, FileNotFoundError) as e:
        _fail(e)

    if not booking_list:
        console.print("[yellow]No bookings found.[/yellow]")
        return

    table = Table(title="Bookings", show_header=True, header_style="bold cyan")
    table.add_column("Asset", style="bold yellow")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("User")
    table.add_column("Purpose", style="dim")

    for booking in sorted(booking_list, key=lambda b: (b.date, b.start_time)):
        table.add_row(
            booking.asset_id,
            booking.date.to_date_string(),
            f"{booking.start_time}-{booking.end_time}",
            booking.user_id,
            booking.purpose,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def init(ctx: typer.Context):
    """
    Seed the store with the default assets if it is empty.
    """
    state: CliState = ctx.obj
    try:
        asset_list = asyncio.run(state.service.get_assets())
    except (AssetBookingError, ValueError, FileNotFoundError) as e:
        _fail(e)
    console.print(f"[green]✓ Store ready with {len(asset_list)} asset(s).[/green]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]assetbooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
