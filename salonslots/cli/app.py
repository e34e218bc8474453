"""
Main CLI application using Typer.
"""

import json
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..adapters.memory_store import MemoryBookingStore
from ..adapters.supabase_client import SupabaseClient
from ..config import AppConfig, get_default_config_path
from ..domain.business_hours import normalize_business_hours
from ..domain.exceptions import SalonSlotsError, ValidationError
from ..domain.models import Slot, TimeInterval, WEEKDAYS
from ..domain.slot_calculator import SlotCalculator
from ..logging_setup import configure_logging
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="salonslots",
    help="Compute bookable salon appointment slots and check booking conflicts",
    add_completion=False
)

console = Console()

BookedOption = Annotated[
    Optional[List[str]],
    typer.Option("--booked", "-b", help="Booked interval as HH:MM-HH:MM (repeatable)"),
]


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Salon availability engine.
    """
    ctx.obj = {"verbose": verbose}
    configure_logging("DEBUG" if verbose else "WARNING")


def _parse_booked(values: Optional[List[str]]) -> List[TimeInterval]:
    """Parse repeated ``HH:MM-HH:MM`` options into intervals."""
    intervals: List[TimeInterval] = []
    for value in values or []:
        start, separator, end = value.partition("-")
        if not separator:
            raise ValidationError(f"Booked interval must look like HH:MM-HH:MM, got '{value}'")
        intervals.append(TimeInterval.from_strings(start.strip(), end.strip()))
    return intervals


def _print_slots(slots: List[Slot], title: str) -> None:
    if not slots:
        console.print(
            "[yellow]⚠ No available slots found.[/yellow]\n"
            "Try another day or a shorter service."
        )
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Slot", style="bold green")

    for idx, slot in enumerate(slots, 1):
        table.add_row(str(idx), slot.format_display())

    console.print()
    console.print(table)
    console.print(f"[bold green]✓ {len(slots)} available slot(s)[/bold green]\n")


def _load_config(config_file: Optional[Path], allow_defaults: bool) -> AppConfig:
    config_path = config_file or get_default_config_path()
    if allow_defaults and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, mock: bool) -> AvailabilityService:
    calculator = SlotCalculator(grid_minutes=config.scheduling.grid_minutes)

    if mock:
        store = MemoryBookingStore.from_json()
        return AvailabilityService(
            hours_provider=store,
            service_catalog=store,
            booking_reader=store,
            booking_writer=store,
            slot_calculator=calculator,
        )

    if config.supabase is None:
        raise ValidationError(
            "No 'supabase' section in the config file. Add one or use --mock."
        )

    client = SupabaseClient(
        url=config.supabase.url,
        key=config.supabase.key,
        timeout_seconds=config.supabase.timeout_seconds,
    )
    return AvailabilityService(
        hours_provider=client,
        service_catalog=client,
        booking_reader=client,
        booking_writer=client,
        slot_calculator=calculator,
    )


@app.command()
def slots(
    open_time: Annotated[str, typer.Option("--open", help="Opening time (HH:MM)")],
    close_time: Annotated[str, typer.Option("--close", help="Closing time (HH:MM)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Service duration in minutes")],
    booked: BookedOption = None,
    grid: Annotated[int, typer.Option("--grid", help="Minutes between candidate start times")] = 30,
):
    """
    Compute free slots for a single day from explicit hours and bookings.

    Examples:

        salonslots slots --open 09:00 --close 12:00 --duration 60

        salonslots slots --open 09:00 --close 18:00 -d 45 -b 10:00-11:00 -b 14:30-15:00
    """
    try:
        calculator = SlotCalculator(grid_minutes=grid)
        result = calculator.compute_available_slots(
            open_time=open_time,
            close_time=close_time,
            duration_minutes=duration,
            existing_bookings=_parse_booked(booked),
        )
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    _print_slots(result, title=f"Slots {open_time}–{close_time} ({duration} min)")


@app.command()
def check(
    start: Annotated[str, typer.Argument(help="Candidate start (HH:MM)")],
    end: Annotated[str, typer.Argument(help="Candidate end (HH:MM)")],
    booked: BookedOption = None,
):
    """
    Check whether a candidate interval conflicts with booked intervals.

    Exits with status 1 on conflict.
    """
    try:
        conflict = SlotCalculator().has_conflict(start, end, _parse_booked(booked))
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(2)

    if conflict:
        console.print(f"[bold red]✗ {start}–{end} conflicts with an existing booking[/bold red]")
        raise typer.Exit(1)

    console.print(f"[bold green]✓ {start}–{end} is free[/bold green]")


@app.command("salon-slots")
def salon_slots(
    ctx: typer.Context,
    salon_id: Annotated[str, typer.Argument(help="Salon id")],
    service_id: Annotated[str, typer.Argument(help="Service id")],
    on_date: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD), defaults to today")] = None,
    staff_id: Annotated[Optional[str], typer.Option("--staff", help="Only consider this staff member's bookings")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use the bundled sample data instead of Supabase.")] = False,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
):
    """
    Compute free slots for a salon service on a date.

    Examples:

        salonslots salon-slots salon-downtown haircut --date 2025-03-03 --mock

        salonslots salon-slots 42 7 --staff 3 --config config.yaml
    """
    try:
        config = _load_config(config_file, allow_defaults=mock)
        if not (ctx.obj or {}).get("verbose"):
            configure_logging(config.log_level)

        if mock:
            console.print("[yellow]⚠  MOCK MODE: using bundled sample data[/yellow]")

        service = _build_service(config, mock)
        day = on_date or config.today().isoformat()

        result = service.get_available_slots(
            salon_id=salon_id,
            service_id=service_id,
            on_date=day,
            staff_id=staff_id,
        )

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    except (SalonSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    scope = f", staff {staff_id}" if staff_id else ""
    _print_slots(result, title=f"{salon_id} · {service_id} · {day}{scope}")


@app.command("normalize-hours")
def normalize_hours(
    hours_file: Annotated[Path, typer.Argument(help="JSON file with raw business hours")],
):
    """
    Normalize stored business hours to the canonical format.
    """
    try:
        with open(hours_file, "r", encoding="utf-8") as f:
            raw = json.load(f)
        business_hours = normalize_business_hours(raw)
    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        console.print(f"[bold red]Error:[/bold red] Invalid JSON in {hours_file}: {e}")
        raise typer.Exit(1)
    except SalonSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    table = Table(title="Business hours", show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Opening")
    table.add_column("Closing")

    for day in WEEKDAYS:
        hours = business_hours.for_weekday(day)
        if hours is None:
            table.add_row(day.capitalize(), "[dim]closed[/dim]", "")
        else:
            table.add_row(day.capitalize(), hours.opening_time, hours.closing_time)

    console.print(table)
    console.print_json(data=business_hours.to_dict())


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
