"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.table import Table

from ..adapters.json_schedule_repository import JsonScheduleRepository
from ..config import AppConfig, get_default_config_path, load_config
from ..domain.exceptions import SchedulingError
from ..domain.models import resolve_timezone
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="scheduleslots",
    help="Compute open appointment slots from a professional's weekly schedule policy",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
DataOption = Annotated[
    Optional[Path],
    typer.Option("--data", "-d", help="Schedule data file. Overrides the config value.")
]


def _setup(config_file: Optional[Path], data_file: Optional[Path]):
    """Load config, configure logging and build the service with its repository."""
    config = load_config(config_file)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    config_path = config_file or get_default_config_path()
    if not config_path.exists():
        config_path = None

    repository = JsonScheduleRepository(
        data_file=data_file or config.resolve_data_file(config_path),
        default_timezone=config.timezone
    )
    service = AvailabilityService(
        repository,
        horizon_months=config.horizon_months
    )
    return config, repository, service


def _parse_instant(value: str, config: AppConfig, label: str) -> DateTime:
    """
    Parse an ISO date/time argument.

    Values without an offset are read in the configured time zone; the
    service converts them to the professional's policy zone.
    """
    try:
        parsed = pendulum.parse(value, tz=resolve_timezone(config.timezone))
    except Exception as e:
        console.print(f"[red]Could not parse {label} '{value}': {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(parsed, DateTime):
        console.print(f"[red]{label} must be a date or date-time, got '{value}'[/red]")
        raise typer.Exit(1)

    return parsed


@app.command()
def available(
    professional: Annotated[str, typer.Argument(help="Professional identifier")],
    start: Annotated[Optional[str], typer.Option("--from", help="Range start (ISO 8601). Defaults to now.")] = None,
    end: Annotated[Optional[str], typer.Option("--to", help="Range end (ISO 8601). Defaults to the configured horizon.")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List open appointment slots for a professional.

    Examples:

        scheduleslots available dr-ana

        scheduleslots available dr-ana --from 2024-11-25 --to 2024-11-30
    """
    try:
        config, _, service = _setup(config_file, data_file)

        from_ = _parse_instant(start, config, "--from") if start else None
        to = _parse_instant(end, config, "--to") if end else None

        intervals = asyncio.run(
            service.generate_available_slots(professional, from_=from_, to=to)
        )
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not intervals:
        console.print("[yellow]No open slots found in the requested range.[/yellow]")
        return

    table = Table(
        title=f"Open slots for {professional}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Start")
    table.add_column("End")

    for interval in intervals:
        table.add_row(
            interval.start.format("dddd YYYY-MM-DD"),
            interval.start.format("HH:mm"),
            interval.end.format("HH:mm")
        )

    console.print()
    console.print(table)
    console.print(f"\n[bold green]{len(intervals)} open slot(s)[/bold green]\n")


@app.command()
def check(
    professional: Annotated[str, typer.Argument(help="Professional identifier")],
    start: Annotated[str, typer.Option("--start", help="Requested start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Requested end (ISO 8601)")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Check whether a requested slot could be booked.
    """
    try:
        config, _, service = _setup(config_file, data_file)
        requested_start = _parse_instant(start, config, "--start")
        requested_end = _parse_instant(end, config, "--end")

        asyncio.run(service.validate_booking(professional, requested_start, requested_end))
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Rejected:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[green]✓ {requested_start.format('YYYY-MM-DD HH:mm')} - "
        f"{requested_end.format('HH:mm')} can be booked.[/green]"
    )


@app.command()
def book(
    professional: Annotated[str, typer.Argument(help="Professional identifier")],
    start: Annotated[str, typer.Option("--start", help="Requested start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Requested end (ISO 8601)")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Book a slot and write it to the schedule data file.
    """
    try:
        config, repository, service = _setup(config_file, data_file)
        requested_start = _parse_instant(start, config, "--start")
        requested_end = _parse_instant(end, config, "--end")

        slot = asyncio.run(service.book_slot(professional, requested_start, requested_end))
        written = repository.dump()
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[green]✓ Booked {slot.start.format('YYYY-MM-DD HH:mm')} - "
        f"{slot.end.format('HH:mm')} ({written})[/green]"
    )


@app.command()
def reserved(
    professional: Annotated[str, typer.Argument(help="Professional identifier")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List the reserved slots of a professional.
    """
    try:
        _, _, service = _setup(config_file, data_file)
        slots = asyncio.run(service.reserved_slots(professional))
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not slots:
        console.print("[yellow]No reserved slots.[/yellow]")
        return

    for slot in slots:
        console.print(
            f"  {slot.start.format('YYYY-MM-DD HH:mm')} - {slot.end.format('HH:mm')}"
        )


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]scheduleslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
