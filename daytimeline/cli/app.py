"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import pendulum
import typer
from pendulum import Date
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.mock_record_store import MockRecordStore
from ..adapters.record_client import TimeRecordClient
from ..config import AppConfig, get_default_config_path
from ..domain.collection import SlotCollection
from ..domain.exceptions import TimeTrackerError
from ..domain.interaction import CommitResult, CommitStatus
from ..domain.models import GestureType, ResizeEdge, TimeSlot
from ..domain.timeunits import clock_to_minutes, format_duration, minutes_to_clock
from ..services.time_tracker import TimeTrackerService

app = typer.Typer(
    name="daytimeline",
    help="Track your day as time slots on a 24h timeline",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DateOption = Annotated[Optional[str], typer.Option("--date", help="Day to edit (YYYY-MM-DD). Defaults to today.")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use local mock data instead of the backend.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Day-timeline slot editor.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """Load the YAML config; mock mode works without one."""
    config_path = config_file or get_default_config_path()
    if mock and config_file is None and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, mock: bool) -> TimeTrackerService:
    if mock:
        console.print("[yellow]⚠  MOCK MODE: using local test data[/yellow]")
        store = MockRecordStore(data_file=config.mock_data_file)
    else:
        if config.api is None:
            raise ValueError("No 'api' section in the config file. Add one or use --mock.")
        store = TimeRecordClient(
            base_url=config.api.base_url,
            access_token=config.api.access_token,
            timeout=config.api.timeout,
        )
    return TimeTrackerService(record_store=store, config=config.tracker)


def _parse_date(value: Optional[str]) -> Date:
    if value is None:
        return pendulum.today().date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def _open_day(config_file: Optional[Path], mock: bool, date: Optional[str]):
    config = _load_config(config_file, mock)
    service = _build_service(config, mock)
    collection = asyncio.run(service.load_day(_parse_date(date)))
    return service, collection


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _describe(slot: TimeSlot, service: TimeTrackerService) -> str:
    color = service.config.category_color(slot.category_id)
    name = service.config.category_name(slot.category_id)
    return f"{slot.format_display()} [{color}]■[/] {name}"


def _report(result: CommitResult, service: TimeTrackerService) -> None:
    if result.status is CommitStatus.COMMITTED:
        console.print(f"[bold green]✓ Saved:[/bold green] {_describe(result.slot, service)}")
        console.print(f"[dim]id: {result.slot.id}[/dim]")
    elif result.status is CommitStatus.UNCHANGED:
        console.print("[yellow]Nothing changed.[/yellow]")
    elif result.status is CommitStatus.IGNORED:
        console.print("[yellow]Empty slot ignored.[/yellow]")
    else:
        console.print(
            f"[bold red]✗ Rejected ({result.failure.value}):[/bold red] {result.validation.message}"
        )
        raise typer.Exit(1)


def _render_day(collection: SlotCollection, service: TimeTrackerService) -> None:
    day = collection.date.format("dddd, DD.MM.YYYY")

    if not len(collection):
        console.print(f"\n[yellow]No slots recorded on {day}.[/yellow]\n")
        return

    table = Table(
        title=f"Timeline {day}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="bold")
    table.add_column("Duration", justify="right")
    table.add_column("Category")
    table.add_column("Title")
    table.add_column("ID", style="dim")

    for slot in collection:
        color = service.config.category_color(slot.category_id)
        table.add_row(
            f"{minutes_to_clock(slot.start_time)} - {minutes_to_clock(slot.end_time)}",
            format_duration(slot.duration_minutes()),
            f"[{color}]■[/] {service.config.category_name(slot.category_id)}",
            slot.title or "",
            slot.id,
        )

    console.print()
    console.print(table)

    totals = service.category_totals(collection)
    lines = [
        f"[{summary.color}]■[/] {summary.name}: {format_duration(summary.minutes)}"
        for summary in totals
    ]
    lines.append(f"\n[bold]Tracked:[/bold] {format_duration(service.tracked_minutes(collection))}")
    console.print(Panel.fit("\n".join(lines), title="Totals"))
    console.print()


@app.command()
def show(
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show the slots of a day.
    """
    try:
        service, collection = _open_day(config_file, mock, date)
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    _render_day(collection, service)


@app.command()
def add(
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    end: Annotated[str, typer.Argument(help="End time (HH:MM)")],
    category: Annotated[Optional[str], typer.Argument(help="Category id. Defaults to the suggested one.")] = None,
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="Slot title")] = None,
    description: Annotated[Optional[str], typer.Option("--description", help="Slot description")] = None,
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Add a slot by typing its start and end.

    Examples:

        daytimeline add 09:00 10:30 work --title "Planning"
    """
    try:
        service, collection = _open_day(config_file, mock, date)
        start_time = clock_to_minutes(start)
        if category is None:
            category = asyncio.run(service.suggest_category(collection.date, start_time))
        slot, result = asyncio.run(
            service.add_slot(
                collection,
                start_time,
                clock_to_minutes(end),
                category,
                title=title,
                description=description,
            )
        )
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    if not result:
        console.print(f"[bold red]✗ Rejected ({result.failure.value}):[/bold red] {result.message}")
        raise typer.Exit(1)

    console.print(f"[bold green]✓ Added:[/bold green] {_describe(slot, service)}")
    console.print(f"[dim]id: {slot.id}[/dim]")


@app.command()
def draw(
    anchor: Annotated[str, typer.Argument(help="Where the pointer goes down (HH:MM)")],
    to: Annotated[str, typer.Argument(help="Where the pointer is released (HH:MM)")],
    category: Annotated[Optional[str], typer.Argument(help="Category id. Defaults to the suggested one.")] = None,
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Create a slot the way a drag on the timeline does (snapped and clamped).
    """
    try:
        service, collection = _open_day(config_file, mock, date)
        anchor_time = clock_to_minutes(anchor)
        if category is None:
            category = asyncio.run(service.suggest_category(collection.date, anchor_time))
        result = asyncio.run(
            service.apply_gesture(
                collection,
                GestureType.CREATE,
                anchor_time,
                clock_to_minutes(to),
                category_id=category,
            )
        )
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    _report(result, service)


@app.command()
def move(
    slot_id: Annotated[str, typer.Argument(help="Id of the slot to move")],
    start: Annotated[str, typer.Argument(help="New start time (HH:MM)")],
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Move a slot, keeping its duration. Stops at neighbouring slots.
    """
    try:
        service, collection = _open_day(config_file, mock, date)
        slot = collection.get(slot_id)
        anchor = slot.start_time if slot is not None else 0
        result = asyncio.run(
            service.apply_gesture(
                collection,
                GestureType.MOVE,
                anchor,
                clock_to_minutes(start),
                slot_id=slot_id,
            )
        )
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    _report(result, service)


@app.command()
def resize(
    slot_id: Annotated[str, typer.Argument(help="Id of the slot to resize")],
    edge: Annotated[ResizeEdge, typer.Argument(help="Edge to drag")],
    to: Annotated[str, typer.Argument(help="New time of that edge (HH:MM)")],
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Drag the top or bottom edge of a slot. Stops at neighbouring slots.
    """
    try:
        service, collection = _open_day(config_file, mock, date)
        slot = collection.get(slot_id)
        anchor = 0
        if slot is not None:
            anchor = slot.start_time if edge is ResizeEdge.TOP else slot.end_time
        result = asyncio.run(
            service.apply_gesture(
                collection,
                GestureType.RESIZE,
                anchor,
                clock_to_minutes(to),
                slot_id=slot_id,
                direction=edge,
            )
        )
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    _report(result, service)


@app.command()
def delete(
    slot_id: Annotated[str, typer.Argument(help="Id of the slot to delete")],
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Delete one slot.
    """
    try:
        service, collection = _open_day(config_file, mock, date)
        removed = asyncio.run(service.delete_slot(collection, slot_id))
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    console.print(f"[green]✓ Deleted:[/green] {_describe(removed, service)}")


@app.command()
def clear(
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
):
    """
    Delete every slot of a day.
    """
    try:
        service, collection = _open_day(config_file, mock, date)
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    if not yes:
        typer.confirm(
            f"Delete all {len(collection)} slot(s) on {collection.date.isoformat()}?",
            abort=True,
        )

    try:
        count = asyncio.run(service.clear_day(collection))
    except TimeTrackerError as e:
        _fail(e)

    console.print(f"[green]✓ Removed {count} slot(s).[/green]")


@app.command(name="next")
def next_slot(
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Add the suggestion without asking.")] = False,
):
    """
    Suggest the next slot of a day and optionally add it.
    """
    try:
        service, collection = _open_day(config_file, mock, date)
        suggestion = asyncio.run(service.suggest_next(collection))
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    if suggestion is None:
        console.print("[yellow]No suggestion for this day.[/yellow]")
        return

    console.print(f"[bold cyan]Suggested:[/bold cyan] {_describe(suggestion, service)}")
    if not yes and not typer.confirm("Add this slot?", default=True):
        return

    try:
        slot, result = asyncio.run(
            service.add_slot(
                collection,
                suggestion.start_time,
                suggestion.end_time,
                suggestion.category_id,
            )
        )
    except TimeTrackerError as e:
        _fail(e)

    if not result:
        console.print(f"[bold red]✗ Rejected ({result.failure.value}):[/bold red] {result.message}")
        raise typer.Exit(1)

    console.print(f"[bold green]✓ Added:[/bold green] {_describe(slot, service)}")
    console.print(f"[dim]id: {slot.id}[/dim]")


@app.command()
def week(
    date: DateOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show tracked time per day for the week containing a date.
    """
    try:
        config = _load_config(config_file, mock)
        service = _build_service(config, mock)
        days = asyncio.run(service.load_week(_parse_date(date)))
    except (FileNotFoundError, ValueError, TimeTrackerError) as e:
        _fail(e)

    first = next(iter(days))
    table = Table(
        title=f"Week of {first.format('DD.MM.YYYY')}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold")
    table.add_column("Slots", justify="right")
    table.add_column("Tracked", justify="right")
    table.add_column("Top category")

    for day, collection in days.items():
        totals = service.category_totals(collection)
        top = f"[{totals[0].color}]■[/] {totals[0].name}" if totals else ""
        table.add_row(
            day.format("ddd DD.MM"),
            str(len(collection)),
            format_duration(service.tracked_minutes(collection)),
            top,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def categories(
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List all configured categories.
    """
    try:
        config = _load_config(config_file, mock)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    table = Table(
        title="Categories",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="bold yellow")
    table.add_column("Name")
    table.add_column("Colour")
    table.add_column("Tracked", justify="center")

    for category in config.tracker.categories:
        marker = " (default)" if category.id == config.tracker.default_category_id else ""
        table.add_row(
            category.id,
            f"{category.name}{marker}",
            f"[{category.color}]■[/] {category.color}",
            "✓" if category.is_track_time else "",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]daytimeline[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
