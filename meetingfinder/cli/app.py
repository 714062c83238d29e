"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.config_roster import ConfigRoster
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import MeetingFinderError
from ..domain.models import MeetingFinderResult, MeetingQuality
from ..domain.team_status import summarize_team_status
from ..domain.timezones import (
    COMMON_TIMEZONES,
    TimezoneConverter,
    format_time_until_available,
    is_valid_timezone,
)
from ..services.meeting_planner import MeetingPlannerService

app = typer.Typer(
    name="meetingfinder",
    help="Find meeting times that work across your team's timezones",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

_state = {"verbose": False}

QUALITY_STYLES = {
    MeetingQuality.EXCELLENT: "bold green",
    MeetingQuality.GOOD: "green",
    MeetingQuality.FAIR: "yellow",
    MeetingQuality.POOR: "red",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
AtOption = Annotated[
    Optional[str],
    typer.Option("--at", help="Reference instant (ISO 8601) used for timezone offsets. Defaults to now.")
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)
    if not _state["verbose"]:
        logging.getLogger().setLevel(config.log_level)
    logger.debug("Loaded %d members from %s", len(config.members), config_path)
    return config


def _parse_reference_time(at: Optional[str]):
    if at is None:
        return None
    try:
        parsed = pendulum.parse(at, tz="UTC")
    except ValueError as e:
        console.print(f"[red]Could not parse --at value '{at}': {e}[/red]")
        raise typer.Exit(1)

    # Durations and bare times parse too
    if not isinstance(parsed, pendulum.DateTime):
        console.print(f"[red]Could not parse --at value '{at}': not a date and time[/red]")
        raise typer.Exit(1)
    return parsed


def _resolve_viewer_timezone(viewer_tz: Optional[str], config: AppConfig) -> str:
    viewer_timezone = viewer_tz or config.viewer_timezone
    if not is_valid_timezone(viewer_timezone):
        raise ValueError(f"Unknown timezone: {viewer_timezone}")
    return viewer_timezone


def _render_result(result: MeetingFinderResult, viewer_timezone: str) -> None:
    if not result.has_results:
        console.print(f"[yellow]⚠ {result.suggestion}[/yellow]")
        return

    table = Table(
        title=f"Best meeting times ({viewer_timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Time", style="bold")
    table.add_column("Quality")
    table.add_column("Score", justify="right")
    table.add_column("Attendance")

    for rank, slot in enumerate(result.slots, 1):
        style = QUALITY_STYLES[slot.quality]
        table.add_row(
            str(rank),
            slot.format_display(),
            f"[{style}]{slot.quality.value}[/{style}]",
            f"{slot.score:.0f}",
            slot.summary_text()
        )

    console.print()
    console.print(table)
    console.print()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Find meeting times that work across your team's timezones.
    """
    _state["verbose"] = verbose
    _configure_logging("DEBUG" if verbose else "WARNING")


@app.command()
def find(
    participants: Annotated[Optional[List[str]], typer.Argument(help="Member ids or names. Defaults to the whole team.")] = None,
    config_file: ConfigOption = None,
    group: Annotated[Optional[str], typer.Option("--group", "-g", help="Include every member of this group.")] = None,
    viewer_tz: Annotated[Optional[str], typer.Option("--viewer-tz", help="Show times in this timezone.")] = None,
    min_duration: Annotated[Optional[int], typer.Option("--min-duration", help="Shortest meeting in hours.")] = None,
    max_duration: Annotated[Optional[int], typer.Option("--max-duration", help="Longest meeting in hours.")] = None,
    flex: Annotated[Optional[bool], typer.Option("--flex/--no-flex", help="Let people shift their hours.")] = None,
    flex_range: Annotated[Optional[int], typer.Option("--flex-range", help="How many hours people may shift.")] = None,
    at: AtOption = None,
):
    """
    Find the best common meeting slots.

    Examples:

        meetingfinder find
        meetingfinder find alice bob --no-flex
        meetingfinder find --group engineering --max-duration 2
        meetingfinder find alice carol --viewer-tz Asia/Tokyo --at 2024-01-15T12:00:00
    """
    try:
        config = _load_config(config_file)
        reference_time = _parse_reference_time(at)
        defaults = config.defaults
        viewer_timezone = _resolve_viewer_timezone(viewer_tz, config)

        identifiers = list(participants or [])
        if not identifiers and group is None:
            identifiers = [member.id for member in config.members]

        service = MeetingPlannerService(roster=ConfigRoster(config))
        result = asyncio.run(
            service.find_meeting_times(
                participants=identifiers,
                group=group,
                viewer_timezone=viewer_timezone,
                min_duration=min_duration if min_duration is not None else defaults.min_duration,
                max_duration=max_duration if max_duration is not None else defaults.max_duration,
                allow_flex_hours=flex if flex is not None else defaults.allow_flex_hours,
                flex_range=flex_range if flex_range is not None else defaults.flex_range,
                reference_time=reference_time,
            )
        )

        _render_result(result, viewer_timezone)

    except (FileNotFoundError, ValueError, MeetingFinderError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_members(
    config_file: ConfigOption = None,
    at: AtOption = None,
):
    """
    List all configured team members with their local time.
    """
    try:
        config = _load_config(config_file)
        converter = TimezoneConverter(reference_time=_parse_reference_time(at))

        if not config.members:
            console.print("[yellow]No members defined in the config file.[/yellow]")
            return

        table = Table(
            title="Team members",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Id", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("Title")
        table.add_column("Timezone")
        table.add_column("Hours")
        table.add_column("Availability")

        for participant in config.all_participants():
            wait = converter.minutes_until_available(participant)
            availability = format_time_until_available(wait)
            table.add_row(
                participant.id,
                participant.name,
                participant.title,
                converter.format_timezone_label(participant.timezone, include_current_time=True),
                f"{participant.working_hours_start}–{participant.working_hours_end}",
                f"[green]{availability}[/green]" if wait == 0 else availability
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def status(
    config_file: ConfigOption = None,
    viewer_tz: Annotated[Optional[str], typer.Option("--viewer-tz", help="Measure hours in this timezone.")] = None,
    at: AtOption = None,
):
    """
    Show who is online, starting soon and leaving soon.
    """
    try:
        config = _load_config(config_file)
        converter = TimezoneConverter(reference_time=_parse_reference_time(at))
        viewer_timezone = _resolve_viewer_timezone(viewer_tz, config)

        team = summarize_team_status(config.all_participants(), viewer_timezone, converter)

        console.print(f"\n[bold cyan]Online ({len(team.online)})[/bold cyan]")
        for member in team.online:
            console.print(f"  {member.participant.name}")

        console.print(f"\n[bold cyan]Starting soon ({len(team.coming_soon)})[/bold cyan]")
        for member in team.coming_soon:
            console.print(f"  {member.participant.name} in {member.hours_until_start}h")

        console.print(f"\n[bold cyan]Leaving soon ({len(team.leaving_soon)})[/bold cyan]")
        for member in team.leaving_soon:
            console.print(f"  {member.participant.name} in {member.hours_until_end}h")

        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def timezones(at: AtOption = None):
    """
    List the suggested timezones with their current offset.
    """
    converter = TimezoneConverter(reference_time=_parse_reference_time(at))
    for name in COMMON_TIMEZONES:
        console.print(f"  {name:<22} {converter.format_timezone_label(name, include_current_time=True)}")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]meetingfinder[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
