"""Command-line interface for the challenge tracker.

Built with Typer for commands and Rich for output.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .challenges import (
    ChallengeCreate,
    ChallengeManager,
    ChallengeOrchestrator,
    ChallengeStatus,
    ChallengeUpdate,
    Frequency,
    ProgressCreate,
    ProgressManager,
    SqlChallengeRepository,
    SqlProgressRepository,
)
from .config import Config
from .db import Database
from .exceptions import NotFoundError, TrackerError
from .lifecycle import LifecycleGovernor
from .logging_config import configure_logging
from .progress import ProgressAccounting

# Create the main app
app = typer.Typer(
    name="wellbeing",
    help="Track wellness challenges and daily progress.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
challenge_app = typer.Typer(help="Manage challenges.")
app.add_typer(challenge_app, name="challenge")

progress_app = typer.Typer(help="Record and review daily progress.")
app.add_typer(progress_app, name="progress")

# Rich console for pretty output
console = Console()


# ============================================================================
# Service Wiring
# ============================================================================


@dataclass
class Services:
    """Services built for one CLI invocation."""

    config: Config
    db: Database
    accounting: ProgressAccounting
    challenges: ChallengeManager
    progress: ProgressManager
    orchestrator: ChallengeOrchestrator


def build_services(config: Optional[Config] = None) -> Services:
    """Construct the database and services from configuration."""
    if config is None:
        try:
            config = Config.from_env()
        except ValueError as e:
            print_error(str(e))
            raise typer.Exit(1)

    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    configure_logging(level=config.log_level, json_format=config.log_json)

    db = Database(config.db_path)
    db.create_tables()

    accounting = ProgressAccounting(
        month_length_days=config.month_length_days,
        completion_strategy=config.completion_strategy,
    )
    governor = LifecycleGovernor(inactivity_threshold_days=config.inactivity_threshold_days)
    orchestrator = ChallengeOrchestrator(
        challenges=SqlChallengeRepository(db),
        progress=SqlProgressRepository(db),
        accounting=accounting,
        governor=governor,
    )

    return Services(
        config=config,
        db=db,
        accounting=accounting,
        challenges=ChallengeManager(db, governor),
        progress=ProgressManager(db),
        orchestrator=orchestrator,
    )


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def parse_date(value: Optional[str], default: Optional[date] = None) -> Optional[date]:
    """Parse a YYYY-MM-DD option, exiting on malformed input."""
    if value is None:
        return default
    try:
        return date.fromisoformat(value)
    except ValueError:
        print_error(f"Invalid date: {value} (expected YYYY-MM-DD)")
        raise typer.Exit(1)


def format_status(status: ChallengeStatus) -> str:
    """Colored status badge."""
    if status == ChallengeStatus.COMPLETED:
        return "[bold green]completed[/bold green]"
    if status == ChallengeStatus.ABANDONED:
        return "[dim]abandoned[/dim]"
    return "[yellow]active[/yellow]"


def progress_bar(percent: int, width: int = 20) -> str:
    """Text progress bar for a 0-100 percentage."""
    filled = int((percent / 100) * width)
    return "[green]" + "#" * filled + "[/green]" + "-" * (width - filled)


# ============================================================================
# Challenge Commands
# ============================================================================


@challenge_app.command("create")
def challenge_create(
    title: str = typer.Argument(..., help="Challenge title"),
    user: str = typer.Option(..., "--user", "-u", help="Owner user ID"),
    target: float = typer.Option(1.0, "--target", "-t", help="Value an entry must reach"),
    frequency: Frequency = typer.Option(Frequency.DAILY, "--frequency", "-f", help="Frequency"),
    start: Optional[str] = typer.Option(None, "--start", "-s", help="Start date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", "-e", help="End date (YYYY-MM-DD)"),
    challenge_type: str = typer.Option("custom", "--type", help="Category tag"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description"),
) -> None:
    """Create a new challenge (30 days from today by default)."""
    services = build_services()

    start_date = parse_date(start, date.today())
    end_date = parse_date(end, start_date + timedelta(days=29))

    try:
        data = ChallengeCreate(
            user_id=user,
            title=title,
            description=description,
            challenge_type=challenge_type,
            frequency=frequency,
            start_date=start_date,
            end_date=end_date,
            target_value=target,
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    challenge = services.challenges.create_challenge(data)
    print_success(f"Challenge created: {challenge.title}")
    console.print(f"[dim]ID: {challenge.id}[/dim]")
    console.print(f"[dim]Period: {challenge.start_date} to {challenge.end_date} ({frequency.value})[/dim]")


@challenge_app.command("list")
def challenge_list(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Filter by owner"),
    status: Optional[ChallengeStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
    challenge_type: Optional[str] = typer.Option(None, "--type", help="Filter by category tag"),
) -> None:
    """List challenges."""
    services = build_services()

    challenges = services.challenges.list_challenges(
        user_id=user, status=status, challenge_type=challenge_type
    )

    if not challenges:
        console.print("[dim]No challenges found. Create one with 'challenge create'[/dim]")
        return

    table = Table(title="Challenges", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", max_width=12)
    table.add_column("Title", style="cyan")
    table.add_column("Type")
    table.add_column("Frequency")
    table.add_column("Period")
    table.add_column("Target", justify="right")
    table.add_column("Status")

    for ch in challenges:
        table.add_row(
            ch.id[:8],
            ch.title,
            ch.challenge_type,
            ch.frequency.value,
            f"{ch.start_date} - {ch.end_date}",
            f"{ch.target_value:g}",
            format_status(ch.status),
        )

    console.print(table)


@challenge_app.command("show")
def challenge_show(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    on: Optional[str] = typer.Option(None, "--on", help="Evaluate as of date (YYYY-MM-DD)"),
) -> None:
    """Show challenge metrics without changing its status."""
    services = build_services()
    now = parse_date(on, date.today())

    challenge = services.challenges.get_challenge(challenge_id)
    if not challenge:
        print_error(f"Challenge not found: {challenge_id}")
        raise typer.Exit(1)

    entries = services.progress.list_progress(challenge_id)
    metrics = services.accounting.compute_metrics(challenge, entries, now)

    console.print(Panel(
        f"[bold]{challenge.title}[/bold]\n"
        f"{challenge.description or ''}\n"
        f"{format_status(challenge.status)}",
        style="cyan",
    ))

    console.print(
        f"\n  Progress: [{progress_bar(metrics.completion_percentage, 30)}] "
        f"{metrics.completion_percentage}%"
    )
    console.print(f"  Periods: {metrics.completed_periods} / {metrics.total_periods} ({challenge.frequency.value})")
    console.print(f"  Days remaining: {metrics.days_remaining}")
    console.print(f"  Current streak: {metrics.current_streak}")
    console.print(f"  Longest streak: {metrics.longest_streak}")
    if metrics.last_completed_date:
        console.print(f"  Last completed: {metrics.last_completed_date}")


@challenge_app.command("status")
def challenge_status(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    status: ChallengeStatus = typer.Argument(..., help="New status"),
) -> None:
    """Manually change a challenge's status."""
    services = build_services()

    try:
        challenge = services.challenges.change_status(challenge_id, status)
    except TrackerError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"'{challenge.title}' is now {challenge.status.value}")


@challenge_app.command("update")
def challenge_update(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
    target: Optional[float] = typer.Option(None, "--target", "-t", help="New target value"),
    frequency: Optional[Frequency] = typer.Option(None, "--frequency", "-f", help="New frequency"),
    start: Optional[str] = typer.Option(None, "--start", "-s", help="New start date"),
    end: Optional[str] = typer.Option(None, "--end", "-e", help="New end date"),
) -> None:
    """Update fields of a challenge. Only given options are changed."""
    services = build_services()

    fields = {
        "title": title,
        "description": description,
        "target_value": target,
        "frequency": frequency,
        "start_date": parse_date(start),
        "end_date": parse_date(end),
    }
    try:
        data = ChallengeUpdate(**{k: v for k, v in fields.items() if v is not None})
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not data.model_fields_set:
        print_warning("Nothing to update")
        return

    try:
        challenge = services.challenges.update_challenge(challenge_id, data)
    except TrackerError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not challenge:
        print_error(f"Challenge not found: {challenge_id}")
        raise typer.Exit(1)

    print_success(f"Updated: {challenge.title}")


@challenge_app.command("delete")
def challenge_delete(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a challenge and its progress."""
    services = build_services()

    if not yes and not typer.confirm(f"Delete challenge {challenge_id} and all its progress?"):
        raise typer.Exit(0)

    if services.challenges.delete_challenge(challenge_id):
        print_success("Challenge deleted")
    else:
        print_error(f"Challenge not found: {challenge_id}")
        raise typer.Exit(1)


@challenge_app.command("summary")
def challenge_summary(
    user: str = typer.Argument(..., help="Owner user ID"),
) -> None:
    """Show counts of a user's challenges by status."""
    services = build_services()
    summary = services.challenges.get_summary(user)

    table = Table(title=f"Challenges of {user}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total", str(summary.total_challenges))
    table.add_row("Active", str(summary.active_challenges))
    table.add_row("Completed", str(summary.completed_challenges))
    table.add_row("Abandoned", str(summary.abandoned_challenges))
    table.add_row("Completion rate", f"{summary.average_completion_rate:.1f}%")

    console.print(table)


# ============================================================================
# Progress Commands
# ============================================================================


@progress_app.command("log")
def progress_log(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    value: float = typer.Argument(..., help="Value achieved"),
    on: Optional[str] = typer.Option(None, "--date", help="Entry date (YYYY-MM-DD, default today)"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Notes"),
) -> None:
    """Record progress for a day (replaces that day's entry)."""
    services = build_services()

    try:
        data = ProgressCreate(entry_date=parse_date(on, date.today()), value=value, notes=notes)
        entry = services.progress.log_progress(challenge_id, data)
    except NotFoundError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Logged {entry.value:g} on {entry.entry_date}")


@progress_app.command("list")
def progress_list(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    start: Optional[str] = typer.Option(None, "--start", "-s", help="From date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", "-e", help="To date (YYYY-MM-DD)"),
) -> None:
    """List progress entries of a challenge."""
    services = build_services()

    entries = services.progress.list_progress(
        challenge_id, start_date=parse_date(start), end_date=parse_date(end)
    )

    if not entries:
        console.print("[dim]No progress recorded.[/dim]")
        return

    table = Table(title="Progress", show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Notes")

    for entry in entries:
        table.add_row(entry.entry_date.isoformat(), f"{entry.value:g}", entry.notes or "")

    console.print(table)


@progress_app.command("delete")
def progress_delete(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    entry_date: str = typer.Argument(..., help="Entry date (YYYY-MM-DD)"),
) -> None:
    """Delete the progress entry of a day."""
    services = build_services()

    if services.progress.delete_progress(challenge_id, parse_date(entry_date)):
        print_success(f"Deleted entry for {entry_date}")
    else:
        print_error(f"No entry for {entry_date}")
        raise typer.Exit(1)


# ============================================================================
# Refresh Commands
# ============================================================================


@app.command()
def refresh(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    on: Optional[str] = typer.Option(None, "--on", help="Evaluate as of date (YYYY-MM-DD)"),
) -> None:
    """Recompute a challenge's metrics and apply automatic status changes."""
    services = build_services()
    now = parse_date(on, date.today())

    try:
        challenge = services.orchestrator.refresh_challenge(challenge_id, now)
    except TrackerError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if challenge.status_changed:
        console.print(
            f"[bold]{challenge.title}[/bold]: {challenge.previous_status.value} -> "
            f"{format_status(challenge.status)}"
        )
    else:
        console.print(f"[bold]{challenge.title}[/bold]: {format_status(challenge.status)}")
    console.print(f"  Completion: {challenge.metrics.completion_percentage}%")
    console.print(f"  Current streak: {challenge.metrics.current_streak}")


@app.command("refresh-all")
def refresh_all(
    user: str = typer.Argument(..., help="Owner user ID"),
    on: Optional[str] = typer.Option(None, "--on", help="Evaluate as of date (YYYY-MM-DD)"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Stop scheduling refreshes after this many seconds"
    ),
) -> None:
    """Refresh every challenge of a user."""
    services = build_services()
    now = parse_date(on, date.today())

    orchestrator = services.orchestrator
    deadline = orchestrator.clock() + timeout if timeout is not None else None
    result = orchestrator.refresh_challenges(user, now, deadline=deadline)

    if result.refreshed:
        table = Table(title="Refreshed Challenges", show_header=True, header_style="bold magenta")
        table.add_column("Title", style="cyan")
        table.add_column("%", justify="right")
        table.add_column("Streak", justify="right")
        table.add_column("Status")

        for ch in result.refreshed:
            status = format_status(ch.status)
            if ch.status_changed:
                status = f"{ch.previous_status.value} -> {status}"
            table.add_row(
                ch.title,
                f"{ch.metrics.completion_percentage}",
                str(ch.metrics.current_streak),
                status,
            )
        console.print(table)
    else:
        console.print("[dim]No challenges refreshed.[/dim]")

    for failure in result.failures:
        print_error(f"{failure.challenge_id}: {failure.error}: {failure.message}")
    if result.cancelled:
        print_warning(f"Stopped early, {len(result.pending)} challenge(s) not refreshed")

    if result.failures:
        raise typer.Exit(1)


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"wellbeing version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
