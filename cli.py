import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing import Optional
from datetime import datetime

from spaced_review.clock import utcnow
from spaced_review.config import settings
from spaced_review.database import init_db
from spaced_review.engine import get_engine
from spaced_review.errors import ReviewEngineError
from spaced_review.log_setup import setup_logging
from spaced_review.schemas import Severity
from spaced_review.sm2 import SM2Algorithm

app = typer.Typer(help="Spaced Review CLI - schedule topic reviews with SM-2")
console = Console()

SEVERITY_STYLES = {
    Severity.OVERDUE: "bold red",
    Severity.DUE_TODAY: "yellow",
    Severity.DUE_SOON: "cyan",
    Severity.AT_RISK: "magenta",
}


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, help="Override the configured log level")):
    """Configure logging before any command runs"""
    setup_logging(log_level or settings.log_level, settings.log_to_file)


def _fail(error: Exception):
    console.print(f"[red]✗[/red] {escape(str(error))}")
    raise typer.Exit(code=1)


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        _fail(f"Invalid date/time '{value}', use ISO format (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")


def _label(item, width: int = None) -> str:
    topic = item.topic_name[:width] if width else item.topic_name
    return escape(f"[{item.subject_id}] {topic}")


def _fmt(moment: Optional[datetime]) -> str:
    return moment.strftime("%Y-%m-%d %H:%M") if moment else "-"


@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")


@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from spaced_review.database import engine, Base
    from spaced_review import models  # noqa: F401
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    Base.metadata.create_all(bind=engine)
    console.print("[green]✓[/green] Database reset complete! All data deleted.")


@app.command()
def track(
    user_id: str = typer.Option(..., prompt="User ID"),
    subject_id: str = typer.Option(..., prompt="Subject ID"),
    topic: str = typer.Option(..., prompt="Topic name"),
    confidence: int = typer.Option(..., prompt="Confidence (1-5)"),
    difficulty: int = typer.Option(settings.default_difficulty, help="Difficulty 1 (easy) to 5 (hard)"),
    chapter: Optional[str] = typer.Option(None, help="Chapter reference")
):
    """Start tracking a topic for spaced review"""
    try:
        item = get_engine().create(user_id, subject_id, topic, confidence, difficulty, chapter)
    except ReviewEngineError as e:
        _fail(e)

    console.print(f"[green]✓[/green] Tracking topic! Item ID: {item.id}")
    console.print(f"  Topic: {_label(item)}")
    console.print(f"  First review: {_fmt(item.next_review_at)} (in {item.interval_days} days)")


@app.command()
def review(
    item_id: int = typer.Option(..., prompt="Item ID"),
    confidence: int = typer.Option(..., prompt="Confidence before answering (1-5)"),
    seconds: int = typer.Option(..., prompt="Time spent (seconds)"),
    result: str = typer.Option(..., prompt="Result (correct/partial/incorrect)"),
    reviewed_at: Optional[str] = typer.Option(None, help="Review time (ISO format), default: now")
):
    """Record a review outcome for a tracked topic"""
    try:
        outcome = get_engine().review(item_id, confidence, seconds, result.strip().lower(), _parse_time(reviewed_at))
    except ReviewEngineError as e:
        _fail(e)

    item = outcome.item
    console.print(f"[green]✓[/green] Review recorded!")
    console.print(f"  Topic: {_label(item)}")
    console.print(f"  Result: {outcome.record.result.value}")
    console.print(f"  Next review: {_fmt(item.next_review_at)} (in {item.interval_days} days)")
    console.print(f"  Ease: {item.ease_factor:.2f}")


@app.command()
def due(
    user_id: str,
    subject_id: Optional[str] = typer.Option(None, help="Only this subject"),
    limit: Optional[int] = typer.Option(None, help="Maximum topics to list")
):
    """List topics due for review now"""
    try:
        items = get_engine().due_items(user_id, subject_id, limit=limit)
    except ReviewEngineError as e:
        _fail(e)

    if not items:
        console.print("[green]Nothing due for review. 🎉[/green]")
        return

    today = utcnow().date()
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Topic", style="green")
    table.add_column("Due", style="yellow")
    table.add_column("Overdue", style="red")
    table.add_column("Diff", justify="right")
    table.add_column("Retention", justify="right")

    for item in items:
        days_overdue = SM2Algorithm.get_days_overdue(item.next_review_at, today)
        table.add_row(
            str(item.id),
            item.subject_id,
            escape(item.topic_name[:50]),
            _fmt(item.next_review_at),
            str(days_overdue) if days_overdue > 0 else "Today",
            str(item.difficulty_level),
            f"{item.retention_estimate:.0f}%"
        )

    console.print(table)


@app.command()
def schedule(
    user_id: str,
    days: int = typer.Option(settings.default_schedule_days, help="Number of days to show"),
    include_overdue: bool = typer.Option(False, help="Fold overdue topics into today")
):
    """Show the review calendar for the coming days"""
    try:
        calendar = get_engine().schedule(user_id, days, include_overdue=include_overdue)
    except ReviewEngineError as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Day", style="dim")
    table.add_column("Topics", style="yellow")
    table.add_column("Count", style="blue", justify="right")

    for day, items in calendar.items():
        topics_str = "\n".join(_label(item) for item in items) or "-"
        table.add_row(day.isoformat(), day.strftime("%a"), topics_str, str(len(items)))

    console.print(table)


@app.command()
def at_risk(
    user_id: str,
    threshold: float = typer.Option(settings.risk_threshold, help="Retention % below which a topic is at risk")
):
    """List topics whose estimated retention has dropped below the threshold"""
    try:
        items = get_engine().at_risk(user_id, threshold)
    except ReviewEngineError as e:
        _fail(e)

    if not items:
        console.print(f"[green]No topics below {threshold:.0f}% retention.[/green]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Topic", style="green")
    table.add_column("Retention", style="red", justify="right")
    table.add_column("Next Review", style="yellow")

    for item in items:
        table.add_row(
            str(item.id),
            item.subject_id,
            escape(item.topic_name[:50]),
            f"{item.retention_estimate:.0f}%",
            _fmt(item.next_review_at)
        )

    console.print(table)


@app.command()
def reminders(user_id: str):
    """Show the prioritized review reminder feed"""
    try:
        feed = get_engine().reminders(user_id)
    except ReviewEngineError as e:
        _fail(e)

    if not feed:
        console.print("[green]No reminders right now.[/green]")
        return

    for reminder in feed:
        style = SEVERITY_STYLES[reminder.severity]
        item = reminder.item
        console.print(
            f"[{style}]{reminder.severity.value:>9}[/{style}]  "
            f"#{item.id} {_label(item, 40)} - {reminder.message}"
        )


@app.command()
def history(item_id: int):
    """View review history for a topic"""
    try:
        log = get_engine().history(item_id)
    except ReviewEngineError as e:
        _fail(e)

    item = log.item
    console.print(f"\n[bold]{_label(item)}[/bold]")
    console.print(f"  Status: {item.status.value}{' (mastered)' if log.mastered else ''}")
    console.print(f"  Interval: {item.interval_days} days, ease {item.ease_factor:.2f}, streak {item.repetition_count}")
    console.print(f"  Next review: {_fmt(item.next_review_at)}")

    if not log.records:
        console.print("[dim]No reviews yet.[/dim]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Reviewed", style="cyan")
    table.add_column("Result", style="green")
    table.add_column("Confidence", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Interval", style="yellow")

    for record in log.records:
        table.add_row(
            _fmt(record.reviewed_at),
            record.result.value,
            f"{record.confidence}/5",
            f"{record.time_spent_seconds}s",
            f"{record.interval_before} → {record.interval_after} days"
        )

    console.print(table)


@app.command()
def pause(item_id: int):
    """Pause reminders for a topic"""
    try:
        item = get_engine().pause(item_id)
    except ReviewEngineError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Item {item.id} is {item.status.value}")


@app.command()
def resume(item_id: int):
    """Resume a paused topic"""
    try:
        item = get_engine().resume(item_id)
    except ReviewEngineError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Item {item.id} is {item.status.value}")


@app.command()
def archive(item_id: int):
    """Stop tracking a topic while keeping its history"""
    try:
        item = get_engine().archive(item_id)
    except ReviewEngineError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Item {item.id} is {item.status.value}")


if __name__ == "__main__":
    app()
