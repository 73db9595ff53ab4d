"""
Typer CLI for retention-core.

Commands:
    retention add <id>              - Register a new item (due immediately)
    retention review <id>           - Record an attempt and reschedule
    retention due                   - Next study session (standard, exam or critical)
    retention flag <id>             - Set or clear priority flags
    retention show <id>             - Item state and attempt history
    retention stats                 - Collection statistics
    retention level <xp>            - Level and progress for an XP total

Usage:
    retention add q-001 --hot
    retention review q-001 --correct --rating easy --time 25
    retention due --limit 10 --mode exam --new-limit 0.2
    retention flag q-001 --recent-error
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from retention.core.models import ItemKind, LearningItem, SelfEval
from retention.core.policy import PolicyConfig
from retention.store import ItemNotFoundError, SqliteItemRepository
from retention.study.engine import RetentionEngine
from retention.study.review_status import (
    compute_aggregated_stats,
    item_badge,
    summarize_history,
)
from retention.study.session_queue import QueueMode

console = Console()

app = typer.Typer(
    help="retention-core CLI: spaced-repetition scheduling and mastery tracking",
    no_args_is_help=True,
)

DbOption = typer.Option(None, "--db", help="SQLite file (defaults to RETENTION_STATE_DB_PATH)")

FLAG_NAMES = ("hot_topic", "is_critical", "is_fundamental", "recent_error")


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )


def _policy() -> PolicyConfig:
    return get_settings().to_policy()


def _open_store(db: Path | None) -> SqliteItemRepository:
    return SqliteItemRepository(db or get_settings().state_db_path)


def _format_progress_bar(score: float, width: int = 10) -> str:
    """Format a progress bar."""
    filled = int(score / 100 * width)
    return "#" * filled + "-" * (width - filled)


def _get_item(store: SqliteItemRepository, item_id: str) -> LearningItem:
    try:
        return store.get(item_id)
    except ItemNotFoundError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine decisions"),
) -> None:
    """Configure logging for every command."""
    _configure_logging("DEBUG" if verbose else get_settings().log_level)


@app.command("add")
def add_item(
    item_id: str = typer.Argument(..., help="Item identifier"),
    kind: ItemKind = typer.Option(ItemKind.QUESTION, "--kind", help="question or flashcard"),
    hot: bool = typer.Option(False, "--hot", help="Mark as hot topic"),
    critical: bool = typer.Option(False, "--critical", help="Mark as critical"),
    fundamental: bool = typer.Option(False, "--fundamental", help="Mark as fundamental"),
    target_sec: Optional[float] = typer.Option(None, "--target-sec", help="Response-time target"),
    db: Optional[Path] = DbOption,
) -> None:
    """Register a new item, due immediately."""
    engine = RetentionEngine(_policy())
    with _open_store(db) as store:
        try:
            store.get(item_id)
        except ItemNotFoundError:
            pass
        else:
            rprint(f"[yellow]Item {item_id} already exists[/yellow]")
            raise typer.Exit(code=1)

        item = engine.new_item(
            item_id,
            kind=kind,
            hot_topic=hot,
            is_critical=critical,
            is_fundamental=fundamental,
            target_sec=target_sec,
        )
        store.update(item)

    rprint(f"[green]Added[/green] {item_id} ({kind.value})")


@app.command("review")
def review_item(
    item_id: str = typer.Argument(..., help="Item identifier"),
    correct: bool = typer.Option(..., "--correct/--wrong", help="Whether the answer was right"),
    rating: str = typer.Option("good", "--rating", "-r", help="again, hard, good or easy"),
    time_sec: float = typer.Option(..., "--time", "-t", help="Seconds spent answering"),
    db: Optional[Path] = DbOption,
) -> None:
    """Record an attempt and show the new schedule."""
    try:
        self_eval = SelfEval[rating.upper()]
    except KeyError:
        rprint(f"[red]Invalid rating:[/red] {rating} (use again, hard, good or easy)")
        raise typer.Exit(code=1) from None

    engine = RetentionEngine(_policy())
    with _open_store(db) as store:
        item = _get_item(store, item_id)
        result = engine.record_attempt(item, correct, self_eval, time_sec)
        store.update(result.item)

    outcome = "[green]correct[/green]" if correct else "[red]wrong[/red]"
    rprint(f"{item_id}: {outcome} ({self_eval.grade}, {result.timing_class.value})")
    rprint(
        f"  stability {item.stability_days:.1f}d -> {result.stability_days:.1f}d | "
        f"mastery {item.mastery_score:.0f} -> {result.mastery_score:.0f}"
    )
    rprint(f"  next review in {result.interval_days:.1f}d ({result.next_review_date:%Y-%m-%d %H:%M})")


@app.command("due")
def show_due(
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=1, help="Session size (defaults to RETENTION_SESSION_SIZE)"
    ),
    mode: QueueMode = typer.Option(QueueMode.STANDARD, "--mode", "-m", help="standard, exam or critical"),
    new_limit: Optional[float] = typer.Option(
        None, "--new-limit", min=0.0, max=1.0, help="Largest fraction of new items"
    ),
    near: bool = typer.Option(False, "--near", help="Include near-due items"),
    db: Optional[Path] = DbOption,
) -> None:
    """Show the next study session."""
    settings = get_settings()
    engine = RetentionEngine(settings.to_policy())
    with _open_store(db) as store:
        items = store.get_all()

    now = engine.clock.now()
    session = engine.build_session_queue(
        items,
        session_size=limit or settings.session_size,
        new_content_limit=settings.new_content_limit if new_limit is None else new_limit,
        mode=mode,
        now=now,
        include_near_due=near,
    )

    if not session.entries:
        rprint("[green]Nothing due. All caught up.[/green]")
        return

    table = Table(title=f"Due queue ({len(session)} items, {mode.value})")
    table.add_column("ID")
    table.add_column("Reason")
    table.add_column("Urgency")
    table.add_column("Priority", justify="right")
    table.add_column("Domain", justify="right")
    table.add_column("Review")

    for entry in session.entries:
        urgency = engine.classify_urgency(entry.item, now=now)
        badge = item_badge(entry.item, now)
        table.add_row(
            entry.item.item_id,
            entry.reason.value,
            f"[{urgency.color}]{urgency.value}[/{urgency.color}]",
            f"{entry.priority:.2f}",
            f"{entry.domain:.0f}",
            badge.label,
        )

    console.print(table)

    mix = session.mix
    rprint(
        f"Mix: {mix.due} due | {mix.new} new | {mix.critical} critical | "
        f"{mix.pct_new:.0f}% new"
    )
    rprint(f"Domain: {session.mean_domain:.0f} mean | {session.median_domain:.0f} median")


@app.command("flag")
def flag_item(
    item_id: str = typer.Argument(..., help="Item identifier"),
    hot: Optional[bool] = typer.Option(None, "--hot/--no-hot", help="Hot topic"),
    critical: Optional[bool] = typer.Option(None, "--critical/--no-critical", help="Critical"),
    fundamental: Optional[bool] = typer.Option(None, "--fundamental/--no-fundamental", help="Fundamental"),
    recent_error: Optional[bool] = typer.Option(
        None, "--recent-error/--no-recent-error", help="Recent error"
    ),
    db: Optional[Path] = DbOption,
) -> None:
    """Set or clear an item's priority flags."""
    changes = {
        name: value
        for name, value in (
            ("hot_topic", hot),
            ("is_critical", critical),
            ("is_fundamental", fundamental),
            ("recent_error", recent_error),
        )
        if value is not None
    }

    with _open_store(db) as store:
        item = _get_item(store, item_id)
        if changes:
            item = item.with_flags(**changes)
            store.update(item)

    flags = " | ".join(
        f"{name} {'on' if getattr(item, name) else 'off'}" for name in FLAG_NAMES
    )
    rprint(f"{item_id}: {flags}")


@app.command("show")
def show_item(
    item_id: str = typer.Argument(..., help="Item identifier"),
    db: Optional[Path] = DbOption,
) -> None:
    """Show an item's review state and attempt history."""
    engine = RetentionEngine(_policy())
    with _open_store(db) as store:
        item = _get_item(store, item_id)

    now = engine.clock.now()
    badge = item_badge(item, now)
    summary = summarize_history(item)

    rprint(f"\n[bold cyan]{item.item_id}[/bold cyan] ({item.kind.value})")
    rprint(f"  mastery  {_format_progress_bar(item.mastery_score)} {item.mastery_score:.0f}")
    rprint(f"  domain   {_format_progress_bar(badge.domain)} {badge.domain:.0f} [{badge.tier.color}]{badge.tier.value}[/{badge.tier.color}]")
    rprint(f"  stability {item.stability_days:.1f}d | next review {badge.label}")
    rprint(
        f"  attempts {summary.attempts} | accuracy {summary.accuracy:.0%} | "
        f"lapses {summary.lapses} | mean time {summary.mean_time_sec:.0f}s"
    )

    if not item.attempt_history:
        return

    table = Table()
    table.add_column("Date")
    table.add_column("Result")
    table.add_column("Grade")
    table.add_column("Timing")
    table.add_column("Stability", justify="right")
    table.add_column("Mastery", justify="right")

    for attempt in item.attempt_history:
        table.add_row(
            f"{attempt.date:%Y-%m-%d %H:%M}",
            "[green]ok[/green]" if attempt.was_correct else "[red]miss[/red]",
            attempt.grade,
            attempt.timing_class.value,
            f"{attempt.stability_after:.1f}d",
            f"{attempt.mastery_after:.0f}",
        )

    console.print(table)


@app.command("stats")
def show_stats(db: Optional[Path] = DbOption) -> None:
    """Show collection statistics."""
    engine = RetentionEngine(_policy())
    with _open_store(db) as store:
        items = store.get_all()

    stats = compute_aggregated_stats(items, engine.policy, engine.clock.now())

    rprint(f"[bold]Items:[/bold] {stats.total} total | {stats.attempted} attempted")
    rprint(
        f"[bold]Mastery:[/bold] {stats.avg_mastery:.0f} avg | "
        f"[bold]Domain:[/bold] {stats.avg_domain:.0f} avg"
    )
    rprint(
        f"[red]{stats.error_count}[/red] last-attempt errors | "
        f"[yellow]{stats.critical_count}[/yellow] flagged critical"
    )
    rprint(
        "  ".join(f"{status.value}: {count}" for status, count in stats.breakdown.items())
    )


@app.command("level")
def show_level(xp: int = typer.Argument(..., help="Cumulative XP")) -> None:
    """Show the level reached with ``xp`` experience points."""
    info = RetentionEngine.level_info(xp)
    rprint(
        f"[bold]Level {info.level}[/bold] {_format_progress_bar(info.progress_percent)} "
        f"{info.progress_percent:.0f}% ({info.xp_to_next_level} XP to level {info.level + 1})"
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
