"""retain CLI: drive the scheduling engine against a YAML card store."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer

from retain.application.config import EngineConfig, resolve_config
from retain.application.engine import SchedulingEngine
from retain.application.factory import build_engine
from retain.domain.errors import InvalidInputError, NotFoundError, StoreUnavailableError
from retain.domain.models import CardReviewState, QueueOptions, StudyOutcome

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="retain: spaced-repetition scheduling for your card collection.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage retain configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbose: int) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(verbose, logging.DEBUG),
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
        force=True,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(ctx: typer.Context) -> EngineConfig:
    return ctx.obj["config"]


def _engine(ctx: typer.Context) -> SchedulingEngine:
    if "engine" not in ctx.obj:
        ctx.obj["engine"] = build_engine(_config(ctx))
    return ctx.obj["engine"]


def _resolve_card_id(engine: SchedulingEngine, raw: str):
    """Command-line ids arrive as strings; stores keyed by int need the int."""
    if raw.isdigit() and engine.get_card(raw) is None:
        return int(raw)
    return raw


def _fail(message: str, code: int) -> None:
    typer.secho(message, fg="red", err=True)
    raise typer.Exit(code)


def _run(action):
    try:
        return action()
    except (NotFoundError, InvalidInputError) as e:
        _fail(str(e), 1)
    except StoreUnavailableError as e:
        _fail(f"Store unavailable: {e}", 2)


def _format_card(card: CardReviewState) -> str:
    due = card.due_date.strftime("%Y-%m-%d %H:%M") if card.due_date else "new"
    label = " / ".join(x for x in (card.category, card.difficulty) if x)
    suffix = f"  [{label}]" if label else ""
    return (
        f"{card.id}  due={due}  interval={card.interval or '-'}d  "
        f"ease={card.ease_factor:.2f}  reviews={card.correct_count}/{card.total_reviews}{suffix}"
    )


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    store: Annotated[
        Path | None, typer.Option("--store", "-s", help="Path to the YAML card store.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for retain."""
    ctx.ensure_object(dict)
    config = resolve_config({"store_path": store})
    _configure_logging(config.verbose + verbose)
    ctx.obj["config"] = config


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Identifier of the new card.")],
    category: Annotated[str | None, typer.Option(help="Category label.")] = None,
    difficulty: Annotated[
        str | None, typer.Option(help="Difficulty: Beginner, Intermediate, Advanced.")
    ] = None,
):
    """Add a [bold]new[/bold] card to the store."""
    engine = _engine(ctx)
    card = CardReviewState(
        id=card_id,
        created_at=datetime.now(timezone.utc),
        category=category,
        difficulty=difficulty,
    )
    _run(lambda: engine.add_card(card))
    typer.secho(f"Added card {card_id}.", fg="green")


@app.command()
def due(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum cards to list.")] = 20,
):
    """List cards that are [bold yellow]due[/bold yellow] for review, most overdue first."""
    engine = _engine(ctx)
    cards = _run(lambda: engine.get_due_cards(limit))
    if not cards:
        typer.secho("No cards due.", fg="green")
        return
    for card in cards:
        typer.echo(_format_card(card))


@app.command()
def queue(
    ctx: typer.Context,
    max_cards: Annotated[
        int | None, typer.Option("--max-cards", "-n", help="Session size.")
    ] = None,
    include_new: Annotated[
        bool, typer.Option("--new/--no-new", help="Include never-reviewed cards.")
    ] = True,
    category: Annotated[
        list[str] | None, typer.Option("--category", "-c", help="Only these categories.")
    ] = None,
    difficulty: Annotated[
        list[str] | None, typer.Option("--difficulty", "-d", help="Only these difficulties.")
    ] = None,
):
    """Build the [bold green]study queue[/bold green] for one session."""
    engine = _engine(ctx)
    options = QueueOptions(
        max_cards=max_cards if max_cards is not None else _config(ctx).default_max_cards,
        include_new=include_new,
        categories=category or None,
        difficulties=difficulty or None,
    )
    cards = _run(lambda: engine.get_study_queue(options))
    if not cards:
        typer.secho("Nothing to study.", fg="yellow")
        return
    for position, card in enumerate(cards, start=1):
        typer.echo(f"{position:>3}. {_format_card(card)}")


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card that was reviewed.")],
    quality: Annotated[float, typer.Argument(help="Recall quality, 0 (blackout) to 5 (perfect).")],
    response_ms: Annotated[
        float | None, typer.Option("--response-ms", help="Time taken to answer, in ms.")
    ] = None,
):
    """Record a [bold]review[/bold] outcome and reschedule the card."""
    engine = _engine(ctx)
    outcome = StudyOutcome(
        card_id=_run(lambda: _resolve_card_id(engine, card_id)),
        quality=quality,
        timestamp=datetime.now(timezone.utc),
        response_time_ms=response_ms,
    )
    result = _run(lambda: engine.process_outcome(outcome))
    verdict = "pass" if result.passed else "fail"
    typer.echo(
        f"{card_id}: {verdict} (q={result.quality}), next review in {result.next_interval}d "
        f"on {result.next_due_date.strftime('%Y-%m-%d')}, ease {result.next_ease_factor:.2f}, "
        f"confidence {result.confidence:.0%}"
    )


@app.command()
def reset(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to reset.")],
):
    """[bold red]Reset[/bold red] a card's schedule and make it due now."""
    engine = _engine(ctx)
    _run(lambda: engine.reset_card(_resolve_card_id(engine, card_id)))
    typer.secho(f"Reset card {card_id}.", fg="green")


@app.command()
def stats(
    ctx: typer.Context,
    as_json: Annotated[bool, typer.Option("--json", help="Emit JSON.")] = False,
):
    """Show collection [bold]statistics[/bold] and a recommended session size."""
    engine = _engine(ctx)
    s = _run(engine.get_study_stats)
    data = {
        "total_due": s.total_due,
        "new_cards": s.new_cards,
        "review_cards": s.review_cards,
        "average_retention": round(s.average_retention, 4),
        "recommended_session_size": s.recommended_session_size,
        "next_review_time": s.next_review_time.isoformat() if s.next_review_time else None,
    }
    if as_json:
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(f"Due: {s.total_due}")
    typer.echo(f"New: {s.new_cards}")
    typer.echo(f"Reviewed: {s.review_cards}")
    typer.echo(f"Retention: {s.average_retention:.0%}")
    typer.echo(f"Recommended session: {s.recommended_session_size} cards")
    if s.next_review_time:
        typer.echo(f"Next review: {s.next_review_time.strftime('%Y-%m-%d %H:%M')}")


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display the resolved configuration."""
    d = _config(ctx).model_dump(mode="json")
    typer.echo(json.dumps(d, indent=2))


if __name__ == "__main__":
    app()
