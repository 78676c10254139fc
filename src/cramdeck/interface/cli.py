"""cramdeck CLI: review commands, study stats, bookmarks, config and server."""

import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer

from cramdeck.application.config import resolve_config
from cramdeck.application.factory import (
    get_bookmark_service,
    get_review_service,
    get_study_stats_service,
)
from cramdeck.application.review.queries import current_streak
from cramdeck.domain.review.models import ReviewCard

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cramdeck: spaced-repetition review scheduling for exam prep.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cramdeck configuration.")
app.add_typer(config_app, name="config")

study_app = typer.Typer(help="Study time and accuracy tracking.", no_args_is_help=True)
app.add_typer(study_app, name="study")

bookmark_app = typer.Typer(help="Flag questions to revisit.", no_args_is_help=True)
app.add_typer(bookmark_app, name="bookmark")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

QualityArg = Annotated[int, typer.Argument(min=0, max=5, help="SM-2 quality, 0-5.")]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    scope: Annotated[
        str | None,
        typer.Option(help="Keep review data per study set or user, e.g. --scope set-42."),
    ] = None,
    backend: Annotated[
        str | None, typer.Option(help="Storage backend: file, sqlite, memory.")
    ] = None,
    data_dir: Annotated[Path | None, typer.Option(help="Directory for stored data.")] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for cramdeck."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"scope": scope, "backend": backend, "data_dir": data_dir}

    if verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger().setLevel(logging.INFO)


def _review_service(ctx: typer.Context):
    config = resolve_config(ctx.obj.get("overrides") if ctx.obj else None)
    return get_review_service(config)


def _stats_service(ctx: typer.Context):
    config = resolve_config(ctx.obj.get("overrides") if ctx.obj else None)
    return get_study_stats_service(config)


def _bookmark_service(ctx: typer.Context):
    config = resolve_config(ctx.obj.get("overrides") if ctx.obj else None)
    return get_bookmark_service(config)


def _fmt_ms(ts: int) -> str:
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _print_cards(cards: list[ReviewCard], json_output: bool, empty: str) -> None:
    if json_output:
        typer.echo(json.dumps([asdict(c) for c in cards], indent=2))
        return

    if not cards:
        typer.secho(empty, fg="green")
        return

    for card in cards:
        status = "ok" if card.last_answered_correct else "failed"
        colour = "green" if card.last_answered_correct else "red"
        typer.echo(
            f"#{card.question_index:<6} due {_fmt_ms(card.next_review_date)}  "
            f"interval {card.interval}d  ease {card.ease_factor:.2f}  ",
            nl=False,
        )
        typer.secho(status, fg=colour)


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@app.command()
def answer(
    ctx: typer.Context,
    question_index: Annotated[int, typer.Argument(help="Question identifier.")],
    correct: Annotated[
        bool, typer.Option("--correct/--wrong", help="Whether the answer was right.")
    ] = True,
    time_ms: Annotated[
        int | None, typer.Option("--time-ms", help="Time taken to answer, in milliseconds.")
    ] = None,
    quality: Annotated[
        int | None, typer.Option(min=0, max=5, help="Explicit SM-2 quality, 0-5.")
    ] = None,
):
    """[bold green]Record[/bold green] an answer and schedule the next review."""
    service = _review_service(ctx)
    data = service.record_answer(
        question_index, correct, response_time_ms=time_ms, quality=quality
    )
    card = data.cards[question_index]

    _stats_service(ctx).track_answer(correct, current_streak(data))

    typer.echo(
        f"Question {question_index}: next review {_fmt_ms(card.next_review_date)} "
        f"(in {card.interval}d, ease {card.ease_factor:.2f}, streak {card.repetitions})"
    )


@app.command()
def override(
    ctx: typer.Context,
    question_index: Annotated[int, typer.Argument(help="Question identifier.")],
    quality: QualityArg,
):
    """Regrade the most recent answer to a question."""
    service = _review_service(ctx)
    data = service.override_last_review_quality(question_index, quality)
    if data is None:
        typer.secho(f"No answer recorded for question {question_index}.", fg="yellow")
        raise typer.Exit(1)
    card = data.cards[question_index]
    typer.echo(
        f"Question {question_index}: regraded to {quality}, "
        f"next review {_fmt_ms(card.next_review_date)}"
    )


@app.command()
def due(ctx: typer.Context, json_output: JsonOpt = False):
    """List cards that are due now, soonest first."""
    _print_cards(_review_service(ctx).due_cards(), json_output, "Nothing due.")


@app.command()
def failed(ctx: typer.Context, json_output: JsonOpt = False):
    """List cards whose last answer was wrong, most recent first."""
    _print_cards(_review_service(ctx).failed_cards(), json_output, "No failed cards.")


@app.command()
def queue(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(min=1, help="Maximum cards to list.")] = None,
    json_output: JsonOpt = False,
):
    """Show the practice queue: failed cards first, then due cards."""
    cards = _review_service(ctx).review_queue(limit=limit)
    _print_cards(cards, json_output, "Queue is empty.")


@app.command()
def stats(ctx: typer.Context, json_output: JsonOpt = False):
    """Show mastery counters."""
    result = _review_service(ctx).stats()
    if json_output:
        typer.echo(json.dumps(asdict(result), indent=2))
        return

    typer.echo(f"Reviewed:   {result.total_reviewed}")
    typer.secho(f"Mastered:   {result.mastered}", fg="green")
    typer.echo(f"Learning:   {result.learning}")
    typer.secho(f"Struggling: {result.struggling}", fg="red" if result.struggling else None)
    typer.secho(f"Due now:    {result.due_now}", fg="yellow" if result.due_now else None)


@app.command()
def clear(
    ctx: typer.Context,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Erase all review data for the current scope."""
    if not force:
        typer.confirm("Erase all review data?", abort=True)
    _review_service(ctx).clear_all_data()
    typer.secho("Review data cleared.", fg="green")


# ---------------------------------------------------------------------------
# Study subgroup
# ---------------------------------------------------------------------------


@study_app.command("summary")
def study_summary(
    ctx: typer.Context,
    days: Annotated[int, typer.Option(min=1, help="Days to include.")] = 7,
    json_output: JsonOpt = False,
):
    """Show study time, accuracy and streak."""
    from cramdeck.application.study.service import format_study_time, get_average_accuracy

    service = _stats_service(ctx)
    recent = service.get_recent_stats(days)
    streak = service.get_study_streak()
    accuracy = get_average_accuracy(recent)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "days": [asdict(d) for d in recent],
                    "accuracy": accuracy,
                    "streak": streak,
                },
                indent=2,
            )
        )
        return

    for day in recent:
        typer.echo(
            f"{day.date}  {day.questions_answered:>4} answered  "
            f"{day.correct_answers:>4} correct  {format_study_time(day.study_time_ms)}"
        )
    typer.echo(f"Accuracy: {accuracy:.1f}%  Streak: {streak}d")


@study_app.command("end")
def study_end(ctx: typer.Context):
    """Close the current study session."""
    from cramdeck.application.study.service import format_study_time

    stats = _stats_service(ctx).end_session()
    typer.echo(f"Session closed. Total study time: {format_study_time(stats.total_study_time_ms)}")


@study_app.command("clear")
def study_clear(
    ctx: typer.Context,
    force: Annotated[bool, typer.Option("--force", "-f", help="Bypass confirmation.")] = False,
):
    """Reset study statistics."""
    if not force:
        typer.confirm("Reset study statistics?", abort=True)
    _stats_service(ctx).clear_stats()
    typer.secho("Study statistics cleared.", fg="green")


# ---------------------------------------------------------------------------
# Bookmark subgroup
# ---------------------------------------------------------------------------


@bookmark_app.command("toggle")
def bookmark_toggle(
    ctx: typer.Context,
    question_index: Annotated[int, typer.Argument(help="Question identifier.")],
):
    """Bookmark a question, or remove its bookmark."""
    if _bookmark_service(ctx).toggle_bookmark(question_index):
        typer.secho(f"Bookmarked question {question_index}.", fg="green")
    else:
        typer.echo(f"Removed bookmark from question {question_index}.")


@bookmark_app.command("list")
def bookmark_list(ctx: typer.Context, json_output: JsonOpt = False):
    """List bookmarked questions in the order they were added."""
    indices = _bookmark_service(ctx).get_bookmarked_indices()
    if json_output:
        typer.echo(json.dumps(indices))
        return

    if not indices:
        typer.secho("No bookmarks.", fg="yellow")
        return
    typer.echo(f"{len(indices)} bookmarked: " + ", ".join(str(i) for i in indices))


@bookmark_app.command("clear")
def bookmark_clear(
    ctx: typer.Context,
    force: Annotated[bool, typer.Option("--force", "-f", help="Bypass confirmation.")] = False,
):
    """Remove every bookmark for the current scope."""
    if not force:
        typer.confirm("Remove all bookmarks?", abort=True)
    _bookmark_service(ctx).clear_all_bookmarks()
    typer.secho("Bookmarks cleared.", fg="green")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = resolve_config(ctx.obj.get("overrides") if ctx.obj else None)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8777,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("cramdeck.server:app", host=host, port=port, reload=reload)
