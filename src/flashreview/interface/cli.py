"""flashreview CLI - database setup, card import, study sessions and dashboards."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
import yaml

from flashreview.application.config import AppConfig, resolve_config
from flashreview.application.factory import ReviewEngine, build_engine
from flashreview.application.review.dtos import UseCaseResult
from flashreview.domain.errors import ReviewError

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="flashreview: spaced-repetition review engine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage flashreview configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

UserOption = Annotated[str, typer.Option("--user", "-u", help="Learner id.")]
LimitOption = Annotated[int | None, typer.Option(min=1, help="Maximum number of cards.")]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve(ctx: typer.Context, **overrides: Any) -> AppConfig:
    obj = ctx.obj or {}
    config = resolve_config(
        {"database_url": obj.get("database_url"), "verbose": obj.get("verbose"), **overrides}
    )
    if config.verbose >= 2:
        logging.getLogger("flashreview").setLevel(logging.DEBUG)
    elif config.verbose >= 1:
        logging.getLogger("flashreview").setLevel(logging.INFO)
    return config


def _run(config: AppConfig, action: Callable[[ReviewEngine], Awaitable[T]]) -> T:
    async def run() -> T:
        logger.debug(f"Opening review store {config.database_url}")
        engine = await build_engine(config)
        try:
            return await action(engine)
        finally:
            await engine.close()

    return asyncio.run(run())


def _unwrap(result: UseCaseResult[T]) -> T:
    if result.ok:
        return result.value
    typer.secho(f"Error [{result.error.code}]: {result.error.message}", fg="red", err=True)
    raise typer.Exit(1)


def _fmt_date(moment) -> str:
    return moment.strftime("%Y-%m-%d") if moment else "-"


def _fmt_overdue(days: int) -> str:
    return f", overdue {days}d" if days > 0 else ""


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    database_url: Annotated[
        str | None, typer.Option("--database-url", help="SQLAlchemy URL of the review store.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for flashreview."""
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url
    ctx.obj["verbose"] = verbose or None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("init-db")
def init_db(ctx: typer.Context):
    """Create the review store tables if they do not exist."""
    config = _resolve(ctx)

    async def noop(engine: ReviewEngine) -> None:
        return None

    _run(config, noop)
    typer.secho(f"Database ready: {config.database_url}", fg="green")


@app.command("import-cards")
def import_cards(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="YAML file.")],
):
    """Import flashcards from a YAML list of question/answer/difficulty entries."""
    config = _resolve(ctx)
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    if isinstance(data, dict):
        data = data.get("cards", [])
    if not isinstance(data, list):
        typer.secho("Expected a list of cards (or a 'cards:' key).", fg="red", err=True)
        raise typer.Exit(2)

    try:
        created = _run(config, lambda engine: engine.flashcards.add_many(data))
    except ValueError as e:
        typer.secho(f"Invalid card: {e}", fg="red", err=True)
        raise typer.Exit(2) from e

    typer.secho(f"Imported {len(created)} card(s).", fg="green")


@app.command()
def due(ctx: typer.Context, user: UserOption, limit: LimitOption = None):
    """List the cards due for a learner, most overdue first."""
    config = _resolve(ctx)
    result = _unwrap(_run(config, lambda engine: engine.get_due_cards.execute(user, limit)))

    if not result.cards:
        typer.secho("Nothing to review.", fg="yellow")
        return

    typer.echo(f"{result.total_due} card(s) due:")
    for card in result.cards:
        typer.echo(
            f"  #{card.id:<5} [{card.difficulty}] {card.question}  "
            f"(interval {card.interval_days}d, last {_fmt_date(card.last_review_date)}"
            f"{_fmt_overdue(card.days_overdue)})"
        )


@app.command()
def struggling(ctx: typer.Context, user: UserOption, limit: LimitOption = None):
    """List the cards a learner keeps failing."""
    config = _resolve(ctx)
    result = _unwrap(
        _run(config, lambda engine: engine.get_struggling_cards.execute(user, limit))
    )

    if not result.cards:
        typer.secho("No struggling cards.", fg="green")
        return

    typer.echo(f"{result.total} struggling card(s):")
    for card in result.cards:
        typer.echo(
            f"  #{card.id:<5} failed {card.times_failed}x, "
            f"last {_fmt_date(card.last_failed_at)}: {card.question}"
        )


@app.command()
def stats(
    ctx: typer.Context,
    user: UserOption,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """Show due/struggling counts and accuracy for a learner."""
    config = _resolve(ctx)
    result = _unwrap(_run(config, lambda engine: engine.get_stats.execute(user)))

    data = {
        "due": result.due_count,
        "struggling": result.struggling_count,
        "total_reviews": result.total_reviews,
        "accuracy_percent": result.accuracy_percent,
        "reviews_today": result.reviews_today,
        "mastery": {level.value: n for level, n in result.mastery.items()},
    }
    if as_json:
        typer.echo(json.dumps(data, indent=2))
        return

    for key, value in data.items():
        typer.echo(f"{key:>16}: {value}")


@app.command()
def study(
    ctx: typer.Context,
    user: UserOption,
    mode: Annotated[str, typer.Option(help="flashcard|quiz|recall (or learn|review|cram).")] = (
        "flashcard"
    ),
    limit: LimitOption = None,
):
    """Run an interactive review session in the terminal."""
    config = _resolve(ctx)

    async def session(engine: ReviewEngine) -> None:
        started = await engine.start_session.execute(user, mode=mode, limit=limit)
        if not started.ok and started.error.code == "NO_DUE_CARDS":
            typer.secho("Nothing to review right now.", fg="yellow")
            return
        state = _unwrap(started)

        typer.secho(f"{state.total_cards} card(s) to review.", bold=True)
        card = state.current_card
        position = 1
        while card is not None:
            typer.echo(f"\n[{position}/{state.total_cards}] {card.question}")
            typer.prompt("Press Enter to reveal", default="", show_default=False)
            typer.echo(f"  -> {card.answer}")
            correct = typer.confirm("Did you get it right?", default=True)

            answer = _unwrap(
                await engine.submit_review.execute(user, state.session_id, card.id, correct)
            )
            typer.echo(f"  {answer.event.value}; next review in {answer.interval_days} day(s)")

            if answer.result == "completed":
                summary = answer.session_complete
                typer.secho(
                    f"\nDone: {summary.correct_count}/{summary.total_reviewed} correct "
                    f"({summary.accuracy_percent}%).",
                    fg="green",
                )
                return
            card = answer.next_card
            position += 1

    _run(config, session)


@app.command()
def purge(
    ctx: typer.Context,
    user: Annotated[str | None, typer.Option("--user", "-u", help="Learner id.")] = None,
    flashcard: Annotated[int | None, typer.Option(help="Flashcard id.")] = None,
    record: Annotated[int | None, typer.Option(help="Single review record id.")] = None,
    drop_card: Annotated[
        bool, typer.Option("--drop-card", help="With --flashcard, also delete the card itself.")
    ] = False,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation for destructive actions.")
    ] = False,
):
    """Delete review history and struggling entries for a learner, a card or one record."""
    if sum(target is not None for target in (user, flashcard, record)) != 1:
        typer.secho("Pass exactly one of --user, --flashcard or --record.", fg="red", err=True)
        raise typer.Exit(2)
    if drop_card and flashcard is None:
        typer.secho("--drop-card needs --flashcard.", fg="red", err=True)
        raise typer.Exit(2)

    config = _resolve(ctx)

    if record is not None:
        _purge_record(config, record, force)
        return

    target = f"user {user}" if user is not None else f"flashcard {flashcard}"
    if not force and not typer.confirm(f"Delete all review data for {target}?"):
        raise typer.Exit(1)

    async def run(engine: ReviewEngine) -> tuple[int, int]:
        if user is not None:
            return (
                await engine.history.delete_by_user(user),
                await engine.struggling_queue.delete_by_user(user),
            )
        counts = (
            await engine.history.delete_by_flashcard(flashcard),
            await engine.struggling_queue.delete_by_flashcard(flashcard),
        )
        if drop_card and await engine.flashcards.delete(flashcard):
            logger.info(f"Deleted flashcard {flashcard}")
        return counts

    records, entries = _run(config, run)
    typer.secho(
        f"Deleted {records} review record(s) and {entries} struggling entr(ies) for {target}.",
        fg="green",
    )


def _purge_record(config: AppConfig, record_id: int, force: bool) -> None:
    async def find(engine: ReviewEngine):
        return await engine.history.find_by_id(record_id)

    found = _run(config, find)
    if found is None:
        typer.secho(f"Review record {record_id} not found.", fg="red", err=True)
        raise typer.Exit(1)

    summary = (
        f"record {record_id} (user {found.user_id}, flashcard {found.flashcard_id}, "
        f"{'correct' if found.is_correct else 'wrong'} on {_fmt_date(found.review_date)})"
    )
    if not force and not typer.confirm(f"Delete review {summary}?"):
        raise typer.Exit(1)

    try:
        _run(config, lambda engine: engine.history.delete(record_id))
    except ReviewError as e:
        typer.secho(f"Error [{e.code}]: {e.message}", fg="red", err=True)
        raise typer.Exit(1) from e
    typer.secho(f"Deleted review {summary}.", fg="green")


@app.command()
def server(
    ctx: typer.Context,
    host: Annotated[str | None, typer.Option(help="Bind host.")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port.")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Auto-reload on changes.")] = False,
):
    """Start the HTTP API server."""
    import uvicorn

    config = _resolve(ctx, host=host, port=port)
    uvicorn.run("flashreview.server:app", host=config.host, port=config.port, reload=reload)


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Print the resolved configuration as JSON."""
    config = _resolve(ctx)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


def main():
    app()


if __name__ == "__main__":
    main()
