"""memoryflow CLI: review sessions, history edits and planning views."""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from memoryflow.application.config import AppConfig, resolve_config
from memoryflow.application.review_service import ReviewService
from memoryflow.application.scheduling.retention_model import format_interval
from memoryflow.domain.constants import DAY_MS, ROOT_ID
from memoryflow.domain.exceptions import MemoryFlowError
from memoryflow.domain.scheduling.models import LearningItem, Rating
from memoryflow.infrastructure.snapshot.stores import JsonFileSnapshotStore

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="memoryflow: spaced-repetition scheduling for a tree of topics.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage memoryflow configuration.")
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

RatingArg = Annotated[str, typer.Argument(help="Rating: 1-4 or again/hard/good/easy.")]
ItemArg = Annotated[str, typer.Argument(help="Item id.")]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_file: Annotated[
        Path | None, typer.Option("--data-file", help="Snapshot file. Defaults to config.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for memoryflow."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"data_file": data_file, "verbose": verbose or None}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(ctx: typer.Context) -> AppConfig:
    overrides = (ctx.obj or {}).get("overrides", {})
    config = resolve_config(overrides)
    if config.verbose:
        logging.getLogger("memoryflow").setLevel(
            logging.INFO if config.verbose == 1 else logging.DEBUG
        )
    return config


def _service(ctx: typer.Context) -> ReviewService:
    config = _config(ctx)
    return ReviewService(
        JsonFileSnapshotStore(config.data_file),
        cutoff_hour=config.late_night_cutoff_hour,
    )


@contextmanager
def _domain_errors() -> Iterator[None]:
    """Report domain errors at the boundary instead of a traceback."""
    try:
        yield
    except MemoryFlowError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _fmt_ts(ms: int) -> str:
    if ms == 0:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _parse_when(value: str) -> int:
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Not an ISO date/time: {value!r}") from None
    return int(dt.timestamp() * 1000)


def _describe(item: LearningItem) -> str:
    state = item.state
    return (
        f"{item.title} [{state.status.value}] S={state.stability} D={state.difficulty} "
        f"due {_fmt_ts(state.due)}"
    )


# ---------------------------------------------------------------------------
# Tree commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Title of the new item.")],
    parent: Annotated[str, typer.Option("--parent", "-p", help="Parent item id.")] = ROOT_ID,
    mode: Annotated[
        str, typer.Option(help="'plan' schedules the item; 'store' keeps it suspended.")
    ] = "plan",
):
    """[bold green]Add[/bold green] an item to the tree."""
    if mode not in ("plan", "store"):
        raise typer.BadParameter(f"mode must be 'plan' or 'store', got {mode!r}")
    with _domain_errors():
        item_id = _service(ctx).add_item(parent, title, mode)
    typer.echo(item_id)


@app.command()
def remove(
    ctx: typer.Context,
    item_id: ItemArg,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Remove an item and its entire subtree."""
    if not force:
        typer.confirm(f"Remove {item_id} and everything under it?", abort=True)
    with _domain_errors():
        _service(ctx).remove_item(item_id)
    typer.secho(f"Removed {item_id}.", fg="green")


@app.command()
def suspend(ctx: typer.Context, item_id: ItemArg):
    """Stop surfacing an item until it is promoted."""
    with _domain_errors():
        item = _service(ctx).suspend(item_id)
    typer.echo(_describe(item))


@app.command()
def promote(ctx: typer.Context, item_id: ItemArg):
    """Bring a suspended item into the review schedule."""
    with _domain_errors():
        item = _service(ctx).promote(item_id)
    typer.echo(_describe(item))


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@app.command()
def review(ctx: typer.Context, item_id: ItemArg, rating: RatingArg):
    """Record a review happening now."""
    with _domain_errors():
        item = _service(ctx).review(item_id, Rating.parse(rating))
    days = (item.state.due - item.state.last_review) / DAY_MS
    typer.echo(f"{_describe(item)} (next in {format_interval(days)})")


@app.command("preview")
def preview_cmd(ctx: typer.Context, item_id: ItemArg):
    """Show the next interval each rating would give right now."""
    with _domain_errors():
        outcomes = _service(ctx).preview(item_id)
    for rating, result in outcomes.items():
        typer.echo(f"{rating.value} {rating.name:<5}  {format_interval(result.interval_days)}")


@app.command("log")
def log_cmd(
    ctx: typer.Context,
    item_id: ItemArg,
    rating: RatingArg,
    at: Annotated[str, typer.Option("--at", help="When it happened (ISO, local time).")],
):
    """Insert a review at any point in time and rebuild the schedule."""
    when = _parse_when(at)
    with _domain_errors():
        item = _service(ctx).log_review(item_id, Rating.parse(rating), when)
    typer.echo(_describe(item))


@app.command()
def unlog(ctx: typer.Context, item_id: ItemArg, log_id: Annotated[str, typer.Argument()]):
    """Delete one review log entry and rebuild the schedule."""
    with _domain_errors():
        item = _service(ctx).delete_log(item_id, log_id)
    typer.echo(_describe(item))


@app.command()
def history(ctx: typer.Context, item_id: ItemArg):
    """Show an item's review log in time order."""
    with _domain_errors():
        entries = _service(ctx).history(item_id)
    if not entries:
        typer.secho("No reviews logged.", fg="yellow")
        return
    for entry in entries:
        typer.echo(f"{entry.id}  {_fmt_ts(entry.review_timestamp)}  {entry.rating.name}")


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@app.command()
def due(ctx: typer.Context):
    """List items due for review now, most overdue first."""
    with _domain_errors():
        queue = _service(ctx).due_queue()
    if not queue:
        typer.secho("Nothing due.", fg="green")
        return
    typer.echo(f"Due: {len(queue)}")
    for item in queue:
        typer.echo(f"  {item.id}  {_describe(item)}")


@app.command()
def calendar(
    ctx: typer.Context,
    days: Annotated[int | None, typer.Option(help="Days to project. Defaults to config.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show confirmed and projected reviews for the coming days."""
    config = _config(ctx)
    horizon = config.horizon_days if days is None else days
    with _domain_errors():
        schedule = _service(ctx).calendar(horizon)

    if json_output:
        payload = {
            day: [
                {
                    "itemId": e.item_id,
                    "title": e.title,
                    "date": e.timestamp,
                    "type": e.kind.value,
                    **({"predictedInterval": e.interval_days} if e.interval_days else {}),
                }
                for e in events
            ]
            for day, events in schedule.items()
        }
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if not schedule:
        typer.secho(f"No reviews in the next {horizon} days.", fg="yellow")
        return
    for day, events in schedule.items():
        typer.secho(day, bold=True)
        for e in events:
            marker = "*" if e.kind.value == "confirmed" else "~"
            suffix = f" (+{e.interval_days}d)" if e.interval_days else ""
            typer.echo(f"  {marker} {e.title}{suffix}")


@app.command()
def plan(
    ctx: typer.Context,
    day: Annotated[
        str | None, typer.Option("--date", help="Target day (YYYY-MM-DD).")
    ] = None,
    fmt: Annotated[str, typer.Option("--format", help="Output format: text or yaml.")] = "text",
):
    """Print the review plan for a day, grouped by subject, most urgent first."""
    if fmt not in ("text", "yaml"):
        raise typer.BadParameter(f"format must be 'text' or 'yaml', got {fmt!r}")
    target: date | None = None
    if day is not None:
        try:
            target = date.fromisoformat(day)
        except ValueError:
            raise typer.BadParameter(f"Not a date: {day!r}") from None

    with _domain_errors():
        planned_day, grouped = _service(ctx).study_plan(target)

    if fmt == "yaml":
        doc: dict[str, Any] = {
            "date": planned_day.isoformat(),
            "subjects": {
                subject: [
                    {
                        "id": e.item_id,
                        "title": e.title,
                        "priority": round(e.priority, 4),
                        "retrievability": round(e.retrievability, 4),
                    }
                    for e in entries
                ]
                for subject, entries in grouped.items()
            },
        }
        typer.echo(yaml.safe_dump(doc, allow_unicode=True, sort_keys=False))
        return

    total = sum(len(v) for v in grouped.values())
    typer.secho(f"Plan for {planned_day.isoformat()}: {total} items", bold=True)
    for subject, entries in grouped.items():
        typer.secho(f"\n{subject}", fg="cyan")
        for e in entries:
            typer.echo(f"  [ ] {e.title}  (R={e.retrievability:.0%}, priority {e.priority:.2f})")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


def main() -> None:
    app()
