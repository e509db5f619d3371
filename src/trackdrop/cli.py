"""
trackdrop CLI - entry point.

Each subcommand builds an AppContext, runs one pipeline operation on the
event loop and renders the import events as they arrive.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.table import Table

from trackdrop.context import AppContext
from trackdrop.core.config import ensure_directories, get_data_dir, load_config
from trackdrop.core.console import get_console, safe_print
from trackdrop.core.output import log, setup_loguru
from trackdrop.domain.importing import (
    BackfillItem,
    EnrichedEvent,
    ErrorEvent,
    ImportEvent,
    ImportStep,
    PlaylistProgressEvent,
    StatusEvent,
    TrackNotFoundError,
)
from trackdrop.domain.library.models import Track
from trackdrop.domain.library.providers import AcquisitionError

STEP_LABELS = {
    ImportStep.METADATA: "Reading metadata",
    ImportStep.DOWNLOADING: "Downloading",
    ImportStep.AI_SEARCHING: "Searching song info",
    ImportStep.AI_CLASSIFYING: "Classifying",
    ImportStep.DONE: "Done",
    ImportStep.ERROR: "Failed",
}


class EventPrinter:
    """Renders import events as console lines."""

    def __init__(self) -> None:
        self._last_percent: dict[str, int] = {}

    def __call__(self, event: ImportEvent) -> None:
        if isinstance(event, StatusEvent):
            self._status(event)
        elif isinstance(event, EnrichedEvent):
            result = event.result
            safe_print(
                f"  ♪ {result.get('genre')} / {result.get('mood')}"
                f" - {result.get('performingArtist')}",
                style="ok",
            )
        elif isinstance(event, PlaylistProgressEvent):
            safe_print(
                f"[{event.index + 1}/{event.total}] ({event.percent}%) {event.track_id}",
                style="playlist",
            )
        elif isinstance(event, ErrorEvent):
            # The error status line already carries the message
            logger.debug(f"Import error for {event.track_id}: {event.message}")

    def _status(self, event: StatusEvent) -> None:
        label = STEP_LABELS[event.step]
        if event.step == ImportStep.DOWNLOADING:
            # Only print every 10% to keep output readable
            bucket = event.percent // 10
            if self._last_percent.get(event.track_id) == bucket:
                return
            self._last_percent[event.track_id] = bucket
            safe_print(f"  {label}... {event.percent}%", style="step")
        elif event.step == ImportStep.ERROR:
            safe_print(f"  ✗ {label}: {event.message}", style="fail")
        elif event.step == ImportStep.METADATA:
            audio = "audio" if event.has_audio else "metadata only"
            safe_print(f"  {label} ({audio})", style="step")
        else:
            safe_print(f"  {label}", style="ok" if event.step == ImportStep.DONE else "step.idle")


def render_track(track: Track) -> Table:
    table = Table(title=track.title or track.id, show_header=False)
    table.add_column("Field", style="heading")
    table.add_column("Value")

    rows = [
        ("ID", track.id),
        ("Artist", track.artist_name),
        ("Source", f"{track.source_platform} {track.source_url}"),
        ("Audio", track.file_path if track.has_audio else "(none)"),
        ("Duration", _format_duration(track.duration_ms)),
        ("Genre", track.genre),
        ("Mood", track.mood),
        ("Original artist", track.original_artist if track.is_cover else None),
        ("Summary", track.summary),
        ("Status", track.import_status),
        ("Note", track.import_error),
    ]
    for name, value in rows:
        if value:
            table.add_row(name, str(value))
    for link in track.platform_links:
        table.add_row(link.get("platform", "link"), link.get("url", ""))
    return table


def _format_duration(duration_ms: Optional[int]) -> Optional[str]:
    if not duration_ms:
        return None
    seconds = duration_ms // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


async def cmd_import(ctx: AppContext, args: argparse.Namespace) -> int:
    safe_print(f"Importing {args.url}", style="heading")
    try:
        result = await ctx.importer().import_url(args.url)
    except AcquisitionError as e:
        safe_print(f"Import failed: {e}", style="fail")
        return 1

    get_console().print(render_track(ctx.store.get(result.track_id)))
    return 0 if result.import_status != "error" else 2


async def cmd_playlist(ctx: AppContext, args: argparse.Namespace) -> int:
    safe_print(f"Importing playlist {args.url}", style="heading")
    result = await ctx.playlist_importer().import_playlist(args.url)
    safe_print(f"Imported {result.count} track(s)", style="ok")
    for track_id in result.track_ids:
        track = ctx.store.get(track_id)
        safe_print(f"  {track_id}  {track.artist_name} - {track.title}")
    return 0 if result.count else 1


async def cmd_enrich(ctx: AppContext, args: argparse.Namespace) -> int:
    try:
        outcome = await ctx.enrichment().reenrich(args.track_id)
    except TrackNotFoundError as e:
        safe_print(str(e), style="fail")
        return 1
    get_console().print(render_track(ctx.store.get(args.track_id)))
    return 0 if outcome == "done" else 2


async def cmd_backfill(ctx: AppContext, args: argparse.Namespace) -> int:
    def on_progress(current: int, total: int, item: BackfillItem) -> None:
        mark = "✓" if item.success else f"✗ {item.error}"
        safe_print(f"[{current}/{total}] {item.track_id} {mark}")

    report = await ctx.enrichment().backfill(
        delay_ms=ctx.config.credits.backfill_delay_ms,
        progress_callback=on_progress,
    )
    log(
        f"Backfill: {report.succeeded} enriched, {report.failed} failed "
        f"of {report.total}"
    )
    return 0


async def cmd_credits(ctx: AppContext, args: argparse.Namespace) -> int:
    if args.set is not None:
        try:
            ctx.credits.set(args.set)
        except ValueError as e:
            safe_print(str(e), style="fail")
            return 1
    safe_print(f"Credits: {ctx.credits.get()}")
    return 0


async def cmd_show(ctx: AppContext, args: argparse.Namespace) -> int:
    track = ctx.store.get(args.track_id)
    if track is None:
        safe_print(f"Track not found: {args.track_id}", style="fail")
        return 1
    get_console().print(render_track(track))
    return 0


COMMANDS = {
    "import": cmd_import,
    "playlist": cmd_playlist,
    "enrich": cmd_enrich,
    "backfill": cmd_backfill,
    "credits": cmd_credits,
    "show": cmd_show,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackdrop",
        description="trackdrop - import songs from a URL and tag them with AI",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log to stderr too")
    subparsers = parser.add_subparsers(dest="subcommand", required=True)

    import_parser = subparsers.add_parser("import", help="Import a single URL")
    import_parser.add_argument("url")

    playlist_parser = subparsers.add_parser("playlist", help="Import every item of a playlist")
    playlist_parser.add_argument("url")

    enrich_parser = subparsers.add_parser("enrich", help="Retry AI enrichment for a track")
    enrich_parser.add_argument("track_id")

    subparsers.add_parser("backfill", help="Enrich all tracks missing genre or mood")

    credits_parser = subparsers.add_parser("credits", help="Show or set the credit balance")
    credits_parser.add_argument("--set", type=int, metavar="N", help="New balance")

    show_parser = subparsers.add_parser("show", help="Show a stored track")
    show_parser.add_argument("track_id")

    return parser


async def run(ctx: AppContext, args: argparse.Namespace) -> int:
    unsubscribe = ctx.events.subscribe(EventPrinter())
    try:
        return await COMMANDS[args.subcommand](ctx, args)
    finally:
        unsubscribe()
        await ctx.aclose()


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the trackdrop command."""
    args = build_parser().parse_args(argv)

    config = load_config()
    ensure_directories(config)
    log_file = (
        Path(config.logging.log_file)
        if config.logging.log_file
        else get_data_dir() / "trackdrop.log"
    )
    setup_loguru(
        log_file,
        level=config.logging.level,
        console_output=config.logging.console_output or args.verbose,
    )

    ctx = AppContext.create(config)
    sys.exit(asyncio.run(run(ctx, args)))


if __name__ == "__main__":
    main()
