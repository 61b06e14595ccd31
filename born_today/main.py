from __future__ import annotations

import argparse
import asyncio
import sys

from born_today.core.config import get_settings
from born_today.core.dates import FeedDate
from born_today.core.telemetry import configure_logging, setup_telemetry, shutdown_telemetry
from born_today.schemas.view import FilterCriteria, SortCriteria, ViewSnapshot
from born_today.services.feed_client import FeedClient
from born_today.services.session import LoadStatus, PeopleSession
from born_today.services.view_state import ViewStateStore


def render_listing(snapshot: ViewSnapshot, share_query: str) -> str:
    lines = []
    for person in snapshot.view:
        marker = ">" if person.id == snapshot.selected_id else " "
        description = f" - {person.description}" if person.description else ""
        lines.append(f"{marker} {person.year:>5}  {person.full_name}{description}")
    lines.append(f"{len(snapshot.view)} people")
    if share_query:
        lines.append(f"share: ?{share_query}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    telemetry_runtime = setup_telemetry(settings)
    date = FeedDate.from_parts(args.month, args.day) if args.month and args.day else FeedDate.today()
    feed_client = FeedClient(settings, telemetry=telemetry_runtime)
    session = PeopleSession(feed_client, store=ViewStateStore(seed=args.person_id))
    session.controller.set_filter(FilterCriteria(year_equals=args.year, text_contains=args.text))
    session.controller.set_sort(SortCriteria(field=args.sort, direction=args.dir))

    try:
        with telemetry_runtime.tracer(__name__).start_as_current_span("cli.load"):
            await session.load(date)
    finally:
        shutdown_telemetry(telemetry_runtime)

    snapshot = session.snapshot()
    if session.status is LoadStatus.FAILED or snapshot is None:
        print(f"Error loading people born on {date}: {session.error}", file=sys.stderr)
        return 1
    print(render_listing(snapshot, session.store.share_query()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="List people born on a calendar date.")
    parser.add_argument("--month", help="Two-digit month, defaults to today")
    parser.add_argument("--day", help="Two-digit day, defaults to today")
    parser.add_argument("--year", type=int, help="Only people born in this year")
    parser.add_argument("--text", help="Accent-insensitive text to match in name or description")
    parser.add_argument("--sort", choices=["year", "sort_key"], default="year")
    parser.add_argument("--dir", choices=["asc", "desc"], default="asc")
    parser.add_argument("--person-id", help="Person id to select, as found in a share link")
    return parser


def main() -> None:
    raise SystemExit(asyncio.run(run(build_parser().parse_args())))


if __name__ == "__main__":
    main()
