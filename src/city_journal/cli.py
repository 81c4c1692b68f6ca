"""Command-line interface for the city journal."""

import argparse
import asyncio
import json
import sys


async def _init_db() -> None:
    from city_journal.config import get_settings
    from city_journal.database.connection import Database

    db = Database.from_settings(get_settings())
    try:
        await db.create_tables()
    finally:
        await db.dispose()


async def _stats(user_id: str, start_date: str, end_date: str, keywords: str | None) -> dict:
    from city_journal.calendar.store import EventStore
    from city_journal.config import get_settings
    from city_journal.database.connection import Database
    from city_journal.statistics.aggregator import StatisticsAggregator, parse_keywords

    db = Database.from_settings(get_settings())
    try:
        async with db.session() as session:
            aggregator = StatisticsAggregator(EventStore(session))
            result = await aggregator.compute_statistics(
                user_id, start_date, end_date, parse_keywords(keywords)
            )
    finally:
        await db.dispose()
    return result.to_response()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="city-journal",
        description="City Journal - record the cities you visit and what you did there",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes (development)"
    )

    # Init-db command
    subparsers.add_parser("init-db", help="Create database tables")

    # Stats command
    stats_parser = subparsers.add_parser(
        "stats", help="Print days-per-city and keyword counts for a user"
    )
    stats_parser.add_argument("user_id", help="User id")
    stats_parser.add_argument("start_date", help="First day, YYYY-MM-DD")
    stats_parser.add_argument("end_date", help="Last day, YYYY-MM-DD")
    stats_parser.add_argument(
        "--keywords",
        default=None,
        help="Comma-separated keywords to count in activities",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    from city_journal.config import get_settings
    from city_journal.errors import JournalError
    from city_journal.logging_config import configure_logging

    settings = get_settings()
    configure_logging(settings)

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "city_journal.api.app:create_app",
            factory=True,
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload,
        )
        return 0

    if args.command == "init-db":
        asyncio.run(_init_db())
        print("Database tables created.")
        return 0

    if args.command == "stats":
        try:
            stats = asyncio.run(
                _stats(args.user_id, args.start_date, args.end_date, args.keywords)
            )
        except JournalError as e:
            print(f"Error: {e.detail}", file=sys.stderr)
            return 1
        print(json.dumps(stats, indent=2, ensure_ascii=False))
        return 0

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
