"""CLI utilities for database operations."""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .config import DatabaseConfig
from .database import Database
from .domain import Event
from .exceptions import PersistenceError
from .repositories import EventStore
from .services import AuditReader, ExportService, HistoryService


def _parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid ISO date: {value}")


def _format_event(event: Event) -> str:
    return f"#{event.id}  {event.date.isoformat()}  {event.title}"


def init_db(database: Database, migrate: bool = False) -> None:
    """Initialize the database (create all tables)."""
    print(f"Initializing database at: {database.url}")
    if migrate:
        database.migrate()
    else:
        database.init_schema()
    print("Database initialized successfully!")


def create_event(database: Database, title: str, date: Optional[datetime], user: Optional[str]) -> None:
    with database.transaction(author=user) as session:
        event_id = EventStore(session).create(Event(title=title, date=date or datetime.now()))
    print(f"Created event {event_id}")


def show_event(database: Database, event_id: int) -> None:
    with database.session() as session:
        event = EventStore(session).read(event_id)
    print(_format_event(event))


def list_events(database: Database) -> None:
    with database.session() as session:
        events = EventStore(session).find_all()
    if not events:
        print("No events.")
    for event in events:
        print(_format_event(event))


def update_event(
    database: Database,
    event_id: int,
    title: Optional[str],
    date: Optional[datetime],
    user: Optional[str]
) -> None:
    patch = {}
    if title is not None:
        patch['title'] = title
    if date is not None:
        patch['date'] = date
    if not patch:
        raise ValueError("Nothing to update: pass --title and/or --date")

    with database.transaction(author=user) as session:
        EventStore(session).update(event_id, patch)
    print(f"Updated event {event_id}")


def delete_event(database: Database, event_id: int, user: Optional[str]) -> None:
    with database.transaction(author=user) as session:
        EventStore(session).delete(event_id)
    print(f"Deleted event {event_id}")


def show_history(database: Database, event_id: int) -> None:
    with database.session() as session:
        revisions = AuditReader(session).history(event_id)
    if not revisions:
        print(f"No history for event {event_id}")
        return
    for revision in revisions:
        author = f"  by {revision.author}" if revision.author else ""
        print(f"r{revision.revision_number}  {revision.revision_type.name:<3}  "
              f"{revision.date.isoformat()}  {revision.title}{author}")


def show_as_of(database: Database, event_id: int, revision: int) -> None:
    with database.session() as session:
        event = AuditReader(session).find_as_of(event_id, revision)
    print(_format_event(event))


def show_diff(database: Database, event_id: int, revision1: int, revision2: int) -> None:
    with database.session() as session:
        diff = HistoryService(session).compare_revisions(event_id, revision1, revision2)
    if not diff['changed']:
        print("No differences.")
    for field, change in diff['changed'].items():
        print(f"{field}: {change['from']!r} -> {change['to']!r}")


def revert_event(database: Database, event_id: int, revision: int, user: Optional[str]) -> None:
    with database.transaction(author=user) as session:
        event = HistoryService(session).revert_to_revision(event_id, revision)
    print(f"Reverted: {_format_event(event)}")


def export_to_json(database: Database, output_dir: Path, event_id: Optional[int]) -> None:
    """Export events, or the history of one event, to JSON files."""
    output_dir = Path(output_dir)
    print(f"Exporting to: {output_dir}")

    with database.session() as session:
        service = ExportService(session)
        if event_id is None:
            path = service.export_events(output_dir)
        else:
            path = service.export_history(event_id, output_dir, include_metadata=True)
    print(f"  Exported to: {path}")


def show_stats(database: Database) -> None:
    """Show database statistics."""
    with database.session() as session:
        store = EventStore(session)
        current = store.revision_log.current_revision_number()

        print("\nDatabase Statistics:")
        print(f"  Events: {store.count()}")
        print(f"  Current revision: {current if current is not None else '-'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eventaudit", description="Audited event store CLI")
    parser.add_argument("--db-url", default=None, help="SQLAlchemy database URL")
    parser.add_argument("--user", default=None, help="User name for audit trail")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize the database")
    init_parser.add_argument("--migrate", action="store_true", help="Use Alembic migrations")

    # create command
    create_parser = subparsers.add_parser("create", help="Create an event")
    create_parser.add_argument("title")
    create_parser.add_argument("--date", type=_parse_date, default=None, help="ISO date, defaults to now")

    show_parser = subparsers.add_parser("show", help="Show an event")
    show_parser.add_argument("event_id", type=int)

    subparsers.add_parser("list", help="List events")

    update_parser = subparsers.add_parser("update", help="Update an event")
    update_parser.add_argument("event_id", type=int)
    update_parser.add_argument("--title", default=None)
    update_parser.add_argument("--date", type=_parse_date, default=None)

    delete_parser = subparsers.add_parser("delete", help="Delete an event")
    delete_parser.add_argument("event_id", type=int)

    # history commands
    history_parser = subparsers.add_parser("history", help="Show the revisions of an event")
    history_parser.add_argument("event_id", type=int)

    as_of_parser = subparsers.add_parser("as-of", help="Show an event as of a revision")
    as_of_parser.add_argument("event_id", type=int)
    as_of_parser.add_argument("revision", type=int)

    diff_parser = subparsers.add_parser("diff", help="Compare an event at two revisions")
    diff_parser.add_argument("event_id", type=int)
    diff_parser.add_argument("revision1", type=int)
    diff_parser.add_argument("revision2", type=int)

    revert_parser = subparsers.add_parser("revert", help="Revert an event to a revision")
    revert_parser.add_argument("event_id", type=int)
    revert_parser.add_argument("revision", type=int)

    # export command
    export_parser = subparsers.add_parser("export", help="Export database to JSON")
    export_parser.add_argument(
        "output_dir",
        type=Path,
        help="Output directory for JSON files"
    )
    export_parser.add_argument(
        "--event",
        type=int,
        default=None,
        help="Export the history of this event instead of all current events"
    )

    # stats command
    subparsers.add_parser("stats", help="Show database statistics")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.log_level:
        level = logging.getLevelName(args.log_level.upper())
        if not isinstance(level, int):
            parser.error(f"Unknown log level: {args.log_level}")
    else:
        level = DatabaseConfig.get_log_level()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    database = Database(args.db_url)
    try:
        if args.command == "init":
            init_db(database, args.migrate)
        elif args.command == "create":
            create_event(database, args.title, args.date, args.user)
        elif args.command == "show":
            show_event(database, args.event_id)
        elif args.command == "list":
            list_events(database)
        elif args.command == "update":
            update_event(database, args.event_id, args.title, args.date, args.user)
        elif args.command == "delete":
            delete_event(database, args.event_id, args.user)
        elif args.command == "history":
            show_history(database, args.event_id)
        elif args.command == "as-of":
            show_as_of(database, args.event_id, args.revision)
        elif args.command == "diff":
            show_diff(database, args.event_id, args.revision1, args.revision2)
        elif args.command == "revert":
            revert_event(database, args.event_id, args.revision, args.user)
        elif args.command == "export":
            export_to_json(database, args.output_dir, args.event)
        elif args.command == "stats":
            show_stats(database)
    except (PersistenceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        database.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
