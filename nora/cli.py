"""
Content maintenance commands.

Usage:
    nora init-db
    nora sync-keywords [PATH] [--remove-orphans] [--dry-run]
    nora export-keywords [PATH]
    nora import-lessons [PATH] [--keep-existing] [--no-chain] [--dry-run]
    nora chain-prerequisites
    nora clear-prerequisites
    nora validate-lessons

Each command runs in a single transaction: it either commits everything or
nothing. Exit status is 1 when the input is malformed or the resulting lesson
set would be structurally invalid.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nora.config import get_settings
from nora.database import session_scope
from nora.engines.content.keyword_markdown import (
    KeywordEntry,
    parse_keywords_markdown,
    serialize_keywords_markdown,
    validate_keyword_entries,
)
from nora.engines.content.keyword_sync import KeywordSyncPlan, KeywordSyncService
from nora.engines.content.lesson_import import LessonImportService
from nora.engines.content.lesson_parser import parse_lesson_text
from nora.engines.content.prerequisites import PrerequisiteService
from nora.engines.content.repositories import KeywordRepository
from nora.errors import NotFoundError, ParseError, StructuralError
from nora.kernel.models import Base
from nora.logging_config import configure_logging, log_context

SessionMaker = Optional[async_sessionmaker[AsyncSession]]


def _read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _preview(text: str, limit: int = 60) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[:limit] + "..."


def _print_keyword_plan(plan: KeywordSyncPlan) -> None:
    for entry in plan.to_create:
        print(f"  + {entry.term}")
    for change in plan.to_update:
        print(f"  ~ {change.term}")
        print(f"      old: {_preview(change.old_definition or '')}")
        print(f"      new: {_preview(change.definition)}")
    for change in plan.to_delete:
        print(f"  - {change.term}")
    kept = [term for term in plan.orphans if term not in {c.term for c in plan.to_delete}]
    if kept:
        print(f"  {len(kept)} keyword(s) in the database but not in the file (use --remove-orphans):")
        for term in kept:
            print(f"    ? {term}")
    print(
        f"Create: {len(plan.to_create)}, update: {len(plan.to_update)}, "
        f"delete: {len(plan.to_delete)}, unchanged: {plan.unchanged}"
    )


async def cmd_init_db(args: argparse.Namespace, session_maker: SessionMaker) -> int:
    async with session_scope(session_maker) as session:
        await session.run_sync(lambda sync_session: Base.metadata.create_all(sync_session.connection()))
    print("Database tables created")
    return 0


async def cmd_sync_keywords(args: argparse.Namespace, session_maker: SessionMaker) -> int:
    settings = get_settings()
    path = args.path or settings.keywords_file
    entries = parse_keywords_markdown(_read(path))
    validate_keyword_entries(entries, settings.keyword_definition_max_length, source=path)
    print(f"Parsed {len(entries)} keyword(s) from {path}")

    async with session_scope(session_maker) as session:
        service = KeywordSyncService(session)
        plan = await service.plan(entries, remove_orphans=args.remove_orphans)
        _print_keyword_plan(plan)
        if args.dry_run:
            print("Dry run: no changes written")
            return 0
        if not plan.has_changes:
            print("Keywords already up to date")
            return 0
        result = await service.apply(plan)
    print(f"Synced keywords: {result.total} in database")
    return 0


async def cmd_export_keywords(args: argparse.Namespace, session_maker: SessionMaker) -> int:
    async with session_scope(session_maker) as session:
        keywords = await KeywordRepository(session).list_all()
    content = serialize_keywords_markdown(
        KeywordEntry(term=keyword.term, definition=keyword.definition) for keyword in keywords
    )
    if args.path:
        Path(args.path).write_text(content, encoding="utf-8")
        print(f"Exported {len(keywords)} keyword(s) to {args.path}")
    else:
        sys.stdout.write(content)
    return 0


async def cmd_import_lessons(args: argparse.Namespace, session_maker: SessionMaker) -> int:
    settings = get_settings()
    path = args.path or settings.lessons_file
    parsed = parse_lesson_text(_read(path), source=path)
    print(f"Parsed {len(parsed)} lesson(s) from {path}")

    async with session_scope(session_maker) as session:
        service = LessonImportService(session, estimated_minutes=settings.default_estimated_minutes)
        plan = await service.prepare(
            parsed,
            replace_all=not args.keep_existing,
            chain_prerequisites=not args.no_chain,
        )
        for lesson in plan.lessons:
            prerequisites = ", ".join(lesson.prerequisites) or "none"
            print(f"  {lesson.id}: {lesson.title} ({len(lesson.segments)} cards, requires {prerequisites})")
        if args.dry_run:
            print(f"Dry run: {len(plan.nodes)} lesson(s) valid, no changes written")
            return 0
        result = await service.apply(plan)
    print(
        f"Imported {result.imported} lesson(s), {result.segments} segment(s), "
        f"{result.quizzes} quiz(zes); removed {result.deleted}; {result.total_lessons} lesson(s) total"
    )
    return 0


async def cmd_chain_prerequisites(args: argparse.Namespace, session_maker: SessionMaker) -> int:
    async with session_scope(session_maker) as session:
        changed = await PrerequisiteService(session).rebuild_chain()
    print(f"Prerequisite chain rebuilt: {changed} lesson(s) changed")
    return 0


async def cmd_clear_prerequisites(args: argparse.Namespace, session_maker: SessionMaker) -> int:
    async with session_scope(session_maker) as session:
        changed = await PrerequisiteService(session).clear_all()
    print(f"Cleared prerequisites on {changed} lesson(s)")
    return 0


async def cmd_validate_lessons(args: argparse.Namespace, session_maker: SessionMaker) -> int:
    async with session_scope(session_maker) as session:
        checked = await PrerequisiteService(session).validate()
    print(f"{checked} lesson(s) valid")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nora",
        description="Maintain Nora lesson content and the keyword glossary.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Sub-command")
    subparsers.required = True

    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(handler=cmd_init_db)

    sync_parser = subparsers.add_parser("sync-keywords", help="Sync keywords from the glossary Markdown")
    sync_parser.add_argument("path", nargs="?", help="Glossary file (default: settings keywords_file)")
    sync_parser.add_argument(
        "--remove-orphans",
        action="store_true",
        help="Delete stored keywords that are not in the file",
    )
    sync_parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing")
    sync_parser.set_defaults(handler=cmd_sync_keywords)

    export_parser = subparsers.add_parser("export-keywords", help="Write stored keywords as Markdown")
    export_parser.add_argument("path", nargs="?", help="Output file (default: stdout)")
    export_parser.set_defaults(handler=cmd_export_keywords)

    import_parser = subparsers.add_parser("import-lessons", help="Import lessons from a lesson script")
    import_parser.add_argument("path", nargs="?", help="Lesson file (default: settings lessons_file)")
    import_parser.add_argument(
        "--keep-existing",
        action="store_true",
        help="Only replace lessons present in the file",
    )
    import_parser.add_argument("--no-chain", action="store_true", help="Do not rebuild prerequisites")
    import_parser.add_argument("--dry-run", action="store_true", help="Parse and validate only")
    import_parser.set_defaults(handler=cmd_import_lessons)

    chain_parser = subparsers.add_parser("chain-prerequisites", help="Chain each phase's lessons in day order")
    chain_parser.set_defaults(handler=cmd_chain_prerequisites)

    clear_parser = subparsers.add_parser("clear-prerequisites", help="Unlock every lesson")
    clear_parser.set_defaults(handler=cmd_clear_prerequisites)

    validate_parser = subparsers.add_parser("validate-lessons", help="Check the stored lesson graph")
    validate_parser.set_defaults(handler=cmd_validate_lessons)

    return parser


async def run(argv: Optional[List[str]] = None, session_maker: SessionMaker = None) -> int:
    """Parse arguments and run one command; returns the exit status."""
    args = build_parser().parse_args(argv)
    try:
        with log_context(operation=args.command, source=getattr(args, "path", None)):
            return await args.handler(args, session_maker)
    except FileNotFoundError as exc:
        print(f"ERROR: File not found: {exc.filename}", file=sys.stderr)
    except ParseError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        for problem in exc.problems:
            print(f"  - {problem}", file=sys.stderr)
    except StructuralError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        if exc.identifiers:
            print(f"  Lessons: {', '.join(exc.identifiers)}", file=sys.stderr)
    except NotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
    return 1


def main() -> None:
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
