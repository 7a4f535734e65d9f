# ABOUTME: CLI entry point for the daily reflection backend.
# ABOUTME: Provides subcommands: serve, init-store, send.

import argparse
import asyncio
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog

from daily_reflection.config import Settings, get_settings
from daily_reflection.errors import ReflectionBlogError
from daily_reflection.models import DispatchSummary
from daily_reflection.storage.base import SubscriberStore


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog for console or JSON output."""
    settings = settings or get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )
    else:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
                structlog.processors.add_log_level,
                structlog.dev.ConsoleRenderer(colors=True),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )


@asynccontextmanager
async def _subscriber_store(settings: Settings) -> AsyncGenerator[SubscriberStore]:
    """Open the configured subscriber store outside a web request."""
    if settings.store_backend == "sql":
        from daily_reflection.db.repository import SubscriberRepository
        from daily_reflection.db.session import close_db, configure_db, get_session

        configure_db(settings)
        try:
            async with get_session() as session:
                yield SubscriberRepository(session)
        finally:
            await close_db()
    else:
        from daily_reflection.storage.json_file import JsonFileStore

        yield JsonFileStore(settings.data_file).subscribers


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the web application with uvicorn."""
    import uvicorn

    from daily_reflection.web.app import create_app

    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port

    log = structlog.get_logger()
    log.info("cmd_serve_start", host=host, port=port, store_backend=settings.store_backend)

    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


async def _init_store(settings: Settings) -> None:
    if settings.store_backend == "sql":
        from daily_reflection.db.session import close_db, init_db

        try:
            await init_db(settings)
        finally:
            await close_db()
    else:
        from daily_reflection.storage.json_file import JsonFileStore

        await JsonFileStore(settings.data_file).initialize()


def cmd_init_store(_args: argparse.Namespace) -> int:
    """Create the JSON data file or the database tables."""
    settings = get_settings()
    log = structlog.get_logger()

    try:
        asyncio.run(_init_store(settings))
    except Exception:
        log.exception("cmd_init_store_failed", store_backend=settings.store_backend)
        return 1

    log.info("cmd_init_store_complete", store_backend=settings.store_backend)
    return 0


async def _send(settings: Settings, subject: str, body: str) -> DispatchSummary:
    from daily_reflection.email.dispatcher import build_dispatcher
    from daily_reflection.email.transport import HttpApiTransport
    from daily_reflection.services.subscriber_service import SubscriberService

    async with _subscriber_store(settings) as store:
        recipients = await SubscriberService(store).selected_emails()

    dispatcher = build_dispatcher(settings)
    try:
        return await dispatcher.send(subject, body, recipients)
    finally:
        if isinstance(dispatcher.transport, HttpApiTransport):
            await dispatcher.transport.aclose()


def cmd_send(args: argparse.Namespace) -> int:
    """Send a newsletter to the selected subscribers.

    Exits with 1 if any recipient failed.
    """
    settings = get_settings()
    log = structlog.get_logger()

    body = args.body
    if args.body_file:
        try:
            body = Path(args.body_file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.error("cmd_send_failed", body_file=args.body_file, error=str(e))
            return 1

    try:
        summary = asyncio.run(_send(settings, args.subject, body))
    except ReflectionBlogError as e:
        log.error("cmd_send_failed", error=e.message)
        return 1

    print(f"\nSent: {summary.sent_count}  Failed: {summary.failed_count}\n")
    for outcome in summary.results:
        status = "ok" if outcome.success else f"FAILED ({outcome.error_detail})"
        print(f"  - {outcome.address}: {status}")
    print()

    return 0 if summary.failed_count == 0 else 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="daily_reflection",
        description="Daily reflection blog backend with newsletter",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP server",
    )
    serve_parser.add_argument(
        "--host",
        type=str,
        help="Bind address. Defaults to HOST setting.",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        help="Port. Defaults to PORT setting.",
    )

    # init-store command
    subparsers.add_parser(
        "init-store",
        help="Create the JSON data file or database tables",
    )

    # send command
    send_parser = subparsers.add_parser(
        "send",
        help="Send a newsletter to the selected subscribers",
    )
    send_parser.add_argument(
        "--subject",
        type=str,
        required=True,
        help="Message subject",
    )
    body_group = send_parser.add_mutually_exclusive_group(required=True)
    body_group.add_argument(
        "--body",
        type=str,
        help="Plain-text message body",
    )
    body_group.add_argument(
        "--body-file",
        type=str,
        help="Path to a file holding the plain-text message body",
    )

    return parser


def main() -> int:
    """Main entry point."""
    configure_logging()

    parser = create_parser()
    args = parser.parse_args()

    commands = {
        "serve": cmd_serve,
        "init-store": cmd_init_store,
        "send": cmd_send,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
