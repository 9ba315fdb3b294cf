"""Command-line front end for composing messages from a data directory."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from letterpress.backend.file_backend import JsonFileBackend
from letterpress.notifications import ConsoleNotifier, NotificationVariant, Strings
from letterpress.session import ComposerSession
from letterpress.utils.config import AppConfig, ConfigManager
from letterpress.utils.console import get_console
from letterpress.utils.errors import ErrorHandler, LetterpressError, format_error_message
from letterpress.utils.logging import async_log_call, get_logger, init_logging

logger = get_logger(__name__)


## Argument Parser


def add_data_dir_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Data directory (default: storage.data_dir from the config file)",
    )


def setup_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="letterpress",
        description="Compose messages from openings, templates, closings and signatures",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compose_parser = subparsers.add_parser(
        "compose",
        help="Print a composed message",
        description="Compose a message; omitted selections use the last ones remembered",
    )
    add_data_dir_argument(compose_parser)
    compose_parser.add_argument("--opening", default=None, help="Opening line ('' for none)")
    compose_parser.add_argument("--recipient", default="", help="Recipient name")
    compose_parser.add_argument("--closing", default=None, help="Closing line ('' for none)")
    compose_parser.add_argument("--profile", default=None, help="Signature name ('' for none)")
    body_group = compose_parser.add_mutually_exclusive_group()
    body_group.add_argument("--body", default=None, help="Body text")
    body_group.add_argument("--body-file", type=Path, default=None, help="Read the body from a file")
    body_group.add_argument("--template", default=None, help="Use a stored template as the body")
    compose_parser.add_argument("--html", action="store_true", help="Print the markup rendering")

    favourite_parser = subparsers.add_parser("favourite", help="Toggle a favourite template")
    add_data_dir_argument(favourite_parser)
    favourite_parser.add_argument("name", help="Template name")

    templates_parser = subparsers.add_parser("templates", help="List templates, favourites first")
    add_data_dir_argument(templates_parser)
    templates_parser.add_argument("--search", default="", help="Filter by name or content")

    clear_parser = subparsers.add_parser("clear-cache", help="Forget remembered selections")
    add_data_dir_argument(clear_parser)

    return parser


## Commands


async def run_compose(session: ComposerSession, args, console: Console) -> int:
    if args.opening is not None:
        session.select_opening(args.opening)
    if args.closing is not None:
        session.select_closing(args.closing)
    if args.profile is not None:
        await session.select_profile(args.profile)

    if args.template is not None:
        if session.select_template(args.template) is None:
            console.print(f"Template '{args.template}' not found", style="red", markup=False)
            return 1
    elif args.body_file is not None:
        session.set_body(await asyncio.to_thread(args.body_file.read_text, encoding="utf-8"))
    elif args.body is not None:
        session.set_body(args.body)

    session.set_recipient(args.recipient)
    document = session.compose()
    console.print(
        document.html if args.html else document.plain,
        markup=False,
        highlight=False,
        soft_wrap=True,
    )
    return 0


async def run_favourite(session: ComposerSession, args, console: Console) -> int:
    if not any(template.name == args.name for template in session.templates):
        console.print(f"Template '{args.name}' not found", style="red", markup=False)
        return 1

    favourites = session.toggle_favourite(args.name)
    await session.favourites.wait_pending()
    session.notifier.notify(
        Strings.favourite_toggled(args.name, args.name in favourites),
        NotificationVariant.SUCCESS,
    )
    return 0


async def run_templates(session: ComposerSession, args, console: Console) -> int:
    table = Table(title="Templates")
    table.add_column("★", justify="center")
    table.add_column("Name")
    table.add_column("Last modified")

    for template in session.visible_templates(args.search):
        table.add_row(
            "★" if session.is_favourite(template.name) else "",
            template.name,
            template.last_modified,
        )

    console.print(table)
    return 0


async def run_clear_cache(session: ComposerSession, args, console: Console) -> int:
    return 0 if await session.clear_view_state() else 1


COMMANDS = {
    "compose": run_compose,
    "favourite": run_favourite,
    "templates": run_templates,
    "clear-cache": run_clear_cache,
}


@async_log_call
async def dispatch_command(args, config: AppConfig, console: Console) -> int:
    data_dir = args.data_dir or Path(config.storage.data_dir)
    backend = JsonFileBackend(data_dir)
    session = ComposerSession(backend, ConsoleNotifier(console), config)

    try:
        await session.load()
        return await COMMANDS[args.command](session, args, console)

    except (LetterpressError, OSError) as e:
        ErrorHandler.handle(e, context=f"letterpress {args.command}", log_traceback=False)
        console.print(f"Error: {format_error_message(e)}", style="red", markup=False)
        return 1

    finally:
        await session.aclose()


def main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    """Main CLI entry point. Returns the exit code."""
    console = console or get_console()
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    try:
        config = ConfigManager(args.config).config
    except LetterpressError as e:
        console.print(f"Configuration error: {e.message}", style="red", markup=False)
        return 1

    init_logging(
        config.logging.log_level,
        file_logging=config.logging.file_logging,
        force=True,
    )

    try:
        return asyncio.run(dispatch_command(args, config, console))
    except KeyboardInterrupt:
        console.print("Interrupted by user", style="yellow")
        return 130


if __name__ == "__main__":
    sys.exit(main())
