from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from animesync.app import sync_watch_states
from animesync.config import ConfigurationError, configure_logging, get_sync_config
from animesync.domain.reconciliation import render_diff

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from animesync.domain.model import ChangeInstruction

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise Bangumi and AniList watch states")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Reconcile both collections")
    sync.add_argument(
        "--bidirectional",
        action="store_true",
        default=None,
        help="Also write Bangumi where the AniList entry is newer",
    )
    sync.add_argument(
        "--sync-comments",
        action="store_true",
        default=None,
        help="Treat comments as part of the watch state",
    )
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the changes without writing anything",
    )
    sync.add_argument(
        "--yes",
        action="store_true",
        help="Apply changes without asking for confirmation",
    )
    return parser.parse_args(list(argv))


def describe_changes(instructions: Sequence[ChangeInstruction], *, include_comment: bool) -> None:
    for instruction in instructions:
        entry = instruction.after
        action = "Create" if instruction.is_create else "Update"
        log.info(
            "%s %r on %s:\n%s",
            action,
            entry.title,
            instruction.platform.value,
            render_diff(instruction.before, entry, include_comment=include_comment),
        )


def _confirm_factory(
    *,
    include_comment: bool,
    ask: bool,
    prompt: Callable[[str], str] = input,
) -> Callable[[Sequence[ChangeInstruction]], bool]:
    def confirm(instructions: Sequence[ChangeInstruction]) -> bool:
        describe_changes(instructions, include_comment=include_comment)
        if not ask:
            return True
        answer = prompt(f"Apply {len(instructions)} changes? [Y/n] ").strip().lower()
        return answer in {"", "y", "yes"}

    return confirm


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        sync_config = get_sync_config()
        if parsed_args.bidirectional is not None:
            sync_config = replace(sync_config, bidirectional=parsed_args.bidirectional)
        if parsed_args.sync_comments is not None:
            sync_config = replace(sync_config, sync_comments=parsed_args.sync_comments)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    confirm = _confirm_factory(
        include_comment=sync_config.sync_comments,
        ask=sync_config.manual_confirm and not parsed_args.yes,
    )
    try:
        report = sync_watch_states(
            sync_config=sync_config,
            dry_run=parsed_args.dry_run,
            confirm=confirm,
        )
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)

    if report.dry_run:
        describe_changes(report.instructions, include_comment=sync_config.sync_comments)
        log.info("Dry run: %s changes not applied", len(report.instructions))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
