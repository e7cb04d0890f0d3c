"""Command-line interface for inspecting and editing pi-worktrees settings."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .config import ConfigStore, ResolvedConfig, SettingsFileError, dump_config, normalize_config

LOGGER = logging.getLogger(__name__)


def _add_store_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--settings-file",
        type=Path,
        help="Settings file to read and write (default: ~/.pi/agent/pi-worktrees-settings.json).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="pi-worktrees-config",
        description="Inspect and update pi-worktrees settings.",
    )
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        default="warning",
        help="Logging verbosity (default: warning).",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    show_parser = subparsers.add_parser(
        "show",
        help="Display the resolved configuration after applying env overrides.",
    )
    _add_store_arguments(show_parser)

    path_parser = subparsers.add_parser("path", help="Print the settings file location.")
    _add_store_arguments(path_parser)

    set_parser = subparsers.add_parser(
        "set",
        help="Update worktree settings in the settings file.",
    )
    _add_store_arguments(set_parser)
    set_parser.add_argument(
        "--parent-dir",
        type=str,
        help="Base directory under which new worktrees are created (worktree.parentDir).",
    )
    set_parser.add_argument(
        "--on-create",
        type=str,
        help="Shell command run after a worktree is created (worktree.onCreate).",
    )
    set_parser.add_argument(
        "--clear-parent-dir",
        action="store_true",
        help="Remove worktree.parentDir from the settings file.",
    )
    set_parser.add_argument(
        "--clear-on-create",
        action="store_true",
        help="Remove worktree.onCreate from the settings file.",
    )

    reload_parser = subparsers.add_parser(
        "reload",
        help="Re-read env and the settings file, then display the result.",
    )
    _add_store_arguments(reload_parser)

    return parser


def _configure_logging(log_level: str) -> None:
    """Initialise root logging configuration."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
        force=True,
    )


def _print_config(console: Console, config: ResolvedConfig) -> None:
    console.print(dump_config(config), end="", markup=False, highlight=False, soft_wrap=True)


def _collect_updates(args: argparse.Namespace, current: dict[str, Any]) -> dict[str, Any]:
    """Apply ``set`` flags on top of the settings currently stored on disk."""
    updated = dict(current)
    if args.clear_parent_dir:
        updated.pop("parentDir", None)
    if args.clear_on_create:
        updated.pop("onCreate", None)
    if args.parent_dir is not None:
        updated["parentDir"] = args.parent_dir
    if args.on_create is not None:
        updated["onCreate"] = args.on_create
    return updated


def _run_show_command(store: ConfigStore, console: Console) -> int:
    _print_config(console, store.load())
    return 0


def _run_path_command(store: ConfigStore, console: Console) -> int:
    console.print(str(store.settings_path), markup=False, highlight=False, soft_wrap=True)
    return 0


def _run_set_command(store: ConfigStore, args: argparse.Namespace, console: Console) -> int:
    # Only file contents are carried forward so env overrides are never persisted.
    stored = normalize_config(store.read_file_layer()).worktree.to_dict()
    config = store.save_worktree_settings(_collect_updates(args, stored))
    LOGGER.info("Saved settings to %s", store.settings_path)
    _print_config(console, config)
    return 0


def _run_reload_command(store: ConfigStore, console: Console) -> int:
    _print_config(console, store.reload_config())
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Execute the CLI entry point."""
    parser = build_parser()
    raw_args = list(argv if argv is not None else sys.argv[1:])
    if not raw_args:
        parser.print_help()
        return 0

    args = parser.parse_args(raw_args)
    _configure_logging(args.log_level)

    console = Console(emoji=False)
    store = ConfigStore(args.settings_file, load=False)
    try:
        if args.command == "show":
            return _run_show_command(store, console)
        if args.command == "path":
            return _run_path_command(store, console)
        if args.command == "set":
            return _run_set_command(store, args, console)
        if args.command == "reload":
            return _run_reload_command(store, console)
    except (ValidationError, SettingsFileError) as exc:
        console.print("[bold red]Configuration error:[/bold red]", highlight=False)
        console.print(str(exc), markup=False, highlight=False, soft_wrap=True)
        return 1
    except OSError as exc:
        console.print(
            f"[bold red]Settings file I/O error:[/bold red] {escape(str(exc))}",
            highlight=False,
            soft_wrap=True,
        )
        return 2

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
