"""
CLI (Command Line Interface).

Running without a sub-command opens the timetable window. Other commands:

    ktutimetable window
    ktutimetable show [--week 2024-W05] [--vidko E1810] [--width 800 --height 480]
    ktutimetable interactive
    ktutimetable set-vidko <code>
    ktutimetable config-path

Note:
- The window lives in ktutimetable/gui.py, the terminal views in ktutimetable/terminal.py
- Every command exits via SystemExit with a return code
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from ktutimetable.app import Environment, TimetableViewer
from ktutimetable.config import JsonConfigStore, normalize_vidko
from ktutimetable.model import IsoWeek
from ktutimetable.terminal import (
    TERMINAL_HEIGHT,
    TERMINAL_WIDTH,
    describe_fetch_error,
    print_week,
    run_interactive,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _cmd_window(args: argparse.Namespace, env: Environment) -> int:
    """
    Open the desktop window. Fails with 1 when no display is available.
    """
    import tkinter as tk

    from ktutimetable.gui import run_window

    try:
        run_window(env)
    except tk.TclError as e:
        print(f"Could not open the timetable window: {e}")
        return 1
    return 0


def _cmd_show(args: argparse.Namespace, env: Environment, console: Console) -> int:
    """
    Fetch once and print one week as a table.
    """
    viewer = TimetableViewer(env)
    if args.vidko is not None:
        viewer.vidko = normalize_vidko(args.vidko)
    else:
        viewer.load_config()

    if viewer.vidko is None:
        print("No identifier saved. Run 'ktutimetable set-vidko <code>' or pass --vidko.")
        return 1

    if args.week:
        try:
            viewer.set_shown_week(IsoWeek.parse(args.week))
        except ValueError:
            print(f"Invalid week: {args.week!r} (expected e.g. 2024-W05)")
            return 1

    if not viewer.refresh():
        print(f"Could not load timetable for {viewer.vidko}: {describe_fetch_error(viewer.last_error)}")
        return 1

    print_week(console, viewer, width=args.width, height=args.height)
    return 0


def _cmd_interactive(args: argparse.Namespace, env: Environment, console: Console) -> int:
    viewer = TimetableViewer(env)
    viewer.load_config()
    run_interactive(viewer, console)
    return 0


def _cmd_set_vidko(args: argparse.Namespace, env: Environment) -> int:
    vidko = normalize_vidko(args.vidko)
    if vidko is None:
        print("Please provide an identifier.")
        return 1

    viewer = TimetableViewer(env)
    viewer.vidko = vidko
    if not viewer.save_config():
        print("Could not save the identifier.")
        return 1

    print(f"Saved identifier: {vidko}")
    return 0


def _cmd_config_path(args: argparse.Namespace, env: Environment) -> int:
    store = env.config_store
    if isinstance(store, JsonConfigStore):
        print(store.path)
    else:
        print("(in-memory config)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="ktutimetable", description="KTU timetable viewer")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("window", help="Open the timetable window (default)")

    p_show = sub.add_parser("show", help="Print one week of the timetable")
    p_show.add_argument("--week", type=str, default=None, help="ISO week (e.g. 2024-W05), default: current")
    p_show.add_argument("--vidko", type=str, default=None, help="Identifier to use instead of the saved one")
    p_show.add_argument("--width", type=int, default=TERMINAL_WIDTH, help="Layout width in pixels")
    p_show.add_argument("--height", type=int, default=TERMINAL_HEIGHT, help="Layout height in pixels")

    sub.add_parser("interactive", help="Interactive terminal mode")

    p_set = sub.add_parser("set-vidko", help="Save the timetable identifier")
    p_set.add_argument("vidko", type=str, help="Identifier (e.g. E1810)")

    sub.add_parser("config-path", help="Print the config file location")

    return parser


def main(argv: list[str] | None = None, env: Optional[Environment] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)
    env = env if env is not None else Environment.default()
    console = Console()

    if args.command in (None, "window"):
        raise SystemExit(_cmd_window(args, env))
    if args.command == "show":
        raise SystemExit(_cmd_show(args, env, console))
    if args.command == "interactive":
        raise SystemExit(_cmd_interactive(args, env, console))
    if args.command == "set-vidko":
        raise SystemExit(_cmd_set_vidko(args, env))
    if args.command == "config-path":
        raise SystemExit(_cmd_config_path(args, env))

    raise SystemExit(2)
