"""livechart viewer — DearPyGui window around the chart engine."""

from __future__ import annotations

import argparse
import sys


def launch() -> None:
    """Entry point for ``livechart-viewer`` console script."""
    parser = argparse.ArgumentParser(
        prog="livechart-viewer",
        description="livechart viewer",
    )
    parser.add_argument("file", nargs="?", default=None,
                        help="Path to a .jsonl sample log to open")
    parser.add_argument("--live", metavar="ADDRESS",
                        help="Connect to a live sample stream (tcp:localhost:4300 or file:path)")
    parser.add_argument("--metrics",
                        help="Comma-separated metric keys in stack order")
    parser.add_argument("--settings", metavar="PATH",
                        help="Settings file (default ~/.config/livechart/settings.json)")
    args = parser.parse_args()

    if args.file and args.live:
        parser.error("Cannot specify both a file and --live")

    try:
        import dearpygui.dearpygui  # noqa: F401
    except ImportError:
        print("Error: dearpygui is required for the viewer.\n"
              "Install with: pip install 'livechart[viewer]'",
              file=sys.stderr)
        sys.exit(1)

    from .app import ViewerApp

    metrics = None
    if args.metrics:
        metrics = [m.strip() for m in args.metrics.split(",") if m.strip()]

    app = ViewerApp(metrics=metrics, settings_path=args.settings)
    app.setup()

    if args.file:
        app.open_file(args.file)
    elif args.live:
        app.open_live(args.live)

    app.run()
