"""livechart command-line tool."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time

from .engine import ChartEngine, RenderModel
from .model import ChartDimensions
from .settings import TIME_WINDOW, UPDATING_PERIOD, MemorySettings
from .source import DEFAULT_MAX_SAMPLES, FileSource, StreamSource
from .storage import LogReader
from .ticks import format_clock
from .windows import DEFAULT_WINDOW, window_keys


def _format_duration(s: float) -> str:
    """Format a duration in seconds as a human-readable string."""
    if s < 60:
        return f"{s:.2f}s"
    if s < 3600:
        return f"{s / 60:.1f}m"
    return f"{s / 3600:.1f}h"


def _format_model(model: RenderModel) -> str:
    """Multi-line text summary of a render model."""
    mode = "live" if model.pin is None else f"pinned {model.pin.start}..{model.pin.end}"
    lines = [f"Window:     {model.window} ({mode})"]
    if model.empty:
        lines.append("Chart:      (no data in window)")
        return "\n".join(lines)

    assert model.time_start is not None and model.time_diff is not None
    lines.append(f"Span:       {format_clock(model.time_start)} — "
                 f"{format_clock(model.time_start + model.time_diff)} "
                 f"({_format_duration(model.time_diff)}, {len(model.points)} points)")
    lines.append(f"Y max:      {model.y_max:g}")
    lines.append(f"Ticks:      {' '.join(t.label for t in model.ticks)}")
    lines.append(f"Navigation: back={'yes' if model.back_allowed else 'no'} "
                 f"forward={'yes' if model.forward_allowed else 'no'}")
    lines.append("Legend:")
    for entry in model.legend:
        state = "off" if entry.disabled else "on"
        lines.append(f"  [{state:>3s}] {entry.label}")
    return "\n".join(lines)


def _parse_metrics(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    return [m.strip() for m in raw.split(",") if m.strip()]


def cmd_info(args: argparse.Namespace) -> None:
    """Print summary info about a sample log."""
    file_size = os.path.getsize(args.file)

    counts: dict[str, int] = {}
    ts_min: float | None = None
    ts_max: float | None = None
    total = 0
    with LogReader(args.file) as reader:
        for sample in reader.samples():
            total += 1
            if ts_min is None:
                ts_min = sample.timestamp
            ts_max = sample.timestamp
            for key in sample.values:
                counts[key] = counts.get(key, 0) + 1

    print(f"File:       {args.file}")
    print(f"Size:       {file_size:,} bytes")
    print(f"Samples:    {total:,}")
    if ts_min is not None and ts_max is not None:
        duration = ts_max - ts_min
        print(f"Time range: {format_clock(ts_min)} — {format_clock(ts_max)}")
        print(f"Duration:   {_format_duration(duration)}")
        if total > 1:
            print(f"Period:     {duration / (total - 1):.3f}s (mean)")
    else:
        print("Time range: (empty)")

    print(f"\nMetrics ({len(counts)}):")
    print(f"  {'Name':<24s}  {'Samples':>8s}")
    for key, count in counts.items():
        print(f"  {key:<24s}  {count:8,}")


def cmd_dump(args: argparse.Namespace) -> None:
    """Render a sample log once and print the resulting chart model."""
    source = FileSource(args.file, max_samples=args.max_samples)
    settings = MemorySettings({TIME_WINDOW: args.window,
                               UPDATING_PERIOD: str(args.period)})
    engine = ChartEngine(source, settings, metrics=_parse_metrics(args.metrics),
                         dims=ChartDimensions(width=args.width))
    for key in _parse_metrics(args.disable) or []:
        engine.toggle_metric(key)
    for _ in range(args.back):
        if not engine.step(-1):
            break
    print(_format_model(engine.model))
    engine.close()


def cmd_live(args: argparse.Namespace) -> None:
    """Follow a live sample stream (or replay a recorded one) and print the chart span."""
    from .transport import open_transport

    address = f"tcp:{args.tcp}" if args.tcp else f"file:{args.replay}"
    try:
        transport = open_transport(address, timeout=0.1)
    except (OSError, ValueError) as e:
        print(f"Error: cannot open {address}: {e}", file=sys.stderr)
        sys.exit(1)

    source = StreamSource(transport, max_samples=args.max_samples)
    settings = MemorySettings({TIME_WINDOW: args.window,
                               UPDATING_PERIOD: str(args.period)})
    engine = ChartEngine(source, settings, metrics=_parse_metrics(args.metrics))

    try:
        while not source.closed:
            if source.poll() and engine.refresh():
                model = engine.model
                if model.empty:
                    continue
                latest = model.points[-1]
                values = ", ".join(f"{k}={v:g}" for k, v in latest.values.items())
                print(f"[{format_clock(latest.timestamp)}] y_max={model.y_max:g} "
                      f"points={len(model.points)} {values}")
            else:
                time.sleep(0.01)
    except KeyboardInterrupt:
        pass
    finally:
        engine.close()
        source.close()


def main() -> None:
    parser = argparse.ArgumentParser(prog="livechart", description="livechart tool")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    def add_chart_options(p: argparse.ArgumentParser) -> None:
        p.add_argument("--window", choices=window_keys(), default=DEFAULT_WINDOW,
                       help="Time window")
        p.add_argument("--period", type=int, default=1000,
                       help="Sampling period in milliseconds")
        p.add_argument("--metrics", help="Comma-separated metric keys in stack order")
        p.add_argument("--max-samples", type=int, default=DEFAULT_MAX_SAMPLES,
                       help="Samples retained by the source")

    # info
    p_info = sub.add_parser("info", help="Show summary info about a sample log")
    p_info.add_argument("file", help="Path to a .jsonl sample log")

    # dump
    p_dump = sub.add_parser("dump", help="Render a sample log and print the chart model")
    p_dump.add_argument("file", help="Path to a .jsonl sample log")
    add_chart_options(p_dump)
    p_dump.add_argument("--back", type=int, default=0,
                        help="Step this many windows back into history")
    p_dump.add_argument("--disable", help="Comma-separated metrics to hide")
    p_dump.add_argument("--width", type=int, default=ChartDimensions.width,
                        help="Chart width in pixels")

    # live
    p_live = sub.add_parser("live", help="Follow a live sample stream")
    live_from = p_live.add_mutually_exclusive_group(required=True)
    live_from.add_argument("--tcp", help="TCP host:port to connect to")
    live_from.add_argument("--replay", metavar="PATH",
                           help="Replay a recorded .jsonl stream as if it were live")
    add_chart_options(p_live)

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(name)s: %(message)s")

    try:
        if args.command == "info":
            cmd_info(args)
            return
        if args.command == "dump":
            cmd_dump(args)
            return
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "live":
        cmd_live(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
