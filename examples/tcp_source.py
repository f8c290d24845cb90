#!/usr/bin/env python3
"""Generate synthetic traffic counters over TCP for viewer testing.

Serves newline-delimited JSON samples on localhost:4300, one per period.
Also writes the last hour of history to /tmp/livechart_history.jsonl so the
viewer can be tried without a live stream.

Usage:
    python examples/tcp_source.py

Then in another terminal:
    livechart-viewer --live tcp:localhost:4300
    livechart-viewer /tmp/livechart_history.jsonl
    livechart live --replay /tmp/livechart_history.jsonl
"""

import math
import random
import socket
import time

from livechart.model import Sample
from livechart.storage import LogWriter, encode_sample

HISTORY_PATH = "/tmp/livechart_history.jsonl"
PERIOD = 1.0  # seconds; matches the default updatingPeriod of 1000 ms


def make_sample(ts: float) -> Sample:
    """One reading of every counter at wall-clock time *ts*."""
    t = ts % 3600

    # passed: slow daily-ish swell + noise
    passed = 40 + 25 * math.sin(2 * math.pi * t / 600.0) + random.gauss(0, 3)
    # delayed: bursts every few minutes
    delayed = 8 + 6 * max(0.0, math.sin(2 * math.pi * t / 180.0)) + random.gauss(0, 1)
    # failed: rare spikes
    failed = 12 if random.random() < 0.02 else random.randint(0, 2)

    return Sample(ts, {
        "passed": max(0, round(passed)),
        "delayed": max(0, round(delayed)),
        "failed": failed,
    })


def write_history(path: str, seconds: int = 3600) -> None:
    now = math.floor(time.time())
    with LogWriter(path) as w:
        for i in range(seconds, 0, -1):
            w.write(make_sample(float(now - i)))
    print(f"History written to {path}")


def serve(host: str = "0.0.0.0", port: int = 4300, period: float = PERIOD):
    """Accept TCP connections and stream samples."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind((host, port))
    srv.listen(1)
    print(f"Listening on {host}:{port}, one sample every {period}s  (Ctrl-C to stop)")

    while True:
        print("Waiting for connection...")
        conn, addr = srv.accept()
        print(f"Client connected: {addr}")
        seq = 0
        try:
            while True:
                line = encode_sample(make_sample(time.time())) + "\n"
                conn.sendall(line.encode())

                seq += 1
                if seq % 10 == 0:
                    print(f"  sent {seq} samples")

                time.sleep(period)
        except (BrokenPipeError, ConnectionResetError):
            print("Client disconnected.")
        except KeyboardInterrupt:
            print("\nShutting down.")
            conn.close()
            srv.close()
            return


if __name__ == "__main__":
    write_history(HISTORY_PATH)
    serve()
