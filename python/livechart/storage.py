"""Sample log files and stream framing.

File / stream format: one JSON object per line,

    {"ts": 1700000000.0, "values": {"passed": 12, "delayed": 3}}

``ts`` is in seconds; ``values`` maps metric key to a number.  Lines must
be in non-decreasing ``ts`` order.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator, TextIO

from .model import Sample

logger = logging.getLogger(__name__)


def encode_sample(sample: Sample) -> str:
    return json.dumps({"ts": sample.timestamp, "values": dict(sample.values)},
                      separators=(",", ":"))


def decode_sample(line: str | bytes) -> Sample:
    """Parse one line.  Raises ValueError if it is not a valid sample."""
    obj = json.loads(line)
    if not isinstance(obj, dict) or "ts" not in obj:
        raise ValueError(f"not a sample: {line!r}")
    ts = obj["ts"]
    if isinstance(ts, bool) or not isinstance(ts, (int, float)):
        raise ValueError(f"bad timestamp: {ts!r}")
    raw_values = obj.get("values", {})
    if not isinstance(raw_values, dict):
        raise ValueError(f"bad values: {raw_values!r}")
    values: dict[str, float] = {}
    for key, value in raw_values.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"bad value for {key!r}: {value!r}")
        values[str(key)] = value
    return Sample(float(ts), values)


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

class LogWriter:
    """Appends samples to a log file, enforcing time order."""

    def __init__(self, path: str | Path, append: bool = False):
        self._f: TextIO = open(path, "a" if append else "w")
        self._last_ts: float | None = None

    def write(self, sample: Sample) -> None:
        if self._last_ts is not None and sample.timestamp < self._last_ts:
            raise ValueError(
                f"timestamp {sample.timestamp} precedes {self._last_ts}")
        self._f.write(encode_sample(sample) + "\n")
        self._last_ts = sample.timestamp

    def write_samples(self, samples) -> None:
        for sample in samples:
            self.write(sample)

    def flush(self) -> None:
        self._f.flush()

    def close(self) -> None:
        self._f.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

class LogReader:
    """Reads samples back from a log file."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._f: TextIO | None = None

    def open(self) -> None:
        self._f = open(self._path)

    def samples(self, ts_min: float | None = None,
                ts_max: float | None = None) -> Iterator[Sample]:
        """Iterate samples, optionally restricted to ``[ts_min, ts_max]``.

        Raises ValueError on a malformed line (with its line number).
        """
        if self._f is None:
            self.open()
        assert self._f is not None

        self._f.seek(0)
        last_ts: float | None = None
        for lineno, line in enumerate(self._f, 1):
            if not line.strip():
                continue
            try:
                sample = decode_sample(line)
            except ValueError as e:
                raise ValueError(f"{self._path}:{lineno}: {e}") from e
            if last_ts is not None and sample.timestamp < last_ts:
                raise ValueError(f"{self._path}:{lineno}: timestamp goes backwards")
            last_ts = sample.timestamp
            if ts_min is not None and sample.timestamp < ts_min:
                continue
            if ts_max is not None and sample.timestamp > ts_max:
                break
            yield sample

    def close(self) -> None:
        if self._f:
            self._f.close()
            self._f = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()


# ---------------------------------------------------------------------------
# Stream framing
# ---------------------------------------------------------------------------

class SampleDecoder:
    """Reassembles newline-delimited samples from a byte stream.

    Malformed lines are counted in ``rejected`` and skipped.
    """

    def __init__(self, max_line_size: int = 65536):
        self.max_line_size = max_line_size
        self.rejected: int = 0
        self._buf = bytearray()

    def feed(self, data: bytes) -> list[Sample]:
        """Feed raw bytes, return any complete decoded samples."""
        self._buf.extend(data)
        results: list[Sample] = []

        while True:
            end = self._buf.find(b"\n")
            if end < 0:
                if len(self._buf) > self.max_line_size:
                    logger.warning(
                        "line exceeds max_line_size %d, clearing buffer",
                        self.max_line_size)
                    self._buf.clear()
                    self.rejected += 1
                break

            line = bytes(self._buf[:end])
            del self._buf[:end + 1]
            if not line.strip():
                continue
            try:
                results.append(decode_sample(line))
            except ValueError as e:
                self.rejected += 1
                logger.warning("skipping malformed sample: %s", e)

        return results
