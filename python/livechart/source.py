"""Data sources: the append-only, bounded sample series the chart reads.

The engine never mutates samples; it asks the source for the current
series and the live-edge timestamp after every successful ``poll``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path

from .model import Sample, Series
from .storage import LogReader, SampleDecoder
from .transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLES = 1800


class SeriesSource(ABC):
    """Abstract data source for the chart engine."""

    @abstractmethod
    def samples(self) -> Series:
        """Current series, oldest first (sliceable, not to be mutated)."""

    @property
    @abstractmethod
    def time_end(self) -> float | None:
        """Live-edge timestamp, or None before the first sample."""

    @property
    @abstractmethod
    def max_samples(self) -> int:
        """Retention limit; the oldest samples are evicted beyond it."""

    @property
    def at_capacity(self) -> bool:
        return len(self.samples()) >= self.max_samples

    @property
    def is_live(self) -> bool:
        return False

    def metrics(self) -> list[str]:
        """Metric keys in first-seen order."""
        seen: dict[str, None] = {}
        for sample in self.samples():
            for key in sample.values:
                seen.setdefault(key, None)
        return list(seen)

    def poll(self) -> bool:
        """Fetch new data.  Return True if the series changed."""
        return False

    def close(self) -> None:
        """Release resources."""


class BufferedSource(SeriesSource):
    """In-memory rolling buffer fed with :meth:`append`."""

    def __init__(self, max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        if max_samples < 1:
            raise ValueError("max_samples must be positive")
        self._buf: deque[Sample] = deque(maxlen=max_samples)
        self._time_end: float | None = None
        self._snapshot: list[Sample] | None = None
        self._evicted = 0

    def samples(self) -> Series:
        if self._snapshot is None:
            self._snapshot = list(self._buf)
        return self._snapshot

    @property
    def time_end(self) -> float | None:
        return self._time_end

    @property
    def max_samples(self) -> int:
        return self._buf.maxlen or 0

    @property
    def evicted(self) -> int:
        """Samples dropped from the head so far."""
        return self._evicted

    def append(self, sample: Sample) -> None:
        """Add *sample* at the tail.  Raises ValueError if time goes backwards."""
        if self._buf and sample.timestamp < self._buf[-1].timestamp:
            raise ValueError(
                f"sample at {sample.timestamp} precedes {self._buf[-1].timestamp}")
        if len(self._buf) == self._buf.maxlen:
            self._evicted += 1
        self._buf.append(sample)
        self._snapshot = None
        if self._time_end is None or sample.timestamp > self._time_end:
            self._time_end = sample.timestamp

    def extend(self, samples) -> None:
        for sample in samples:
            self.append(sample)

    def advance(self, time_end: float) -> None:
        """Move the live edge without a new sample (e.g. an idle interval)."""
        if self._time_end is None or time_end > self._time_end:
            self._time_end = time_end

    def clear(self) -> None:
        self._buf.clear()
        self._snapshot = None
        self._time_end = None


class FileSource(BufferedSource):
    """Series loaded once from a sample log file."""

    def __init__(self, path: str | Path,
                 max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        super().__init__(max_samples)
        self._path = Path(path)
        with LogReader(self._path) as reader:
            self.extend(reader.samples())
        if self._evicted:
            logger.info("%s: kept the newest %d samples (%d older dropped)",
                        self._path, len(self._buf), self._evicted)


class StreamSource(BufferedSource):
    """Live source reading newline-delimited samples from a transport."""

    READ_SIZE = 65536

    def __init__(self, transport: Transport,
                 max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        super().__init__(max_samples)
        self._transport = transport
        self._decoder = SampleDecoder()
        self._closed = False

    @property
    def is_live(self) -> bool:
        return True

    @property
    def closed(self) -> bool:
        """True once the transport reported the end of the stream."""
        return self._closed

    @property
    def rejected(self) -> int:
        """Malformed or out-of-order samples skipped so far."""
        return self._decoder.rejected

    def poll(self) -> bool:
        """Read from the transport and append complete samples.

        Returns True if at least one sample was appended.
        """
        if self._closed:
            return False
        try:
            data = self._transport.read(self.READ_SIZE)
        except ConnectionError as e:
            logger.info("stream ended: %s", e)
            self._closed = True
            return False
        except Exception:
            logger.exception("transport read failed")
            return False

        if not data:
            return False

        got_sample = False
        for sample in self._decoder.feed(data):
            try:
                self.append(sample)
            except ValueError as e:
                self._decoder.rejected += 1
                logger.warning("dropping out-of-order sample: %s", e)
                continue
            got_sample = True
        return got_sample

    def close(self) -> None:
        self._transport.close()
