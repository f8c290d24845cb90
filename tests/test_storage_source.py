"""Tests for sample logs, stream framing and the data sources.

Run from repo root:
    python3 tests/test_storage_source.py
"""

import sys
import os
import tempfile

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

from livechart.model import Sample
from livechart.storage import LogReader, LogWriter, SampleDecoder, decode_sample, encode_sample
from livechart.source import BufferedSource, FileSource, StreamSource
from livechart.transport import FileTransport, open_transport


def make_samples(n, start=0):
    return [Sample(float(t), {"passed": t % 3, "delayed": 1}) for t in range(start, start + n)]


class FakeTransport:
    """Hands out queued chunks, then reports the peer as gone."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.closed = False

    def read(self, n):
        if not self.chunks:
            raise ConnectionError("connection closed by peer")
        return self.chunks.pop(0)

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def test_log_write_read():
    print("test_log_write_read...", end="")

    with tempfile.NamedTemporaryFile(suffix=".jsonl", delete=False) as f:
        tmppath = f.name

    try:
        with LogWriter(tmppath) as w:
            w.write_samples(make_samples(10))

        with LogReader(tmppath) as r:
            samples = list(r.samples())
            assert samples == make_samples(10)
            window = list(r.samples(ts_min=3, ts_max=5))
            assert [s.timestamp for s in window] == [3.0, 4.0, 5.0]

        with LogWriter(tmppath, append=True) as w:
            w.write(Sample(10.0, {"passed": 1}))
        with LogReader(tmppath) as r:
            assert len(list(r.samples())) == 11
    finally:
        os.unlink(tmppath)

    print(" OK")


def test_writer_rejects_backwards_time():
    print("test_writer_rejects_backwards_time...", end="")

    with tempfile.TemporaryDirectory() as tmpdir:
        with LogWriter(os.path.join(tmpdir, "log.jsonl")) as w:
            w.write(Sample(5.0, {}))
            try:
                w.write(Sample(4.0, {}))
                assert False, "expected ValueError"
            except ValueError:
                pass

    print(" OK")


def test_reader_reports_bad_line():
    print("test_reader_reports_bad_line...", end="")

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "log.jsonl")
        with open(path, "w") as f:
            f.write(encode_sample(Sample(1.0, {"a": 1})) + "\n")
            f.write("\n")
            f.write('{"values": {}}\n')

        with LogReader(path) as r:
            try:
                list(r.samples())
                assert False, "expected ValueError"
            except ValueError as e:
                assert ":3:" in str(e)

    print(" OK")


def test_decode_sample_validation():
    print("test_decode_sample_validation...", end="")

    s = decode_sample(b'{"ts": 12, "values": {"a": 1.5}}')
    assert s == Sample(12.0, {"a": 1.5})
    assert decode_sample('{"ts": 3}').values == {}

    for bad in ['{"ts": "x"}', '{"ts": true}', '{"ts": 1, "values": [1]}',
                '{"ts": 1, "values": {"a": "1"}}', '{"ts": 1, "values": {"a": false}}',
                '[1, 2]', 'garbage']:
        try:
            decode_sample(bad)
            assert False, f"expected ValueError for {bad!r}"
        except ValueError:
            pass

    print(" OK")


def test_sample_decoder_reassembly():
    """Lines split across reads are reassembled; bad lines are counted."""
    print("test_sample_decoder_reassembly...", end="")

    dec = SampleDecoder()
    line = (encode_sample(Sample(1.0, {"a": 1})) + "\n").encode()
    assert dec.feed(line[:7]) == []
    assert dec.feed(line[7:] + b"oops\n\n") == [Sample(1.0, {"a": 1})]
    assert dec.rejected == 1

    small = SampleDecoder(max_line_size=16)
    assert small.feed(b"x" * 32) == []
    assert small.rejected == 1
    assert small.feed(line) == [Sample(1.0, {"a": 1})]

    print(" OK")


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

def test_buffered_source_eviction():
    print("test_buffered_source_eviction...", end="")

    src = BufferedSource(max_samples=3)
    assert src.time_end is None
    assert not src.at_capacity
    src.extend(make_samples(5))

    assert [s.timestamp for s in src.samples()] == [2.0, 3.0, 4.0]
    assert src.evicted == 2
    assert src.at_capacity
    assert src.time_end == 4.0
    assert src.metrics() == ["passed", "delayed"]

    try:
        src.append(Sample(1.0, {}))
        assert False, "expected ValueError"
    except ValueError:
        pass

    src.advance(10.0)
    assert src.time_end == 10.0
    src.advance(8.0)
    assert src.time_end == 10.0

    src.clear()
    assert len(src.samples()) == 0 and src.time_end is None

    print(" OK")


def test_buffered_source_snapshot():
    """A taken series is not changed by later appends."""
    print("test_buffered_source_snapshot...", end="")

    src = BufferedSource()
    src.extend(make_samples(3))
    series = src.samples()
    assert src.samples() is series
    src.append(Sample(3.0, {}))
    assert len(series) == 3
    assert len(src.samples()) == 4

    print(" OK")


def test_file_source():
    print("test_file_source...", end="")

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "log.jsonl")
        with LogWriter(path) as w:
            w.write_samples(make_samples(20))

        src = FileSource(path, max_samples=10)
        assert [s.timestamp for s in src.samples()][:2] == [10.0, 11.0]
        assert src.time_end == 19.0
        assert not src.is_live
        assert not src.poll()

    print(" OK")


def test_stream_source():
    print("test_stream_source...", end="")

    lines = b"".join((encode_sample(s) + "\n").encode() for s in make_samples(4))
    old = (encode_sample(Sample(0.5, {})) + "\n").encode()
    transport = FakeTransport([lines[:30], lines[30:], b"", old])
    src = StreamSource(transport)
    assert src.is_live

    got = src.poll()
    got = src.poll() or got
    assert got
    assert [s.timestamp for s in src.samples()] == [0.0, 1.0, 2.0, 3.0]

    assert not src.poll()          # idle read
    assert not src.poll()          # out-of-order sample dropped
    assert src.rejected == 1
    assert not src.poll()          # peer closed
    assert not src.poll()
    assert src.time_end == 3.0

    src.close()
    assert transport.closed

    print(" OK")


def test_file_replay_transport():
    """A recorded stream replays through the live source and then ends."""
    print("test_file_replay_transport...", end="")

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "stream.jsonl")
        with LogWriter(path) as w:
            w.write_samples(make_samples(50))

        transport = open_transport(f"file:{path}")
        assert isinstance(transport, FileTransport)
        src = StreamSource(transport, max_samples=20)
        assert not src.closed
        while src.poll():
            pass
        assert src.closed
        assert [s.timestamp for s in src.samples()][0] == 30.0
        assert src.time_end == 49.0
        src.close()

        raw = FileTransport(path)
        try:
            while raw.read(4096):
                pass
            assert False, "expected ConnectionError"
        except ConnectionError:
            pass
        finally:
            raw.close()

    print(" OK")


def test_open_transport_rejects_unknown():
    print("test_open_transport_rejects_unknown...", end="")

    for address in ["udp:localhost:4300", "localhost", "file:"]:
        try:
            open_transport(address)
            assert False, f"expected ValueError for {address!r}"
        except ValueError:
            pass

    print(" OK")


if __name__ == "__main__":
    print("livechart storage/source tests")
    print("==============================\n")

    test_log_write_read()
    test_writer_rejects_backwards_time()
    test_reader_reports_bad_line()
    test_decode_sample_validation()
    test_sample_decoder_reassembly()
    test_buffered_source_eviction()
    test_buffered_source_snapshot()
    test_file_source()
    test_stream_source()
    test_file_replay_transport()
    test_open_transport_rejects_unknown()

    print("\nAll storage/source tests passed.")
