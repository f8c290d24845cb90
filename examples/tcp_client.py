#!/usr/bin/env python3
"""Connect to a livechart TCP source and print each sample.

Run the example server first:
    python examples/tcp_source.py   # serves on localhost:4300

Then in another terminal:
    python examples/tcp_client.py
"""

from livechart.storage import SampleDecoder
from livechart.ticks import format_clock
from livechart.transport import TCPTransport

transport = TCPTransport("localhost", 4300, timeout=5.0)
decoder = SampleDecoder()

try:
    while True:
        data = transport.read(65536)
        if not data:
            continue
        for sample in decoder.feed(data):
            values = " ".join(f"{k}={v}" for k, v in sample.values.items())
            print(f"[{format_clock(sample.timestamp)}] {values}")
except (KeyboardInterrupt, ConnectionError):
    pass
finally:
    transport.close()
