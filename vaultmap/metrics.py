"""Prometheus instruments for the JSON boundary.

``vaultmap_call_seconds``
    Histogram of wall-clock time per boundary call, labelled by ``call``.
    Reduction and clustering run on the caller's thread, so this is the time
    the host was blocked.
``vaultmap_call_failures_total``
    Counter of failed calls labelled by ``call`` and error ``kind``.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

from vaultmap.errors import VaultmapError

call_seconds = Histogram(
    "vaultmap_call_seconds",
    "Wall-clock seconds spent in a vaultmap boundary call",
    ["call"],
)

call_failures_total = Counter(
    "vaultmap_call_failures",
    "Boundary calls that raised an error",
    ["call", "kind"],
)


@contextmanager
def track_call(call: str) -> Iterator[None]:
    """Time the enclosed block and count failures for ``call``."""

    start = time.perf_counter()
    try:
        yield
    except VaultmapError as exc:
        call_failures_total.labels(call=call, kind=exc.kind).inc()
        raise
    except Exception as exc:
        call_failures_total.labels(call=call, kind=type(exc).__name__).inc()
        raise
    finally:
        call_seconds.labels(call=call).observe(time.perf_counter() - start)
