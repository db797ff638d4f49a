"""
Read-latency metrics sinks.

The reader reports every successful download as (elapsed seconds, bytes).
What happens to those numbers is up to the host: log them, keep running
totals for the health endpoint, or both.
"""

import logging
import threading
from dataclasses import dataclass

from ..core.blobs import ReadMetrics

logger = logging.getLogger(__name__)


class LoggingReadMetrics:
    """Logs each read at debug level."""

    def report_read_latency(self, elapsed_seconds: float, byte_count: int) -> None:
        logger.debug(
            "Blob read",
            extra={
                "elapsed_ms": round(elapsed_seconds * 1000, 3),
                "size_bytes": byte_count,
            }
        )


@dataclass(frozen=True)
class ReadSnapshot:
    """Point-in-time copy of the read totals."""
    reads: int
    bytes_read: int
    total_seconds: float
    max_seconds: float

    @property
    def average_seconds(self) -> float:
        return self.total_seconds / self.reads if self.reads else 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            "reads": self.reads,
            "bytes_read": self.bytes_read,
            "average_ms": round(self.average_seconds * 1000, 3),
            "max_ms": round(self.max_seconds * 1000, 3),
        }


class ReadStatistics:
    """
    Running totals of blob reads.

    Reports can come from any request, so updates take a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reads = 0
        self._bytes = 0
        self._total_seconds = 0.0
        self._max_seconds = 0.0

    def report_read_latency(self, elapsed_seconds: float, byte_count: int) -> None:
        with self._lock:
            self._reads += 1
            self._bytes += byte_count
            self._total_seconds += elapsed_seconds
            self._max_seconds = max(self._max_seconds, elapsed_seconds)

    def snapshot(self) -> ReadSnapshot:
        with self._lock:
            return ReadSnapshot(
                reads=self._reads,
                bytes_read=self._bytes,
                total_seconds=self._total_seconds,
                max_seconds=self._max_seconds,
            )


class CompositeReadMetrics:
    """Forwards each report to several sinks."""

    def __init__(self, *sinks: ReadMetrics) -> None:
        self._sinks = sinks

    def report_read_latency(self, elapsed_seconds: float, byte_count: int) -> None:
        for sink in self._sinks:
            sink.report_read_latency(elapsed_seconds, byte_count)
