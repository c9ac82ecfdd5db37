"""Operation timing and slow-operation logging."""
import logging
import time

logger = logging.getLogger(__name__)


def elapsed_ms(started: float) -> float:
    """Milliseconds since a time.perf_counter() reading."""
    return round((time.perf_counter() - started) * 1000, 3)


class PerformanceMonitor:
    """Times one operation and warns when it runs past the slow threshold.

    Usage:
        monitor = PerformanceMonitor("search:sauvage", slow_threshold_ms=1000)
        ...
        duration = monitor.end()
    """

    def __init__(self, operation: str, slow_threshold_ms: float = 1000.0):
        self.operation = operation
        self.slow_threshold_ms = slow_threshold_ms
        self.started = time.perf_counter()
        self._duration = None

    def end(self) -> float:
        """Stop the timer (first call only) and return the duration in ms."""
        if self._duration is None:
            self._duration = elapsed_ms(self.started)
            if self._duration > self.slow_threshold_ms:
                logger.warning("Slow operation %s took %.0f ms", self.operation, self._duration)
        return self._duration
