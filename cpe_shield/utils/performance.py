"""Timing utilities for CPEShield lookups."""

import functools
import logging
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar
from rich.console import Console
from rich.table import Table

F = TypeVar('F', bound=Callable[..., Any])

BENCHMARK_ENV_FLAG = "CPESHIELD_VERBOSE_BENCHMARK"


@dataclass
class PerformanceMetrics:
    """One timed operation."""

    operation: str
    execution_time: float
    items: int = 0


class PerformanceMonitor:
    """Collects wall-clock timings per named operation."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.metrics: List[PerformanceMetrics] = []
        self._lock = threading.Lock()

    @contextmanager
    def measure(self, operation: str) -> Iterator[PerformanceMetrics]:
        """Time the enclosed block.

        The yielded metric can be updated with the number of items the block
        processed; it is recorded when the block exits, even on error.

        Args:
            operation: Name of the operation being measured

        Yields:
            The metric being recorded
        """
        metric = PerformanceMetrics(operation=operation, execution_time=0.0)
        start_time = time.perf_counter()
        try:
            yield metric
        finally:
            metric.execution_time = time.perf_counter() - start_time
            if self.enabled:
                with self._lock:
                    self.metrics.append(metric)

    def get_summary(self) -> Dict[str, Any]:
        """Summarise recorded timings.

        Returns:
            Totals plus a per-operation breakdown; empty when nothing was recorded
        """
        with self._lock:
            metrics = list(self.metrics)

        if not metrics:
            return {}

        operations: Dict[str, Dict[str, Any]] = {}
        for metric in metrics:
            stats = operations.setdefault(
                metric.operation,
                {"calls": 0, "total_time": 0.0, "max_time": 0.0, "items": 0},
            )
            stats["calls"] += 1
            stats["total_time"] += metric.execution_time
            stats["max_time"] = max(stats["max_time"], metric.execution_time)
            stats["items"] += metric.items

        total_time = sum(m.execution_time for m in metrics)
        return {
            "total_executions": len(metrics),
            "total_time": total_time,
            "average_time": total_time / len(metrics),
            "operations": operations,
        }

    def print_summary(self, console: Optional[Console] = None) -> None:
        """Print the summary as a rich table."""
        summary = self.get_summary()
        if not summary:
            return

        table = Table(title="Performance Summary")
        table.add_column("Operation", style="cyan")
        table.add_column("Calls", justify="right")
        table.add_column("Items", justify="right")
        table.add_column("Total", style="green", justify="right")
        table.add_column("Max", justify="right")

        for name, stats in summary["operations"].items():
            table.add_row(
                name,
                str(stats["calls"]),
                str(stats["items"]),
                f"{stats['total_time']:.4f}s",
                f"{stats['max_time']:.4f}s",
            )

        (console or Console()).print(table)


def benchmark(func: F) -> F:
    """Log the wall-clock time of each call when CPESHIELD_VERBOSE_BENCHMARK is set.

    Args:
        func: Function to benchmark

    Returns:
        Wrapped function with timing
    """
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time

        if os.environ.get(BENCHMARK_ENV_FLAG):
            logging.getLogger("Performance").info(f"{func.__name__} took {elapsed:.4f} seconds")
        return result
    return wrapper  # type: ignore[return-value]
