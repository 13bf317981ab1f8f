"""
Method profiling: wrap a component and record how long its profiled methods take.
"""

import functools
import inspect
import logging
import threading
import time
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO

from prometheus_client import CollectorRegistry, Histogram, write_to_textfile


def profiled(func: Callable) -> Callable:
    """Mark a method so that Profiler.wrap() times its calls."""
    func.__profiled__ = True
    return func


def is_profiled(func: Any) -> bool:
    return getattr(func, '__profiled__', False) is True


def format_duration(seconds: float) -> str:
    """Format a duration as '<m>m <s>s <ms>ms'."""
    total_ms = int(round(seconds * 1000))
    minutes, remainder = divmod(total_ms, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{minutes}m {secs}s {millis}ms"


class ProfilingState:
    """Accumulated call durations keyed by method signature."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self._durations: Dict[str, float] = {}
        self._lock = threading.Lock()

        self.registry = registry or CollectorRegistry()
        self.histogram = Histogram(
            'wordcrawler_profiled_call_seconds',
            'Duration of profiled method calls',
            ['signature'],
            registry=self.registry
        )

    @staticmethod
    def signature(cls: type, method_name: str) -> str:
        return f"{cls.__module__}.{cls.__qualname__}#{method_name}"

    def record(self, cls: type, method_name: str, elapsed: float):
        """Add one call's elapsed time (seconds) to the signature's total."""
        if elapsed < 0:
            raise ValueError(f"Negative duration for {method_name}: {elapsed}")

        signature = self.signature(cls, method_name)
        with self._lock:
            self._durations[signature] = self._durations.get(signature, 0.0) + elapsed
        self.histogram.labels(signature=signature).observe(elapsed)

    def get_durations(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._durations)

    def write(self, stream: TextIO):
        """Write one line per signature, sorted by signature."""
        for signature, elapsed in sorted(self.get_durations().items()):
            stream.write(f"{signature} took {format_duration(elapsed)}\n")


class ProfiledProxy:
    """
    Transparent stand-in for a delegate.
    Profiled methods are timed; everything else is passed straight through.
    """

    def __init__(self, delegate: Any, state: ProfilingState, clock: Callable[[], float]):
        object.__setattr__(self, '_delegate', delegate)
        object.__setattr__(self, '_state', state)
        object.__setattr__(self, '_clock', clock)

    def __getattr__(self, name: str) -> Any:
        delegate = self._delegate
        attribute = getattr(delegate, name)

        if not is_profiled(getattr(type(delegate), name, None)):
            return attribute

        state = self._state
        clock = self._clock
        delegate_cls = type(delegate)

        if inspect.iscoroutinefunction(attribute):
            @functools.wraps(attribute)
            async def timed_coroutine(*args, **kwargs):
                start = clock()
                try:
                    return await attribute(*args, **kwargs)
                finally:
                    state.record(delegate_cls, name, clock() - start)
            return timed_coroutine

        @functools.wraps(attribute)
        def timed(*args, **kwargs):
            start = clock()
            try:
                return attribute(*args, **kwargs)
            finally:
                state.record(delegate_cls, name, clock() - start)
        return timed

    def __setattr__(self, name: str, value: Any):
        setattr(self._delegate, name, value)

    def __repr__(self) -> str:
        return f"ProfiledProxy({self._delegate!r})"


class Profiler:
    """Wraps components and flushes the timing data they accumulate."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self.clock = clock
        self.state = ProfilingState()
        self.start_time = datetime.now(timezone.utc)
        self.logger = logging.getLogger(__name__)

    def wrap(self, delegate: Any) -> Any:
        """
        Return a proxy for delegate that records the time spent in its @profiled methods.

        Raises:
            ValueError: if the delegate has no profiled methods
        """
        delegate_cls = type(delegate)
        if not any(is_profiled(getattr(delegate_cls, name, None)) for name in dir(delegate_cls)):
            raise ValueError(f"{delegate_cls.__qualname__} has no @profiled methods")

        return ProfiledProxy(delegate, self.state, self.clock)

    def write_stream(self, stream: TextIO):
        """Write the profiling data of this run to a text stream."""
        stream.write(f"Run at {format_datetime(self.start_time, usegmt=True)}\n")
        self.state.write(stream)
        stream.write("\n")

    def write_data(self, path: str):
        """Append the profiling data to a file, creating it if needed."""
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'a', encoding='utf-8') as f:
            self.write_stream(f)
        self.logger.info(f"Profile data written to {file_path}")

    def write_metrics(self, path: str):
        """Write profiled call histograms in Prometheus text format."""
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        write_to_textfile(str(file_path), self.state.registry)
        self.logger.info(f"Metrics written to {file_path}")
