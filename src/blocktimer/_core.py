"""Core block timing utilities.

Design by Contract:
- Durations MUST be non-negative (crash if negative)
- Each BlockTimer reports exactly once
- No hidden state (sink and clock are explicit keyword arguments)

Public classes and functions use beartype for runtime type enforcement.
Debug events go through loguru; the report line itself is written straight
to the diagnostic stream.
"""

import sys
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol, runtime_checkable

from beartype import beartype
from loguru import logger

NANOS_PER_SEC = 1_000_000_000
NANOS_PER_MILLI = 1_000_000
NANOS_PER_MICRO = 1_000


@runtime_checkable
class TextSink(Protocol):
    """Anything a report line can be written to (sys.stderr, StringIO)."""

    def write(self, text: str, /) -> Any: ...

    def flush(self) -> None: ...


@beartype
def nanos_from_duration(duration: int | timedelta) -> int:
    """Normalize a duration to a total nanosecond count."""
    assert not isinstance(duration, bool), f"Duration must not be a bool: {duration!r}"
    if isinstance(duration, timedelta):
        whole_secs = duration.days * 86_400 + duration.seconds
        return whole_secs * NANOS_PER_SEC + duration.microseconds * NANOS_PER_MICRO
    return duration


@dataclass(frozen=True)
class PrettyDuration:
    """Human-readable decomposition of a duration.

    Attributes:
        secs: Whole seconds
        millis: Residual milliseconds (0-999)
        micros: Residual microseconds (0-999)
        nanos: Residual nanoseconds (0-999)

    Rendering (``str()``) picks the coarsest non-zero field:

        >>> str(PrettyDuration.from_nanos(2_340_000))
        '2.3ms'

    The single decimal digit is truncated, never rounded, so 1.99s renders
    as ``1.9s``.
    """

    secs: int
    millis: int
    micros: int
    nanos: int

    def __post_init__(self) -> None:
        assert self.secs >= 0, f"Seconds must be non-negative: {self.secs}"
        for name in ("millis", "micros", "nanos"):
            value = getattr(self, name)
            assert 0 <= value <= 999, f"{name} must be in 0-999: {value}"

    @classmethod
    @beartype
    def from_nanos(cls, total_nanos: int) -> "PrettyDuration":
        assert not isinstance(total_nanos, bool), f"Duration must not be a bool: {total_nanos!r}"
        assert total_nanos >= 0, f"Duration must be non-negative: {total_nanos}ns"

        secs, rest = divmod(total_nanos, NANOS_PER_SEC)
        millis, rest = divmod(rest, NANOS_PER_MILLI)
        micros, nanos = divmod(rest, NANOS_PER_MICRO)
        return cls(secs=secs, millis=millis, micros=micros, nanos=nanos)

    @classmethod
    @beartype
    def from_duration(cls, duration: int | timedelta) -> "PrettyDuration":
        """Build from an ``int`` nanosecond count or a ``timedelta``."""
        return cls.from_nanos(nanos_from_duration(duration))

    @property
    def total_nanos(self) -> int:
        return (
            self.secs * NANOS_PER_SEC
            + self.millis * NANOS_PER_MILLI
            + self.micros * NANOS_PER_MICRO
            + self.nanos
        )

    def __str__(self) -> str:
        if self.secs > 0:
            return f"{self.secs}.{self.millis // 100}s"
        if self.millis > 0:
            return f"{self.millis}.{self.micros // 100}ms"
        if self.micros > 0:
            return f"{self.micros}us"
        return f"{self.nanos}ns"


class BlockTimer:
    """Timer for debugging that reports once when stopped or out of scope.

    The line ``"<label>: <elapsed>"`` is written to the diagnostic stream on
    the first of: an explicit ``stop()``, leaving a ``with`` block, or the
    instance being garbage collected.

    Args:
        label: Text identifying the measured block
        sink: Text stream for the report; None means sys.stderr at report time
        clock: Monotonic clock returning nanoseconds (default: perf_counter_ns)

    Example:
        with BlockTimer("load"):
            data = load()

        timer = BlockTimer(f"chunk {i}")
        process(chunk)
        timer.stop()

    Design by Contract:
        - elapsed >= 0 (crashes if the clock went backwards)
        - stop() after the first call is a no-op
    """

    @beartype
    def __init__(
        self,
        label: str,
        *,
        sink: TextSink | None = None,
        clock: Callable[[], int] = time.perf_counter_ns,
    ) -> None:
        self.label: str = label
        self._sink = sink
        self._clock = clock
        self._elapsed: PrettyDuration | None = None
        self._start: int = clock()
        self._stopped: bool = False
        logger.debug(f"Timer started: {label!r}")

    @property
    def start(self) -> int:
        return self._start

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def elapsed(self) -> PrettyDuration | None:
        """Measured duration, or None while the timer is still running."""
        return self._elapsed

    def stop(self) -> None:
        """Stop the timer and write the report (first call only)."""
        if self._stopped:
            logger.debug(f"Timer {self.label!r} already stopped, ignoring")
            return
        self._stopped = True

        elapsed_ns = self._clock() - self._start
        assert elapsed_ns >= 0, (
            f"Elapsed time cannot be negative: {elapsed_ns}ns. "
            f"Clock went backwards or timing bug."
        )
        self._elapsed = PrettyDuration.from_nanos(elapsed_ns)

        sink = self._sink if self._sink is not None else sys.stderr
        if sink is None:
            # Interpreter shutdown can leave sys.stderr unset
            logger.debug(f"No diagnostic stream for timer {self.label!r}")
            return
        sink.write(f"{self.label}: {self._elapsed}\n")
        sink.flush()

    def __enter__(self) -> "BlockTimer":
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()

    def __del__(self) -> None:
        # Instances rejected by beartype or a failing clock never finished __init__
        if getattr(self, "_stopped", True):
            return
        self.stop()

    def __repr__(self) -> str:
        state = "stopped" if self._stopped else "running"
        return f"BlockTimer({self.label!r}, {state})"


@beartype
@contextmanager
def block_timer(
    label: str,
    *,
    sink: TextSink | None = None,
    clock: Callable[[], int] = time.perf_counter_ns,
) -> Generator[BlockTimer, None, None]:
    """Context manager that times its block and reports on every exit path.

    Calling ``stop()`` on the yielded timer inside the block reports early;
    the exit path then does nothing.

    Args:
        label: Text identifying the measured block
        sink: Text stream for the report; None means sys.stderr
        clock: Monotonic clock returning nanoseconds (default: perf_counter_ns)

    Yields:
        The running BlockTimer
    """
    timer = BlockTimer(label, sink=sink, clock=clock)
    try:
        yield timer
    finally:
        timer.stop()
