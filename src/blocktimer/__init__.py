"""blocktimer: Scoped wall-clock timers for ad-hoc performance debugging.

Provides:
- BlockTimer: Timer that prints "<label>: <elapsed>" to stderr exactly once,
  when stopped or when its scope ends
- PrettyDuration: Duration rendered in its coarsest unit (1.2s, 3.4ms, 5us, 6ns)
- block_timer: Convenience context manager yielding a running BlockTimer
- nanos_from_duration: Normalize an int/timedelta duration to nanoseconds

Usage:
    from blocktimer import BlockTimer

    with BlockTimer("load dataset"):
        data = load()
    # stderr: "load dataset: 1.2s"

Debug events are logged via loguru and disabled by default; call
``logger.enable("blocktimer")`` to see them.
"""

from loguru import logger

from blocktimer._core import (
    BlockTimer,
    PrettyDuration,
    TextSink,
    block_timer,
    nanos_from_duration,
)

logger.disable("blocktimer")

__all__ = [
    "BlockTimer",
    "PrettyDuration",
    "TextSink",
    "block_timer",
    "nanos_from_duration",
]

__version__ = "0.1.0"
