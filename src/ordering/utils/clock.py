"""Clock used for every timestamp the ordering context records.

Provides now() / set_clock() / reset_clock() so tests can pin "now"
instead of patching datetime.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def _system_clock() -> datetime:
    return datetime.now(UTC)


_current_clock: Clock = _system_clock


def now() -> datetime:
    """Return the current time from the active clock."""
    return _current_clock()


def set_clock(clock: Clock) -> None:
    """Override the active clock (useful for tests)."""
    global _current_clock
    _current_clock = clock


def reset_clock() -> None:
    """Reset to the system clock."""
    global _current_clock
    _current_clock = _system_clock
