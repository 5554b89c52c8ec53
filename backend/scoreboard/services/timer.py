"""Match clock arithmetic.

A match stores the seconds played in closed segments (``elapsed_seconds``)
and, while playing, the epoch time its current segment began
(``started_at``). Live elapsed time is always derived from those two.
"""

import time

from scoreboard.models import PLAYING


def segment_seconds(started_at, now) -> int:
    """Whole seconds in the running segment, never negative."""
    if started_at is None:
        return 0
    return max(0, int(now - started_at))


def live_elapsed(match, now=None) -> int:
    """Elapsed seconds for ``match`` as of ``now`` (epoch seconds)."""
    if now is None:
        now = time.time()
    accumulated = int(match.elapsed_seconds or 0)
    if match.status == PLAYING and match.started_at is not None:
        return accumulated + segment_seconds(match.started_at, now)
    return accumulated


def accumulate(match, now) -> int:
    """Accumulator value after closing the running segment at ``now``."""
    return int(match.elapsed_seconds or 0) + segment_seconds(match.started_at, now)
