from scoreboard.models import FINISHED, Match, PAUSED, PLAYING, WAITING
from scoreboard.services.timer import accumulate, live_elapsed, segment_seconds


def _match(status, elapsed=0, started_at=None):
    return Match(title='Final', team1='Red', team2='Blue', status=status,
                 elapsed_seconds=elapsed, started_at=started_at)


def test_playing_adds_running_segment():
    match = _match(PLAYING, elapsed=30, started_at=1000.0)
    assert live_elapsed(match, 1010.0) == 40


def test_partial_seconds_are_floored():
    match = _match(PLAYING, started_at=1000.0)
    assert live_elapsed(match, 1009.99) == 9


def test_not_playing_returns_accumulator():
    for status in (WAITING, PAUSED, FINISHED):
        assert live_elapsed(_match(status, elapsed=25), 99999.0) == 25


def test_clock_skew_is_clamped():
    match = _match(PLAYING, elapsed=12, started_at=2000.0)
    assert live_elapsed(match, 1990.0) == 12
    assert segment_seconds(2000.0, 1990.0) == 0


def test_monotonic_while_playing():
    match = _match(PLAYING, elapsed=5, started_at=1000.0)
    readings = [live_elapsed(match, 1000.0 + step * 0.4) for step in range(50)]
    assert readings == sorted(readings)


def test_unsaved_match_defaults_to_zero():
    match = Match(title='Final', team1='Red', team2='Blue', status=WAITING)
    assert live_elapsed(match, 1234.0) == 0


def test_accumulate_closes_segment():
    match = _match(PLAYING, elapsed=10, started_at=1000.0)
    assert accumulate(match, 1005.0) == 15
