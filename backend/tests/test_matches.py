import pytest

from scoreboard import db
from scoreboard.errors import NotFoundError, ValidationError
from scoreboard.models import FINISHED, Match, PAUSED, PLAYING, WAITING
from scoreboard.services import matches
from scoreboard.services.matches import COUNTER_MAX, Delta, MATCHES
from scoreboard.services.timer import live_elapsed


def test_create_defaults(broadcaster):
    match = matches.create_match({'title': ' Final ', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    assert match.id is not None
    assert match.title == 'Final'
    assert match.status == WAITING
    assert (match.score1, match.score2, match.minute, match.elapsed_seconds) == (0, 0, 0, 0)
    assert match.started_at is None
    assert match.players1 == [] and match.players2 == []
    assert broadcaster.published == [MATCHES]


@pytest.mark.parametrize('payload', [
    {'title': '', 'team1': 'Red', 'team2': 'Blue'},
    {'title': 'Final', 'team1': '   ', 'team2': 'Blue'},
    {'title': 'Final', 'team1': 'Red'},
    {'title': 'Final', 'team1': 'Red', 'team2': 'Red'},
    {'title': 'Final', 'team1': 'Red', 'team2': ' red '},
    {'title': 'Final', 'team1': 'Red', 'team2': 'Blue', 'status': 'halftime'},
])
def test_create_rejects_invalid(broadcaster, payload):
    with pytest.raises(ValidationError):
        matches.create_match(payload, broadcaster)
    assert broadcaster.published == []
    assert Match.query.count() == 0


def test_create_playing_starts_clock(broadcaster):
    match = matches.create_match(
        {'title': 'Final', 'team1': 'Red', 'team2': 'Blue', 'status': 'playing'}, broadcaster, now=500.0
    )
    assert match.status == PLAYING
    assert match.started_at == 500.0


def test_end_to_end_clock(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster, now=0.0)
    t0 = 1000.0
    matches.update_match(match.id, {'status': PLAYING}, broadcaster, now=t0)
    assert match.started_at == t0
    assert live_elapsed(match, t0 + 10) == 10

    matches.update_match(match.id, {'status': PAUSED}, broadcaster, now=t0 + 10)
    assert match.elapsed_seconds == 10
    assert match.started_at is None
    assert live_elapsed(match, t0 + 500) == 10

    matches.update_match(match.id, {'status': PLAYING}, broadcaster, now=t0 + 600)
    assert live_elapsed(match, t0 + 605) == 15


def test_playing_is_idempotent(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    matches.update_match(match.id, {'status': PLAYING}, broadcaster, now=100.0)
    matches.update_match(match.id, {'status': PLAYING}, broadcaster, now=150.0)
    assert match.started_at == 100.0


def test_finished_accumulates_and_can_resume(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    matches.update_match(match.id, {'status': PLAYING}, broadcaster, now=100.0)
    matches.update_match(match.id, {'status': FINISHED}, broadcaster, now=160.0)
    assert match.elapsed_seconds == 60
    assert match.started_at is None
    matches.update_match(match.id, {'status': PLAYING}, broadcaster, now=200.0)
    assert match.status == PLAYING
    assert live_elapsed(match, 210.0) == 70


def test_waiting_resets_clock(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    matches.update_match(match.id, {'status': PLAYING}, broadcaster, now=100.0)
    matches.update_match(match.id, {'status': WAITING}, broadcaster, now=130.0)
    assert match.elapsed_seconds == 0
    assert match.started_at is None


def test_segment_start_only_while_playing(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    sequence = [PLAYING, PAUSED, PAUSED, PLAYING, FINISHED, WAITING, PLAYING, PLAYING, FINISHED, PLAYING]
    for step, status in enumerate(sequence):
        matches.update_match(match.id, {'status': status}, broadcaster, now=100.0 + step * 7)
        assert (match.started_at is not None) == (match.status == PLAYING)


def test_scores_never_negative(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    for _ in range(5):
        matches.update_match(match.id, {'score1': 'decrement'}, broadcaster)
    assert match.score1 == 0
    matches.update_match(match.id, {'score1': 'increment', 'score2': 3}, broadcaster)
    assert (match.score1, match.score2) == (1, 3)
    matches.update_match(match.id, {'score2': -4}, broadcaster)
    assert match.score2 == 0


def test_minute_ignored_while_playing(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    matches.update_match(match.id, {'minute': 12}, broadcaster)
    assert match.minute == 12
    matches.update_match(match.id, {'status': PLAYING}, broadcaster, now=10.0)
    published = len(broadcaster.published)

    matches.update_match(match.id, {'minute': 'increment'}, broadcaster)
    assert match.minute == 12
    # Nothing else changed, so nothing was broadcast
    assert len(broadcaster.published) == published

    matches.update_match(match.id, {'status': PAUSED, 'minute': 40}, broadcaster, now=20.0)
    assert match.minute == 12
    matches.update_match(match.id, {'minute': 'decrement'}, broadcaster)
    assert match.minute == 11


def test_rosters_are_independent(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    matches.update_match(match.id, {'roster1': ['Ana', 'Luis'], 'roster2': 'Sam, Kim'}, broadcaster)
    matches.update_match(match.id, {'roster1': 'Ana, Luis, Eva'}, broadcaster)
    assert match.players1 == ['Ana', 'Luis', 'Eva']
    assert match.players2 == ['Sam', 'Kim']
    assert match.rosters == 'Ana, Luis, Eva|Sam, Kim'


def test_text_fields_and_no_op(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    matches.update_match(match.id, {'sanctions': 'Yellow #7', 'notes': 'Rain delay'}, broadcaster)
    assert (match.sanctions, match.notes) == ('Yellow #7', 'Rain delay')
    published = len(broadcaster.published)
    matches.update_match(match.id, {'id': match.id, 'unknown': 1}, broadcaster)
    assert len(broadcaster.published) == published


def test_invalid_update_changes_nothing(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    with pytest.raises(ValidationError):
        matches.update_match(match.id, {'score1': 'increment', 'status': 'bogus'}, broadcaster)
    db.session.refresh(match)
    assert match.score1 == 0


def test_update_missing_match(broadcaster):
    with pytest.raises(NotFoundError):
        matches.update_match(999, {'score1': 'increment'}, broadcaster)
    assert broadcaster.published == []


def test_delete_match(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    assert matches.delete_match(match.id, broadcaster) is True
    assert Match.query.count() == 0
    # Missing ids are ignored
    assert matches.delete_match(match.id, broadcaster) is False
    assert broadcaster.published == [MATCHES, MATCHES, MATCHES]


def test_list_orders_by_status_then_newest(broadcaster):
    def make(title, status):
        return matches.create_match({'title': title, 'team1': 'Red', 'team2': 'Blue', 'status': status},
                                    broadcaster, now=0.0)

    older_waiting = make('A', WAITING)
    playing = make('B', PLAYING)
    finished = make('C', FINISHED)
    paused = make('D', PAUSED)
    newer_waiting = make('E', WAITING)

    ordered = [m.id for m in matches.list_matches()]
    assert ordered == [playing.id, newer_waiting.id, older_waiting.id, finished.id, paused.id]


def test_any_playing(broadcaster):
    assert matches.any_playing() is False
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    matches.update_match(match.id, {'status': PLAYING}, broadcaster)
    assert matches.any_playing() is True


@pytest.mark.parametrize('raw, current, expected', [
    ('increment', 4, 5),
    ('decrement', 4, 3),
    ('decrement', 0, 0),
    (7, 4, 7),
    (-2, 4, 0),
    (3.0, 0, 3),
])
def test_delta_parse_and_apply(raw, current, expected):
    assert Delta.parse(raw).apply(current) == expected


@pytest.mark.parametrize('raw', [True, 'sideways', 2.5, None, [1], '9', '-3', 2 ** 31, 10 ** 20])
def test_delta_rejects_garbage(raw):
    with pytest.raises(ValidationError):
        Delta.parse(raw)


def test_oversized_score_is_rejected_before_commit(broadcaster):
    match = matches.create_match({'title': 'Final', 'team1': 'Red', 'team2': 'Blue'}, broadcaster)
    with pytest.raises(ValidationError):
        matches.update_match(match.id, {'score1': 10 ** 20}, broadcaster)
    assert db.session.get(Match, match.id).score1 == 0
    assert broadcaster.published == [MATCHES]


def test_increment_stops_at_counter_max():
    assert Delta.parse(COUNTER_MAX).apply(0) == COUNTER_MAX
    assert Delta.increment().apply(COUNTER_MAX) == COUNTER_MAX
