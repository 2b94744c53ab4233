import threading

import pytest
from sqlalchemy.exc import OperationalError

from gamehub import db
from gamehub.models import GameStat, LeaderboardEntry, User
from gamehub.services import ErrorKind, ScoreLedger
from gamehub.services import scores as score_module

GAMES = ['2048', 'tetris']


def _ledger():
    return ScoreLedger(db.session, GAMES, max_score=1_000_000)


def _stat(user, game_type):
    return GameStat.query.filter_by(user_id=user.user_id, game_type=game_type).one()


def _total_points(user):
    return db.session.get(User, user.id).total_points


def _sum_of_bests(user):
    return sum(s.best_score for s in GameStat.query.filter_by(user_id=user.user_id))


def test_signup_creates_zeroed_stats_per_game(flask_app, make_user):
    alice = make_user('alice')
    stats = GameStat.query.filter_by(user_id=alice.user_id).all()
    assert sorted(s.game_type for s in stats) == GAMES
    assert all(s.best_score == 0 and s.games_played == 0 for s in stats)
    assert alice.total_points == 0


def test_alice_2048_scenario(flask_app, make_user):
    alice = make_user('alice')
    ledger = _ledger()

    first = ledger.submit_score(alice.user_id, '2048', 500)
    assert first.value == {'isNewBest': True, 'previousBest': 0, 'newScore': 500}
    second = ledger.submit_score(alice.user_id, '2048', 300)
    assert second.value == {'isNewBest': False, 'previousBest': 500, 'newScore': 300}
    third = ledger.submit_score(alice.user_id, '2048', 900)
    assert third.value == {'isNewBest': True, 'previousBest': 500, 'newScore': 900}

    stat = _stat(alice, '2048')
    assert stat.best_score == 900
    assert stat.games_played == 3
    assert _total_points(alice) == 900
    assert LeaderboardEntry.query.filter_by(user_id=alice.user_id, game_type='2048').count() == 3


def test_best_is_max_and_total_is_sum_after_every_submission(flask_app, make_user):
    alice = make_user('alice')
    ledger = _ledger()
    submissions = [('2048', 120), ('tetris', 40), ('2048', 80), ('tetris', 400), ('2048', 120), ('tetris', 0)]

    seen = {}
    for game_type, score in submissions:
        assert ledger.submit_score(alice.user_id, game_type, score).ok
        seen.setdefault(game_type, []).append(score)
        stat = _stat(alice, game_type)
        assert stat.best_score == max(seen[game_type])
        assert stat.games_played == len(seen[game_type])
        assert _total_points(alice) == _sum_of_bests(alice)

    assert _total_points(alice) == 120 + 400


def test_equal_score_is_not_a_new_best(flask_app, make_user):
    alice = make_user('alice')
    ledger = _ledger()
    ledger.submit_score(alice.user_id, 'tetris', 250)
    again = ledger.submit_score(alice.user_id, 'tetris', 250)
    assert again.value['isNewBest'] is False
    assert again.value['previousBest'] == 250


def test_missing_stats_row_is_created(flask_app, make_user):
    alice = make_user('alice')
    GameStat.query.filter_by(user_id=alice.user_id, game_type='tetris').delete()
    db.session.commit()

    result = _ledger().submit_score(alice.user_id, 'tetris', 70)
    assert result.value == {'isNewBest': True, 'previousBest': 0, 'newScore': 70}
    stat = _stat(alice, 'tetris')
    assert (stat.best_score, stat.games_played) == (70, 1)
    assert _total_points(alice) == 70


@pytest.mark.parametrize('game_type,score', [
    (None, 10),
    ('2048', None),
    ('chess', 10),
    ('2048', -1),
    ('2048', 1_000_001),
    ('2048', 10.5),
    ('2048', '100'),
    ('2048', True),
])
def test_invalid_submissions_are_rejected_without_writes(flask_app, make_user, game_type, score):
    alice = make_user('alice')
    result = _ledger().submit_score(alice.user_id, game_type, score)
    assert not result.ok
    assert result.error is ErrorKind.VALIDATION_ERROR
    assert LeaderboardEntry.query.count() == 0
    assert _stat(alice, '2048').games_played == 0


def test_integral_float_score_is_accepted(flask_app, make_user):
    alice = make_user('alice')
    result = _ledger().submit_score(alice.user_id, '2048', 64.0)
    assert result.ok
    assert result.value['newScore'] == 64


def test_storage_failure_leaves_no_partial_writes(flask_app, make_user, monkeypatch):
    alice = make_user('alice')
    ledger = _ledger()
    ledger.submit_score(alice.user_id, '2048', 100)

    def boom(self, user_id):
        raise OperationalError('UPDATE users ...', {}, Exception('connection lost'))

    monkeypatch.setattr(ScoreLedger, '_recompute_total_points', boom)
    result = ledger.submit_score(alice.user_id, '2048', 5000)

    assert not result.ok
    assert result.error is ErrorKind.SERVER_ERROR
    assert result.message == 'Server error'
    stat = _stat(alice, '2048')
    assert (stat.best_score, stat.games_played) == (100, 1)
    assert LeaderboardEntry.query.filter_by(user_id=alice.user_id).count() == 1
    assert _total_points(alice) == 100


def test_unknown_user_is_not_found(flask_app):
    result = _ledger().submit_score('user_0_missing', '2048', 10)
    assert not result.ok
    assert result.error is ErrorKind.NOT_FOUND
    assert LeaderboardEntry.query.count() == 0


def test_concurrent_submissions_for_one_user_stay_consistent(tmp_path):
    from gamehub import create_app
    from gamehub.api.helpers import credential_store
    from conftest import TestConfig

    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'scores.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'check_same_thread': False, 'timeout': 30}}

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
        alice = credential_store().register('alice', 'alice@example.com', 'pw', '0x' + '1' * 40).value
        user_id = alice.user_id

    scores = list(range(1, 41))
    errors = []

    def worker(chunk):
        with app.app_context():
            ledger = ScoreLedger(db.session, GAMES, max_score=1_000_000)
            for score in chunk:
                result = ledger.submit_score(user_id, '2048', score)
                if not result.ok:
                    errors.append(result)
            db.session.remove()

    threads = [threading.Thread(target=worker, args=(scores[i::4],)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    with app.app_context():
        assert errors == []
        stat = GameStat.query.filter_by(user_id=user_id, game_type='2048').one()
        assert stat.best_score == 40
        assert stat.games_played == 40
        assert LeaderboardEntry.query.filter_by(user_id=user_id).count() == 40
        assert User.query.filter_by(user_id=user_id).one().total_points == 40
        db.session.remove()
        db.drop_all()


def test_total_points_exceeds_32_bits(flask_app, make_user):
    alice = make_user('alice')
    ledger = ScoreLedger(db.session, GAMES, max_score=2_000_000_000)
    assert ledger.submit_score(alice.user_id, '2048', 2_000_000_000).ok
    assert ledger.submit_score(alice.user_id, 'tetris', 2_000_000_000).ok
    assert _total_points(alice) == 4_000_000_000
    assert isinstance(User.__table__.c.total_points.type, db.BigInteger)


def test_submit_lock_is_released_from_registry(flask_app, make_user):
    alice = make_user('alice')
    assert _ledger().submit_score(alice.user_id, '2048', 10).ok
    assert alice.user_id not in score_module._user_locks
