from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

import logic.lifecycle
from errors import ConflictError, NotFoundError, StateError, ValidationError
from extensions import db, socketio
from logic import activate, compute_result, create_vote, expire_or_finish, expire_overdue, finish
from logic.lifecycle import arm_finish_timer, run_finish_timer
from models import Event, Vote, VoteAssignment


def fresh(vote_id):
    return db.session.get(Vote, vote_id, populate_existing=True)


def test_vote_is_created_pending_with_three_judges(vote, judges):
    assert vote.status == 'pending'
    assert {a.judge_id for a in VoteAssignment.query.filter_by(vote_id=vote.id)} == {j.id for j in judges}


@pytest.mark.parametrize('pick', [
    lambda judges, outsider: [judges[0].id, judges[1].id],
    lambda judges, outsider: [j.id for j in judges] + [outsider.id],
    lambda judges, outsider: [judges[0].id, judges[0].id, judges[1].id],
])
def test_vote_needs_exactly_three_distinct_judges(admin, event, judges, outsider, pick):
    with pytest.raises(ConflictError):
        create_vote(admin.id, event.id, 'Proyecto', 60, pick(judges, outsider))
    assert Vote.query.count() == 0


def test_vote_rejects_foreign_judges(admin, event, judges):
    with pytest.raises(NotFoundError):
        create_vote(admin.id, event.id, 'Proyecto', 60, [judges[0].id, judges[1].id, 999])


@pytest.mark.parametrize('title, duration', [('', 60), ('   ', 60), ('Proyecto', 0), ('Proyecto', -1), ('Proyecto', '60')])
def test_vote_fields_are_validated(admin, event, judges, title, duration):
    with pytest.raises(ValidationError):
        create_vote(admin.id, event.id, title, duration, [j.id for j in judges])


def test_vote_requires_own_event(event, judges):
    with pytest.raises(NotFoundError):
        create_vote(event.created_by + 1, event.id, 'Proyecto', 60, [j.id for j in judges])


def test_activate_sets_status_and_timestamp(vote):
    transition = activate(vote.id)
    assert transition.applied
    assert transition.vote.status == 'active'
    assert transition.vote.activated_at is not None
    assert transition.vote.deadline == transition.vote.activated_at + timedelta(seconds=15)


def test_second_activation_observes_already_active(vote):
    # Две вкладки админа активируют одно голосование: выигрывает одна
    first = activate(vote.id)
    second = activate(vote.id)
    assert first.applied
    assert not second.applied
    assert second.vote.status == 'active'


def test_only_one_active_vote_per_event(admin, event, judges, vote):
    other = create_vote(admin.id, event.id, 'Otro', 30, [j.id for j in judges])
    activate(vote.id)

    with pytest.raises(ConflictError) as exc:
        activate(other.id)
    assert exc.value.details['active_vote_id'] == vote.id
    assert fresh(other.id).status == 'pending'

    finish(vote.id)
    assert activate(other.id).applied


def test_votes_in_different_events_are_independent(admin, event, judges, vote):
    other_event = Event(name='Otra sala', created_by=admin.id)
    db.session.add(other_event)
    db.session.commit()
    other = create_vote(admin.id, other_event.id, 'Otro', 30, [j.id for j in judges])

    assert activate(vote.id).applied
    assert activate(other.id).applied


def test_storage_rejects_two_active_votes(admin, event, judges, vote):
    other = create_vote(admin.id, event.id, 'Otro', 30, [j.id for j in judges])
    vote.status = 'active'
    other.status = 'active'
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_cannot_reactivate_finished_vote(active_vote):
    finish(active_vote.id)
    with pytest.raises(StateError):
        activate(active_vote.id)


def test_finish_is_idempotent(active_vote):
    first = expire_or_finish(active_vote.id)
    finished_at = first.vote.finished_at
    second = expire_or_finish(active_vote.id, reason='timer')

    assert first.applied and not second.applied
    assert second.vote.status == 'finished'
    assert second.vote.finished_at == finished_at


def test_cannot_skip_active(vote):
    with pytest.raises(StateError):
        finish(vote.id)
    assert fresh(vote.id).status == 'pending'


def test_unknown_vote(app):
    with pytest.raises(NotFoundError):
        activate(404)
    with pytest.raises(NotFoundError):
        finish(404)


def test_deadline_expiry_with_no_submissions(active_vote):
    vote = fresh(active_vote.id)
    assert expire_overdue(now=vote.activated_at + timedelta(seconds=14)) == []
    assert fresh(vote.id).status == 'active'

    finished = expire_overdue(now=vote.activated_at + timedelta(seconds=15))
    assert [v.id for v in finished] == [vote.id]
    assert fresh(vote.id).status == 'finished'

    result = compute_result(vote.id)
    assert (result.judge_points, result.public_points, result.total) == (0, 0, 0)


def test_timer_finishes_vote(app, active_vote):
    run_finish_timer(app, active_vote.id, 0)
    assert fresh(active_vote.id).status == 'finished'

    # Таймер после ручного завершения ничего не ломает
    run_finish_timer(app, active_vote.id, 0)
    assert fresh(active_vote.id).status == 'finished'


def test_timer_for_deleted_vote_is_logged(app, active_vote):
    db.session.delete(fresh(active_vote.id))
    db.session.commit()
    run_finish_timer(app, active_vote.id, 0)


def test_activation_arms_timer_when_enabled(app, vote, monkeypatch):
    started = []
    monkeypatch.setattr(socketio, 'start_background_task', lambda *args: started.append(args))
    app.config['VOTE_TIMERS_ENABLED'] = True

    activate(vote.id)
    assert started == [(run_finish_timer, app, vote.id, 15)]


def test_timer_disabled_in_tests(vote, monkeypatch):
    monkeypatch.setattr(logic.lifecycle.socketio, 'start_background_task',
                        lambda *args: pytest.fail('timer should not start'))
    assert arm_finish_timer(fresh(vote.id)) is None


@pytest.mark.parametrize('judge_ids', [None, '123', 5, {'a': 1}, ['1', '2', '3'], [True, 2, 3], [1, 2, {'id': 3}]])
def test_judge_ids_must_be_a_list_of_ids(admin, event, judges, judge_ids):
    with pytest.raises(ValidationError):
        create_vote(admin.id, event.id, 'Proyecto', 60, judge_ids)
    assert Vote.query.count() == 0
