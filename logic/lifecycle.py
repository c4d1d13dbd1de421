# logic/lifecycle.py
# Жизненный цикл голосования: pending -> active -> finished

from collections import namedtuple

from flask import current_app
from sqlalchemy import exists, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from errors import ConflictError, NotFoundError, StateError, TransientError, ValidationError
from extensions import db, socketio
from logic.backend import backend_guard
from logic.live_feed import UPDATED, record_change
from models import Event, Judge, Vote, VoteAssignment
from models.vote import ACTIVE, FINISHED, PENDING
from utils import utcnow

# applied=False: переход уже сделал кто-то другой (другая вкладка админа или таймер)
Transition = namedtuple('Transition', ['vote', 'applied'])


def _reload(vote_id):
    return db.session.get(Vote, vote_id, populate_existing=True)


def create_vote(admin_id, event_id, title, duration, judge_ids, student_presenter=None):
    event = Event.query.filter_by(id=event_id, created_by=admin_id).first()
    if event is None:
        raise NotFoundError('Комната не найдена.', event_id=event_id)

    title = (title or '').strip()
    if not title:
        raise ValidationError('Название голосования обязательно.')
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise ValidationError('Длительность должна быть положительным числом секунд.')

    if not isinstance(judge_ids, (list, tuple)) or any(
            isinstance(judge_id, bool) or not isinstance(judge_id, int) for judge_id in judge_ids):
        raise ValidationError('Судьи передаются списком числовых ID.')

    required = current_app.config['JUDGES_PER_VOTE']
    judge_ids = list(judge_ids)
    distinct_ids = set(judge_ids)
    if len(judge_ids) != required or len(distinct_ids) != required:
        raise ConflictError(f'На голосование нужно назначить ровно {required} разных судей.',
                            judge_ids=judge_ids)

    with backend_guard('create_vote'):
        found = Judge.query.filter(Judge.id.in_(distinct_ids), Judge.admin_id == admin_id).count()
        if found != required:
            raise NotFoundError('Некоторые судьи не найдены.', judge_ids=judge_ids)

        vote = Vote(
            event_id=event.id,
            title=title,
            student_presenter=(student_presenter or '').strip() or None,
            duration=duration,
            status=PENDING,
        )
        vote.assignments = [VoteAssignment(judge_id=judge_id) for judge_id in judge_ids]
        db.session.add(vote)
        db.session.commit()

    current_app.logger.info('Vote %s "%s" created in event %s', vote.id, vote.title, event.id)
    return vote


def activate(vote_id):
    """
    Условная запись: "active, если сейчас pending и в комнате нет другого активного".
    Проигравший гонку видит 0 строк и принимает результат, если голосование уже активно.
    """
    log = current_app.logger
    with backend_guard('activate'):
        vote = db.session.get(Vote, vote_id)
        if vote is None:
            raise NotFoundError('Голосование не найдено.', vote_id=vote_id)

        sibling = aliased(Vote)
        statement = (
            update(Vote)
            .where(
                Vote.id == vote_id,
                Vote.status == PENDING,
                ~exists().where(sibling.event_id == vote.event_id, sibling.status == ACTIVE),
            )
            .values(status=ACTIVE, activated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            applied = db.session.execute(statement).rowcount == 1
        except IntegrityError:
            # Уникальный индекс поймал параллельную активацию соседа
            db.session.rollback()
            applied = False

        if applied:
            vote = _reload(vote_id)
            record_change(db.session, UPDATED, vote)
            db.session.commit()
        else:
            db.session.rollback()
            vote = _reload(vote_id)

    if applied:
        log.info('Vote %s activated for %s seconds', vote.id, vote.duration)
        arm_finish_timer(vote)
        return Transition(vote, True)

    if vote is None:
        raise NotFoundError('Голосование не найдено.', vote_id=vote_id)
    if vote.status == ACTIVE:
        log.info('Vote %s already active, activation by another actor', vote.id)
        return Transition(vote, False)
    if vote.status == FINISHED:
        raise StateError('Голосование уже завершено.', status=vote.status)

    active = Vote.query.filter_by(event_id=vote.event_id, status=ACTIVE).first()
    raise ConflictError(
        'В комнате уже идет другое голосование.',
        active_vote_id=active.id if active else None,
    )


def expire_or_finish(vote_id, reason='manual'):
    """Завершение идемпотентно: таймер и ручное завершение могут столкнуться."""
    log = current_app.logger
    with backend_guard('finish'):
        statement = (
            update(Vote)
            .where(Vote.id == vote_id, Vote.status == ACTIVE)
            .values(status=FINISHED, finished_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        applied = db.session.execute(statement).rowcount == 1
        if applied:
            vote = _reload(vote_id)
            record_change(db.session, UPDATED, vote)
            db.session.commit()
        else:
            db.session.rollback()
            vote = _reload(vote_id)

    if vote is None:
        raise NotFoundError('Голосование не найдено.', vote_id=vote_id)
    if applied:
        log.info('Vote %s finished (%s)', vote.id, reason)
        return Transition(vote, True)
    if vote.status == FINISHED:
        log.debug('Vote %s already finished, %s finish is a no-op', vote.id, reason)
        return Transition(vote, False)
    raise StateError('Нельзя завершить голосование, которое еще не началось.', status=vote.status)


finish = expire_or_finish


# --- Таймер завершения ---
# Таймер живет только в памяти процесса: после перезапуска голосование
# останется активным до ручного завершения или `flask expire-votes`.

def arm_finish_timer(vote):
    app = current_app._get_current_object()
    if not app.config.get('VOTE_TIMERS_ENABLED'):
        return None
    app.logger.debug('Finish timer armed for vote %s (%s s)', vote.id, vote.duration)
    return socketio.start_background_task(run_finish_timer, app, vote.id, vote.duration)


def run_finish_timer(app, vote_id, duration):
    socketio.sleep(duration)
    with app.app_context():
        try:
            expire_or_finish(vote_id, reason='timer')
        except NotFoundError:
            app.logger.warning('Vote %s was deleted before its timer fired', vote_id)
        except TransientError as e:
            app.logger.error('Timer could not finish vote %s: %s', vote_id, e)


def expire_overdue(now=None):
    """Завершает все активные голосования, у которых истек срок."""
    now = now or utcnow()
    finished = []
    for vote in Vote.query.filter_by(status=ACTIVE).all():
        if vote.deadline is not None and vote.deadline <= now:
            transition = expire_or_finish(vote.id, reason='deadline')
            if transition.applied:
                finished.append(transition.vote)
    return finished
