# logic/submissions.py
# Хранилище оценок: одна оценка на личность в каждом голосовании

import math
import numbers

from flask import current_app
from sqlalchemy import exists, insert, literal, select
from sqlalchemy.exc import IntegrityError

from errors import Duplicate, IdentityUnresolved, NotFoundError, OutOfRange, VoteNotActive
from extensions import db
from logic.backend import backend_guard
from logic.identity import JUDGE, PUBLIC
from models import JudgeSubmission, PublicSubmission, Vote
from models.submission import MIN_SCORE, MAX_SCORE
from models.vote import ACTIVE
from utils import utcnow


def validate_score(score):
    if isinstance(score, bool) or not isinstance(score, numbers.Real):
        raise OutOfRange(f'Оценка должна быть числом от {MIN_SCORE:g} до {MAX_SCORE:g}.')
    score = float(score)
    if math.isnan(score) or not MIN_SCORE <= score <= MAX_SCORE:
        raise OutOfRange(f'Оценка должна быть числом от {MIN_SCORE:g} до {MAX_SCORE:g}.', score=score)
    return score


def _insert_if_active(model, identity_column, vote_id, identity, score):
    # INSERT ... SELECT ... WHERE EXISTS: статус проверяется тем же оператором, что пишет оценку
    vote_is_active = exists().where(Vote.id == vote_id, Vote.status == ACTIVE)
    row = select(
        literal(vote_id), literal(identity), literal(score), literal(utcnow()),
    ).where(vote_is_active)
    statement = insert(model.__table__).from_select(
        ['vote_id', identity_column, 'score', 'submitted_at'], row,
    )
    return db.session.execute(statement).rowcount


def submit(vote_id, role, score):
    """
    Сохраняет оценку в таблицу судей или публики по роли.
    Повторная оценка той же личности -> Duplicate, первая не перезаписывается.
    """
    score = validate_score(score)
    if role is None or role.kind not in (JUDGE, PUBLIC) or not role.identity:
        raise IdentityUnresolved('Не удалось определить, кто голосует. Обновите страницу.')

    if role.kind == JUDGE:
        model, identity_column = JudgeSubmission, 'judge_id'
    else:
        model, identity_column = PublicSubmission, 'voter_id'

    with backend_guard('submit'):
        try:
            inserted = _insert_if_active(model, identity_column, vote_id, role.identity, score)
            if not inserted:
                # Читаем статус из базы, а не из кэша сессии
                status = db.session.execute(select(Vote.status).where(Vote.id == vote_id)).scalar()
                if status is None:
                    raise NotFoundError('Голосование не найдено.', vote_id=vote_id)
                raise VoteNotActive('Голосование сейчас не открыто.', status=status)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.info('[vote %s] Duplicate %s submission from %s', vote_id, role.kind, role.identity)
            raise Duplicate('Вы уже отправили свой голос за этот проект.')

        submission = model.query.filter_by(vote_id=vote_id, **{identity_column: role.identity}).one()

    current_app.logger.info('[vote %s] %s submission from %s: %.1f', vote_id, role.kind, role.identity, score)
    return submission
