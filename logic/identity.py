# logic/identity.py
# Определение роли устройства в конкретном голосовании

from collections import namedtuple

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from errors import ConflictError, NotFoundError
from extensions import db
from logic.backend import backend_guard
from models import Judge, JudgeSubmission, PublicSubmission, VoteAssignment
from models.judge import INVITE_CLAIMED, INVITE_PENDING
from utils import new_voter_id

JUDGE = 'judge'
PUBLIC = 'public'
UNRESOLVABLE = 'unresolvable'

Role = namedtuple('Role', ['kind', 'identity'])
UNRESOLVED = Role(UNRESOLVABLE, None)


class ClientCredentials(namedtuple('ClientCredentials', ['voter_id', 'judge_token'])):
    """То, что устройство хранит у себя: анонимный ID и, возможно, токен судьи."""
    __slots__ = ()

    def __new__(cls, voter_id=None, judge_token=None):
        return super().__new__(cls, voter_id or None, judge_token or None)

    @classmethod
    def from_session(cls, session):
        return cls(session.get('voter_id'), session.get('judge_token'))


def mint_voter_id():
    return new_voter_id()


def resolve_role(vote_id, credentials):
    """
    Возвращает ровно одну роль для (голосование, устройство):

    1. Токен принадлежит судье, принявшему приглашение:
       - судья назначен на голосование -> JUDGE с ID судьи;
       - не назначен -> PUBLIC с device_voter_id судьи, а не с анонимным ID,
         чтобы судья не проголосовал дважды под разными личностями.
    2. Есть анонимный ID -> PUBLIC.
    3. Иначе -> UNRESOLVABLE.

    Любая ошибка базы дает UNRESOLVABLE, но никогда не PUBLIC.
    """
    log = current_app.logger
    try:
        if credentials.judge_token:
            judge = Judge.query.filter_by(invite_token=credentials.judge_token, status=INVITE_CLAIMED).first()
            if judge is not None:
                return _role_for_judge(vote_id, judge)
            log.info('[vote %s] Judge token does not match a claimed judge', vote_id)

        if credentials.voter_id:
            log.debug('[vote %s] Public voter %s', vote_id, credentials.voter_id)
            return Role(PUBLIC, credentials.voter_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        log.warning('[vote %s] Role lookup failed, voting disabled: %s', vote_id, e)
        return UNRESOLVED

    log.warning('[vote %s] No voter id and no judge token', vote_id)
    return UNRESOLVED


def _role_for_judge(vote_id, judge):
    log = current_app.logger
    assigned = db.session.query(VoteAssignment.id).filter_by(
        vote_id=vote_id,
        judge_id=judge.id
    ).first() is not None

    if assigned:
        log.info('[vote %s] Judge %s is assigned', vote_id, judge.id)
        return Role(JUDGE, judge.id)

    if not judge.device_voter_id:
        log.error('[vote %s] Judge %s is not assigned and has no device voter id', vote_id, judge.id)
        return UNRESOLVED

    log.info('[vote %s] Judge %s is not assigned, voting as public %s', vote_id, judge.id, judge.device_voter_id)
    return Role(PUBLIC, judge.device_voter_id)


def has_voted(vote_id, role):
    if role.kind == JUDGE:
        query = JudgeSubmission.query.filter_by(vote_id=vote_id, judge_id=role.identity)
    elif role.kind == PUBLIC:
        query = PublicSubmission.query.filter_by(vote_id=vote_id, voter_id=role.identity)
    else:
        return False

    with backend_guard('has_voted'):
        return db.session.query(query.exists()).scalar()


def describe_invitation(token):
    judge = Judge.query.filter_by(invite_token=token).first()
    if judge is None:
        raise NotFoundError('Приглашение не найдено или недействительно.')
    return {
        'name': judge.name,
        'status': judge.status,
        'university_name': judge.admin.university_name,
    }


def claim_invitation(token):
    """
    Принимает приглашение один раз: pending -> claimed с новым device_voter_id.
    Запись условная, поэтому два одновременных принятия не пройдут оба.
    """
    device_voter_id = new_voter_id()
    with backend_guard('claim_invitation'):
        result = db.session.execute(
            update(Judge)
            .where(Judge.invite_token == token, Judge.status == INVITE_PENDING)
            .values(status=INVITE_CLAIMED, device_voter_id=device_voter_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            if Judge.query.filter_by(invite_token=token).first() is None:
                raise NotFoundError('Приглашение не найдено или недействительно.')
            raise ConflictError('Приглашение уже принято.')
        db.session.commit()

        judge = Judge.query.filter_by(invite_token=token).populate_existing().one()

    current_app.logger.info('Judge %s claimed invitation, device voter id %s', judge.id, device_voter_id)
    return judge
