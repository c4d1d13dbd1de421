# logic/scoring.py
# Подсчет итогового балла после завершения голосования

from collections import namedtuple

from flask import current_app

from errors import NotFoundError, ResultsUnavailable
from extensions import db
from logic.backend import backend_guard
from models import JudgeSubmission, PublicSubmission, Vote
from models.vote import FINISHED

VoteResult = namedtuple('VoteResult', [
    'vote_id',
    'judge_scores',
    'judge_points',
    'missing_judges',
    'public_count',
    'public_average',
    'public_points',
    'total',
])


def compute_result(vote_id):
    """
    Судьи: сумма оценок, до 10 баллов каждый (максимум 30).
    Публика: средняя оценка 1-10 идет в зачет как есть (максимум 10).
    Итог до 40. Не проголосовавший судья дает 0, без перенормировки.
    Результат нигде не сохраняется и считается на каждый запрос.
    """
    with backend_guard('compute_result'):
        vote = db.session.get(Vote, vote_id)
        if vote is None:
            raise NotFoundError('Голосование не найдено.', vote_id=vote_id)
        if vote.status != FINISHED:
            raise ResultsUnavailable('Результаты доступны только после завершения голосования.',
                                     status=vote.status)

        judge_scores = [
            score for (score,) in db.session.query(JudgeSubmission.score)
            .filter_by(vote_id=vote_id)
            .order_by(JudgeSubmission.submitted_at, JudgeSubmission.id)
        ]
        public_scores = [
            score for (score,) in db.session.query(PublicSubmission.score).filter_by(vote_id=vote_id)
        ]

    judge_points = sum(judge_scores)
    public_average = sum(public_scores) / len(public_scores) if public_scores else 0.0
    public_points = public_average
    total = judge_points + public_points

    result = VoteResult(
        vote_id=vote_id,
        judge_scores=judge_scores,
        judge_points=judge_points,
        missing_judges=max(0, current_app.config['JUDGES_PER_VOTE'] - len(judge_scores)),
        public_count=len(public_scores),
        public_average=public_average,
        public_points=public_points,
        total=total,
    )
    current_app.logger.debug('[vote %s] Result: %s', vote_id, result)
    return result
