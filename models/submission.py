# models/submission.py

from sqlalchemy import CheckConstraint

from extensions import db
from utils import utcnow

MIN_SCORE = 1.0
MAX_SCORE = 10.0


class JudgeSubmission(db.Model):
    __tablename__ = 'submissions_judge'
    id = db.Column(db.Integer, primary_key=True)
    vote_id = db.Column(db.Integer, db.ForeignKey('votes.id', ondelete='CASCADE'), nullable=False)
    judge_id = db.Column(db.Integer, db.ForeignKey('judges.id'), nullable=False)
    score = db.Column(db.Float, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint('vote_id', 'judge_id', name='unique_judge_submission'),
        CheckConstraint("score >= 1 AND score <= 10", name="check_judge_score"),
    )


class PublicSubmission(db.Model):
    __tablename__ = 'submissions_normal'
    id = db.Column(db.Integer, primary_key=True)
    vote_id = db.Column(db.Integer, db.ForeignKey('votes.id', ondelete='CASCADE'), nullable=False)
    voter_id = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Float, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint('vote_id', 'voter_id', name='unique_public_submission'),
        CheckConstraint("score >= 1 AND score <= 10", name="check_public_score"),
    )
