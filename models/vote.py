# models/vote.py

from datetime import timedelta

from sqlalchemy import CheckConstraint, text

from extensions import db
from utils import utcnow, isoformat

PENDING = 'pending'
ACTIVE = 'active'
FINISHED = 'finished'

# Порядок статусов: переход возможен только вперед
STATUS_ORDER = {PENDING: 0, ACTIVE: 1, FINISHED: 2}


class Vote(db.Model):
    __tablename__ = 'votes'
    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    student_presenter = db.Column(db.String(200), nullable=True)
    duration = db.Column(db.Integer, nullable=False)  # секунды
    status = db.Column(db.String(20), nullable=False, default=PENDING)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    activated_at = db.Column(db.DateTime, nullable=True)
    finished_at = db.Column(db.DateTime, nullable=True)

    assignments = db.relationship('VoteAssignment', backref='vote', lazy=True, cascade="all, delete-orphan")
    judge_submissions = db.relationship('JudgeSubmission', backref='vote', lazy=True, cascade="all, delete-orphan")
    public_submissions = db.relationship('PublicSubmission', backref='vote', lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'active', 'finished')", name="check_vote_status"),
        CheckConstraint("duration > 0", name="check_vote_duration"),
        # Не более одного активного голосования в комнате, даже при гонке двух админов
        db.Index(
            'one_active_vote_per_event', 'event_id', unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    @property
    def deadline(self):
        if self.activated_at is None:
            return None
        return self.activated_at + timedelta(seconds=self.duration)

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'title': self.title,
            'student_presenter': self.student_presenter,
            'duration': self.duration,
            'status': self.status,
            'created_at': isoformat(self.created_at),
            'activated_at': isoformat(self.activated_at),
            'finished_at': isoformat(self.finished_at),
        }
