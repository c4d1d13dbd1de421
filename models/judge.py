# models/judge.py

from sqlalchemy import CheckConstraint

from extensions import db
from utils import utcnow, isoformat

INVITE_PENDING = 'pending'
INVITE_CLAIMED = 'claimed'


class Judge(db.Model):
    __tablename__ = 'judges'
    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, db.ForeignKey('admins.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    invite_token = db.Column(db.String(64), unique=True, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=INVITE_PENDING)
    # Анонимный ID устройства судьи, появляется только после принятия приглашения
    device_voter_id = db.Column(db.String(64), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Судья только упоминается в назначениях и оценках: удаление не должно их трогать
    assignments = db.relationship('VoteAssignment', backref='judge', lazy=True)
    submissions = db.relationship('JudgeSubmission', backref='judge', lazy=True)

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'claimed')", name="check_judge_status"),
        CheckConstraint("status = 'claimed' OR device_voter_id IS NULL", name="check_device_after_claim"),
    )

    @property
    def is_claimed(self):
        return self.status == INVITE_CLAIMED

    def to_dict(self, with_token=False):
        data = {
            'id': self.id,
            'name': self.name,
            'status': self.status,
            'created_at': isoformat(self.created_at),
        }
        if with_token:
            data['invite_token'] = self.invite_token
        return data
