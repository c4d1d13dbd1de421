# models/event.py

from extensions import db
from utils import utcnow, isoformat


class Event(db.Model):
    __tablename__ = 'events'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('admins.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Каскадное удаление голосований вместе с комнатой
    votes = db.relationship('Vote', backref='event', lazy=True, cascade="all, delete-orphan",
                            order_by='Vote.created_at')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'created_by': self.created_by,
            'created_at': isoformat(self.created_at),
        }
