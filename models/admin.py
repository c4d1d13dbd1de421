# models/admin.py

from extensions import db
from utils import utcnow


class Admin(db.Model):
    __tablename__ = 'admins'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, nullable=False)
    university_name = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Админ владеет своими комнатами и судьями
    events = db.relationship('Event', backref='admin', lazy=True, cascade="all, delete-orphan")
    judges = db.relationship('Judge', backref='admin', lazy=True, cascade="all, delete-orphan")
