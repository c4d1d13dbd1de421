# models/vote_assignment.py

from extensions import db


class VoteAssignment(db.Model):
    __tablename__ = 'vote_assignments'
    id = db.Column(db.Integer, primary_key=True)
    vote_id = db.Column(db.Integer, db.ForeignKey('votes.id', ondelete='CASCADE'), nullable=False)
    judge_id = db.Column(db.Integer, db.ForeignKey('judges.id'), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('vote_id', 'judge_id', name='unique_vote_judge'),
    )
