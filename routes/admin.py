# routes/admin.py

from functools import wraps

from flask import Blueprint, request, session, jsonify, url_for

from errors import ConflictError, IdentityError, NotFoundError, ValidationError
from extensions import db
from logic import activate, create_vote, finish
from logic.backend import backend_guard
from routes.payload import json_payload
from models import Admin, Event, Judge, Vote
from utils import new_invite_token


admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_id' not in session or Admin.query.get(session['admin_id']) is None:
            raise IdentityError('Для доступа необходимо войти как администратор.')
        return f(*args, **kwargs)
    return decorated_function


def _own_event(event_id):
    event = Event.query.filter_by(id=event_id, created_by=session['admin_id']).first()
    if event is None:
        raise NotFoundError('Комната не найдена.', event_id=event_id)
    return event


def _own_vote(vote_id):
    vote = Vote.query.join(Event).filter(
        Vote.id == vote_id,
        Event.created_by == session['admin_id']
    ).first()
    if vote is None:
        raise NotFoundError('Голосование не найдено.', vote_id=vote_id)
    return vote


# --- БЛОК CRUD для Event (комнаты) ---
@admin_bp.route('/events', methods=['GET', 'POST'])
@admin_required
def manage_events():
    if request.method == 'POST':
        name = (json_payload().get('name') or '').strip()
        if not name:
            raise ValidationError('Название комнаты обязательно.')
        event = Event(name=name, created_by=session['admin_id'])
        with backend_guard('create_event'):
            db.session.add(event)
            db.session.commit()
        data = event.to_dict()
        data['share_url'] = url_for('main.room', event_id=event.id, _external=True)
        return jsonify(data), 201

    events = Event.query.filter_by(created_by=session['admin_id']).order_by(Event.created_at.desc()).all()
    return jsonify([event.to_dict() for event in events])


@admin_bp.route('/events/<int:event_id>', methods=['DELETE'])
@admin_required
def delete_event(event_id):
    event = _own_event(event_id)
    # Благодаря 'cascade' в моделях голосования, назначения и оценки удалятся вместе с комнатой
    with backend_guard('delete_event'):
        db.session.delete(event)
        db.session.commit()
    return jsonify({'status': 'deleted', 'id': event_id})


# --- БЛОК CRUD для Judge ---
@admin_bp.route('/judges', methods=['GET', 'POST'])
@admin_required
def manage_judges():
    if request.method == 'POST':
        name = (json_payload().get('name') or '').strip()
        if not name:
            raise ValidationError('Имя судьи обязательно.')
        judge = Judge(admin_id=session['admin_id'], name=name, invite_token=new_invite_token())
        with backend_guard('create_judge'):
            db.session.add(judge)
            db.session.commit()
        data = judge.to_dict(with_token=True)
        data['invite_url'] = url_for('main.invitation', token=judge.invite_token, _external=True)
        return jsonify(data), 201

    judges = Judge.query.filter_by(admin_id=session['admin_id']).order_by(Judge.created_at).all()
    return jsonify([judge.to_dict(with_token=True) for judge in judges])


@admin_bp.route('/judges/<int:judge_id>', methods=['DELETE'])
@admin_required
def delete_judge(judge_id):
    judge = Judge.query.filter_by(id=judge_id, admin_id=session['admin_id']).first()
    if judge is None:
        raise NotFoundError('Судья не найден.', judge_id=judge_id)
    # Оценки неизменны: судью, уже назначенного на голосование, удалить нельзя
    if judge.assignments or judge.submissions:
        raise ConflictError('Судья уже назначен на голосование, удалить его нельзя.', judge_id=judge_id)
    with backend_guard('delete_judge'):
        db.session.delete(judge)
        db.session.commit()
    return jsonify({'status': 'deleted', 'id': judge_id})


# --- БЛОК голосований ---
@admin_bp.route('/events/<int:event_id>/votes', methods=['GET', 'POST'])
@admin_required
def manage_votes(event_id):
    event = _own_event(event_id)

    if request.method == 'POST':
        data = json_payload()
        vote = create_vote(
            admin_id=session['admin_id'],
            event_id=event.id,
            title=data.get('title'),
            duration=data.get('duration'),
            judge_ids=data.get('judge_ids'),
            student_presenter=data.get('student_presenter'),
        )
        return jsonify(vote.to_dict()), 201

    return jsonify([vote.to_dict() for vote in event.votes])


@admin_bp.route('/votes/<int:vote_id>/activate', methods=['POST'])
@admin_required
def activate_vote(vote_id):
    _own_vote(vote_id)
    transition = activate(vote_id)
    return jsonify({'vote': transition.vote.to_dict(), 'applied': transition.applied})


@admin_bp.route('/votes/<int:vote_id>/finish', methods=['POST'])
@admin_required
def finish_vote(vote_id):
    _own_vote(vote_id)
    transition = finish(vote_id, reason='manual')
    return jsonify({'vote': transition.vote.to_dict(), 'applied': transition.applied})
