# routes/main.py
# Публичная часть: комната, роль, голос, итоги, приглашение судьи

from flask import Blueprint, session, jsonify, url_for

from logic import (
    ClientCredentials, claim_invitation, compute_result, describe_invitation,
    has_voted, mint_voter_id, resolve_role, room_snapshot, submit,
)
from routes.payload import json_payload


main_bp = Blueprint('main', __name__)


def current_credentials():
    return ClientCredentials.from_session(session)


def ensure_device_identity():
    # Новый анонимный ID выдается один раз, если устройство еще никак не опознано
    if not session.get('judge_token') and not session.get('voter_id'):
        session['voter_id'] = mint_voter_id()
        session.permanent = True
    return current_credentials()


@main_bp.route('/rooms/<int:event_id>')
def room(event_id):
    ensure_device_identity()
    snapshot = room_snapshot(event_id)
    snapshot['share_url'] = url_for('main.room', event_id=event_id, _external=True)
    return jsonify(snapshot)


@main_bp.route('/votes/<int:vote_id>/role')
def vote_role(vote_id):
    role = resolve_role(vote_id, current_credentials())
    return jsonify({
        'vote_id': vote_id,
        'role': role.kind,
        'has_voted': has_voted(vote_id, role),
    })


@main_bp.route('/votes/<int:vote_id>/submissions', methods=['POST'])
def submit_vote(vote_id):
    data = json_payload()
    role = resolve_role(vote_id, current_credentials())
    # Повторный голос вернет 409 с already_voted=true, клиент покажет "голос уже принят"
    submit(vote_id, role, data.get('score'))
    return jsonify({'vote_id': vote_id, 'role': role.kind, 'has_voted': True}), 201


@main_bp.route('/votes/<int:vote_id>/results')
def vote_results(vote_id):
    return jsonify(compute_result(vote_id)._asdict())


@main_bp.route('/invite/<token>')
def invitation(token):
    return jsonify(describe_invitation(token))


@main_bp.route('/invite/<token>/accept', methods=['POST'])
def accept_invitation(token):
    judge = claim_invitation(token)
    # Сохраняем личность судьи и его анонимный ID на устройстве
    session['judge_token'] = token
    session['voter_id'] = judge.device_voter_id
    session.permanent = True
    return jsonify({'status': judge.status, 'name': judge.name})
