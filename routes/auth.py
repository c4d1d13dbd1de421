# routes/auth.py
# Маршруты для авторизации администратора

from flask import Blueprint, session, jsonify
from models import Admin
from errors import ValidationError, IdentityError
from routes.payload import json_payload

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_payload(allow_form=True)
    admin_code = (data.get('code') or '').strip()
    if not admin_code:
        raise ValidationError('Пожалуйста, введите ваш код.')

    # Ищем администратора в базе данных по коду
    admin = Admin.query.filter_by(code=admin_code).first()
    if admin is None:
        raise IdentityError('Неверный код доступа. Попробуйте еще раз.')

    # Данные устройства (ID голосующего, токен судьи) не трогаем,
    # меняется только личность администратора
    session.pop('admin_id', None)
    session['admin_id'] = admin.id
    return jsonify({'id': admin.id, 'university_name': admin.university_name})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.pop('admin_id', None)
    return jsonify({'status': 'ok'})


@auth_bp.route('/me')
def me():
    admin_id = session.get('admin_id')
    if admin_id is None:
        return jsonify({'admin': None})
    admin = Admin.query.get(admin_id)
    if admin is None:
        session.pop('admin_id', None)
        return jsonify({'admin': None})
    return jsonify({'admin': {'id': admin.id, 'university_name': admin.university_name}})
