# routes/live.py
# Socket.IO: зрители комнаты получают снимок и затем поток vote_change

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from errors import NotFoundError
from logic.live_feed import event_room, room_snapshot


def _event_id(data):
    try:
        return int((data or {}).get('event_id'))
    except (TypeError, ValueError):
        return None


def join_event(data):
    event_id = _event_id(data)
    if event_id is None:
        emit('error', {'msg': 'Invalid event id'})
        return
    # Подписка до снимка: изменения после него придут через vote_change
    join_room(event_room(event_id))
    try:
        snapshot = room_snapshot(event_id)
    except NotFoundError as e:
        leave_room(event_room(event_id))
        emit('error', e.to_dict())
        return

    current_app.logger.info('Socket %s joined event %s', request.sid, event_id)
    emit('snapshot', snapshot, to=request.sid)


def leave_event(data):
    event_id = _event_id(data)
    if event_id is not None:
        leave_room(event_room(event_id))
        current_app.logger.info('Socket %s left event %s', request.sid, event_id)


def register_live_handlers(socketio):
    # Вызывается после socketio.init_app: обработчики вешаются на сервер текущего приложения
    socketio.on_event('join_event', join_event)
    socketio.on_event('leave_event', leave_event)
