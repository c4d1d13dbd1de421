# logic/live_feed.py
# Живая лента изменений голосований: создание, запуск, завершение, удаление.

import queue
import threading
from collections import namedtuple

from flask import current_app
from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session

from errors import NotFoundError
from extensions import db, socketio
from models import Event, Vote
from models.vote import STATUS_ORDER

CREATED = 'created'
UPDATED = 'updated'
DELETED = 'deleted'

VoteChange = namedtuple('VoteChange', ['kind', 'vote'])

# Ключ в session.info для изменений, ожидающих коммита
_PENDING_KEY = 'pending_vote_changes'
_CLOSED = object()


def event_room(event_id):
    return f'event::{event_id}'


def record_change(session, kind, vote):
    """Запоминает изменение до коммита. После отката оно пропадет."""
    session.info.setdefault(_PENDING_KEY, []).append(VoteChange(kind, vote.to_dict()))


class Subscription:
    """
    Подписка на изменения в комнате или в одном голосовании.
    Итерация бесконечна, пока подписку не закроют.
    """

    def __init__(self, feed, event_id=None, vote_id=None):
        self._feed = feed
        self._queue = queue.Queue()
        self.event_id = event_id
        self.vote_id = vote_id
        self.closed = False

    def matches(self, change):
        vote = change.vote
        if self.vote_id is not None and vote['id'] != self.vote_id:
            return False
        if self.event_id is not None and vote['event_id'] != self.event_id:
            return False
        return True

    def deliver(self, change):
        if not self.closed:
            self._queue.put(change)

    def get(self, timeout=None):
        # None означает: за timeout ничего не пришло или подписка закрыта
        if self.closed and self._queue.empty():
            return None
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        return None if item is _CLOSED else item

    def drain(self):
        changes = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return changes
            if item is not _CLOSED:
                changes.append(item)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._feed.unsubscribe(self)
        self._queue.put(_CLOSED)

    def __iter__(self):
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class LiveFeed:
    def __init__(self, app=None):
        self._subscribers = set()
        self._lock = threading.Lock()
        self._listening = False
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.extensions['live_feed'] = self
        if not self._listening:
            sa_event.listen(Session, 'after_flush', self._capture)
            sa_event.listen(Session, 'after_commit', self._flush_pending)
            sa_event.listen(Session, 'after_rollback', self._discard_pending)
            self._listening = True

    # --- Подписки ---

    def subscribe(self, event_id=None, vote_id=None):
        subscription = Subscription(self, event_id=event_id, vote_id=vote_id)
        with self._lock:
            self._subscribers.add(subscription)
        current_app.logger.debug('Live feed subscription opened (event=%s, vote=%s)', event_id, vote_id)
        return subscription

    def unsubscribe(self, subscription):
        with self._lock:
            self._subscribers.discard(subscription)

    @property
    def subscriber_count(self):
        with self._lock:
            return len(self._subscribers)

    # --- Публикация ---

    def publish(self, change):
        with self._lock:
            targets = [s for s in self._subscribers if s.matches(change)]
        for subscription in targets:
            subscription.deliver(change)

        socketio.emit(
            'vote_change',
            {'type': change.kind, 'vote': change.vote},
            to=event_room(change.vote['event_id']),
        )
        current_app.logger.debug('Vote %s %s -> %d local subscriber(s)',
                                 change.vote['id'], change.kind, len(targets))

    # --- Слушатели сессии SQLAlchemy ---

    def _capture(self, session, flush_context):
        for obj in session.new:
            if isinstance(obj, Vote):
                record_change(session, CREATED, obj)
        for obj in session.dirty:
            if isinstance(obj, Vote) and session.is_modified(obj, include_collections=False):
                record_change(session, UPDATED, obj)
        for obj in session.deleted:
            if isinstance(obj, Vote):
                record_change(session, DELETED, obj)

    def _flush_pending(self, session):
        for change in session.info.pop(_PENDING_KEY, []):
            self.publish(change)

    def _discard_pending(self, session):
        session.info.pop(_PENDING_KEY, None)


live_feed = LiveFeed()


class RoomView:
    """
    Локальное представление комнаты: снимок и идемпотентные upsert/remove.
    Уведомления могут прийти повторно или не по порядку.
    """

    def __init__(self, event_id, votes=()):
        self.event_id = event_id
        self.votes = {}
        self._removed = set()
        for vote in votes:
            self.upsert(vote)

    def apply(self, change):
        if change.kind == DELETED:
            return self.remove(change.vote['id'])
        return self.upsert(change.vote)

    def upsert(self, vote):
        if vote['event_id'] != self.event_id or vote['id'] in self._removed:
            return False
        current = self.votes.get(vote['id'])
        if current is not None:
            # Статус не может откатиться назад, значит уведомление устарело
            if STATUS_ORDER[vote['status']] < STATUS_ORDER[current['status']]:
                return False
            if current == vote:
                return False
        self.votes[vote['id']] = dict(vote)
        return True

    def remove(self, vote_id):
        self._removed.add(vote_id)
        return self.votes.pop(vote_id, None) is not None

    def ordered(self):
        return sorted(self.votes.values(), key=lambda v: (v['created_at'] or '', v['id']))

    def active_vote(self):
        for vote in self.votes.values():
            if vote['status'] == 'active':
                return vote
        return None


def room_snapshot(event_id):
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFoundError('Комната не найдена.', event_id=event_id)
    return {
        'event': event.to_dict(),
        'votes': [vote.to_dict() for vote in event.votes],
    }


def follow_room(event_id):
    """Сначала подписка, потом снимок: ни одно изменение не потеряется."""
    subscription = live_feed.subscribe(event_id=event_id)
    try:
        snapshot = room_snapshot(event_id)
    except NotFoundError:
        subscription.close()
        raise
    return RoomView(event_id, snapshot['votes']), subscription
