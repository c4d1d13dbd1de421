# utils.py
# Мелкие помощники без зависимостей от приложения

import secrets
import uuid
from datetime import datetime, timezone


def utcnow():
    # Наивное UTC-время: SQLite не хранит часовой пояс
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_invite_token():
    return secrets.token_urlsafe(24)


def new_voter_id():
    return str(uuid.uuid4())


def isoformat(value):
    return value.isoformat() if value else None
