# logic/backend.py
# Перевод ошибок SQLAlchemy в ошибки голосования

from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import StoreUnavailable
from extensions import db


@contextmanager
def backend_guard(action):
    """
    Откатывает сессию при сбое базы и поднимает StoreUnavailable.
    IntegrityError пробрасывается как есть: его смысл решает вызывающий код.
    """
    try:
        yield
    except IntegrityError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error('Backend failure during %s: %s', action, e)
        raise StoreUnavailable('База данных временно недоступна, попробуйте еще раз.') from e
