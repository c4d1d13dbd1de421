# config.py
# Конфигурация приложения Flask

import os
from datetime import timedelta


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    # Относительный путь SQLite Flask-SQLAlchemy кладет в папку instance
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///voting.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get('SECRET_KEY', 'your-secret-key-change-me')  # Замени на случайный ключ в продакшене

    # Жесткий таймаут на ожидание базы (секунды)
    DB_TIMEOUT = int(os.environ.get('DB_TIMEOUT', 10))
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'connect_args': (
            {'timeout': DB_TIMEOUT}
            if SQLALCHEMY_DATABASE_URI.startswith('sqlite')
            else {'connect_timeout': DB_TIMEOUT}
        ),
    }

    # Сессия-кука хранит анонимный ID устройства и токен судьи
    SESSION_PERMANENT = True
    PERMANENT_SESSION_LIFETIME = timedelta(days=365)

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Таймеры завершения голосования живут только в памяти процесса
    VOTE_TIMERS_ENABLED = _env_flag('VOTE_TIMERS_ENABLED', True)
    JUDGES_PER_VOTE = 3

    SOCKETIO_ASYNC_MODE = 'threading'


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    VOTE_TIMERS_ENABLED = False
    LOG_LEVEL = 'DEBUG'
