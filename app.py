# app.py
# Основной файл Flask-приложения с использованием паттерна Application Factory

import click
from flask import Flask, jsonify

from config import Config
from errors import VotingError
from extensions import db, migrate, socketio
from logic.live_feed import live_feed

# Важно импортировать модели здесь, чтобы Alembic (Migrate) мог их видеть
from models import Admin, Event, Vote, Judge, VoteAssignment, JudgeSubmission, PublicSubmission


def create_app(config_class=Config):
    # Создаем экземпляр приложения
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # --- Инициализируем расширения С ПРИЛОЖЕНИЕМ ---
    db.init_app(app)
    migrate.init_app(app, db)
    socketio.init_app(app, async_mode=app.config['SOCKETIO_ASYNC_MODE'])
    live_feed.init_app(app)

    # --- Регистрируем наши Blueprints (маршруты) ---
    from routes.auth import auth_bp
    from routes.main import main_bp
    from routes.admin import admin_bp
    from routes.live import register_live_handlers

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)
    # Каждое приложение получает свой сервер Socket.IO, обработчики нужны на каждом
    register_live_handlers(socketio)

    @app.errorhandler(VotingError)
    def handle_voting_error(error):
        app.logger.info('%s: %s', error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.cli.command('init-db')
    def init_db_command():
        """Создает таблицы без миграций."""
        db.create_all()
        click.echo('Database initialized.')

    @app.cli.command('expire-votes')
    def expire_votes_command():
        """Завершает активные голосования с истекшим сроком (таймеры не переживают перезапуск)."""
        from logic import expire_overdue
        finished = expire_overdue()
        for vote in finished:
            click.echo(f'Finished vote {vote.id} "{vote.title}"')
        click.echo(f'{len(finished)} vote(s) finished.')

    return app


if __name__ == '__main__':
    app = create_app()
    socketio.run(app, host='0.0.0.0', port=5000)
