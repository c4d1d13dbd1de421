import pytest

from app import create_app
from config import TestConfig
from extensions import db, socketio
from logic import ClientCredentials, activate, create_vote
from models import Admin, Event, Judge
from models.judge import INVITE_CLAIMED
from utils import new_invite_token, new_voter_id


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def socket_client(app, client):
    sio = socketio.test_client(app, flask_test_client=client)
    yield sio
    if sio.is_connected():
        sio.disconnect()


def make_judge(admin, name, claimed=True):
    judge = Judge(admin_id=admin.id, name=name, invite_token=new_invite_token())
    if claimed:
        judge.status = INVITE_CLAIMED
        judge.device_voter_id = new_voter_id()
    db.session.add(judge)
    db.session.commit()
    return judge


@pytest.fixture
def admin(app):
    admin = Admin(code='000001', university_name='Universidad de Prueba')
    db.session.add(admin)
    db.session.commit()
    return admin


@pytest.fixture
def event(admin):
    event = Event(name='Feria de proyectos', created_by=admin.id)
    db.session.add(event)
    db.session.commit()
    return event


@pytest.fixture
def judges(admin):
    return [make_judge(admin, f'Juez {n}') for n in (1, 2, 3)]


@pytest.fixture
def outsider(admin):
    # Судья, принявший приглашение, но не назначенный на голосование
    return make_judge(admin, 'Juez suplente')


@pytest.fixture
def vote(admin, event, judges):
    return create_vote(admin.id, event.id, 'Robot clasificador', 15, [j.id for j in judges],
                       student_presenter='Ana García')


@pytest.fixture
def active_vote(vote):
    activate(vote.id)
    return vote


@pytest.fixture
def judge_credentials(judges):
    return [ClientCredentials(voter_id=j.device_voter_id, judge_token=j.invite_token) for j in judges]
