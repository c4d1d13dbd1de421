import pytest
from sqlalchemy.exc import OperationalError

import logic.identity
from errors import ConflictError, NotFoundError
from extensions import db
from logic import (
    JUDGE, PUBLIC, UNRESOLVABLE, ClientCredentials,
    claim_invitation, describe_invitation, has_voted, resolve_role, submit,
)
from models import Judge


def test_assigned_judge_votes_as_judge(vote, judges, judge_credentials):
    role = resolve_role(vote.id, judge_credentials[0])
    assert role.kind == JUDGE
    assert role.identity == judges[0].id


def test_unassigned_judge_votes_with_device_id(vote, outsider):
    credentials = ClientCredentials(voter_id='raw-anonymous-id', judge_token=outsider.invite_token)
    role = resolve_role(vote.id, credentials)
    assert role.kind == PUBLIC
    # Никогда не сырой анонимный ID
    assert role.identity == outsider.device_voter_id


def test_anonymous_voter_is_public(vote):
    role = resolve_role(vote.id, ClientCredentials(voter_id='abc-123'))
    assert role == (PUBLIC, 'abc-123')


def test_no_credentials_is_unresolvable(vote):
    role = resolve_role(vote.id, ClientCredentials())
    assert role.kind == UNRESOLVABLE
    assert role.identity is None


def test_unknown_token_falls_back_to_voter_id(vote):
    role = resolve_role(vote.id, ClientCredentials(voter_id='abc-123', judge_token='nope'))
    assert role == (PUBLIC, 'abc-123')


def test_unclaimed_judge_token_is_not_a_judge(vote, admin):
    judge = Judge(admin_id=admin.id, name='Pendiente', invite_token='pending-token')
    db.session.add(judge)
    db.session.commit()

    assert resolve_role(vote.id, ClientCredentials(judge_token='pending-token')).kind == UNRESOLVABLE


def test_role_is_resolved_per_vote(admin, event, judges, outsider):
    from logic import create_vote

    first = create_vote(admin.id, event.id, 'Primero', 60, [j.id for j in judges])
    second = create_vote(admin.id, event.id, 'Segundo', 60, [judges[0].id, judges[1].id, outsider.id])
    credentials = ClientCredentials(judge_token=outsider.invite_token)

    assert resolve_role(first.id, credentials).kind == PUBLIC
    assert resolve_role(second.id, credentials) == (JUDGE, outsider.id)


def test_lookup_error_degrades_to_unresolvable(vote, judge_credentials, monkeypatch):
    def broken(vote_id, judge):
        raise OperationalError('SELECT', {}, Exception('database is gone'))

    monkeypatch.setattr(logic.identity, '_role_for_judge', broken)
    role = resolve_role(vote.id, judge_credentials[0])
    assert role.kind == UNRESOLVABLE


def test_has_voted_tracks_role_identity(active_vote, outsider):
    role = resolve_role(active_vote.id, ClientCredentials(judge_token=outsider.invite_token))
    assert not has_voted(active_vote.id, role)

    submit(active_vote.id, role, 7)
    assert has_voted(active_vote.id, role)
    assert not has_voted(active_vote.id, resolve_role(active_vote.id, ClientCredentials()))


def test_claim_invitation_sets_device_id(admin):
    judge = Judge(admin_id=admin.id, name='Nuevo', invite_token='fresh-token')
    db.session.add(judge)
    db.session.commit()

    claimed = claim_invitation('fresh-token')
    assert claimed.status == 'claimed'
    assert claimed.device_voter_id

    with pytest.raises(ConflictError):
        claim_invitation('fresh-token')
    with pytest.raises(NotFoundError):
        claim_invitation('missing-token')


def test_describe_invitation(admin, outsider):
    info = describe_invitation(outsider.invite_token)
    assert info == {
        'name': 'Juez suplente',
        'status': 'claimed',
        'university_name': 'Universidad de Prueba',
    }
    with pytest.raises(NotFoundError):
        describe_invitation('missing-token')
