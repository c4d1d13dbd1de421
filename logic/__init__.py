# logic/__init__.py
# Движок голосования: роли, оценки, жизненный цикл, итоги, живая лента

from .identity import (
    JUDGE, PUBLIC, UNRESOLVABLE, ClientCredentials, Role,
    claim_invitation, describe_invitation, has_voted, mint_voter_id, resolve_role,
)
from .submissions import submit, validate_score
from .lifecycle import Transition, activate, create_vote, expire_or_finish, expire_overdue, finish
from .scoring import VoteResult, compute_result
from .live_feed import RoomView, VoteChange, follow_room, live_feed, room_snapshot
