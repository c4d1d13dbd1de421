# models/__init__.py
# Инициализация моделей

from .admin import Admin
from .event import Event
from .vote import Vote
from .judge import Judge
from .vote_assignment import VoteAssignment
from .submission import JudgeSubmission, PublicSubmission
