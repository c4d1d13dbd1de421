# errors.py
# Иерархия ошибок голосования. Каждая ошибка знает свой HTTP-статус и код.


class VotingError(Exception):
    status_code = 500
    code = 'error'

    def __init__(self, message=None, **details):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details

    def to_dict(self):
        payload = {'error': self.code, 'message': self.message}
        payload.update(self.details)
        return payload


class ValidationError(VotingError):
    status_code = 400
    code = 'validation_error'


class IdentityError(VotingError):
    status_code = 403
    code = 'identity_error'


class NotFoundError(VotingError):
    status_code = 404
    code = 'not_found'


class ConflictError(VotingError):
    status_code = 409
    code = 'conflict'


class StateError(VotingError):
    status_code = 409
    code = 'invalid_state'


class TransientError(VotingError):
    """Бэкенд недоступен, запрос можно повторить."""
    status_code = 503
    code = 'unavailable'


# --- Конкретные ошибки операций ---

class OutOfRange(ValidationError):
    code = 'out_of_range'


class IdentityUnresolved(IdentityError):
    code = 'identity_unresolved'


class VoteNotActive(StateError):
    code = 'vote_not_active'


class ResultsUnavailable(StateError):
    code = 'results_unavailable'


class Duplicate(ConflictError):
    code = 'duplicate'

    def __init__(self, message=None, **details):
        details.setdefault('already_voted', True)
        super().__init__(message, **details)


class StoreUnavailable(TransientError):
    code = 'store_unavailable'
