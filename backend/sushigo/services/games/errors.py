class GameError(Exception):
    """Rejects a single inbound action. Session state is left untouched."""

    code = 'game_error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class InvalidPhase(GameError):
    code = 'invalid_phase'


class InvalidSelection(GameError):
    code = 'invalid_selection'


class AlreadySelected(GameError):
    code = 'already_selected'


class NotFound(GameError):
    code = 'not_found'


class CapacityExceeded(GameError):
    code = 'capacity_exceeded'
