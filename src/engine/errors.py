"""
Exception classes for the tournament engine.
"""


class TournamentError(Exception):
    """Base exception for all engine errors."""
    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        self.code = code or "TOURNAMENT_ERROR"

    def to_dict(self):
        """Convert exception to dictionary for JSON responses"""
        return {
            'error': self.message,
            'code': self.code
        }


class PreconditionError(TournamentError):
    """
    Raised when an operation is rejected. The input state is left untouched.
    """
    def __init__(self, message: str, code: str = None):
        super().__init__(message, code or "PRECONDITION_FAILED")


class NotEnoughPlayersError(PreconditionError):
    def __init__(self, message: str = 'At least 2 players are required.'):
        super().__init__(message, "NOT_ENOUGH_PLAYERS")


class InsufficientTeamsError(PreconditionError):
    def __init__(self, teams: int, players: int):
        super().__init__(
            f'Not enough teams ({teams}) for the registered players ({players}). Add more teams.',
            "INSUFFICIENT_TEAMS"
        )
        self.teams = teams
        self.players = players


class GroupsNotReadyError(PreconditionError):
    def __init__(self, pending: int):
        super().__init__(
            f'{pending} group match(es) still need to be finished.',
            "GROUPS_NOT_READY"
        )
        self.pending = pending


class RoundNotDecidedError(PreconditionError):
    def __init__(self, pending: int):
        super().__init__(
            f'{pending} match(es) in the current round have no winner yet.',
            "ROUND_NOT_DECIDED"
        )
        self.pending = pending


class InvalidTransitionError(PreconditionError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_TRANSITION")


class UnknownMatchError(PreconditionError):
    def __init__(self, match_id: str):
        super().__init__(f'Match {match_id} not found', "UNKNOWN_MATCH")
        self.match_id = match_id


class RegistrationError(PreconditionError):
    """Rejected organizer sign-up: bad username, short password or a taken name."""
    def __init__(self, message: str):
        super().__init__(message, "REGISTRATION_REJECTED")


class IntegrityError(TournamentError):
    """
    Raised when a record violates the data model (a winner that is not a
    participant, a bye that is not finished, a duplicate player id).
    """
    def __init__(self, message: str):
        super().__init__(message, "INTEGRITY_ERROR")
