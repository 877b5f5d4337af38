"""Exceptions raised by the golf league engine."""


class LeagueError(Exception):
    """Base class for recoverable league errors."""


class SelfAttestationError(LeagueError):
    """A player tried to attest their own round."""

    def __init__(self, round_id: str, player_id: str):
        self.round_id = round_id
        self.player_id = player_id
        super().__init__(f'{player_id} cannot attest their own round {round_id}')


class DuplicateAttestationError(LeagueError):
    """The attestor has already attested this round."""

    def __init__(self, round_id: str, attestor_id: str):
        self.round_id = round_id
        self.attestor_id = attestor_id
        super().__init__(f'{attestor_id} has already attested round {round_id}')


class MissingOverrideReasonError(LeagueError):
    """An admin override was attempted without a note."""

    def __init__(self, round_id: str):
        self.round_id = round_id
        super().__init__(f'Admin override of round {round_id} requires a note')


class RoundNotFoundError(LeagueError):
    """The referenced round does not exist."""

    def __init__(self, round_id: str):
        self.round_id = round_id
        super().__init__(f'Round not found: {round_id}')


class SeasonNotFoundError(LeagueError):
    """The referenced season does not exist."""

    def __init__(self, season_id: str):
        self.season_id = season_id
        super().__init__(f'Season not found: {season_id}')


class NotAuthorizedError(LeagueError):
    """The caller lacks administrator capability."""

    def __init__(self, user_id: str, action: str):
        self.user_id = user_id
        self.action = action
        super().__init__(f'{user_id} is not allowed to {action}')


class InvalidRoundError(LeagueError):
    """A round submission failed input validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__('Invalid round submission: ' + '; '.join(errors))


class TransactionConflictError(LeagueError):
    """A storage transaction lost a race and may be retried with the same transform."""

    def __init__(self, message: str = 'Storage transaction conflict'):
        super().__init__(message)


class InvalidMonthError(LeagueError, ValueError):
    """A month key is malformed or falls outside the season."""

    def __init__(self, month: str, reason: str = 'expected YYYY-MM'):
        self.month = month
        super().__init__(f'Invalid month key: {month!r} ({reason})')


class RegistrationNotFoundError(LeagueError):
    """The referenced registration does not exist in the season."""

    def __init__(self, registration_id: str, season_id: str):
        self.registration_id = registration_id
        self.season_id = season_id
        super().__init__(f'Registration not found: {registration_id} (season {season_id})')
