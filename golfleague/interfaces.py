"""Collaborator interfaces the engine consumes.

Storage, identity and authorization live outside the engine; anything that
implements these protocols can drive it. ``JsonLeagueStore`` in
``golfleague.storage`` implements all of them.
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .models import Points, Registration, Round, Season, UserProfile


class IdentityProvider(Protocol):
    def get_user(self, user_id: str) -> UserProfile | None: ...

    def list_users(self) -> list[UserProfile]: ...


class RoundRepository(Protocol):
    def get_round(self, round_id: str) -> Round | None: ...

    def load_rounds_by_scope(self, season_id: str, month: str | None = None) -> list[Round]: ...

    def load_player_rounds(self, player_id: str) -> list[Round]: ...

    def add_round(self, round_: Round) -> None: ...

    def atomic_update_round(self, round_id: str, transform: Callable[[Round], Round]) -> Round:
        """
        Read, transform and write one round as a single transaction.

        transform must be pure: it may be re-run against freshly read state.
        Raises RoundNotFoundError if the round does not exist, and
        TransactionConflictError if a concurrent writer won the race.
        """
        ...


class RegistrationRepository(Protocol):
    def load_registrations(self, season_id: str) -> list[Registration]: ...

    def get_registration(self, registration_id: str) -> Registration | None: ...

    def save_registration(self, registration: Registration) -> None: ...


class SeasonRepository(Protocol):
    def load_seasons(self) -> list[Season]: ...

    def save_season(self, season: Season) -> None: ...

    def update_seasons(
        self, transform: Callable[[list[Season]], list[Season]]
    ) -> list[Season]:
        """Apply transform to every season in one transaction."""
        ...


class PointsRepository(Protocol):
    def load_points(self, season_id: str) -> list[Points]: ...

    def replace_month_points(
        self,
        season_id: str,
        month: str,
        points: list[Points],
        refreshed: list[Points] | tuple[Points, ...] = (),
    ) -> None:
        """Overwrite one month's entries and upsert refreshed ones, in one write."""
        ...


class Authorizer(Protocol):
    def is_admin(self, user_id: str) -> bool: ...


@runtime_checkable
class LeagueStore(
    IdentityProvider,
    Authorizer,
    RoundRepository,
    RegistrationRepository,
    SeasonRepository,
    PointsRepository,
    Protocol,
):
    """Everything LeagueService needs from its collaborators."""
