"""League operations wired to storage, identity and authorization collaborators."""

import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import ValidationError

from .attestation import AttestationOutcome, apply_admin_override, check_attestor, record_attestation
from .config import get_config
from .constants import ATTESTATION_METHOD_QR
from .exceptions import (
    DuplicateAttestationError,
    InvalidRoundError,
    MissingOverrideReasonError,
    NotAuthorizedError,
    RegistrationNotFoundError,
    RoundNotFoundError,
    SeasonNotFoundError,
    SelfAttestationError,
    TransactionConflictError,
)
from .interfaces import LeagueStore
from .leaderboard import month_leaderboard, season_leaderboard
from .models import (
    MonthlyLeaderboard,
    Points,
    PrizePoolSummary,
    Registration,
    Round,
    Season,
    SeasonLeaderboard,
)
from .prizes import monthly_pool, summarize_prize_pool
from .ranking import build_month_points, with_cumulative_points
from .schemas import LeagueConfig, RoundSubmission
from .scoring import score_round
from .seasons import (
    active_season,
    apply_forfeits,
    check_season_month,
    find_forfeits,
    find_season,
    month_key,
    new_registration,
    parse_month_key,
    season_months,
    set_active_season,
    set_month_paid,
    toggle_forfeit,
    validate_season,
)
from .validators import validate_league

logger = logging.getLogger('golfleague.service')

T = TypeVar('T')


class LeagueService:
    """
    Boundary layer between the pure engine and its collaborators.

    The store must provide identity lookup, authorization, and round,
    registration, season and points persistence (see golfleague.interfaces).
    """

    def __init__(
        self,
        store: LeagueStore,
        config: LeagueConfig | None = None,
        on_round_valid: Callable[[Round], None] | None = None,
    ):
        """
        Initialize service.

        Args:
            store: Collaborator implementing the storage/identity interfaces
            config: League settings (default: loaded from data/league_config.json)
            on_round_valid: Called once when a round first becomes valid
        """
        self.store = store
        self.config = config or get_config()
        self.on_round_valid = on_round_valid

    def _run_transaction(self, operation: Callable[[], T], description: str) -> T:
        attempts = self.config.max_transaction_retries + 1
        attempt = 1
        while True:
            try:
                return operation()
            except TransactionConflictError:
                if attempt >= attempts:
                    logger.error(f'{description}: giving up after {attempts} conflicting attempts')
                    raise
                logger.warning(f'{description}: transaction conflict, retry {attempt}')
                attempt += 1

    def _require_admin(self, user_id: str, action: str) -> None:
        if not self.store.is_admin(user_id):
            logger.warning(f'{user_id} denied: {action}')
            raise NotAuthorizedError(user_id, action)

    # Seasons

    def get_season(self, season_id: str) -> Season:
        return find_season(self.store.load_seasons(), season_id)

    def get_active_season(self) -> Season | None:
        return active_season(self.store.load_seasons())

    def create_season(self, admin_id: str, season: Season) -> Season:
        """Store a new, inactive season."""
        self._require_admin(admin_id, 'create a season')
        errors = validate_season(season)
        if errors:
            raise ValueError('; '.join(errors))
        if any(s.id == season.id for s in self.store.load_seasons()):
            raise ValueError(f'Season already exists: {season.id}')
        if season.is_active:
            season = replace(season, is_active=False)
        self.store.save_season(season)
        logger.info(f'Created season {season.id} ({season.year})')
        return season

    def activate_season(self, admin_id: str, season_id: str) -> Season:
        """Make season_id the only active season, in one storage transaction."""
        self._require_admin(admin_id, 'activate a season')
        seasons = self._run_transaction(
            lambda: self.store.update_seasons(lambda s: set_active_season(s, season_id)),
            f'activate season {season_id}',
        )
        logger.info(f'Season {season_id} is now active')
        return find_season(seasons, season_id)

    def _resolve_season(self, season_id: str | None) -> Season:
        if season_id is not None:
            return self.get_season(season_id)
        season = self.get_active_season()
        if season is None:
            raise SeasonNotFoundError('active')
        return season

    # Rounds

    def submit_round(
        self,
        player_id: str,
        submission: RoundSubmission | dict[str, Any],
        season_id: str | None = None,
        submitted_at: datetime | None = None,
        round_id: str | None = None,
    ) -> Round:
        """
        Validate a scorecard and store it as a new round.

        Derived fields are computed here from the player's current handicap
        index and never recomputed afterwards.

        Raises:
            InvalidRoundError: field out of range, unknown player, or the
                round's month falls outside the season
            SeasonNotFoundError: no season given and none is active
        """
        if not isinstance(submission, RoundSubmission):
            try:
                submission = RoundSubmission.model_validate(submission)
            except ValidationError as e:
                raise InvalidRoundError(
                    [f'{".".join(str(p) for p in err["loc"])}: {err["msg"]}' for err in e.errors()]
                ) from e

        player = self.store.get_user(player_id)
        if player is None:
            raise InvalidRoundError([f'Unknown player: {player_id}'])

        season = self._resolve_season(season_id)
        submitted_at = submitted_at or datetime.now(timezone.utc)
        month = month_key(submitted_at)
        if month not in season_months(season):
            raise InvalidRoundError([f'{month} is outside season {season.id}'])

        scored = score_round(
            submission.gross_score,
            player.handicap_index,
            submission.course_rating,
            submission.slope_rating,
        )
        round_ = Round(
            id=round_id or uuid.uuid4().hex,
            player_id=player_id,
            season_id=season.id,
            month=month,
            course_name=submission.course_name,
            course_rating=submission.course_rating,
            slope_rating=submission.slope_rating,
            gross_score=submission.gross_score,
            handicap_index=player.handicap_index,
            course_handicap=scored.course_handicap,
            net_score=scored.net_score,
            differential=scored.differential,
            submitted_at=submitted_at,
            notes=submission.notes,
        )
        self.store.add_round(round_)
        logger.info(
            f'Round {round_.id} submitted by {player_id}: gross {round_.gross_score}, '
            f'net {round_.net_score}, differential {round_.differential}'
        )
        return round_

    def attest_round(
        self,
        round_id: str,
        attestor_id: str,
        attestor_name: str | None = None,
        timestamp: datetime | None = None,
        method: str = ATTESTATION_METHOD_QR,
    ) -> AttestationOutcome:
        """
        Record a peer attestation as one atomic read-check-append-write.

        Raises:
            RoundNotFoundError, SelfAttestationError, DuplicateAttestationError
        """
        if attestor_name is None:
            attestor = self.store.get_user(attestor_id)
            attestor_name = attestor.display_name if attestor else self.config.placeholder_name

        outcome: list[AttestationOutcome] = []

        def transform(round_: Round) -> Round:
            outcome.clear()
            result = record_attestation(round_, attestor_id, attestor_name, timestamp, method)
            outcome.append(result)
            return result.round

        try:
            self._run_transaction(
                lambda: self.store.atomic_update_round(round_id, transform),
                f'attest round {round_id}',
            )
        except (SelfAttestationError, DuplicateAttestationError) as e:
            logger.warning(f'Attestation rejected: {e}')
            raise

        result = outcome[0]
        if result.became_valid and self.on_round_valid is not None:
            self.on_round_valid(result.round)
        return result

    def can_attest(self, round_id: str, attestor_id: str) -> bool:
        """Whether attestor_id could attest the round right now."""
        round_ = self.store.get_round(round_id)
        if round_ is None:
            raise RoundNotFoundError(round_id)
        try:
            check_attestor(round_, attestor_id)
        except (SelfAttestationError, DuplicateAttestationError):
            return False
        return True

    def override_round(self, round_id: str, admin_id: str, force_valid: bool, note: str) -> Round:
        """
        Pin a round valid or invalid.

        Raises:
            NotAuthorizedError: admin_id is not an administrator
            MissingOverrideReasonError: note is empty (checked before storage is touched)
            RoundNotFoundError
        """
        self._require_admin(admin_id, 'override a round')
        if not note or not note.strip():
            raise MissingOverrideReasonError(round_id)

        return self._run_transaction(
            lambda: self.store.atomic_update_round(
                round_id, lambda r: apply_admin_override(r, force_valid, note, admin_id)
            ),
            f'override round {round_id}',
        )

    # Points and standings

    def recompute_month_points(self, season_id: str, month: str) -> list[Points]:
        """
        Recalculate one month's points from its rounds and overwrite storage.

        Cumulative points are refreshed for the whole season, since a change
        in one month shifts every later running total.
        """
        check_season_month(self.get_season(season_id), month)
        rounds = self.store.load_rounds_by_scope(season_id, month)
        month_points = build_month_points(rounds, season_id, month)

        others = [p for p in self.store.load_points(season_id) if p.month != month]
        season_points = with_cumulative_points(others + month_points)

        self.store.replace_month_points(
            season_id,
            month,
            [p for p in season_points if p.month == month],
            refreshed=[p for p in season_points if p.month != month],
        )
        logger.info(f'Recomputed {len(month_points)} point entries for {season_id} {month}')
        return [p for p in season_points if p.month == month]

    def get_month_leaderboard(self, season_id: str, month: str) -> MonthlyLeaderboard:
        parse_month_key(month)
        season = self.get_season(season_id)
        return month_leaderboard(
            month,
            self.store.load_rounds_by_scope(season_id, month),
            self.store.list_users(),
            prize_pool=monthly_pool(self.store.load_registrations(season_id), season),
            placeholder_name=self.config.placeholder_name,
        )

    def get_season_leaderboard(self, season_id: str) -> SeasonLeaderboard:
        return season_leaderboard(
            season_id,
            self.store.load_points(season_id),
            self.store.list_users(),
            placeholder_name=self.config.placeholder_name,
        )

    def get_prize_pool_summary(self, season_id: str, month: str | None = None) -> PrizePoolSummary:
        """Pool totals with monthly winners (when month is given) and season leaders."""
        season = self.get_season(season_id)
        registrations = self.store.load_registrations(season_id)
        season_board = self.get_season_leaderboard(season_id)
        month_gross, month_net = (), ()
        if month is not None:
            board = self.get_month_leaderboard(season_id, month)
            month_gross, month_net = board.gross_standings, board.net_standings
        return summarize_prize_pool(
            season,
            registrations,
            monthly_gross=month_gross,
            monthly_net=month_net,
            season_gross=season_board.gross_standings,
            season_net=season_board.net_standings,
        )

    # Registrations

    def register_player(self, player_id: str, season_id: str | None = None) -> Registration:
        season = self._resolve_season(season_id)
        for existing in self.store.load_registrations(season.id):
            if existing.player_id == player_id:
                return existing
        registration = new_registration(uuid.uuid4().hex, player_id, season.id)
        self.store.save_registration(registration)
        logger.info(f'Registered {player_id} for season {season.id}')
        return registration

    def _get_registration(self, season_id: str, registration_id: str) -> Registration:
        registration = self.store.get_registration(registration_id)
        if registration is None or registration.season_id != season_id:
            raise RegistrationNotFoundError(registration_id, season_id)
        return registration

    def mark_registration_paid(
        self, admin_id: str, season_id: str, registration_id: str, paid: bool = True
    ) -> Registration:
        self._require_admin(admin_id, 'record a registration payment')
        registration = self._get_registration(season_id, registration_id)
        updated = replace(registration, has_paid_registration=paid)
        self.store.save_registration(updated)
        return updated

    def mark_month_paid(
        self, admin_id: str, season_id: str, registration_id: str, month: str, paid: bool
    ) -> Registration:
        self._require_admin(admin_id, 'record a monthly payment')
        check_season_month(self.get_season(season_id), month)
        updated = set_month_paid(self._get_registration(season_id, registration_id), month, paid)
        self.store.save_registration(updated)
        return updated

    def toggle_forfeit(
        self, admin_id: str, season_id: str, registration_id: str, month: str
    ) -> Registration:
        self._require_admin(admin_id, 'change a forfeit')
        season = self.get_season(season_id)
        check_season_month(season, month)
        updated = toggle_forfeit(
            self._get_registration(season_id, registration_id), month, season.monthly_due
        )
        self.store.save_registration(updated)
        logger.info(
            f'Registration {registration_id} forfeits: {list(updated.forfeited_months)} '
            f'(${updated.total_forfeited})'
        )
        return updated

    def apply_forfeits(self, admin_id: str, season_id: str, through_month: str) -> dict[str, list[str]]:
        """
        Forfeit every month up to through_month in which a registered player
        has no valid round.

        Returns:
            Dict mapping player_id to the months found missing
        """
        self._require_admin(admin_id, 'apply forfeits')
        season = self.get_season(season_id)
        registrations = self.store.load_registrations(season_id)
        missing = find_forfeits(
            season, registrations, self.store.load_rounds_by_scope(season_id), through_month
        )
        for registration in registrations:
            months = missing.get(registration.player_id)
            if months:
                self.store.save_registration(
                    apply_forfeits(registration, months, season.monthly_due)
                )
        logger.info(f'Applied forfeits through {through_month} for {len(missing)} players')
        return missing

    # Members and data checks

    def get_player_rounds(self, player_id: str) -> list[Round]:
        """A player's rounds across seasons, newest submission first."""
        return self.store.load_player_rounds(player_id)

    def validate_data(self) -> tuple[list[str], list[str]]:
        """
        Check every stored season, registration and round.

        Returns:
            Tuple of (errors, warnings) from validate_league
        """
        seasons = self.store.load_seasons()
        registrations: list[Registration] = []
        rounds: list[Round] = []
        for season in seasons:
            registrations.extend(self.store.load_registrations(season.id))
            rounds.extend(self.store.load_rounds_by_scope(season.id))

        errors, warnings = validate_league(seasons, registrations, rounds)
        logger.info(
            f'Validated {len(seasons)} seasons, {len(registrations)} registrations and '
            f'{len(rounds)} rounds: {len(errors)} errors, {len(warnings)} warnings'
        )
        return errors, warnings
