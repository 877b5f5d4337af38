"""Data models for the golf league engine."""

from dataclasses import dataclass, field
from datetime import datetime

from .constants import ATTESTATION_METHOD_QR


@dataclass(frozen=True)
class UserProfile:
    """Identity data for a league member."""
    id: str
    display_name: str
    email: str = ''
    photo_url: str = ''
    handicap_index: float = 0.0
    is_admin: bool = False


@dataclass(frozen=True)
class Season:
    """A competition period running from start_month to end_month of one year."""
    id: str
    year: int
    start_month: int
    end_month: int
    registration_fee: float
    monthly_due: float
    is_active: bool = False


@dataclass(frozen=True)
class Registration:
    """A player's participation and payment record for one season."""
    id: str
    player_id: str
    season_id: str
    registered_at: datetime | None = None
    has_paid_registration: bool = False
    monthly_payments: dict[str, bool] = field(default_factory=dict)
    forfeited_months: tuple[str, ...] = ()
    total_forfeited: float = 0


@dataclass(frozen=True)
class Attestation:
    """One peer confirmation of a submitted round."""
    attestor_id: str
    attestor_name: str
    attested_at: datetime
    method: str = ATTESTATION_METHOD_QR


@dataclass(frozen=True)
class AdminOverride:
    """Administrator decision pinning a round's validity."""
    force_valid: bool
    note: str
    admin_id: str = ''
    overridden_at: datetime | None = None


@dataclass(frozen=True)
class RoundScore:
    """Values derived from a scorecard at submission time."""
    course_handicap: int
    net_score: int
    differential: float


@dataclass(frozen=True)
class Round:
    """
    One scorecard submission.

    course_handicap, net_score and differential are computed once when the
    round is submitted, from the submitter's handicap_index at that moment.
    """
    id: str
    player_id: str
    season_id: str
    month: str
    course_name: str
    course_rating: float
    slope_rating: int
    gross_score: int
    handicap_index: float
    course_handicap: int
    net_score: int
    differential: float
    submitted_at: datetime
    attestations: tuple[Attestation, ...] = ()
    is_valid: bool = False
    override: AdminOverride | None = None
    notes: str = ''

    @property
    def attestation_count(self) -> int:
        return len(self.attestations)

    @property
    def attestor_ids(self) -> list[str]:
        return [a.attestor_id for a in self.attestations]

    @property
    def is_overridden(self) -> bool:
        return self.override is not None


@dataclass(frozen=True)
class Points:
    """One player's points for one month of a season."""
    player_id: str
    season_id: str
    month: str
    gross_points: int = 0
    net_points: int = 0
    total_monthly_points: int = 0
    cumulative_points: int = 0


@dataclass(frozen=True)
class LeaderboardEntry:
    """A ranked standings row joined with player identity."""
    player_id: str
    display_name: str
    photo_url: str
    gross_points: int
    net_points: int
    total_points: int
    rounds_played: int
    rank: int
    gross_score: int | None = None
    net_score: int | None = None


@dataclass(frozen=True)
class MonthlyLeaderboard:
    """Gross and net standings for one month."""
    month: str
    gross_standings: tuple[LeaderboardEntry, ...]
    net_standings: tuple[LeaderboardEntry, ...]
    prize_pool: float = 0


@dataclass(frozen=True)
class SeasonLeaderboard:
    """Cumulative gross and net standings for a season."""
    season_id: str
    gross_standings: tuple[LeaderboardEntry, ...]
    net_standings: tuple[LeaderboardEntry, ...]


@dataclass(frozen=True)
class PrizeBreakdown:
    """Dollar amount for one placement, with the winner when known."""
    position: str
    percentage: float
    amount: int
    winner_id: str | None = None
    winner_name: str | None = None


@dataclass(frozen=True)
class PrizePoolSummary:
    """Season money totals and both prize distributions."""
    season_id: str
    registered_players: int
    paid_registrations: int
    total_registration_fees: float
    total_monthly_dues: float
    total_forfeits: float
    monthly_pool: float
    championship_pool: float
    monthly_breakdown: list[PrizeBreakdown] = field(default_factory=list)
    championship_breakdown: list[PrizeBreakdown] = field(default_factory=list)
