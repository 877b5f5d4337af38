from .models import (
    AdminOverride,
    Attestation,
    LeaderboardEntry,
    MonthlyLeaderboard,
    Points,
    PrizeBreakdown,
    PrizePoolSummary,
    Registration,
    Round,
    RoundScore,
    Season,
    SeasonLeaderboard,
    UserProfile,
)
from .exceptions import (
    DuplicateAttestationError,
    InvalidMonthError,
    InvalidRoundError,
    LeagueError,
    MissingOverrideReasonError,
    NotAuthorizedError,
    RegistrationNotFoundError,
    RoundNotFoundError,
    SeasonNotFoundError,
    SelfAttestationError,
    TransactionConflictError,
)
from .scoring import course_handicap, differential, net_score, score_round
from .attestation import (
    AttestationOutcome,
    RoundStatus,
    apply_admin_override,
    record_attestation,
    round_status,
)
from .ranking import (
    Category,
    aggregate_season_points,
    build_month_points,
    calculate_monthly_points,
    points_for_rank,
    rank_rounds,
    rank_season,
    select_counting_rounds,
)
from .prizes import (
    PrizePlacement,
    calculate_championship_prizes,
    calculate_monthly_prizes,
    championship_pool,
    monthly_pool,
    prize_amount,
    prize_breakdown,
    summarize_prize_pool,
)
from .leaderboard import month_leaderboard, season_leaderboard
from .seasons import find_forfeits, season_months, set_active_season, toggle_forfeit
from .storage import JsonLeagueStore
from .service import LeagueService

__all__ = [
    # Models
    'AdminOverride',
    'Attestation',
    'LeaderboardEntry',
    'MonthlyLeaderboard',
    'Points',
    'PrizeBreakdown',
    'PrizePoolSummary',
    'Registration',
    'Round',
    'RoundScore',
    'Season',
    'SeasonLeaderboard',
    'UserProfile',
    # Errors
    'DuplicateAttestationError',
    'InvalidMonthError',
    'InvalidRoundError',
    'LeagueError',
    'MissingOverrideReasonError',
    'NotAuthorizedError',
    'RegistrationNotFoundError',
    'RoundNotFoundError',
    'SeasonNotFoundError',
    'SelfAttestationError',
    'TransactionConflictError',
    # Score calculator
    'course_handicap',
    'differential',
    'net_score',
    'score_round',
    # Attestation
    'AttestationOutcome',
    'RoundStatus',
    'apply_admin_override',
    'record_attestation',
    'round_status',
    # Ranking and points
    'Category',
    'aggregate_season_points',
    'build_month_points',
    'calculate_monthly_points',
    'points_for_rank',
    'rank_rounds',
    'rank_season',
    'select_counting_rounds',
    # Prizes
    'PrizePlacement',
    'calculate_championship_prizes',
    'calculate_monthly_prizes',
    'championship_pool',
    'monthly_pool',
    'prize_amount',
    'prize_breakdown',
    'summarize_prize_pool',
    # Leaderboards
    'month_leaderboard',
    'season_leaderboard',
    # Seasons
    'find_forfeits',
    'season_months',
    'set_active_season',
    'toggle_forfeit',
    # Boundary
    'JsonLeagueStore',
    'LeagueService',
]
