"""Monthly ranking, points assignment and season aggregation."""

from collections import defaultdict
from dataclasses import dataclass, replace
from enum import Enum

from .constants import POINTS_BY_RANK, POINTS_DEFAULT
from .models import Points, Round


class Category(str, Enum):
    GROSS = 'gross'
    NET = 'net'


@dataclass(frozen=True)
class SeasonTotals:
    """A player's points summed over every month of a season."""
    player_id: str
    gross_points: int = 0
    net_points: int = 0
    total_points: int = 0
    months: int = 0


def points_for_rank(rank: int) -> int:
    """Points for a finishing rank; 11th place and beyond earn a flat amount."""
    return POINTS_BY_RANK.get(rank, POINTS_DEFAULT)


def _round_score(round_: Round, category: Category) -> int:
    return round_.gross_score if category is Category.GROSS else round_.net_score


def _tie_break_key(round_: Round, category: Category) -> tuple:
    # Equal scores: earliest submission first, round id as last resort
    return (_round_score(round_, category), round_.submitted_at, round_.id)


def count_valid_rounds(rounds: list[Round]) -> dict[str, int]:
    """Number of valid rounds per player."""
    counts: dict[str, int] = defaultdict(int)
    for round_ in rounds:
        if round_.is_valid:
            counts[round_.player_id] += 1
    return dict(counts)


def select_counting_rounds(rounds: list[Round]) -> list[Round]:
    """
    Pick the round that counts for each player in a month.

    Only valid rounds are considered. Each player's counting round is the one
    with the lowest gross score; between equal gross scores the earliest
    submitted round wins.

    Returns:
        One round per player, ordered by gross score
    """
    best: dict[str, Round] = {}
    for round_ in rounds:
        if not round_.is_valid:
            continue
        current = best.get(round_.player_id)
        if current is None or _tie_break_key(round_, Category.GROSS) < _tie_break_key(
            current, Category.GROSS
        ):
            best[round_.player_id] = round_

    return sorted(best.values(), key=lambda r: _tie_break_key(r, Category.GROSS))


def rank_rounds(rounds: list[Round], category: Category) -> list[tuple[int, Round]]:
    """
    Rank rounds ascending by gross or net score (lower is better).

    Equal scores are not collapsed into a shared rank: tied players get
    consecutive ranks, the earlier submission taking the better one.

    Returns:
        List of (rank, round) with 1-based ranks
    """
    ordered = sorted(rounds, key=lambda r: _tie_break_key(r, category))
    return [(rank, round_) for rank, round_ in enumerate(ordered, start=1)]


def calculate_monthly_points(rounds: list[Round]) -> dict[str, dict[str, int]]:
    """
    Calculate gross, net and total points for every player in one month.

    Args:
        rounds: All rounds submitted for the month (valid or not)

    Returns:
        Dict mapping player_id to
        {'gross_points': int, 'net_points': int, 'total_monthly_points': int}
    """
    counting = select_counting_rounds(rounds)
    result: dict[str, dict[str, int]] = {}

    for category in (Category.GROSS, Category.NET):
        field_name = f'{category.value}_points'
        for rank, round_ in rank_rounds(counting, category):
            entry = result.setdefault(
                round_.player_id,
                {'gross_points': 0, 'net_points': 0, 'total_monthly_points': 0},
            )
            entry[field_name] = points_for_rank(rank)

    for entry in result.values():
        entry['total_monthly_points'] = entry['gross_points'] + entry['net_points']

    return result


def build_month_points(rounds: list[Round], season_id: str, month: str) -> list[Points]:
    """Points entities for one month, ordered by player id, ready to overwrite storage."""
    monthly = calculate_monthly_points(rounds)
    return [
        Points(player_id=player_id, season_id=season_id, month=month, **monthly[player_id])
        for player_id in sorted(monthly)
    ]


def with_cumulative_points(points: list[Points]) -> list[Points]:
    """
    Fill cumulative_points with each player's running total by month.

    Returns:
        Points ordered by (player_id, month)
    """
    running: dict[str, int] = defaultdict(int)
    result = []
    for entry in sorted(points, key=lambda p: (p.player_id, p.month)):
        running[entry.player_id] += entry.total_monthly_points
        result.append(replace(entry, cumulative_points=running[entry.player_id]))
    return result


def aggregate_season_points(points: list[Points]) -> dict[str, SeasonTotals]:
    """Sum each player's monthly points across a season."""
    totals: dict[str, SeasonTotals] = {}
    for entry in points:
        current = totals.get(entry.player_id, SeasonTotals(player_id=entry.player_id))
        totals[entry.player_id] = SeasonTotals(
            player_id=entry.player_id,
            gross_points=current.gross_points + entry.gross_points,
            net_points=current.net_points + entry.net_points,
            total_points=current.total_points + entry.total_monthly_points,
            months=current.months + 1,
        )
    return totals


def rank_season(
    totals: dict[str, SeasonTotals] | list[SeasonTotals], category: Category
) -> list[tuple[int, SeasonTotals]]:
    """
    Rank season totals descending by gross or net points.

    Equal totals are ordered by player id ascending.

    Returns:
        List of (rank, SeasonTotals) with 1-based ranks
    """
    values = list(totals.values()) if isinstance(totals, dict) else list(totals)
    if category is Category.GROSS:
        ordered = sorted(values, key=lambda t: (-t.gross_points, t.player_id))
    else:
        ordered = sorted(values, key=lambda t: (-t.net_points, t.player_id))
    return [(rank, entry) for rank, entry in enumerate(ordered, start=1)]
