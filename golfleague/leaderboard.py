"""Leaderboard aggregation: ranked standings joined with player identity."""

import logging
from collections.abc import Iterable, Mapping

from .models import (
    LeaderboardEntry,
    MonthlyLeaderboard,
    Points,
    Round,
    SeasonLeaderboard,
    UserProfile,
)
from .ranking import (
    Category,
    aggregate_season_points,
    calculate_monthly_points,
    count_valid_rounds,
    rank_rounds,
    rank_season,
    select_counting_rounds,
)
from .scoring import medal, ordinal

logger = logging.getLogger('golfleague.leaderboard')

DEFAULT_PLACEHOLDER_NAME = 'Unknown'


def index_users(users: Iterable[UserProfile] | Mapping[str, UserProfile]) -> dict[str, UserProfile]:
    """Map user id to profile."""
    if isinstance(users, Mapping):
        return dict(users)
    return {user.id: user for user in users}


def _identity(
    player_id: str, users: dict[str, UserProfile], placeholder_name: str
) -> tuple[str, str]:
    user = users.get(player_id)
    if user is None:
        logger.warning(f'No profile for player {player_id}, showing "{placeholder_name}"')
        return placeholder_name, ''
    return user.display_name, user.photo_url


def month_leaderboard(
    month: str,
    rounds: list[Round],
    users: Iterable[UserProfile] | Mapping[str, UserProfile],
    prize_pool: float = 0,
    placeholder_name: str = DEFAULT_PLACEHOLDER_NAME,
) -> MonthlyLeaderboard:
    """
    Build gross and net standings for one month.

    Args:
        month: Month key, e.g. '2024-05'
        rounds: Every round submitted in the month (invalid ones are ignored)
        users: Player profiles; unknown players get placeholder_name
        prize_pool: Monthly pool to report alongside the standings
        placeholder_name: Display name for players without a profile

    Returns:
        MonthlyLeaderboard whose entries carry the counting round's scores
    """
    user_map = index_users(users)
    counting = select_counting_rounds(rounds)
    points = calculate_monthly_points(rounds)
    played = count_valid_rounds(rounds)

    def make_entry(rank: int, round_: Round) -> LeaderboardEntry:
        name, photo = _identity(round_.player_id, user_map, placeholder_name)
        pts = points.get(round_.player_id, {})
        gross_points = pts.get('gross_points', 0)
        net_points = pts.get('net_points', 0)
        return LeaderboardEntry(
            player_id=round_.player_id,
            display_name=name,
            photo_url=photo,
            gross_points=gross_points,
            net_points=net_points,
            total_points=gross_points + net_points,
            rounds_played=played.get(round_.player_id, 0),
            rank=rank,
            gross_score=round_.gross_score,
            net_score=round_.net_score,
        )

    return MonthlyLeaderboard(
        month=month,
        gross_standings=tuple(
            make_entry(rank, r) for rank, r in rank_rounds(counting, Category.GROSS)
        ),
        net_standings=tuple(
            make_entry(rank, r) for rank, r in rank_rounds(counting, Category.NET)
        ),
        prize_pool=prize_pool,
    )


def season_leaderboard(
    season_id: str,
    points: list[Points],
    users: Iterable[UserProfile] | Mapping[str, UserProfile],
    placeholder_name: str = DEFAULT_PLACEHOLDER_NAME,
) -> SeasonLeaderboard:
    """
    Build cumulative standings from every monthly Points entry of a season.

    Higher totals rank first; equal totals are ordered by player id.
    rounds_played counts the months in which the player earned points.
    """
    user_map = index_users(users)
    totals = aggregate_season_points([p for p in points if p.season_id == season_id])

    def standings(category: Category) -> tuple[LeaderboardEntry, ...]:
        entries = []
        for rank, total in rank_season(totals, category):
            name, photo = _identity(total.player_id, user_map, placeholder_name)
            entries.append(
                LeaderboardEntry(
                    player_id=total.player_id,
                    display_name=name,
                    photo_url=photo,
                    gross_points=total.gross_points,
                    net_points=total.net_points,
                    total_points=total.total_points,
                    rounds_played=total.months,
                    rank=rank,
                )
            )
        return tuple(entries)

    return SeasonLeaderboard(
        season_id=season_id,
        gross_standings=standings(Category.GROSS),
        net_standings=standings(Category.NET),
    )


def format_standings(entries: Iterable[LeaderboardEntry], category: Category) -> list[str]:
    """Plain-text standings lines for console output."""
    lines = []
    for entry in entries:
        score = entry.gross_score if category is Category.GROSS else entry.net_score
        points = entry.gross_points if category is Category.GROSS else entry.net_points
        score_text = f' ({score})' if score is not None else ''
        lines.append(
            f'{medal(entry.rank) or "  "} {ordinal(entry.rank):>4} '
            f'{entry.display_name}{score_text}: {points} pts'
        )
    return lines
