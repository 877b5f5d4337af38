"""Prize pool totals and payout calculations.

Amounts are floored to whole dollars so the six payouts never add up to more
than the pool; whatever is left over stays unallocated.
"""

import math
from decimal import Decimal
from enum import Enum

from .constants import CHAMPIONSHIP_PRIZE_PERCENTAGES, MONTHLY_PRIZE_PERCENTAGES
from .models import LeaderboardEntry, PrizeBreakdown, PrizePoolSummary, Registration, Season
from .ranking import Category


class PrizePlacement(str, Enum):
    FIRST_GROSS = '1st Gross'
    SECOND_GROSS = '2nd Gross'
    THIRD_GROSS = '3rd Gross'
    FIRST_NET = '1st Net'
    SECOND_NET = '2nd Net'
    THIRD_NET = '3rd Net'

    @property
    def category(self) -> Category:
        return Category.GROSS if self.value.endswith('Gross') else Category.NET

    @property
    def rank(self) -> int:
        return int(self.value[0])


def _check_table(name: str, table: dict[str, float]) -> None:
    missing = {p.value for p in PrizePlacement} - set(table)
    if missing:
        raise ValueError(f'{name} is missing placements: {", ".join(sorted(missing))}')
    total = sum(Decimal(str(pct)) for pct in table.values())
    if total > 1:
        raise ValueError(f'{name} allocates {total} of the pool (max 1.0)')


_check_table('MONTHLY_PRIZE_PERCENTAGES', MONTHLY_PRIZE_PERCENTAGES)
_check_table('CHAMPIONSHIP_PRIZE_PERCENTAGES', CHAMPIONSHIP_PRIZE_PERCENTAGES)


def prize_amount(
    placement: PrizePlacement | str,
    pool: float,
    table: dict[str, float] = MONTHLY_PRIZE_PERCENTAGES,
) -> int:
    """
    Whole-dollar payout for a placement: floor(pool * percentage).

    Args:
        placement: Placement or its label, e.g. '1st Gross'
        pool: Pool total in dollars
        table: Percentage table (monthly or championship)
    """
    label = PrizePlacement(placement).value
    return math.floor(Decimal(str(pool)) * Decimal(str(table[label])))


def calculate_prizes(pool: float, table: dict[str, float]) -> dict[str, int]:
    """Payout for every placement in a table, keyed by label."""
    return {p.value: prize_amount(p, pool, table) for p in PrizePlacement}


def calculate_monthly_prizes(pool: float) -> dict[str, int]:
    return calculate_prizes(pool, MONTHLY_PRIZE_PERCENTAGES)


def calculate_championship_prizes(pool: float) -> dict[str, int]:
    return calculate_prizes(pool, CHAMPIONSHIP_PRIZE_PERCENTAGES)


def prize_breakdown(
    pool: float,
    table: dict[str, float],
    gross_standings: list[LeaderboardEntry] | tuple[LeaderboardEntry, ...] = (),
    net_standings: list[LeaderboardEntry] | tuple[LeaderboardEntry, ...] = (),
) -> list[PrizeBreakdown]:
    """
    Build placement rows, attaching winners from standings when available.

    The entry ranked n in a category wins that category's nth placement.
    Placements without a matching entry have no winner.
    """
    standings = {Category.GROSS: gross_standings, Category.NET: net_standings}
    rows = []
    for placement in PrizePlacement:
        winner = next(
            (e for e in standings[placement.category] if e.rank == placement.rank), None
        )
        rows.append(
            PrizeBreakdown(
                position=placement.value,
                percentage=table[placement.value],
                amount=prize_amount(placement, pool, table),
                winner_id=winner.player_id if winner else None,
                winner_name=winner.display_name if winner else None,
            )
        )
    return rows


def monthly_pool(registrations: list[Registration], season: Season) -> float:
    """Registered players times the monthly due."""
    return len(registrations) * season.monthly_due


def championship_pool(registrations: list[Registration], season: Season) -> float:
    """Paid registration fees plus every forfeited dollar."""
    paid = sum(1 for r in registrations if r.has_paid_registration)
    forfeits = sum(r.total_forfeited for r in registrations)
    return paid * season.registration_fee + forfeits


def summarize_prize_pool(
    season: Season,
    registrations: list[Registration],
    monthly_gross: list[LeaderboardEntry] | tuple[LeaderboardEntry, ...] = (),
    monthly_net: list[LeaderboardEntry] | tuple[LeaderboardEntry, ...] = (),
    season_gross: list[LeaderboardEntry] | tuple[LeaderboardEntry, ...] = (),
    season_net: list[LeaderboardEntry] | tuple[LeaderboardEntry, ...] = (),
) -> PrizePoolSummary:
    """
    Money totals for a season and the payouts of both pools.

    Args:
        season: Season whose fees apply
        registrations: Every registration for the season
        monthly_gross, monthly_net: Standings used to name monthly winners
        season_gross, season_net: Standings used to name championship winners
    """
    paid = [r for r in registrations if r.has_paid_registration]
    total_fees = len(paid) * season.registration_fee
    total_forfeits = sum(r.total_forfeited for r in registrations)
    month_pool = monthly_pool(registrations, season)
    champ_pool = championship_pool(registrations, season)

    return PrizePoolSummary(
        season_id=season.id,
        registered_players=len(registrations),
        paid_registrations=len(paid),
        total_registration_fees=total_fees,
        total_monthly_dues=month_pool,
        total_forfeits=total_forfeits,
        monthly_pool=month_pool,
        championship_pool=champ_pool,
        monthly_breakdown=prize_breakdown(
            month_pool, MONTHLY_PRIZE_PERCENTAGES, monthly_gross, monthly_net
        ),
        championship_breakdown=prize_breakdown(
            champ_pool, CHAMPIONSHIP_PRIZE_PERCENTAGES, season_gross, season_net
        ),
    )
