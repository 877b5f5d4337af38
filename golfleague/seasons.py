"""Season calendars, active-season selection, payments and forfeits."""

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime, timezone

from .constants import MONTH_KEY_FORMAT
from .exceptions import InvalidMonthError, SeasonNotFoundError
from .models import Registration, Round, Season

logger = logging.getLogger('golfleague.seasons')


def month_key(day: date | datetime) -> str:
    """Month key for a date, e.g. date(2024, 5, 17) -> '2024-05'."""
    return day.strftime(MONTH_KEY_FORMAT)


def current_month_key() -> str:
    return month_key(datetime.now(timezone.utc))


def parse_month_key(key: str) -> tuple[int, int]:
    """
    Split a month key into (year, month).

    Raises:
        InvalidMonthError: key is not in YYYY-MM form (also a ValueError)
    """
    try:
        parsed = datetime.strptime(key, MONTH_KEY_FORMAT)
    except (TypeError, ValueError) as e:
        raise InvalidMonthError(key) from e
    if key != parsed.strftime(MONTH_KEY_FORMAT):
        raise InvalidMonthError(key)
    return parsed.year, parsed.month


def format_month_key(key: str) -> str:
    """'2024-05' -> 'May 2024'."""
    year, month = parse_month_key(key)
    return date(year, month, 1).strftime('%B %Y')


def is_past_month(key: str, today: str | None = None) -> bool:
    """True if key is strictly before today's month (keys sort chronologically)."""
    return key < (today or current_month_key())


def season_months(season: Season) -> list[str]:
    """Every month key of a season, start through end inclusive."""
    return [
        f'{season.year}-{month:02d}' for month in range(season.start_month, season.end_month + 1)
    ]


def check_season_month(season: Season, key: str) -> str:
    """
    Return key if it is one of the season's months.

    Raises:
        InvalidMonthError: key is malformed or outside the season
    """
    parse_month_key(key)
    if key not in season_months(season):
        raise InvalidMonthError(key, f'outside season {season.id}')
    return key


def validate_season(season: Season) -> list[str]:
    """Return problems with a season's calendar and fees (empty if valid)."""
    errors = []
    for name, value in (('start_month', season.start_month), ('end_month', season.end_month)):
        if not 1 <= value <= 12:
            errors.append(f'Season {season.id} {name} must be 1-12, got {value}')
    if season.end_month < season.start_month:
        errors.append(
            f'Season {season.id} ends ({season.end_month}) before it starts ({season.start_month})'
        )
    if season.registration_fee < 0 or season.monthly_due < 0:
        errors.append(f'Season {season.id} has a negative fee')
    return errors


def find_season(seasons: list[Season], season_id: str) -> Season:
    for season in seasons:
        if season.id == season_id:
            return season
    raise SeasonNotFoundError(season_id)


def active_season(seasons: list[Season]) -> Season | None:
    """The active season, or None. If several are flagged, the newest year wins."""
    active = [s for s in seasons if s.is_active]
    if len(active) > 1:
        logger.warning(f'{len(active)} seasons are flagged active: {[s.id for s in active]}')
    return max(active, key=lambda s: (s.year, s.id), default=None)


def set_active_season(seasons: list[Season], season_id: str) -> list[Season]:
    """
    Activate one season and deactivate every other.

    Pure transform over the full season list; storage applies the result in
    a single write.

    Raises:
        SeasonNotFoundError: season_id is not in the list
    """
    find_season(seasons, season_id)
    return [replace(s, is_active=(s.id == season_id)) for s in seasons]


def new_registration(
    registration_id: str,
    player_id: str,
    season_id: str,
    registered_at: datetime | None = None,
) -> Registration:
    """Unpaid registration with no payments or forfeits."""
    return Registration(
        id=registration_id,
        player_id=player_id,
        season_id=season_id,
        registered_at=registered_at or datetime.now(timezone.utc),
    )


def set_month_paid(registration: Registration, month: str, paid: bool) -> Registration:
    parse_month_key(month)
    payments = dict(registration.monthly_payments)
    payments[month] = paid
    return replace(registration, monthly_payments=payments)


def set_forfeited_months(
    registration: Registration, months: list[str] | tuple[str, ...], monthly_due: float
) -> Registration:
    """Replace the forfeited months and recompute total_forfeited from them."""
    for month in months:
        parse_month_key(month)
    forfeited = tuple(sorted(set(months)))
    return replace(
        registration,
        forfeited_months=forfeited,
        total_forfeited=len(forfeited) * monthly_due,
    )


def toggle_forfeit(registration: Registration, month: str, monthly_due: float) -> Registration:
    """Mark a month forfeited, or clear it if it already is."""
    if month in registration.forfeited_months:
        months = [m for m in registration.forfeited_months if m != month]
    else:
        months = list(registration.forfeited_months) + [month]
    return set_forfeited_months(registration, months, monthly_due)


def find_forfeits(
    season: Season,
    registrations: list[Registration],
    rounds: list[Round],
    through_month: str,
) -> dict[str, list[str]]:
    """
    Season months, up to and including through_month, in which a registered
    player has no valid round.

    Returns:
        Dict mapping player_id to missing month keys (players with none are omitted)
    """
    parse_month_key(through_month)
    months = [m for m in season_months(season) if m <= through_month]

    played: dict[str, set[str]] = defaultdict(set)
    for round_ in rounds:
        if round_.season_id == season.id and round_.is_valid:
            played[round_.player_id].add(round_.month)

    result = {}
    for registration in registrations:
        if registration.season_id != season.id:
            continue
        missing = [m for m in months if m not in played[registration.player_id]]
        if missing:
            result[registration.player_id] = missing
    return result


def apply_forfeits(
    registration: Registration, missing_months: list[str], monthly_due: float
) -> Registration:
    """Add missing months to a registration's forfeits (existing ones are kept)."""
    months = set(registration.forfeited_months) | set(missing_months)
    return set_forfeited_months(registration, sorted(months), monthly_due)
