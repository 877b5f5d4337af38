"""Consistency checks for stored rounds, registrations, seasons and payouts."""

from .attestation import compute_validity
from .constants import ATTESTATION_THRESHOLD
from .models import PrizeBreakdown, Registration, Round, Season
from .scoring import score_round
from .seasons import parse_month_key, season_months, validate_season


def validate_round(round_: Round, threshold: int = ATTESTATION_THRESHOLD) -> list[str]:
    """
    Check that a stored round is internally consistent.

    Checks:
    - Derived fields match the inputs and the handicap index at submission
    - No self-attestation and no attestor listed twice
    - Validity flag agrees with attestation count or override

    Returns:
        List of error messages (empty if consistent)
    """
    errors = []

    if round_.slope_rating < 1:
        errors.append(f'Round {round_.id} has slope rating {round_.slope_rating} (must be >= 1)')
        return errors

    try:
        parse_month_key(round_.month)
    except ValueError as e:
        errors.append(f'Round {round_.id}: {e}')

    expected = score_round(
        round_.gross_score, round_.handicap_index, round_.course_rating, round_.slope_rating
    )
    for name in ('course_handicap', 'net_score', 'differential'):
        stored = getattr(round_, name)
        if stored != getattr(expected, name):
            errors.append(
                f'Round {round_.id} {name} is {stored}, expected {getattr(expected, name)}'
            )

    attestors = round_.attestor_ids
    if round_.player_id in attestors:
        errors.append(f'Round {round_.id} is attested by its own player {round_.player_id}')
    duplicates = sorted({a for a in attestors if attestors.count(a) > 1})
    if duplicates:
        errors.append(f'Round {round_.id} has duplicate attestors: {", ".join(duplicates)}')

    expected_valid = compute_validity(round_.attestation_count, round_.override, threshold)
    if round_.is_valid != expected_valid:
        errors.append(
            f'Round {round_.id} is_valid={round_.is_valid} but '
            f'{round_.attestation_count} attestations imply {expected_valid}'
        )

    return errors


def validate_registration(registration: Registration, season: Season) -> list[str]:
    """
    Check a registration's forfeit total and month keys against its season.

    Returns:
        List of error messages (empty if consistent)
    """
    errors = []
    months = set(season_months(season))

    expected_total = len(registration.forfeited_months) * season.monthly_due
    if registration.total_forfeited != expected_total:
        errors.append(
            f'Registration {registration.id} total_forfeited is '
            f'{registration.total_forfeited}, expected {expected_total}'
        )

    outside = [m for m in registration.forfeited_months if m not in months]
    if outside:
        errors.append(
            f'Registration {registration.id} forfeits months outside season {season.id}: '
            f'{", ".join(outside)}'
        )

    unknown_payments = sorted(m for m in registration.monthly_payments if m not in months)
    if unknown_payments:
        errors.append(
            f'Registration {registration.id} has payments outside season {season.id}: '
            f'{", ".join(unknown_payments)}'
        )

    return errors


def validate_seasons(seasons: list[Season]) -> list[str]:
    """Check every season's calendar and that at most one is active."""
    errors = []
    for season in seasons:
        errors.extend(validate_season(season))

    active = [s.id for s in seasons if s.is_active]
    if len(active) > 1:
        errors.append(f'More than one active season: {", ".join(active)}')
    return errors


def validate_prize_breakdown(rows: list[PrizeBreakdown], pool: float) -> list[str]:
    """
    Check payouts against their pool.

    Returns:
        List of error messages (empty if payouts fit the pool)
    """
    errors = []
    for row in rows:
        if row.amount < 0:
            errors.append(f'{row.position} pays a negative amount ({row.amount})')

    total = sum(row.amount for row in rows)
    if total > pool:
        errors.append(f'Payouts total {total}, more than the pool of {pool}')
    return errors


def validate_league(
    seasons: list[Season],
    registrations: list[Registration],
    rounds: list[Round],
    threshold: int = ATTESTATION_THRESHOLD,
) -> tuple[list[str], list[str]]:
    """
    Validate every stored document.

    Returns:
        Tuple of (errors, warnings)
        - errors: Broken invariants that would corrupt standings or payouts
        - warnings: Data to review (e.g. rounds or registrations for unknown seasons)
    """
    errors = validate_seasons(seasons)
    warnings: list[str] = []
    by_id = {s.id: s for s in seasons}

    for registration in registrations:
        season = by_id.get(registration.season_id)
        if season is None:
            warnings.append(
                f'Registration {registration.id} references unknown season {registration.season_id}'
            )
            continue
        errors.extend(validate_registration(registration, season))

    for round_ in rounds:
        errors.extend(validate_round(round_, threshold))
        season = by_id.get(round_.season_id)
        if season is None:
            warnings.append(f'Round {round_.id} references unknown season {round_.season_id}')
        elif round_.month not in season_months(season):
            warnings.append(f'Round {round_.id} month {round_.month} is outside season {season.id}')

    return errors, warnings
