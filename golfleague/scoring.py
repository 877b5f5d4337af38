"""Score calculations for a submitted round."""

from decimal import ROUND_HALF_UP, Decimal

from .constants import NEUTRAL_SLOPE
from .models import RoundScore

_WHOLE = Decimal('1')
_TENTH = Decimal('0.1')


def _decimal(value: float | int) -> Decimal:
    # str() keeps the decimal the caller wrote (72.1 stays 72.1, not 72.0999...)
    return Decimal(str(value))


def course_handicap(handicap_index: float, slope_rating: int) -> int:
    """
    Scale a handicap index to a course's slope.

    Formula:
        round(handicap_index * slope_rating / 113)

    Halves round away from zero, so 0.5 -> 1 and -0.5 -> -1.
    slope_rating must be positive; range checks belong to the caller.
    """
    scaled = _decimal(handicap_index) * _decimal(slope_rating) / NEUTRAL_SLOPE
    return int(scaled.quantize(_WHOLE, rounding=ROUND_HALF_UP))


def net_score(gross_score: int, handicap_index: float, slope_rating: int) -> int:
    """Gross score minus course handicap."""
    return gross_score - course_handicap(handicap_index, slope_rating)


def differential(gross_score: int, course_rating: float, slope_rating: int) -> float:
    """
    Handicap differential for a round.

    Formula:
        (gross_score - course_rating) * 113 / slope_rating

    Rounded to one decimal place, halves away from zero. Negative values are
    allowed (a round played below the course rating).
    """
    value = (_decimal(gross_score) - _decimal(course_rating)) * NEUTRAL_SLOPE / _decimal(slope_rating)
    return float(value.quantize(_TENTH, rounding=ROUND_HALF_UP))


def score_round(
    gross_score: int, handicap_index: float, course_rating: float, slope_rating: int
) -> RoundScore:
    """
    Compute every derived field of a round at submission time.

    Args:
        gross_score: Total strokes taken
        handicap_index: Submitter's handicap index right now
        course_rating: Course rating of the tees played
        slope_rating: Slope rating of the tees played

    Returns:
        RoundScore with course handicap, net score and differential
    """
    return RoundScore(
        course_handicap=course_handicap(handicap_index, slope_rating),
        net_score=net_score(gross_score, handicap_index, slope_rating),
        differential=differential(gross_score, course_rating, slope_rating),
    )


def ordinal(rank: int) -> str:
    """Format a rank with its English suffix: 1st, 2nd, 3rd, 4th, 11th, 22nd."""
    if 10 <= rank % 100 <= 20:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(rank % 10, 'th')
    return f'{rank}{suffix}'


def medal(rank: int) -> str:
    """Medal emoji for podium ranks, empty string otherwise."""
    return {1: '🥇', 2: '🥈', 3: '🥉'}.get(rank, '')
