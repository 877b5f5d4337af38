"""Shared fixtures for golf league tests."""

from datetime import datetime, timedelta, timezone

import pytest

from golfleague.attestation import compute_validity
from golfleague.models import Attestation, Round, Season, UserProfile
from golfleague.schemas import LeagueConfig
from golfleague.scoring import score_round
from golfleague.service import LeagueService
from golfleague.storage import JsonLeagueStore

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Timestamp a number of minutes after T0."""
    return T0 + timedelta(minutes=minutes)


def build_round(
    round_id: str,
    player_id: str,
    gross: int,
    handicap: float = 0.0,
    submitted_at: datetime = T0,
    valid: bool = True,
    month: str = '2024-05',
    season_id: str = 's2024',
    course_rating: float = 72.0,
    slope: int = 113,
) -> Round:
    """Round with derived fields computed and, when valid, two attestations."""
    scored = score_round(gross, handicap, course_rating, slope)
    attestations = ()
    if valid:
        attestations = tuple(
            Attestation(attestor_id=f'witness-{i}', attestor_name=f'Witness {i}', attested_at=submitted_at)
            for i in (1, 2)
        )
    return Round(
        id=round_id,
        player_id=player_id,
        season_id=season_id,
        month=month,
        course_name='Pebble Creek',
        course_rating=course_rating,
        slope_rating=slope,
        gross_score=gross,
        handicap_index=handicap,
        course_handicap=scored.course_handicap,
        net_score=scored.net_score,
        differential=scored.differential,
        submitted_at=submitted_at,
        attestations=attestations,
        is_valid=compute_validity(len(attestations), None),
    )


@pytest.fixture
def make_round():
    return build_round


@pytest.fixture
def season():
    return Season(
        id='s2024',
        year=2024,
        start_month=4,
        end_month=11,
        registration_fee=100,
        monthly_due=50,
        is_active=True,
    )


@pytest.fixture
def users():
    return [
        UserProfile(id='alice', display_name='Alice Able', handicap_index=10.0, photo_url='a.png'),
        UserProfile(id='bob', display_name='Bob Brown', handicap_index=0.0),
        UserProfile(id='carol', display_name='Carol Chen', handicap_index=20.0),
        UserProfile(id='dave', display_name='Dave Admin', handicap_index=5.0, is_admin=True),
    ]


@pytest.fixture
def store(tmp_path, season, users):
    """JSON store in a temp directory seeded with users and an active season."""
    store = JsonLeagueStore(tmp_path / 'data')
    for user in users:
        store.save_user(user)
    store.save_season(season)
    return store


@pytest.fixture
def config():
    return LeagueConfig(league_name='Test League', max_transaction_retries=2)


@pytest.fixture
def service(store, config):
    return LeagueService(store, config=config)
