"""Pydantic schemas for round submissions, JSON documents and league config."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    ATTESTATION_METHOD_QR,
    COURSE_RATING_RANGE,
    GROSS_SCORE_RANGE,
    MAX_NOTES_LENGTH,
    MIN_COURSE_NAME_LENGTH,
    SLOPE_RATING_RANGE,
)
from .models import (
    AdminOverride,
    Attestation,
    Points,
    Registration,
    Round,
    Season,
    UserProfile,
)

MONTH_KEY_PATTERN = r'^\d{4}-(0[1-9]|1[0-2])$'


class RoundSubmission(BaseModel):
    """Scorecard fields entered by a player."""

    course_name: str = Field(..., min_length=MIN_COURSE_NAME_LENGTH)
    course_rating: float = Field(..., ge=COURSE_RATING_RANGE[0], le=COURSE_RATING_RANGE[1])
    slope_rating: int = Field(..., ge=SLOPE_RATING_RANGE[0], le=SLOPE_RATING_RANGE[1])
    gross_score: int = Field(..., ge=GROSS_SCORE_RANGE[0], le=GROSS_SCORE_RANGE[1])
    notes: str = Field(default='', max_length=MAX_NOTES_LENGTH)

    @field_validator('course_name')
    @classmethod
    def strip_course_name(cls, v):
        """Reject names that are only whitespace."""
        v = v.strip()
        if len(v) < MIN_COURSE_NAME_LENGTH:
            raise ValueError('Course name required')
        return v

    class Config:
        extra = 'forbid'


class UserDoc(BaseModel):
    """Stored member profile."""

    id: str = Field(..., min_length=1)
    display_name: str
    email: str = ''
    photo_url: str = ''
    handicap_index: float = 0.0
    is_admin: bool = False

    class Config:
        extra = 'ignore'

    def to_model(self) -> UserProfile:
        return UserProfile(**self.model_dump())

    @classmethod
    def from_model(cls, user: UserProfile) -> 'UserDoc':
        return cls(**user.__dict__)


class SeasonDoc(BaseModel):
    """Stored season."""

    id: str = Field(..., min_length=1)
    year: int = Field(..., ge=2000, le=2100)
    start_month: int = Field(..., ge=1, le=12)
    end_month: int = Field(..., ge=1, le=12)
    registration_fee: float = Field(..., ge=0)
    monthly_due: float = Field(..., ge=0)
    is_active: bool = False

    @model_validator(mode='after')
    def check_month_order(self):
        """Ensure the season does not end before it starts."""
        if self.end_month < self.start_month:
            raise ValueError(
                f'end_month ({self.end_month}) is before start_month ({self.start_month})'
            )
        return self

    class Config:
        extra = 'forbid'

    def to_model(self) -> Season:
        return Season(**self.model_dump())

    @classmethod
    def from_model(cls, season: Season) -> 'SeasonDoc':
        return cls(**season.__dict__)


class RegistrationDoc(BaseModel):
    """Stored season registration."""

    id: str = Field(..., min_length=1)
    player_id: str
    season_id: str
    registered_at: datetime | None = None
    has_paid_registration: bool = False
    monthly_payments: dict[str, bool] = Field(default_factory=dict)
    forfeited_months: list[str] = Field(default_factory=list)
    total_forfeited: float = Field(default=0, ge=0)

    @field_validator('monthly_payments')
    @classmethod
    def validate_payment_months(cls, v):
        """Ensure payment keys are month keys."""
        for month in v:
            _check_month_key(month)
        return v

    @field_validator('forfeited_months')
    @classmethod
    def validate_forfeited_months(cls, v):
        """Ensure forfeits are unique month keys."""
        for month in v:
            _check_month_key(month)
        if len(set(v)) != len(v):
            raise ValueError(f'Duplicate forfeited months: {v}')
        return v

    class Config:
        extra = 'forbid'

    def to_model(self) -> Registration:
        data = self.model_dump()
        data['forfeited_months'] = tuple(data['forfeited_months'])
        return Registration(**data)

    @classmethod
    def from_model(cls, registration: Registration) -> 'RegistrationDoc':
        data = dict(registration.__dict__)
        data['forfeited_months'] = list(registration.forfeited_months)
        return cls(**data)


class AttestationDoc(BaseModel):
    """Stored peer attestation."""

    attestor_id: str = Field(..., min_length=1)
    attestor_name: str
    attested_at: datetime
    method: str = ATTESTATION_METHOD_QR

    class Config:
        extra = 'forbid'


class AdminOverrideDoc(BaseModel):
    """Stored admin override."""

    force_valid: bool
    note: str = Field(..., min_length=1)
    admin_id: str = ''
    overridden_at: datetime | None = None

    class Config:
        extra = 'forbid'


class RoundDoc(BaseModel):
    """Stored round with its derived fields and attestations."""

    id: str = Field(..., min_length=1)
    player_id: str = Field(..., min_length=1)
    season_id: str
    month: str = Field(..., pattern=MONTH_KEY_PATTERN)
    course_name: str
    course_rating: float
    slope_rating: int = Field(..., ge=1)
    gross_score: int
    handicap_index: float
    course_handicap: int
    net_score: int
    differential: float
    submitted_at: datetime
    attestations: list[AttestationDoc] = Field(default_factory=list)
    is_valid: bool = False
    override: AdminOverrideDoc | None = None
    notes: str = ''

    @field_validator('attestations')
    @classmethod
    def validate_unique_attestors(cls, v):
        """Ensure no attestor appears twice."""
        ids = [a.attestor_id for a in v]
        if len(set(ids)) != len(ids):
            raise ValueError(f'Duplicate attestors: {ids}')
        return v

    class Config:
        extra = 'forbid'

    def to_model(self) -> Round:
        data = self.model_dump(exclude={'attestations', 'override'})
        return Round(
            **data,
            attestations=tuple(Attestation(**a.model_dump()) for a in self.attestations),
            override=AdminOverride(**self.override.model_dump()) if self.override else None,
        )

    @classmethod
    def from_model(cls, round_: Round) -> 'RoundDoc':
        data = dict(round_.__dict__)
        data['attestations'] = [AttestationDoc(**a.__dict__) for a in round_.attestations]
        data['override'] = AdminOverrideDoc(**round_.override.__dict__) if round_.override else None
        return cls(**data)


class PointsDoc(BaseModel):
    """Stored monthly points for one player."""

    player_id: str = Field(..., min_length=1)
    season_id: str
    month: str = Field(..., pattern=MONTH_KEY_PATTERN)
    gross_points: int = Field(default=0, ge=0)
    net_points: int = Field(default=0, ge=0)
    total_monthly_points: int = Field(default=0, ge=0)
    cumulative_points: int = Field(default=0, ge=0)

    class Config:
        extra = 'forbid'

    def to_model(self) -> Points:
        return Points(**self.model_dump())

    @classmethod
    def from_model(cls, points: Points) -> 'PointsDoc':
        return cls(**points.__dict__)


class UsersFile(BaseModel):
    """Complete users.json file structure."""

    users: list[UserDoc] = Field(default_factory=list)


class SeasonsFile(BaseModel):
    """Complete seasons.json file structure."""

    seasons: list[SeasonDoc] = Field(default_factory=list)


class RegistrationsFile(BaseModel):
    """Complete registrations.json file structure."""

    registrations: list[RegistrationDoc] = Field(default_factory=list)


class RoundsFile(BaseModel):
    """Complete rounds.json file structure."""

    rounds: list[RoundDoc] = Field(default_factory=list)


class PointsFile(BaseModel):
    """Complete points.json file structure."""

    points: list[PointsDoc] = Field(default_factory=list)


class LeagueConfig(BaseModel):
    """League configuration settings."""

    league_name: str = Field(default='Golf League', min_length=1)
    data_dir: str = 'data'
    placeholder_name: str = Field(default='Unknown', min_length=1)
    max_transaction_retries: int = Field(default=3, ge=0, le=10)

    class Config:
        extra = 'forbid'


def _check_month_key(month: str) -> None:
    if not re.match(MONTH_KEY_PATTERN, month):
        raise ValueError(f'Invalid month key: {month}')
