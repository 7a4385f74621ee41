"""Pydantic schemas for JSON configuration and scouting entries."""

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import RECORD_SECTIONS


class PointTable(BaseModel):
    """Point value per action/toggle key, per phase."""

    auto: dict[str, float] = Field(default_factory=dict)
    teleop: dict[str, float] = Field(default_factory=dict)
    endgame: dict[str, float] = Field(default_factory=dict)

    @field_validator('auto', 'teleop', 'endgame')
    @classmethod
    def validate_points(cls, v):
        """Ensure point values are non-negative."""
        for key, points in v.items():
            if points < 0:
                raise ValueError(f'Negative point value for {key}: {points}')
        return v

    def for_phase(self, phase: str) -> dict[str, float]:
        """Point mapping for one record section (empty for unknown sections)."""
        return getattr(self, phase, None) or {}

    class Config:
        extra = 'forbid'


class CounterSchema(BaseModel):
    """Season-declared counter keys per record section ('count' or 'flag')."""

    auto: dict[str, str] = Field(default_factory=dict)
    teleop: dict[str, str] = Field(default_factory=dict)
    endgame: dict[str, str] = Field(default_factory=dict)

    @field_validator('auto', 'teleop', 'endgame')
    @classmethod
    def validate_kinds(cls, v):
        """Ensure every declared counter has a known kind."""
        for key, kind in v.items():
            if kind not in ('count', 'flag'):
                raise ValueError(f'Invalid counter kind for {key}: {kind}')
        return v

    class Config:
        extra = 'forbid'


class SeverityThresholds(BaseModel):
    """Discrepancy thresholds; a difference at or above a tier's value reaches that tier."""

    minor: float = Field(1, ge=0)
    warning: float = Field(3, ge=0)
    critical: float = Field(5, ge=0)
    minor_percent: float | None = Field(None, ge=0)
    warning_percent: float | None = Field(None, ge=0)
    critical_percent: float | None = Field(None, ge=0)

    @model_validator(mode='after')
    def validate_ordering(self):
        """Tiers must not decrease from minor to critical."""
        if not (self.minor <= self.warning <= self.critical):
            raise ValueError(
                f'Thresholds must be ordered minor <= warning <= critical, '
                f'got {self.minor}/{self.warning}/{self.critical}'
            )
        percents = [p for p in (self.minor_percent, self.warning_percent, self.critical_percent) if p is not None]
        if percents != sorted(percents):
            raise ValueError('Percent thresholds must be ordered minor <= warning <= critical')
        return self

    class Config:
        extra = 'forbid'


class ThresholdConfig(BaseModel):
    """Default thresholds plus per-category overrides."""

    default: SeverityThresholds = Field(default_factory=SeverityThresholds)
    categories: dict[str, SeverityThresholds] = Field(default_factory=dict)

    def for_category(self, category: str) -> SeverityThresholds:
        return self.categories.get(category, self.default)

    class Config:
        extra = 'forbid'


class FieldSpec(BaseModel):
    """
    One validated metric: which scouted aggregate paths map to which
    authoritative breakdown paths. Paths are dotted ('auto.fuelScoredCount')
    and every listed path is summed.
    """

    category: str = Field(..., min_length=1)
    field: str = Field(..., min_length=1)
    scouted: list[str] = Field(..., min_length=1)
    tba: list[str] = Field(..., min_length=1)
    unit: str | None = None

    class Config:
        extra = 'forbid'


class SeasonConfig(BaseModel):
    """Everything season-specific: points, counters, validation mapping."""

    season: int = Field(..., ge=2000, le=2100)
    game_name: str = Field(..., min_length=1)
    point_table: PointTable
    counters: CounterSchema = Field(default_factory=CounterSchema)
    start_positions: list[str] = Field(default_factory=list)
    fuel_options: list[int] = Field(default_factory=list)
    collect_amount: int = Field(8, ge=1)
    stuck_window_ms: int = Field(5000, ge=0)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    fields: list[FieldSpec] = Field(default_factory=list)

    @field_validator('fuel_options')
    @classmethod
    def validate_fuel_options(cls, v):
        """Ensure quantity buttons are positive."""
        for amount in v:
            if amount <= 0:
                raise ValueError(f'Fuel option must be positive, got {amount}')
        return v

    class Config:
        extra = 'forbid'


class ScoutConfig(BaseModel):
    """Application-level settings."""

    current_season: int = Field(..., ge=2000, le=2100)
    tba_base_url: str = 'https://www.thebluealliance.com/api/v3'
    tba_timeout: float = Field(10.0, gt=0)
    log_dir: str = 'logs'

    class Config:
        extra = 'forbid'


class ScoutingEntry(BaseModel):
    """One persisted scouting entry: match metadata plus the counter record."""

    team_number: int = Field(..., ge=1)
    match_number: int = Field(..., ge=1)
    match_type: str = Field(default='qm', pattern=r'^(qm|sf|f)$')
    alliance: str = Field(..., pattern=r'^(red|blue)$')
    event_key: str = ''
    scout_name: str = ''
    comments: str = ''
    no_show: bool = False
    game_data: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @field_validator('game_data')
    @classmethod
    def fill_sections(cls, v):
        """Missing record sections read as empty."""
        for section in RECORD_SECTIONS:
            v.setdefault(section, {})
        return v

    class Config:
        extra = 'allow'


class EntriesFile(BaseModel):
    """Exported entries file: a flat list of scouting entries."""

    entries: list[ScoutingEntry]

    class Config:
        extra = 'forbid'
