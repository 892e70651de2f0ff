"""
Record types exchanged across the engine boundary.

All records are frozen: a week's result is superseded by a later record,
never edited in place. Optional statistics are explicit `None`, which
callers read as "insufficient data".
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional


BANDS = ("green", "yellow", "red")
SEVERITIES = {"green": "low", "yellow": "moderate", "red": "high"}
ZONES = ("Stable", "Watch", "Surge", "Recovery")
RISK_TYPES = ("overload", "execution", "retention")
CLASSIFICATIONS = ("structural", "episodic")


@dataclass(frozen=True)
class MetricSample:
    team_id: str
    metric_key: str
    week_start: date
    value: float


@dataclass(frozen=True)
class Baseline:
    """Robust descriptive statistics over a trailing window of weekly values."""

    metric_key: Optional[str]
    window_weeks: int
    mean: Optional[float]
    median: Optional[float]
    std: Optional[float]
    mad: Optional[float]
    p25: Optional[float]
    p75: Optional[float]
    confidence: float
    sample_size: int

    @property
    def has_data(self) -> bool:
        return self.sample_size > 0


@dataclass(frozen=True)
class DeviationResult:
    metric_key: Optional[str]
    current_value: float
    robust_z: Optional[float]
    standard_z: Optional[float]
    delta_abs: Optional[float]
    delta_pct: Optional[float]
    outside_band: bool
    direction: Optional[str]          # "above" | "below" | None
    normalized: Optional[float]       # position inside [p25, p75], clamped to [0, 1]


@dataclass(frozen=True)
class QualityDecision:
    meets: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class CompositeRiskScore:
    team_id: Optional[str]
    week_start: Optional[date]
    overload: float
    execution: float
    retention: float
    bdi: float

    def dimension(self, risk_type: str) -> float:
        if risk_type not in RISK_TYPES:
            raise ValueError(f"Unknown risk type: {risk_type!r}")
        return getattr(self, risk_type)


@dataclass(frozen=True)
class ZoneState:
    team_id: str
    week_start: date
    zone: str
    band: str


@dataclass(frozen=True)
class PersistentRisk:
    risk_type: str
    weeks_above_threshold: int
    avg_score: float
    classification: str


@dataclass(frozen=True)
class TimeSeriesPoint:
    week_start: date
    value: float
    baseline_median: Optional[float]
    baseline_lower: Optional[float]
    baseline_upper: Optional[float]
    is_above_upper_band: bool
    is_below_lower_band: bool


@dataclass(frozen=True)
class Driver:
    """One metric's weighted contribution to a risk dimension."""

    metric_key: str
    risk_type: str
    magnitude: float
    weight: float

    @property
    def contribution(self) -> float:
        return self.magnitude * self.weight


@dataclass
class TeamWeekResult:
    """Everything one scoring cycle produced for one team and week."""

    team_id: str
    week_start: date
    quality: QualityDecision
    composite: Optional[CompositeRiskScore] = None
    zone: Optional[ZoneState] = None
    baselines: Dict[str, Baseline] = field(default_factory=dict)
    deviations: Dict[str, DeviationResult] = field(default_factory=dict)
    magnitudes: Dict[str, float] = field(default_factory=dict)
    suppressed: Dict[str, str] = field(default_factory=dict)
    drivers: List[Driver] = field(default_factory=list)
    timeseries: Dict[str, List[TimeSeriesPoint]] = field(default_factory=dict)
