"""
Centralized configuration for baseline windows, quality floors, weights and bands.

Every tunable policy value lives here and is threaded into each call as a
`DriftConfig`. Nothing in the engine reads a module-level policy global.
"""

from dataclasses import dataclass, field, fields
from typing import Tuple


def _check_weights_sum(obj) -> None:
    total = sum(getattr(obj, f.name) for f in fields(obj))
    if abs(total - 1.0) > 1e-9:
        raise ValueError(f"{type(obj).__name__} must sum to 1.0, got {total}")


# ---------------------------------------------------------------------------
# Baseline window
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BaselineParams:
    """Trailing window used to establish a team's own normal."""

    baseline_weeks: int = 6
    # Fraction of expected weeks that must be present before a baseline
    # is trusted (and before a metric is surfaced at all).
    min_coverage: float = 0.6

    def __post_init__(self):
        if not isinstance(self.baseline_weeks, int) or self.baseline_weeks <= 0:
            raise ValueError(f"baseline_weeks must be a positive int, got {self.baseline_weeks!r}")
        if not 0.0 < self.min_coverage <= 1.0:
            raise ValueError(f"min_coverage must be in (0, 1], got {self.min_coverage}")


# ---------------------------------------------------------------------------
# Data quality floors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class QualityParams:
    """Privacy and sample-size floors applied before anything is surfaced."""

    min_group_size: int = 8
    min_sample_size: int = 0      # 0 disables the check

    def __post_init__(self):
        if self.min_group_size < 1:
            raise ValueError(f"min_group_size must be >= 1, got {self.min_group_size}")
        if self.min_sample_size < 0:
            raise ValueError(f"min_sample_size must be >= 0, got {self.min_sample_size}")


# ---------------------------------------------------------------------------
# Risk dimension weights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OverloadWeights:
    """Overload = how much more the team is being asked to carry."""

    meeting_load: float = 0.40
    after_hours: float = 0.35
    focus_time: float = 0.25

    def __post_init__(self):
        _check_weights_sum(self)

    def items(self) -> Tuple[Tuple[str, float], ...]:
        return tuple((f.name, getattr(self, f.name)) for f in fields(self))


@dataclass(frozen=True)
class ExecutionWeights:
    """Execution = how well coordination is still flowing."""

    response_time: float = 0.40
    meeting_fragmentation: float = 0.30
    participation_drift: float = 0.30

    def __post_init__(self):
        _check_weights_sum(self)

    def items(self) -> Tuple[Tuple[str, float], ...]:
        return tuple((f.name, getattr(self, f.name)) for f in fields(self))


@dataclass(frozen=True)
class RetentionWeights:
    """Retention = sustained strain signals that precede exits."""

    attrition_risk: float = 0.40
    network_shrinkage: float = 0.30
    sentiment_drop: float = 0.30

    def __post_init__(self):
        _check_weights_sum(self)

    def items(self) -> Tuple[Tuple[str, float], ...]:
        return tuple((f.name, getattr(self, f.name)) for f in fields(self))


# ---------------------------------------------------------------------------
# Deviation -> drift magnitude
# ---------------------------------------------------------------------------

# Metrics where a drop below the baseline is the adverse direction.
# Everything else drifts adversely upward, including metrics already named
# for the adverse movement (network_shrinkage, sentiment_drop).
DEFAULT_ADVERSE_DOWN: tuple = ("focus_time",)


@dataclass(frozen=True)
class MagnitudeParams:
    """
    Converts a DeviationResult into a 0-100 drift magnitude.

    magnitude = clip(adverse_sign * delta_pct / full_scale_pct, 0, 1) * 100
    """

    full_scale_pct: float = 100.0   # % change at which magnitude saturates
    adverse_down: tuple = DEFAULT_ADVERSE_DOWN

    def __post_init__(self):
        if self.full_scale_pct <= 0:
            raise ValueError(f"full_scale_pct must be positive, got {self.full_scale_pct}")


# ---------------------------------------------------------------------------
# Severity bands and zones
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BandThresholds:
    """Inclusive upper bounds of the green and yellow bands on the 0-100 BDI scale."""

    green_max: float = 35.0
    yellow_max: float = 65.0

    def __post_init__(self):
        if not 0.0 <= self.green_max < self.yellow_max <= 100.0:
            raise ValueError(
                f"Band thresholds must satisfy 0 <= green_max < yellow_max <= 100, "
                f"got {self.green_max}, {self.yellow_max}"
            )


@dataclass(frozen=True)
class ZoneParams:
    """BDI must fall this far below a band boundary before a team steps down a zone."""

    hysteresis: float = 5.0

    def __post_init__(self):
        if self.hysteresis < 0:
            raise ValueError(f"hysteresis must be >= 0, got {self.hysteresis}")


# ---------------------------------------------------------------------------
# Persistent risk
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PersistenceParams:
    """
    Rules for promoting an elevated risk to "persistent" and labelling it.

    - A dimension is elevated in a week when its score >= elevated_threshold.
    - It is persistent once the trailing streak reaches min_weeks.
    - strategy picks the structural/episodic discriminator:
        "slope"    — OLS slope over the streak >= -slope_tolerance → structural
        "coverage" — streak / window_weeks >= structural_ratio → structural
    """

    min_weeks: int = 3
    elevated_threshold: float = 35.0
    window_weeks: int = 4
    slope_tolerance: float = 1.0        # score points per week
    structural_ratio: float = 0.7
    strategy: str = "slope"

    # BDI trend across the monthly window (second half avg - first half avg)
    trend_moderate: float = 5.0
    trend_strong: float = 15.0

    def __post_init__(self):
        if self.min_weeks < 1:
            raise ValueError(f"min_weeks must be >= 1, got {self.min_weeks}")
        if self.window_weeks < self.min_weeks:
            raise ValueError(
                f"window_weeks ({self.window_weeks}) must be >= min_weeks ({self.min_weeks})"
            )


# ---------------------------------------------------------------------------
# Read-side projection and batch execution
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimeSeriesParams:
    weeks_to_show: int = 8


@dataclass(frozen=True)
class BatchParams:
    max_workers: int = 4


# ---------------------------------------------------------------------------
# Top-level config aggregate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DriftConfig:
    """Complete engine configuration. Pass to any operation to override defaults."""

    baseline: BaselineParams = field(default_factory=BaselineParams)
    quality: QualityParams = field(default_factory=QualityParams)
    overload: OverloadWeights = field(default_factory=OverloadWeights)
    execution: ExecutionWeights = field(default_factory=ExecutionWeights)
    retention: RetentionWeights = field(default_factory=RetentionWeights)
    magnitude: MagnitudeParams = field(default_factory=MagnitudeParams)
    bands: BandThresholds = field(default_factory=BandThresholds)
    zones: ZoneParams = field(default_factory=ZoneParams)
    persistence: PersistenceParams = field(default_factory=PersistenceParams)
    timeseries: TimeSeriesParams = field(default_factory=TimeSeriesParams)
    batch: BatchParams = field(default_factory=BatchParams)

    def __post_init__(self):
        if self.zones.hysteresis >= self.bands.green_max:
            raise ValueError(
                f"hysteresis ({self.zones.hysteresis}) must be below green_max "
                f"({self.bands.green_max}) or no team can return to Stable"
            )

    def dimensions(self) -> Tuple[Tuple[str, tuple], ...]:
        """(dimension name, ((metric_key, weight), ...)) in reporting order."""
        return (
            ("overload", self.overload.items()),
            ("execution", self.execution.items()),
            ("retention", self.retention.items()),
        )
