"""
Deviation scoring: where does the current week sit relative to its baseline?

Every division guards its denominator and returns None instead of
producing NaN or infinity.
"""

from typing import Optional, Tuple

import numpy as np

from driftcore.config import DriftConfig
from driftcore.models import Baseline, DeviationResult


# Rescales MAD to be comparable to a standard deviation under normality.
MAD_SCALE = 1.4826


# ---------------------------------------------------------------------------
# Z-scores and deltas
# ---------------------------------------------------------------------------

def robust_z_score(value: float, median: Optional[float], mad: Optional[float]) -> Optional[float]:
    """(value - median) / (1.4826 * MAD); None when MAD is absent or zero."""
    if median is None or mad is None or mad == 0:
        return None
    return (value - median) / (MAD_SCALE * mad)


def standard_z_score(value: float, mean: Optional[float], std: Optional[float]) -> Optional[float]:
    if mean is None or std is None or std == 0:
        return None
    return (value - mean) / std


def delta_abs(value: float, baseline_value: Optional[float]) -> Optional[float]:
    if baseline_value is None:
        return None
    return value - baseline_value


def delta_pct(value: float, baseline_value: Optional[float]) -> Optional[float]:
    """Percentage change relative to |baseline_value|."""
    if baseline_value is None or baseline_value == 0:
        return None
    return (value - baseline_value) / abs(baseline_value) * 100.0


# ---------------------------------------------------------------------------
# Band position
# ---------------------------------------------------------------------------

def band_position(value: float, baseline: Baseline) -> Tuple[bool, Optional[str]]:
    """Return (outside_band, direction) against the [p25, p75] band."""
    if baseline.p25 is None or baseline.p75 is None:
        return False, None
    if value < baseline.p25:
        return True, "below"
    if value > baseline.p75:
        return True, "above"
    return False, None


def normalize_value(value: float, baseline: Baseline) -> Optional[float]:
    """
    Position of `value` inside the band: 0 at p25, 1 at p75, clamped.

    A zero-width band (p25 == p75) maps everything to exactly 0.5.
    """
    if baseline.p25 is None or baseline.p75 is None:
        return None
    spread = baseline.p75 - baseline.p25
    if spread == 0:
        return 0.5
    return float(np.clip((value - baseline.p25) / spread, 0.0, 1.0))


# ---------------------------------------------------------------------------
# Full deviation record
# ---------------------------------------------------------------------------

def score_deviation(current_value: float, baseline: Baseline) -> DeviationResult:
    """Compare `current_value` to `baseline`. Deltas are taken against the median."""
    if current_value is None or not np.isfinite(current_value):
        raise ValueError(f"current_value must be a finite number, got {current_value!r}")

    current_value = float(current_value)
    outside, direction = band_position(current_value, baseline)

    return DeviationResult(
        metric_key=baseline.metric_key,
        current_value=current_value,
        robust_z=robust_z_score(current_value, baseline.median, baseline.mad),
        standard_z=standard_z_score(current_value, baseline.mean, baseline.std),
        delta_abs=delta_abs(current_value, baseline.median),
        delta_pct=delta_pct(current_value, baseline.median),
        outside_band=outside,
        direction=direction,
        normalized=normalize_value(current_value, baseline),
    )


# ---------------------------------------------------------------------------
# Drift magnitude (input to the composite aggregator)
# ---------------------------------------------------------------------------

def drift_magnitude(result: DeviationResult, cfg: DriftConfig | None = None) -> float:
    """
    0-100 measure of how far a metric has drifted in its adverse direction.

    Movement in the benign direction (e.g. more focus time) scores 0.
    A metric without a usable percentage delta scores 0.
    """
    if cfg is None:
        cfg = DriftConfig()
    mp = cfg.magnitude

    if result.delta_pct is None:
        return 0.0

    sign = -1.0 if result.metric_key in mp.adverse_down else 1.0
    scaled = sign * result.delta_pct / mp.full_scale_pct
    return float(np.clip(scaled, 0.0, 1.0) * 100.0)
