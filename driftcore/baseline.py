"""
Baseline estimation: robust descriptive statistics over a trailing window.

Median, MAD and the p25/p75 band drive scoring; mean and std are still
reported for the standard z-score.

All functions are pure: no I/O, no side effects.
"""

import math
from typing import Optional, Sequence

import numpy as np

from driftcore.config import DriftConfig
from driftcore.models import Baseline


# ---------------------------------------------------------------------------
# Percentile primitive
# ---------------------------------------------------------------------------

def percentile(sorted_values: np.ndarray, p: float) -> Optional[float]:
    """
    Linear-interpolated percentile of an already-sorted array.

        idx = (p / 100) * (n - 1)
        value = sorted[floor(idx)] * (1 - frac) + sorted[ceil(idx)] * frac

    Returns None for an empty array and the single value when n == 1.
    """
    n = len(sorted_values)
    if n == 0:
        return None
    if n == 1:
        return float(sorted_values[0])

    idx = (p / 100.0) * (n - 1)
    lower = math.floor(idx)
    upper = math.ceil(idx)
    weight = idx - lower
    return float(sorted_values[lower] * (1.0 - weight) + sorted_values[upper] * weight)


def _mad(sorted_values: np.ndarray, median: float) -> float:
    """Median absolute deviation: a second percentile pass over |v - median|."""
    deviations = np.sort(np.abs(sorted_values - median))
    return percentile(deviations, 50)


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------

def baseline_confidence(data_coverage: float, sample_size: int, cfg: DriftConfig) -> float:
    """
    Confidence in [0, 1] from coverage and sample size.

        coverage_factor = min(1, coverage / min_coverage)
        sample_factor   = min(1, n / (baseline_weeks * 7))
        confidence      = 0.6 * coverage_factor + 0.4 * sample_factor
    """
    bp = cfg.baseline
    if sample_size == 0:
        return 0.0

    coverage_factor = min(1.0, data_coverage / bp.min_coverage)
    sample_factor = min(1.0, sample_size / (bp.baseline_weeks * 7))
    confidence = 0.6 * coverage_factor + 0.4 * sample_factor
    return float(np.clip(confidence, 0.0, 1.0))


# ---------------------------------------------------------------------------
# Baseline estimation
# ---------------------------------------------------------------------------

def _empty_baseline(metric_key: Optional[str], cfg: DriftConfig) -> Baseline:
    return Baseline(
        metric_key=metric_key,
        window_weeks=cfg.baseline.baseline_weeks,
        mean=None,
        median=None,
        std=None,
        mad=None,
        p25=None,
        p75=None,
        confidence=0.0,
        sample_size=0,
    )


def estimate_baseline(
    values: Sequence[float],
    expected_count: Optional[int] = None,
    cfg: DriftConfig | None = None,
    metric_key: Optional[str] = None,
) -> Baseline:
    """
    Compute a Baseline over `values` (oldest first).

    `expected_count` is the number of weeks that should exist in the window;
    when given, coverage = min(1, n / expected_count), otherwise 1.

    Empty input is not an error: every statistic is None and confidence 0.
    Non-finite values or a non-positive expected_count raise ValueError.
    """
    if cfg is None:
        cfg = DriftConfig()

    if expected_count is not None and expected_count <= 0:
        raise ValueError(f"expected_count must be positive, got {expected_count}")

    raw = np.asarray(list(values) if values is not None else [], dtype=np.float64)
    n = len(raw)
    if n == 0:
        return _empty_baseline(metric_key, cfg)

    if not np.all(np.isfinite(raw)):
        raise ValueError("Baseline values must be finite numbers")

    ordered = np.sort(raw)

    mean = float(raw.mean())
    median = percentile(ordered, 50)
    std = float(np.sqrt(np.mean((raw - mean) ** 2)))   # population std (ddof=0)
    mad = _mad(ordered, median)
    p25 = percentile(ordered, 25)
    p75 = percentile(ordered, 75)

    coverage = min(1.0, n / expected_count) if expected_count else 1.0
    confidence = baseline_confidence(coverage, n, cfg)

    return Baseline(
        metric_key=metric_key,
        window_weeks=cfg.baseline.baseline_weeks,
        mean=mean,
        median=median,
        std=std,
        mad=mad,
        p25=p25,
        p75=p75,
        confidence=confidence,
        sample_size=n,
    )
