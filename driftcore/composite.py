"""
Composite risk: per-metric drift magnitudes → Overload / Execution / Retention → BDI.

Each dimension is a weighted sum of 0-100 magnitudes. The Behavioral Drift
Index combines the three dimensions by root-mean-square, so one acute
dimension outweighs three moderate ones:

    BDI = sqrt((overload² + execution² + retention²) / 3)
"""

from datetime import date
from typing import Dict, List, Mapping, Optional

import numpy as np

from driftcore.config import DriftConfig
from driftcore.models import CompositeRiskScore, Driver


SCALE_MAX = 100.0


def _clamp(x: float) -> float:
    return float(np.clip(x, 0.0, SCALE_MAX))


def _checked_magnitudes(deviations: Mapping[str, float]) -> Dict[str, float]:
    """Validate and clamp caller-supplied magnitudes; missing metrics count as 0."""
    checked = {}
    for key, value in deviations.items():
        if value is None or not np.isfinite(value):
            raise ValueError(f"Deviation for {key!r} must be a finite number, got {value!r}")
        checked[key] = _clamp(float(value))
    return checked


def weighted_dimension(magnitudes: Mapping[str, float], weights: tuple) -> float:
    """Σ weight · magnitude over ((metric_key, weight), ...), clamped to [0, 100]."""
    return _clamp(sum(w * magnitudes.get(key, 0.0) for key, w in weights))


def rms_index(overload: float, execution: float, retention: float) -> float:
    components = np.array([overload, execution, retention], dtype=np.float64)
    return _clamp(np.sqrt(np.mean(components ** 2)))


def aggregate_composite(
    deviations: Mapping[str, float],
    team_id: Optional[str] = None,
    week_start: Optional[date] = None,
    cfg: DriftConfig | None = None,
) -> CompositeRiskScore:
    """Combine {metric_key: magnitude 0-100} into a CompositeRiskScore."""
    if cfg is None:
        cfg = DriftConfig()

    mags = _checked_magnitudes(deviations)

    overload = weighted_dimension(mags, cfg.overload.items())
    execution = weighted_dimension(mags, cfg.execution.items())
    retention = weighted_dimension(mags, cfg.retention.items())

    return CompositeRiskScore(
        team_id=team_id,
        week_start=week_start,
        overload=overload,
        execution=execution,
        retention=retention,
        bdi=rms_index(overload, execution, retention),
    )


# ---------------------------------------------------------------------------
# Explanations
# ---------------------------------------------------------------------------

def top_drivers(
    deviations: Mapping[str, float],
    cfg: DriftConfig | None = None,
    limit: int = 3,
    min_magnitude: float = 10.0,
) -> List[Driver]:
    """
    Metrics contributing most to the composite, largest weighted contribution first.

    Magnitudes under `min_magnitude` are treated as noise and left out.
    """
    if cfg is None:
        cfg = DriftConfig()

    mags = _checked_magnitudes(deviations)
    drivers = [
        Driver(metric_key=key, risk_type=risk_type, magnitude=mags[key], weight=w)
        for risk_type, weights in cfg.dimensions()
        for key, w in weights
        if mags.get(key, 0.0) >= min_magnitude
    ]
    drivers.sort(key=lambda d: d.contribution, reverse=True)
    return drivers[:limit]


def dominant_dimension(score: CompositeRiskScore) -> Optional[str]:
    """Name of the highest-scoring dimension, or None when all are zero."""
    ranked = sorted(
        (("overload", score.overload), ("execution", score.execution), ("retention", score.retention)),
        key=lambda item: item[1],
        reverse=True,
    )
    name, value = ranked[0]
    return name if value > 0 else None
