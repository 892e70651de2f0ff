"""
Streaks and persistent-risk classification.

A single red week is noise; several consecutive elevated weeks are a trend.
`track_streak` counts the trailing run of a weekly condition, and
`classify_persistent_risk` decides whether a run long enough to be
persistent is structural (plateaued or still rising) or episodic (a spike
that is already resolving).

The structural/episodic discriminator is a pluggable strategy: any callable
`(weeks_above_threshold, streak_scores, cfg) -> "structural" | "episodic"`.
"""

from datetime import timedelta
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from driftcore.config import DriftConfig
from driftcore.models import CompositeRiskScore, PersistentRisk, RISK_TYPES


Strategy = Callable[[int, Sequence[float], DriftConfig], str]
ONE_WEEK = timedelta(weeks=1)


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

def track_streak(flags: Sequence[bool]) -> int:
    """Consecutive True values counted backward from the most recent week."""
    if flags is None:
        return 0
    streak = 0
    for flag in reversed(list(flags)):
        if flag:
            streak += 1
        else:
            break
    return streak


# ---------------------------------------------------------------------------
# OLS slope
# ---------------------------------------------------------------------------

def _ols_slope(y: np.ndarray) -> float:
    """
    Ordinary least-squares slope for evenly-spaced data.

    slope = Σ(x_c · y_c) / Σ(x_c²) with mean-centered x and y.
    """
    n = len(y)
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=np.float64)
    x_c = x - x.mean()
    y_c = y - y.mean()
    denom = np.dot(x_c, x_c)
    if denom == 0.0:
        return 0.0
    return float(np.dot(x_c, y_c) / denom)


# ---------------------------------------------------------------------------
# Structural / episodic strategies
# ---------------------------------------------------------------------------

def slope_strategy(weeks_above_threshold: int, scores: Sequence[float], cfg: DriftConfig) -> str:
    """Structural unless scores across the streak fall faster than slope_tolerance per week."""
    slope = _ols_slope(np.asarray(scores, dtype=np.float64))
    if slope >= -cfg.persistence.slope_tolerance:
        return "structural"
    return "episodic"


def coverage_strategy(weeks_above_threshold: int, scores: Sequence[float], cfg: DriftConfig) -> str:
    """Structural when the streak spans at least structural_ratio of the reporting window."""
    p = cfg.persistence
    if weeks_above_threshold / p.window_weeks >= p.structural_ratio:
        return "structural"
    return "episodic"


STRATEGIES: Dict[str, Strategy] = {
    "slope": slope_strategy,
    "coverage": coverage_strategy,
}


def _resolve_strategy(strategy: Optional[Strategy], cfg: DriftConfig) -> Strategy:
    if strategy is not None:
        return strategy
    try:
        return STRATEGIES[cfg.persistence.strategy]
    except KeyError:
        raise ValueError(f"Unknown persistence strategy: {cfg.persistence.strategy!r}") from None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_persistent_risk(
    weeks_above_threshold: int,
    score_history: Sequence[float],
    cfg: DriftConfig | None = None,
    risk_type: str = "overload",
    strategy: Optional[Strategy] = None,
) -> Optional[PersistentRisk]:
    """
    Classify a risk whose trailing streak is `weeks_above_threshold` long.

    `score_history` is chronological; only its trailing streak is used.
    Returns None when the streak is too short to count as persistent.
    """
    if cfg is None:
        cfg = DriftConfig()
    if weeks_above_threshold < 0:
        raise ValueError(f"weeks_above_threshold must be >= 0, got {weeks_above_threshold}")
    if risk_type not in RISK_TYPES:
        raise ValueError(f"Unknown risk type: {risk_type!r}")

    if weeks_above_threshold < cfg.persistence.min_weeks:
        return None

    scores = list(score_history)
    if len(scores) < weeks_above_threshold:
        raise ValueError(
            f"score_history has {len(scores)} weeks, shorter than the "
            f"{weeks_above_threshold}-week streak"
        )
    streak_scores = scores[-weeks_above_threshold:]

    classification = _resolve_strategy(strategy, cfg)(weeks_above_threshold, streak_scores, cfg)
    if classification not in ("structural", "episodic"):
        raise ValueError(f"Strategy returned unknown classification: {classification!r}")

    return PersistentRisk(
        risk_type=risk_type,
        weeks_above_threshold=weeks_above_threshold,
        avg_score=float(np.mean(streak_scores)),
        classification=classification,
    )


def _consecutive_tail(history: List[CompositeRiskScore]) -> List[CompositeRiskScore]:
    """Records after the last gap, where consecutive weeks are exactly 7 days apart."""
    start = len(history) - 1
    while start > 0 and history[start].week_start - history[start - 1].week_start == ONE_WEEK:
        start -= 1
    return history[max(start, 0):]


def identify_persistent_risks(
    history: Sequence[CompositeRiskScore],
    cfg: DriftConfig | None = None,
    strategy: Optional[Strategy] = None,
) -> List[PersistentRisk]:
    """
    Scan one team's chronological score history for persistent risks.

    Only the trailing run of consecutive weeks is considered, capped at
    `window_weeks` records. A missing week breaks the run. Each dimension is
    elevated in a week when its score is at or above `elevated_threshold`.
    """
    if cfg is None:
        cfg = DriftConfig()
    p = cfg.persistence
    window = _consecutive_tail(list(history))[-p.window_weeks:]

    risks = []
    for risk_type in RISK_TYPES:
        scores = [record.dimension(risk_type) for record in window]
        weeks = track_streak([s >= p.elevated_threshold for s in scores])
        risk = classify_persistent_risk(weeks, scores, cfg, risk_type, strategy)
        if risk is not None:
            risks.append(risk)
    return risks


# ---------------------------------------------------------------------------
# BDI trend across the window
# ---------------------------------------------------------------------------

def bdi_trend(bdis: Sequence[float], cfg: DriftConfig | None = None) -> Dict[str, str]:
    """
    Compare the average BDI of the second half of the window to the first.

    Returns {"direction": improving|stable|deteriorating, "strength": weak|moderate|strong}.
    """
    if cfg is None:
        cfg = DriftConfig()
    p = cfg.persistence

    values = np.asarray(list(bdis), dtype=np.float64)
    if len(values) < 2:
        return {"direction": "stable", "strength": "weak"}

    mid = len(values) // 2
    delta = float(values[mid:].mean() - values[:mid].mean())

    if delta < -p.trend_moderate:
        return {"direction": "improving", "strength": "strong" if delta < -p.trend_strong else "moderate"}
    if delta > p.trend_moderate:
        return {"direction": "deteriorating", "strength": "strong" if delta > p.trend_strong else "moderate"}
    return {"direction": "stable", "strength": "weak"}
