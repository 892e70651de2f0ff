"""
driftcore — Behavioral Drift Detection Engine

Turns weekly team-level behavioral metrics (meeting load, after-hours
activity, focus time, response latency, collaboration breadth, ...) into a
robust baseline, a deviation against it, a composite risk score, a team
zone and a structural/episodic read on persistent risk.

Deterministic and explainable: no model training, no individual-level data.

Architecture:
    config       — Policy values, weights, bands (threaded into every call)
    models       — Frozen record types exchanged at the boundary
    baseline     — Median / MAD / percentile baselines with confidence
    quality      — Privacy and coverage gate
    deviation    — Robust / standard z-scores, deltas, band position, drift magnitude
    composite    — Overload / Execution / Retention and the RMS drift index (BDI)
    zones        — Severity bands and the Stable/Watch/Surge/Recovery state machine
    persistence  — Streaks, persistent-risk classification, BDI trend
    timeseries   — Recent values annotated with the baseline band
    store        — Upsert-by-(team, week) result store
    pipeline     — Loading, weekly batch, monthly roll-up, text report
"""

from driftcore.baseline import estimate_baseline, percentile
from driftcore.composite import aggregate_composite
from driftcore.config import DriftConfig
from driftcore.deviation import normalize_value, score_deviation
from driftcore.persistence import classify_persistent_risk, track_streak
from driftcore.pipeline import (
    configure_logging,
    generate_report,
    load_data,
    monthly_summary,
    run_batch,
    samples_frame,
    score_team_week,
)
from driftcore.quality import gate_data_quality
from driftcore.store import ResultStore
from driftcore.timeseries import build_time_series
from driftcore.zones import classify_zone

__version__ = "1.0.0"

__all__ = [
    "DriftConfig",
    "ResultStore",
    "aggregate_composite",
    "build_time_series",
    "classify_persistent_risk",
    "classify_zone",
    "configure_logging",
    "estimate_baseline",
    "gate_data_quality",
    "generate_report",
    "load_data",
    "monthly_summary",
    "normalize_value",
    "percentile",
    "run_batch",
    "samples_frame",
    "score_deviation",
    "score_team_week",
    "track_streak",
]
