"""
Pipeline orchestration: load → baseline → gate → deviate → composite → zone → report.

This is the only module with I/O (file loading, report formatting) and the
only one that logs. All statistics are delegated to baseline, quality,
deviation, composite, zones, persistence and timeseries.

The weekly batch scores each team independently on a worker pool. One
team's failure is logged and recorded without stopping the others, and
results are upserted by (team_id, week_start) so a re-run is idempotent.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd
import structlog

from driftcore.baseline import estimate_baseline
from driftcore.composite import aggregate_composite, dominant_dimension, top_drivers
from driftcore.config import DriftConfig
from driftcore.deviation import drift_magnitude, score_deviation
from driftcore.models import (
    MetricSample,
    QualityDecision,
    TeamWeekResult,
    ZONES,
    ZoneState,
)
from driftcore.persistence import bdi_trend, identify_persistent_risks
from driftcore.quality import gate_data_quality, window_coverage
from driftcore.store import ResultStore
from driftcore.timeseries import build_time_series
from driftcore.zones import classify_zone

logger = structlog.get_logger()


def configure_logging(level: int = logging.INFO, file=None) -> None:
    """Drop structlog events below `level` and print the rest to `file` (stdout by default)."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file),
    )


# ---------------------------------------------------------------------------
# Data loading
# ---------------------------------------------------------------------------

REQUIRED_COLUMNS = {"team_id", "metric_key", "week_start", "value"}
NO_USABLE_METRICS = "No metric met the data quality requirements"


def samples_frame(records: Iterable[Mapping]) -> pd.DataFrame:
    """Validate weekly samples and return them as a sorted DataFrame."""
    records = list(records)
    if not records:
        raise ValueError("Input samples cannot be empty")

    df = pd.DataFrame(records)

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    df = df[["team_id", "metric_key", "week_start", "value"]].copy()
    df["week_start"] = pd.to_datetime(df["week_start"]).dt.normalize()
    df["value"] = pd.to_numeric(df["value"], errors="raise").astype(np.float64)

    if not np.isfinite(df["value"]).all():
        raise ValueError("Sample values must be finite numbers")

    dupes = df.duplicated(subset=["team_id", "metric_key", "week_start"])
    if dupes.any():
        row = df.loc[dupes].iloc[0]
        raise ValueError(
            f"Duplicate sample for team={row['team_id']} metric={row['metric_key']} "
            f"week={row['week_start'].date()}"
        )

    df.sort_values(["team_id", "metric_key", "week_start"], inplace=True)
    df.reset_index(drop=True, inplace=True)
    return df


def load_data(filepath: Union[str, Path]) -> Tuple[pd.DataFrame, Dict[str, int]]:
    """
    Load a weekly feed from JSON.

    Format: {"teams": {team_id: {"active_users": int}}, "samples": [...]}.
    Returns (samples frame, {team_id: active_users}).
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    if not data:
        raise ValueError("Data file is empty")

    team_sizes = {}
    for team_id, info in data.get("teams", {}).items():
        if not isinstance(info, dict) or "active_users" not in info:
            raise ValueError(f"Team {team_id!r} is missing active_users")
        team_sizes[team_id] = int(info["active_users"])
    return samples_frame(data.get("samples", [])), team_sizes


# ---------------------------------------------------------------------------
# Single team, single week (PURE, NO I/O)
# ---------------------------------------------------------------------------

def score_team_week(
    frame: pd.DataFrame,
    team_id: str,
    week_start: Union[date, str, pd.Timestamp],
    active_users: int,
    cfg: DriftConfig | None = None,
    previous_zone: Optional[str] = None,
) -> TeamWeekResult:
    """
    Score one team for one week against its own trailing baseline.

    The privacy floor is checked before any metric is touched. Metrics that
    fail the coverage/sample gate are listed in `suppressed` and contribute
    nothing to the composite.
    """
    if cfg is None:
        cfg = DriftConfig()
    bp = cfg.baseline

    week = pd.Timestamp(week_start).normalize()
    week_date = week.date()

    privacy = gate_data_quality(active_users, data_coverage=1.0, cfg=cfg)
    result = TeamWeekResult(team_id=team_id, week_start=week_date, quality=privacy)
    if not privacy.meets:
        return result

    team = frame[frame["team_id"] == team_id]
    if team.empty:
        raise ValueError(f"No samples for team {team_id!r}")

    window_start = week - pd.Timedelta(weeks=bp.baseline_weeks)

    for metric_key, rows in team.groupby("metric_key", sort=True):
        current = rows[rows["week_start"] == week]
        if current.empty:
            result.suppressed[metric_key] = "No sample for scored week"
            continue

        history = rows[(rows["week_start"] >= window_start) & (rows["week_start"] < week)]
        baseline = estimate_baseline(
            history["value"].tolist(),
            expected_count=bp.baseline_weeks,
            cfg=cfg,
            metric_key=metric_key,
        )
        result.baselines[metric_key] = baseline

        coverage = window_coverage(baseline.sample_size, bp.baseline_weeks)
        decision = gate_data_quality(active_users, coverage, baseline.sample_size, cfg)
        if not decision.meets:
            result.suppressed[metric_key] = decision.reason
            continue

        deviation = score_deviation(float(current["value"].iloc[0]), baseline)
        result.deviations[metric_key] = deviation
        result.magnitudes[metric_key] = drift_magnitude(deviation, cfg)

        upto = rows[rows["week_start"] <= week]
        samples = [
            MetricSample(team_id, metric_key, ts.date(), float(v))
            for ts, v in zip(upto["week_start"], upto["value"])
        ]
        result.timeseries[metric_key] = build_time_series(
            samples, baseline, cfg.timeseries.weeks_to_show
        )

    if not result.magnitudes:
        result.quality = QualityDecision(meets=False, reason=NO_USABLE_METRICS)
        return result

    composite = aggregate_composite(result.magnitudes, team_id, week_date, cfg)
    zone = classify_zone(composite.bdi, cfg, previous_zone)

    result.composite = composite
    result.zone = ZoneState(team_id=team_id, week_start=week_date, zone=zone["zone"], band=zone["band"])
    result.drivers = top_drivers(result.magnitudes, cfg)
    return result


# ---------------------------------------------------------------------------
# Weekly batch
# ---------------------------------------------------------------------------

def _score_one(frame, team_id, week_start, team_sizes, cfg, previous_zone) -> TeamWeekResult:
    active_users = team_sizes.get(team_id)
    if active_users is None:
        raise ValueError(f"No active user count for team {team_id!r}")
    return score_team_week(frame, team_id, week_start, active_users, cfg, previous_zone)


def run_batch(
    frame: pd.DataFrame,
    week_start: Union[date, str, pd.Timestamp],
    team_sizes: Mapping[str, int],
    cfg: DriftConfig | None = None,
    store: ResultStore | None = None,
) -> Tuple[Dict[str, TeamWeekResult], Dict[str, str]]:
    """
    Score every team in `frame` for `week_start`.

    Returns (results by team, error message by team). Scored composites and
    zones are upserted into `store` from the calling thread.
    """
    if cfg is None:
        cfg = DriftConfig()

    week_date = pd.Timestamp(week_start).date()
    team_ids = sorted(frame["team_id"].unique())
    previous = {
        tid: store.zone_before(tid, week_date) if store is not None else None
        for tid in team_ids
    }

    logger.info("batch_started", week_start=str(week_date), teams=len(team_ids))

    results: Dict[str, TeamWeekResult] = {}
    errors: Dict[str, str] = {}

    with ThreadPoolExecutor(max_workers=cfg.batch.max_workers) as pool:
        futures = {
            pool.submit(_score_one, frame, tid, week_date, team_sizes, cfg, previous[tid]): tid
            for tid in team_ids
        }
        for future in as_completed(futures):
            tid = futures[future]
            try:
                result = future.result()
            except Exception as exc:
                logger.warning("team_scoring_failed", team_id=tid, error=str(exc))
                errors[tid] = str(exc)
                continue

            results[tid] = result
            if not result.quality.meets:
                logger.debug("team_suppressed", team_id=tid, reason=result.quality.reason)
            elif store is not None:
                store.upsert_score(result.composite)
                store.upsert_zone(result.zone)

    logger.info(
        "batch_finished",
        week_start=str(week_date),
        scored=sum(1 for r in results.values() if r.composite is not None),
        suppressed=sum(1 for r in results.values() if r.composite is None),
        failed=len(errors),
    )
    return results, errors


# ---------------------------------------------------------------------------
# Monthly roll-up
# ---------------------------------------------------------------------------

def monthly_summary(
    store: ResultStore,
    as_of: Optional[date] = None,
    cfg: DriftConfig | None = None,
) -> Dict:
    """
    Zone distribution, BDI level and trend, and persistent risks per team.

    Only weeks with `as_of - window_weeks < week_start <= as_of` count, so a
    team last scored before the window is left out. `as_of` defaults to the
    most recent week in the store.
    """
    if cfg is None:
        cfg = DriftConfig()
    if as_of is None:
        as_of = store.latest_week()
    since = as_of - timedelta(weeks=cfg.persistence.window_weeks) if as_of is not None else None

    latest = store.latest_zones(as_of, since)
    zone_distribution = {z: 0 for z in ZONES}
    for state in latest.values():
        zone_distribution[state.zone] += 1

    latest_bdis = []
    window_records = []
    persistent = {}
    for tid in store.team_ids():
        history = store.score_history(tid, until=as_of, since=since)
        if not history:
            continue
        latest_bdis.append(history[-1].bdi)
        window_records.extend(history)
        risks = identify_persistent_risks(history, cfg)
        if risks:
            persistent[tid] = risks

    window_records.sort(key=lambda s: s.week_start)

    return {
        "as_of": as_of,
        "teams_scored": len(latest_bdis),
        "avg_bdi": float(np.mean(latest_bdis)) if latest_bdis else None,
        "bdi_trend": bdi_trend([s.bdi for s in window_records], cfg),
        "zone_distribution": zone_distribution,
        "teams_at_risk": zone_distribution["Watch"] + zone_distribution["Surge"],
        "persistent_risks": persistent,
    }


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------

def generate_report(result: TeamWeekResult) -> str:
    """Format one team's weekly result as a human-readable text report."""
    lines = [
        "DRIFT STATUS REPORT",
        "=" * 58,
        "",
        f"  Team                : {result.team_id}",
        f"  Week of             : {result.week_start.isoformat()}",
    ]

    if result.composite is None:
        lines.append(f"  Status              : Suppressed ({result.quality.reason})")
    else:
        c = result.composite
        dominant = dominant_dimension(c) or "none"
        lines += [
            f"  Zone                : {result.zone.zone} ({result.zone.band} band)",
            f"  Drift Index (BDI)   : {c.bdi:.1f}",
            f"  Overload            : {c.overload:.1f}",
            f"  Execution           : {c.execution:.1f}",
            f"  Retention           : {c.retention:.1f}",
            f"  Dominant Risk       : {dominant}",
            "",
            "  Metrics (current vs baseline median):",
        ]
        for key in sorted(result.deviations):
            dev = result.deviations[key]
            median = result.baselines[key].median
            rz = f"{dev.robust_z:+.2f}" if dev.robust_z is not None else "n/a"
            flag = f"  [{dev.direction} band]" if dev.outside_band else ""
            lines.append(
                f"    {key:22s} : {dev.current_value:8.2f} vs {median:8.2f}"
                f"  (robust z: {rz}){flag}"
            )

        if result.drivers:
            lines.append("")
            lines.append("  Top Drivers:")
            for d in result.drivers:
                lines.append(
                    f"    - {d.metric_key} ({d.risk_type}): drift {d.magnitude:.0f}, weight {d.weight:.2f}"
                )

    if result.suppressed:
        lines.append("")
        lines.append("  Suppressed Metrics:")
        for key in sorted(result.suppressed):
            lines.append(f"    - {key}: {result.suppressed[key]}")

    lines.append("")
    lines.append("=" * 58)
    return "\n".join(lines)
