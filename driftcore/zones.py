"""
Zone classification: BDI → severity band → team-facing zone.

The band is a pure function of the current BDI. The zone is a small state
machine over the previous week's zone, with hysteresis on the way down so a
team hovering near a boundary does not flap between zones week to week.

    band:   BDI <= green_max → green (low)
            BDI <= yellow_max → yellow (moderate)
            otherwise → red (high)

    zone transitions (h = hysteresis):
        any      + red band                 → Surge
        Surge    + BDI >  yellow_max - h    → Surge
        Surge    + BDI <= yellow_max - h    → Recovery
        Recovery + BDI <= green_max - h     → Stable
        Watch    + BDI <= green_max - h     → Stable
        Recovery / Watch otherwise          → unchanged
        Stable   + yellow band              → Watch
        Stable   + green band               → Stable
        no history                          → green Stable, yellow Watch, red Surge

Upward moves take effect at the band boundary; only downward moves wait for
the hysteresis margin. For a fixed previous zone, a higher BDI never yields
a less severe zone.
"""

from typing import Dict, Iterable, List, Optional

import numpy as np

from driftcore.config import DriftConfig
from driftcore.models import SEVERITIES, ZONES


_BAND_TO_ZONE = {"green": "Stable", "yellow": "Watch", "red": "Surge"}


def _checked_bdi(bdi: float) -> float:
    if bdi is None or not np.isfinite(bdi):
        raise ValueError(f"BDI must be a finite number, got {bdi!r}")
    return float(np.clip(bdi, 0.0, 100.0))


def classify_band(bdi: float, cfg: DriftConfig | None = None) -> str:
    if cfg is None:
        cfg = DriftConfig()
    b = cfg.bands
    bdi = _checked_bdi(bdi)

    if bdi <= b.green_max:
        return "green"
    if bdi <= b.yellow_max:
        return "yellow"
    return "red"


def _next_zone(bdi: float, band: str, previous_zone: Optional[str], cfg: DriftConfig) -> str:
    b = cfg.bands
    h = cfg.zones.hysteresis

    if previous_zone is None:
        return _BAND_TO_ZONE[band]

    if band == "red":
        return "Surge"

    if previous_zone == "Surge":
        return "Surge" if bdi > b.yellow_max - h else "Recovery"

    if previous_zone in ("Recovery", "Watch"):
        return "Stable" if bdi <= b.green_max - h else previous_zone

    # Stable
    return "Watch" if band == "yellow" else "Stable"


def classify_zone(
    bdi: float,
    cfg: DriftConfig | None = None,
    previous_zone: Optional[str] = None,
) -> Dict[str, str]:
    """
    Classify a BDI into {"band", "severity", "zone"}.

    `previous_zone` is last week's zone for the same team, or None when the
    team has no scored history.
    """
    if cfg is None:
        cfg = DriftConfig()
    if previous_zone is not None and previous_zone not in ZONES:
        raise ValueError(f"Unknown zone: {previous_zone!r}")

    bdi = _checked_bdi(bdi)
    band = classify_band(bdi, cfg)
    return {
        "band": band,
        "severity": SEVERITIES[band],
        "zone": _next_zone(bdi, band, previous_zone, cfg),
    }


def zone_history(
    bdis: Iterable[float],
    cfg: DriftConfig | None = None,
    initial_zone: Optional[str] = None,
) -> List[Dict[str, str]]:
    """Replay the zone state machine over a chronological BDI series."""
    if cfg is None:
        cfg = DriftConfig()

    states = []
    previous = initial_zone
    for bdi in bdis:
        state = classify_zone(bdi, cfg, previous)
        states.append(state)
        previous = state["zone"]
    return states
