"""
Data quality gate: decides whether a computed metric may be surfaced.

The gate is a decision, not an exception. Callers use a failed decision to
suppress a metric, never to abort a scoring run.
"""

from driftcore.config import DriftConfig
from driftcore.models import QualityDecision


PRIVACY_REASON = "Below minimum group size for privacy"


def window_coverage(weeks_present: int, expected_weeks: int) -> float:
    """Fraction of expected weekly samples present, capped at 1."""
    if expected_weeks <= 0:
        raise ValueError(f"expected_weeks must be positive, got {expected_weeks}")
    if weeks_present < 0:
        raise ValueError(f"weeks_present must be >= 0, got {weeks_present}")
    return min(1.0, weeks_present / expected_weeks)


def gate_data_quality(
    active_users_count: int,
    data_coverage: float,
    sample_size: int = 0,
    cfg: DriftConfig | None = None,
) -> QualityDecision:
    """
    Evaluate the quality rules in order; the first failure wins.

        1. active_users_count < min_group_size   (hard privacy floor)
        2. data_coverage < min_coverage
        3. min_sample_size > 0 and sample_size < min_sample_size
    """
    if cfg is None:
        cfg = DriftConfig()

    if active_users_count < 0 or sample_size < 0:
        raise ValueError("active_users_count and sample_size must be >= 0")

    q = cfg.quality
    min_coverage = cfg.baseline.min_coverage

    if active_users_count < q.min_group_size:
        return QualityDecision(meets=False, reason=PRIVACY_REASON)

    if data_coverage < min_coverage:
        return QualityDecision(
            meets=False,
            reason=(
                f"Data coverage {data_coverage * 100:.0f}% "
                f"below minimum {min_coverage * 100:.0f}%"
            ),
        )

    if q.min_sample_size > 0 and sample_size < q.min_sample_size:
        return QualityDecision(
            meets=False,
            reason=f"Sample size {sample_size} below minimum {q.min_sample_size}",
        )

    return QualityDecision(meets=True, reason=None)
