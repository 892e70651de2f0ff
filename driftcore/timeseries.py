"""Read-side projection of recent weekly values against a baseline band."""

from typing import List, Sequence

from driftcore.models import Baseline, MetricSample, TimeSeriesPoint


def build_time_series(
    weekly_data: Sequence[MetricSample],
    baseline: Baseline,
    weeks_to_show: int = 8,
) -> List[TimeSeriesPoint]:
    """
    Annotate the trailing `weeks_to_show` samples with the baseline band.

    `weekly_data` must be chronological. No statistics are recomputed here;
    a baseline without a band yields None bounds and False band flags.
    """
    if weeks_to_show < 1:
        raise ValueError(f"weeks_to_show must be >= 1, got {weeks_to_show}")
    if not weekly_data:
        return []

    recent = list(weekly_data)[-weeks_to_show:]
    lower, upper = baseline.p25, baseline.p75

    return [
        TimeSeriesPoint(
            week_start=sample.week_start,
            value=sample.value,
            baseline_median=baseline.median,
            baseline_lower=lower,
            baseline_upper=upper,
            is_above_upper_band=upper is not None and sample.value > upper,
            is_below_lower_band=lower is not None and sample.value < lower,
        )
        for sample in recent
    ]
