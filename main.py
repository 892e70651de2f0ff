"""driftcore CLI entry point: score the latest week in the sample feed."""

import logging

from driftcore import ResultStore, configure_logging, generate_report, load_data, run_batch

if __name__ == "__main__":
    configure_logging(logging.INFO)
    frame, team_sizes = load_data("test_data.json")
    week = frame["week_start"].max()
    results, errors = run_batch(frame, week, team_sizes, store=ResultStore())
    for team_id in sorted(results):
        print(generate_report(results[team_id]))
    for team_id, message in sorted(errors.items()):
        print(f"FAILED {team_id}: {message}")
