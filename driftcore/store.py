"""
In-memory store for weekly results, keyed by (team_id, week_start).

Writes are upserts: re-running a scoring cycle for the same week replaces
that week's records, so a restarted batch converges to the same state.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

import structlog

from driftcore.models import CompositeRiskScore, ZoneState

logger = structlog.get_logger()

Key = Tuple[str, date]


def _in_window(week: date, since: Optional[date], until: Optional[date]) -> bool:
    if since is not None and week <= since:
        return False
    return until is None or week <= until


class ResultStore:
    def __init__(self):
        self._scores: Dict[Key, CompositeRiskScore] = {}
        self._zones: Dict[Key, ZoneState] = {}

    def upsert_score(self, score: CompositeRiskScore) -> None:
        if score.team_id is None or score.week_start is None:
            raise ValueError("CompositeRiskScore needs team_id and week_start to be stored")
        key = (score.team_id, score.week_start)
        replaced = key in self._scores
        self._scores[key] = score
        logger.debug("score_upserted", team_id=score.team_id, week_start=str(score.week_start), replaced=replaced)

    def upsert_zone(self, zone: ZoneState) -> None:
        key = (zone.team_id, zone.week_start)
        replaced = key in self._zones
        self._zones[key] = zone
        logger.debug("zone_upserted", team_id=zone.team_id, week_start=str(zone.week_start), replaced=replaced)

    def get_score(self, team_id: str, week_start: date) -> Optional[CompositeRiskScore]:
        return self._scores.get((team_id, week_start))

    def get_zone(self, team_id: str, week_start: date) -> Optional[ZoneState]:
        return self._zones.get((team_id, week_start))

    def team_ids(self) -> List[str]:
        return sorted({team_id for team_id, _ in self._scores} | {team_id for team_id, _ in self._zones})

    def score_history(
        self,
        team_id: str,
        until: Optional[date] = None,
        since: Optional[date] = None,
    ) -> List[CompositeRiskScore]:
        """Chronological scores for a team with `since < week_start <= until`."""
        rows = [
            s for (tid, week), s in self._scores.items()
            if tid == team_id and _in_window(week, since, until)
        ]
        return sorted(rows, key=lambda s: s.week_start)

    def zone_before(self, team_id: str, week_start: date) -> Optional[str]:
        """Zone of the most recent week strictly before `week_start`."""
        earlier = [
            (week, z) for (tid, week), z in self._zones.items()
            if tid == team_id and week < week_start
        ]
        if not earlier:
            return None
        return max(earlier, key=lambda item: item[0])[1].zone

    def latest_zones(
        self,
        as_of: Optional[date] = None,
        since: Optional[date] = None,
    ) -> Dict[str, ZoneState]:
        """Most recent zone per team with `since < week_start <= as_of`."""
        latest: Dict[str, ZoneState] = {}
        for (tid, week), z in self._zones.items():
            if not _in_window(week, since, as_of):
                continue
            if tid not in latest or week > latest[tid].week_start:
                latest[tid] = z
        return latest

    def latest_week(self) -> Optional[date]:
        weeks = [week for _, week in self._scores] + [week for _, week in self._zones]
        return max(weeks) if weeks else None
