"""
Knockout advancement: fill knockout team slots from their sources.

Each knockout side carries one source:
- Seed source (group + finishing position): resolved once every match of the
  group is completed, using the group standings.
- Winner source (upstream match number): resolved once the upstream match is
  completed with both teams known and a winner (draws do not advance).

Only team ids are written; placeholders, times and fields are never touched.
Completed knockout matches keep the teams they were played with.
"""
import logging
from typing import Dict, List, Optional

from sqlmodel import Session, select

from kickoff.models.group import Group
from kickoff.models.match import Match
from kickoff.services.schedule_assembler import MATCH_TYPE_GROUP
from kickoff.services.standings import STATUS_COMPLETED
from kickoff.services.standings_service import group_is_finished, group_standings

logger = logging.getLogger(__name__)


def match_winner(match: Match) -> Optional[int]:
    """Winning team id of a completed match, None for draws or unresolved sides."""
    if match.status != STATUS_COMPLETED:
        return None
    if match.home_team_id is None or match.away_team_id is None:
        return None
    if match.home_score is None or match.away_score is None or match.home_score == match.away_score:
        return None
    return match.home_team_id if match.home_score > match.away_score else match.away_team_id


class _GroupFinishers:
    """Caches finishing order per group; None while the group is still playing."""

    def __init__(self, session: Session):
        self.session = session
        self._cache: Dict[int, Optional[List[int]]] = {}

    def team_at(self, group_id: int, position: int) -> Optional[int]:
        if group_id not in self._cache:
            self._cache[group_id] = self._load(group_id)
        finishers = self._cache[group_id]
        if finishers is None or position < 1 or position > len(finishers):
            return None
        return finishers[position - 1]

    def _load(self, group_id: int) -> Optional[List[int]]:
        if not group_is_finished(self.session, group_id):
            return None
        group = self.session.get(Group, group_id)
        if group is None:
            return None
        _, standings = group_standings(self.session, group)
        return [s.team_id for s in standings]


def resolve_knockout_slots(session: Session, tournament_id: int) -> Dict:
    """
    Recompute team ids of every open knockout match of a tournament.

    Processes matches by match_number so upstream winners are known before
    the matches they feed.

    Returns:
        Dict with:
        - slots_updated: number of team slots whose value changed
        - unknown_after: knockout matches still missing a team

    Guarantees:
        - Idempotent (safe to call multiple times)
        - Deterministic ordering (match_number)
    """
    matches = session.exec(
        select(Match).where(Match.tournament_id == tournament_id).order_by(Match.match_number)
    ).all()
    by_number = {m.match_number: m for m in matches}
    finishers = _GroupFinishers(session)

    slots_updated = 0
    for match in matches:
        if match.match_type == MATCH_TYPE_GROUP or match.status == STATUS_COMPLETED:
            continue

        for side in ("home", "away"):
            resolved: Optional[int] = None
            seed_group = getattr(match, f"{side}_seed_group_id")
            upstream_number = getattr(match, f"{side}_from_match_number")

            if seed_group is not None:
                resolved = finishers.team_at(seed_group, getattr(match, f"{side}_seed_position"))
            elif upstream_number is not None:
                upstream = by_number.get(upstream_number)
                resolved = match_winner(upstream) if upstream is not None else None
            else:
                continue

            if getattr(match, f"{side}_team_id") != resolved:
                setattr(match, f"{side}_team_id", resolved)
                session.add(match)
                slots_updated += 1

    if slots_updated:
        session.commit()
        logger.info("Tournament %d: advancement updated %d knockout slots", tournament_id, slots_updated)

    unknown_after = sum(
        1
        for m in matches
        if m.match_type != MATCH_TYPE_GROUP and (m.home_team_id is None or m.away_team_id is None)
    )
    return {"slots_updated": slots_updated, "unknown_after": unknown_after}
