"""
Standings Calculator: ranked group tables derived from completed matches.

Standings are never stored. They are recomputed from persisted results every
time they are needed.

Scoring: win = 3 points, draw = 1 point each, loss = 0.

Ranking modes (criteria in order, all descending):
    points_goal_diff_direct / points_set_diff_direct
        points -> differential -> scored -> head-to-head
    points_direct_goal_diff / points_direct_set_diff
        points -> head-to-head -> differential -> scored

Head-to-head counts the points a team earned in matches against the other
teams tied with it on every preceding criterion. Teams still level after all
criteria keep roster order (stable sort). This is a known limitation.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from kickoff.services.schedule_errors import InputError

POINTS_WIN = 3
POINTS_DRAW = 1

RANKING_MODES = {
    "points_goal_diff_direct": (False, "goals"),
    "points_set_diff_direct": (False, "sets"),
    "points_direct_goal_diff": (True, "goals"),
    "points_direct_set_diff": (True, "sets"),
}
DEFAULT_RANKING_MODE = "points_goal_diff_direct"

STATUS_COMPLETED = "completed"


@dataclass
class Standing:
    team_id: Hashable
    team_name: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    rank: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
        }


def parse_ranking_mode(mode: Optional[str]) -> Tuple[bool, str]:
    """Return (head_to_head_first, metric) for a ranking mode."""
    key = mode or DEFAULT_RANKING_MODE
    if key not in RANKING_MODES:
        raise InputError([f"Unknown ranking mode: {mode}"])
    return RANKING_MODES[key]


def _scored(match: Any) -> bool:
    status = getattr(match, "status", STATUS_COMPLETED)
    return status == STATUS_COMPLETED and match.home_score is not None and match.away_score is not None


def _match_points(home_score: int, away_score: int) -> Tuple[int, int]:
    if home_score > away_score:
        return POINTS_WIN, 0
    if home_score < away_score:
        return 0, POINTS_WIN
    return POINTS_DRAW, POINTS_DRAW


def _head_to_head_points(
    standings: List[Standing],
    matches: List[Any],
    tie_key: Callable[[Standing], Tuple],
) -> Dict[Hashable, int]:
    """Points earned against teams that share the same `tie_key`."""
    tied_with: Dict[Hashable, Tuple] = {s.team_id: tie_key(s) for s in standings}
    h2h: Dict[Hashable, int] = defaultdict(int)
    for match in matches:
        home, away = match.home_team_id, match.away_team_id
        if tied_with[home] != tied_with[away]:
            continue
        home_pts, away_pts = _match_points(match.home_score, match.away_score)
        h2h[home] += home_pts
        h2h[away] += away_pts
    return h2h


def calculate_standings(
    roster: Sequence[Tuple[Hashable, str]],
    matches: Iterable[Any],
    ranking_mode: Optional[str] = None,
) -> List[Standing]:
    """
    Rank one group.

    Args:
        roster: (team_id, team_name) of the group, in tie-break order
        matches: Match-like objects (home_team_id, away_team_id, home_score,
                 away_score, optional status). Only completed matches with
                 both scores between roster teams count.
        ranking_mode: One of RANKING_MODES (default points_goal_diff_direct)

    Returns:
        Standings ordered best first, rank 1..N
    """
    head_to_head_first, _ = parse_ranking_mode(ranking_mode)

    table: Dict[Hashable, Standing] = {}
    for team_id, team_name in roster:
        table[team_id] = Standing(team_id=team_id, team_name=team_name)

    counted: List[Any] = []
    for match in matches:
        if not _scored(match):
            continue
        home = table.get(match.home_team_id)
        away = table.get(match.away_team_id)
        if home is None or away is None:
            continue
        counted.append(match)

        home.played += 1
        away.played += 1
        home.goals_for += match.home_score
        home.goals_against += match.away_score
        away.goals_for += match.away_score
        away.goals_against += match.home_score

        home_pts, away_pts = _match_points(match.home_score, match.away_score)
        home.points += home_pts
        away.points += away_pts
        if home_pts == away_pts:
            home.drawn += 1
            away.drawn += 1
        elif home_pts > away_pts:
            home.won += 1
            away.lost += 1
        else:
            away.won += 1
            home.lost += 1

    standings = list(table.values())

    if head_to_head_first:
        h2h = _head_to_head_points(standings, counted, lambda s: (s.points,))

        def sort_key(s: Standing):
            return (-s.points, -h2h[s.team_id], -s.goal_difference, -s.goals_for)

    else:
        h2h = _head_to_head_points(standings, counted, lambda s: (s.points, s.goal_difference, s.goals_for))

        def sort_key(s: Standing):
            return (-s.points, -s.goal_difference, -s.goals_for, -h2h[s.team_id])

    ranked = sorted(standings, key=sort_key)
    for position, standing in enumerate(ranked, start=1):
        standing.rank = position
    return ranked
