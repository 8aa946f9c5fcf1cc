"""
Standings endpoints: group and category tables from completed matches.
"""

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from kickoff.models import Match
from tests.conftest import seed_tournament


def _score_group(session: Session, group_id: int, results):
    """Apply (home, away) scores to the group's matches in match-number order."""
    matches = session.exec(select(Match).where(Match.group_id == group_id).order_by(Match.match_number)).all()
    for match, (home, away) in zip(matches, results):
        match.home_score, match.away_score, match.status = home, away, "completed"
        session.add(match)
    session.commit()


def test_empty_group_table(client: TestClient, session: Session):
    _, _, groups = seed_tournament(session, groups=(("Group A", 3),), ko_phase_teams=0)

    response = client.get(f"/api/groups/{groups[0].id}/standings")
    assert response.status_code == 200
    body = response.json()
    assert body["ranking_mode"] == "points_goal_diff_direct"
    assert body["differential_label"] == "Goal difference"
    assert [r["team_name"] for r in body["rows"]] == ["A1", "A2", "A3"]
    assert all(r["points"] == 0 for r in body["rows"])


def test_group_table_after_results(client: TestClient, session: Session):
    tournament, _, groups = seed_tournament(session, groups=(("Group A", 3),), ko_phase_teams=0)
    client.post(f"/api/tournaments/{tournament.id}/schedule/generate")
    _score_group(session, groups[0].id, [(3, 0), (1, 1), (0, 2)])

    rows = client.get(f"/api/groups/{groups[0].id}/standings").json()["rows"]
    assert [r["rank"] for r in rows] == [1, 2, 3]
    assert sum(r["played"] for r in rows) == 6
    assert sum(r["points"] for r in rows) == 3 + 1 + 1 + 3
    assert rows[0]["points"] >= rows[1]["points"] >= rows[2]["points"]


def test_ranking_mode_precedence(client: TestClient, session: Session):
    tournament, category, groups = seed_tournament(session, ranking_mode="points_direct_set_diff")

    body = client.get(f"/api/groups/{groups[0].id}/standings").json()
    assert body["ranking_mode"] == "points_direct_set_diff"
    assert body["differential_label"] == "Set difference"
    assert body["head_to_head_first"] is True

    client.put(f"/api/categories/{category.id}", json={"ranking_mode": "points_goal_diff_direct"})
    assert client.get(f"/api/groups/{groups[0].id}/standings").json()["ranking_mode"] == "points_goal_diff_direct"

    override = client.get(f"/api/groups/{groups[0].id}/standings?ranking_mode=points_direct_goal_diff").json()
    assert override["ranking_mode"] == "points_direct_goal_diff"
    assert client.get(f"/api/groups/{groups[0].id}/standings?ranking_mode=nope").status_code == 422


def test_category_standings(client: TestClient, session: Session):
    _, category, groups = seed_tournament(session)

    response = client.get(f"/api/categories/{category.id}/standings")
    assert response.status_code == 200
    body = response.json()
    assert body["category_name"] == "Open"
    assert [g["group_name"] for g in body["groups"]] == ["Group A", "Group B"]
    assert [len(g["rows"]) for g in body["groups"]] == [4, 4]


def test_standings_404(client: TestClient):
    assert client.get("/api/groups/999/standings").status_code == 404
    assert client.get("/api/categories/999/standings").status_code == 404
