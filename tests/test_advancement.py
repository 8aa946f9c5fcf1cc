"""Score entry and knockout advancement: group finishers and winners fill knockout slots. Idempotent."""
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from tests.conftest import seed_tournament


@pytest.fixture
def scheduled(client: TestClient, session: Session):
    """Two groups of four, top two of each into semifinals, schedule generated."""
    tournament, category, groups = seed_tournament(session)
    response = client.post(f"/api/tournaments/{tournament.id}/schedule/generate")
    assert response.status_code == 200
    return tournament, category, groups


def _matches(client: TestClient, tournament_id: int):
    return {m["match_number"]: m for m in client.get(f"/api/tournaments/{tournament_id}/matches").json()}


def _complete(client: TestClient, tournament_id: int, match: dict, home: int, away: int):
    response = client.patch(
        f"/api/tournaments/{tournament_id}/matches/{match['id']}",
        json={"home_score": home, "away_score": away, "status": "completed"},
    )
    assert response.status_code == 200, response.text
    return response.json()


def _play_group(client: TestClient, tournament_id: int, group_id: int):
    """Home side always wins 2-0."""
    for match in _matches(client, tournament_id).values():
        if match["group_id"] == group_id:
            _complete(client, tournament_id, match, 2, 0)


def _finishers(client: TestClient, group_id: int):
    rows = client.get(f"/api/groups/{group_id}/standings").json()["rows"]
    return [r["team_id"] for r in rows]


def test_complete_requires_both_scores(client: TestClient, scheduled):
    tournament, _, _ = scheduled
    first = _matches(client, tournament.id)[1]

    response = client.patch(
        f"/api/tournaments/{tournament.id}/matches/{first['id']}",
        json={"home_score": 1, "status": "completed"},
    )
    assert response.status_code == 422
    assert _matches(client, tournament.id)[1]["status"] == "scheduled"


def test_completed_match_cannot_lose_a_score(client: TestClient, scheduled):
    tournament, _, _ = scheduled
    first = _matches(client, tournament.id)[1]
    _complete(client, tournament.id, first, 2, 1)

    response = client.patch(
        f"/api/tournaments/{tournament.id}/matches/{first['id']}",
        json={"home_score": None},
    )
    assert response.status_code == 422

    stored = _matches(client, tournament.id)[1]
    assert stored["status"] == "completed"
    assert stored["home_score"] == 2


def test_knockout_match_needs_known_teams(client: TestClient, scheduled):
    tournament, _, _ = scheduled
    semi = _matches(client, tournament.id)[13]
    response = client.patch(
        f"/api/tournaments/{tournament.id}/matches/{semi['id']}",
        json={"home_score": 1, "away_score": 0, "status": "completed"},
    )
    assert response.status_code == 422


def test_negative_score_rejected(client: TestClient, scheduled):
    tournament, _, _ = scheduled
    first = _matches(client, tournament.id)[1]
    response = client.patch(
        f"/api/tournaments/{tournament.id}/matches/{first['id']}",
        json={"home_score": -1},
    )
    assert response.status_code == 422


def test_group_finishers_fill_semifinals(client: TestClient, scheduled):
    tournament, _, (group_a, group_b) = scheduled

    _play_group(client, tournament.id, group_a.id)
    matches = _matches(client, tournament.id)
    a_order = _finishers(client, group_a.id)
    # 1st Group A vs 2nd Group B: only group A is finished
    assert matches[13]["home_team_id"] == a_order[0]
    assert matches[13]["away_team_id"] is None
    assert matches[14]["away_team_id"] == a_order[1]
    assert matches[13]["home_placeholder"] == "1st Group A"

    _play_group(client, tournament.id, group_b.id)
    matches = _matches(client, tournament.id)
    b_order = _finishers(client, group_b.id)
    assert (matches[13]["home_team_id"], matches[13]["away_team_id"]) == (a_order[0], b_order[1])
    assert (matches[14]["home_team_id"], matches[14]["away_team_id"]) == (b_order[0], a_order[1])
    assert matches[15]["home_team_id"] is None


def test_winners_advance_to_final(client: TestClient, scheduled):
    tournament, _, (group_a, group_b) = scheduled
    _play_group(client, tournament.id, group_a.id)
    _play_group(client, tournament.id, group_b.id)
    matches = _matches(client, tournament.id)

    result = _complete(client, tournament.id, matches[13], 1, 3)
    assert result["slots_updated"] == 1
    _complete(client, tournament.id, matches[14], 4, 2)

    final = _matches(client, tournament.id)[15]
    assert final["home_team_id"] == matches[13]["away_team_id"]
    assert final["away_team_id"] == matches[14]["home_team_id"]
    assert final["home_placeholder"] == "Winner Match 13"


def test_draw_and_reopen_leave_slot_empty(client: TestClient, scheduled):
    tournament, _, (group_a, group_b) = scheduled
    _play_group(client, tournament.id, group_a.id)
    _play_group(client, tournament.id, group_b.id)
    semi = _matches(client, tournament.id)[13]

    _complete(client, tournament.id, semi, 1, 1)
    assert _matches(client, tournament.id)[15]["home_team_id"] is None

    _complete(client, tournament.id, semi, 2, 1)
    assert _matches(client, tournament.id)[15]["home_team_id"] == semi["home_team_id"]

    reopened = client.patch(
        f"/api/tournaments/{tournament.id}/matches/{semi['id']}", json={"status": "scheduled"}
    ).json()
    assert reopened["match"]["status"] == "scheduled"
    assert _matches(client, tournament.id)[15]["home_team_id"] is None


def test_resolve_is_idempotent(client: TestClient, scheduled):
    tournament, _, (group_a, _) = scheduled
    _play_group(client, tournament.id, group_a.id)

    response = client.post(f"/api/tournaments/{tournament.id}/advancement/resolve")
    assert response.status_code == 200
    assert response.json() == {"slots_updated": 0, "unknown_after": 3}


def test_unknown_match(client: TestClient, scheduled):
    tournament, _, _ = scheduled
    response = client.patch(f"/api/tournaments/{tournament.id}/matches/9999", json={"home_score": 1})
    assert response.status_code == 404
