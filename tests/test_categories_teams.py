"""
Categories, groups and teams: CRUD, uniqueness and group distribution.
"""

from fastapi.testclient import TestClient


def _tournament(client: TestClient) -> int:
    return client.post("/api/tournaments", json={"name": "Cup", "start_date": "2026-05-02"}).json()["id"]


def _category(client: TestClient, tournament_id: int, name: str = "Open") -> int:
    response = client.post(f"/api/tournaments/{tournament_id}/categories", json={"name": name})
    assert response.status_code == 201
    return response.json()["id"]


class TestCategories:
    def test_create_and_list(self, client: TestClient):
        tid = _tournament(client)
        _category(client, tid, "Open")
        _category(client, tid, "U12")

        names = [c["name"] for c in client.get(f"/api/tournaments/{tid}/categories").json()]
        assert names == ["Open", "U12"]

    def test_duplicate_name_conflict(self, client: TestClient):
        tid = _tournament(client)
        _category(client, tid, "Open")
        response = client.post(f"/api/tournaments/{tid}/categories", json={"name": "Open"})
        assert response.status_code == 409

    def test_ranking_mode_override(self, client: TestClient):
        tid = _tournament(client)
        cid = _category(client, tid)

        ok = client.put(f"/api/categories/{cid}", json={"ranking_mode": "points_direct_set_diff"})
        assert ok.status_code == 200
        assert ok.json()["ranking_mode"] == "points_direct_set_diff"
        assert client.put(f"/api/categories/{cid}", json={"ranking_mode": "bogus"}).status_code == 422

    def test_delete_cascades_teams(self, client: TestClient):
        tid = _tournament(client)
        cid = _category(client, tid)
        client.post(f"/api/categories/{cid}/teams", json={"name": "Lions"})

        assert client.delete(f"/api/categories/{cid}").status_code == 204
        assert client.get(f"/api/categories/{cid}/teams").status_code == 404

    def test_unknown_tournament(self, client: TestClient):
        assert client.post("/api/tournaments/999/categories", json={"name": "Open"}).status_code == 404


class TestGroups:
    def test_create_list_ordered_by_name(self, client: TestClient):
        cid = _category(client, _tournament(client))
        client.post(f"/api/categories/{cid}/groups", json={"name": "Group B"})
        client.post(f"/api/categories/{cid}/groups", json={"name": "Group A"})

        assert [g["name"] for g in client.get(f"/api/categories/{cid}/groups").json()] == ["Group A", "Group B"]
        assert client.post(f"/api/categories/{cid}/groups", json={"name": "Group A"}).status_code == 409

    def test_auto_distribute_round_robin_over_groups(self, client: TestClient):
        cid = _category(client, _tournament(client))
        client.post(f"/api/categories/{cid}/groups", json={"name": "Group A"})
        client.post(f"/api/categories/{cid}/groups", json={"name": "Group B"})
        team_ids = [
            client.post(f"/api/categories/{cid}/teams", json={"name": f"Team {i}"}).json()["id"]
            for i in range(5)
        ]

        response = client.post(f"/api/categories/{cid}/groups/auto-distribute")
        assert response.status_code == 200
        body = response.json()
        assert body["assigned"] == 5
        assert body["groups"][0]["team_ids"] == [team_ids[0], team_ids[2], team_ids[4]]
        assert body["groups"][1]["team_ids"] == [team_ids[1], team_ids[3]]

    def test_auto_distribute_needs_groups(self, client: TestClient):
        cid = _category(client, _tournament(client))
        assert client.post(f"/api/categories/{cid}/groups/auto-distribute").status_code == 422

    def test_delete_group_unassigns_teams(self, client: TestClient):
        cid = _category(client, _tournament(client))
        gid = client.post(f"/api/categories/{cid}/groups", json={"name": "Group A"}).json()["id"]
        team = client.post(f"/api/categories/{cid}/teams", json={"name": "Lions", "group_id": gid}).json()
        assert team["group_id"] == gid

        assert client.delete(f"/api/groups/{gid}").status_code == 204
        teams = client.get(f"/api/categories/{cid}/teams").json()
        assert teams[0]["group_id"] is None


class TestTeams:
    def test_name_unique_per_category(self, client: TestClient):
        tid = _tournament(client)
        open_id = _category(client, tid, "Open")
        u12_id = _category(client, tid, "U12")

        assert client.post(f"/api/categories/{open_id}/teams", json={"name": "Lions"}).status_code == 201
        assert client.post(f"/api/categories/{open_id}/teams", json={"name": "Lions"}).status_code == 409
        assert client.post(f"/api/categories/{u12_id}/teams", json={"name": "Lions"}).status_code == 201

    def test_group_must_be_in_same_category(self, client: TestClient):
        tid = _tournament(client)
        open_id = _category(client, tid, "Open")
        u12_id = _category(client, tid, "U12")
        foreign_group = client.post(f"/api/categories/{u12_id}/groups", json={"name": "Group A"}).json()["id"]

        response = client.post(f"/api/categories/{open_id}/teams", json={"name": "Lions", "group_id": foreign_group})
        assert response.status_code == 422

    def test_rename_and_regroup(self, client: TestClient):
        cid = _category(client, _tournament(client))
        gid = client.post(f"/api/categories/{cid}/groups", json={"name": "Group A"}).json()["id"]
        team = client.post(f"/api/categories/{cid}/teams", json={"name": "Lions"}).json()

        response = client.put(f"/api/teams/{team['id']}", json={"name": "Tigers", "group_id": gid})
        assert response.status_code == 200
        assert response.json()["name"] == "Tigers"
        assert response.json()["group_id"] == gid

        cleared = client.put(f"/api/teams/{team['id']}", json={"group_id": None}).json()
        assert cleared["group_id"] is None

    def test_delete_team(self, client: TestClient):
        cid = _category(client, _tournament(client))
        team = client.post(f"/api/categories/{cid}/teams", json={"name": "Lions"}).json()
        assert client.delete(f"/api/teams/{team['id']}").status_code == 204
        assert client.delete(f"/api/teams/{team['id']}").status_code == 404
