"""Match runtime endpoints: result updates drive knockout progression end to end."""
from fastapi.testclient import TestClient


def _knockout(client: TestClient, team_count: int) -> int:
    response = client.post(
        "/api/tournaments",
        json={
            "name": "Knockout Cup",
            "start_date": "2026-07-01",
            "end_date": "2026-07-02",
            "format": "single-elimination",
        },
    )
    tournament_id = response.json()["id"]
    for i in range(1, team_count + 1):
        client.post(f"/api/tournaments/{tournament_id}/teams", json={"name": f"Side {i}", "seed": i})
    assert client.post(f"/api/tournaments/{tournament_id}/draw").status_code == 201
    return tournament_id


def _finish(client: TestClient, match_id: int, score_a: int = 3, score_b: int = 1):
    response = client.patch(
        f"/api/matches/{match_id}/result",
        json={"score_a": score_a, "score_b": score_b, "status": "completed"},
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_get_match(client: TestClient):
    tournament_id = _knockout(client, 2)
    match = client.get(f"/api/tournaments/{tournament_id}/matches").json()[0]

    response = client.get(f"/api/matches/{match['id']}")
    assert response.status_code == 200
    assert response.json()["round_name"] == "Finals"
    assert client.get("/api/matches/9999").status_code == 404


def test_knockout_runs_to_champion(client: TestClient):
    tournament_id = _knockout(client, 8)
    quarterfinals = client.get(f"/api/tournaments/{tournament_id}/matches").json()
    assert len(quarterfinals) == 4

    results = [_finish(client, m["id"]) for m in quarterfinals]
    assert all(r["completed_now"] for r in results)
    assert [len(r["next_round"]) for r in results] == [0, 0, 0, 2]
    semifinals = results[-1]["next_round"]
    assert {m["round_name"] for m in semifinals} == {"Semifinals"}

    final = [_finish(client, m["id"]) for m in semifinals][-1]["next_round"]
    assert len(final) == 1
    assert final[0]["round_name"] == "Finals"

    champion = _finish(client, final[0]["id"], score_a=0, score_b=2)["match"]["winner_team_id"]
    bracket = client.get(f"/api/tournaments/{tournament_id}/bracket").json()
    assert bracket["champion_team_id"] == champion == final[0]["team_b_id"]
    assert [r["round_name"] for r in bracket["rounds"]] == ["Quarterfinals", "Semifinals", "Finals"]
    assert len(client.get(f"/api/tournaments/{tournament_id}/matches").json()) == 7


def test_invalid_updates(client: TestClient):
    tournament_id = _knockout(client, 2)
    match = client.get(f"/api/tournaments/{tournament_id}/matches").json()[0]

    response = client.patch(f"/api/matches/{match['id']}/result", json={"score_a": -1})
    assert response.status_code == 422

    response = client.patch(f"/api/matches/{match['id']}/result", json={"winner_team_id": match["team_a_id"]})
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_WINNER"

    _finish(client, match["id"])
    response = client.patch(f"/api/matches/{match['id']}/result", json={"status": "ongoing"})
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

    response = client.patch("/api/matches/9999/result", json={"status": "ongoing"})
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "MATCH_NOT_FOUND"


def test_tied_semifinal_stalls_bracket(client: TestClient):
    tournament_id = _knockout(client, 4)
    semifinals = client.get(f"/api/tournaments/{tournament_id}/matches").json()

    _finish(client, semifinals[0]["id"], score_a=2, score_b=2)
    last = _finish(client, semifinals[1]["id"])
    assert last["next_round"] == []

    bracket = client.get(f"/api/tournaments/{tournament_id}/bracket").json()
    assert bracket["stalled"] is True
    assert bracket["champion_team_id"] is None

    # administrator settles the tie, then repairs the bracket
    response = client.patch(
        f"/api/matches/{semifinals[0]['id']}/result",
        json={"status": "completed", "winner_team_id": semifinals[0]["team_b_id"]},
    )
    assert response.status_code == 200
    assert response.json()["completed_now"] is False

    response = client.post(f"/api/tournaments/{tournament_id}/rounds/1/advance")
    assert response.status_code == 200
    final = response.json()["next_round"]
    assert len(final) == 1
    assert final[0]["team_a_id"] == semifinals[0]["team_b_id"]


def test_winner_change_after_next_round_conflict(client: TestClient):
    tournament_id = _knockout(client, 4)
    semifinals = client.get(f"/api/tournaments/{tournament_id}/matches").json()
    final = [_finish(client, m["id"]) for m in semifinals][-1]["next_round"][0]

    response = client.patch(f"/api/matches/{semifinals[0]['id']}/result", json={"score_a": 0, "score_b": 9})
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "RESULT_LOCKED"

    match = client.get(f"/api/matches/{semifinals[0]['id']}").json()
    assert match["winner_team_id"] == semifinals[0]["team_a_id"] == final["team_a_id"]
