"""Tests for habit and tag CRUD routes."""

import pytest


@pytest.fixture
def habit(client, auth_headers):
    res = client.post(
        "/api/habits",
        headers=auth_headers,
        json={"title": "Read", "frequency_unit": "Day", "due_date": "2024-05-01"},
    )
    assert res.status_code == 201
    return res.json()


def test_create_and_list(client, auth_headers, habit):
    assert habit["frequency_quantity"] == 1
    child = client.post(
        "/api/habits",
        headers=auth_headers,
        json={"title": "Pick a book", "parent_id": habit["id"]},
    ).json()

    listed = client.get("/api/habits", headers=auth_headers).json()
    assert [h["id"] for h in listed] == [habit["id"]]
    assert [c["id"] for c in listed[0]["children"]] == [child["id"]]


def test_invalid_habit_is_400(client, auth_headers):
    res = client.post(
        "/api/habits",
        headers=auth_headers,
        json={"title": "Gym", "frequency_unit": "Week", "frequency_quantity": 2, "days": ["Monday"]},
    )
    assert res.status_code == 400
    assert "Days can only be set" in res.json()["error"]


def test_log_and_duplicate(client, auth_headers, habit):
    res = client.post(
        f"/api/habits/{habit['id']}/log",
        headers=auth_headers,
        json={"date": "2024-05-06", "note": "ch. 1"},
    )
    assert res.status_code == 201
    assert res.json()["date"] == "2024-05-06"

    again = client.post(
        f"/api/habits/{habit['id']}/log", headers=auth_headers, json={"date": "2024-05-06"}
    )
    assert again.status_code == 400
    assert "already been logged" in again.json()["error"]

    logs = client.get(f"/api/habits/{habit['id']}/logs", headers=auth_headers).json()
    assert [l["note"] for l in logs] == ["ch. 1"]


def test_other_users_habit_is_hidden(client, auth_headers_b, habit):
    assert client.post(f"/api/habits/{habit['id']}/log", headers=auth_headers_b, json={}).status_code == 404
    assert client.delete(f"/api/habits/{habit['id']}", headers=auth_headers_b).status_code == 404
    assert client.get("/api/habits", headers=auth_headers_b).json() == []


def test_delete(client, auth_headers, habit):
    assert client.delete(f"/api/habits/{habit['id']}", headers=auth_headers).status_code == 200
    assert client.get("/api/habits", headers=auth_headers).json() == []
    assert client.delete(f"/api/habits/{habit['id']}", headers=auth_headers).status_code == 404


class TestTags:
    @pytest.fixture
    def tag(self, client, auth_headers):
        res = client.post("/api/tags", headers=auth_headers, json={"name": "health", "color": "#00ff00"})
        assert res.status_code == 201
        return res.json()

    def test_create_and_list(self, client, auth_headers, tag):
        assert tag["color"] == "#00FF00"
        assert client.get("/api/tags", headers=auth_headers).json() == [tag]

    def test_duplicate_name_rejected(self, client, auth_headers, auth_headers_b, tag):
        res = client.post("/api/tags", headers=auth_headers, json={"name": " health ", "color": "#ff0000"})
        assert res.status_code == 400
        assert res.json() == {"error": "A tag with this name already exists."}
        assert len(client.get("/api/tags", headers=auth_headers).json()) == 1

        other = client.post("/api/tags", headers=auth_headers_b, json={"name": "health", "color": "#ff0000"})
        assert other.status_code == 201

    def test_invalid_color(self, client, auth_headers):
        res = client.post("/api/tags", headers=auth_headers, json={"name": "x", "color": "green"})
        assert res.status_code == 400

    def test_assign_and_unassign(self, client, auth_headers, habit, tag):
        url = f"/api/habits/{habit['id']}/tags/{tag['id']}"
        assert client.post(url, headers=auth_headers).status_code == 200
        assert client.post(url, headers=auth_headers).status_code == 200
        assert client.get("/api/habits", headers=auth_headers).json()[0]["tag_ids"] == [tag["id"]]

        assert client.delete(url, headers=auth_headers).status_code == 200
        assert client.delete(url, headers=auth_headers).status_code == 404

    def test_cannot_use_other_users_tag(self, client, auth_headers, auth_headers_b, habit):
        theirs = client.post(
            "/api/tags", headers=auth_headers_b, json={"name": "work", "color": "#123456"}
        ).json()
        res = client.post(f"/api/habits/{habit['id']}/tags/{theirs['id']}", headers=auth_headers)
        assert res.status_code == 404

    def test_delete(self, client, auth_headers, auth_headers_b, tag):
        assert client.delete(f"/api/tags/{tag['id']}", headers=auth_headers_b).status_code == 404
        assert client.delete(f"/api/tags/{tag['id']}", headers=auth_headers).status_code == 200
        assert client.get("/api/tags", headers=auth_headers).json() == []
