import pytest
from fastapi.testclient import TestClient

from conftest import ADMIN, MEMBER
from sacco_api.app.main import create_app
from sacco_api.app.storage import MemStorage


class FailingActivityStorage(MemStorage):
    async def add_activity(self, data):
        raise RuntimeError("activity table unavailable")


class BrokenStorage(MemStorage):
    async def get_groups(self):
        raise RuntimeError("database is locked")


class TestActivityFeed:
    def test_group_creation_and_join(self, client, group):
        client.post(f"/api/groups/{group['id']}/members", json={"memberAddress": MEMBER})
        feed = client.get(f"/api/groups/{group['id']}/activities").json()
        assert [a["activityType"] for a in feed] == ["join_group", "create_group"]
        assert feed[1]["description"] == f"{ADMIN.lower()} created group Nairobi Traders"
        assert feed[0]["userAddress"] == MEMBER.lower()
        assert feed[0]["timestamp"] is not None

    def test_limit(self, client, group, proposal):
        url = f"/api/proposals/{proposal['id']}/votes"
        for n in range(12):
            client.post(url, json={"voterAddress": f"0x{n:040x}", "vote": n % 2 == 0})

        feed_url = f"/api/groups/{group['id']}/activities"
        assert len(client.get(feed_url).json()) == 10
        latest = client.get(feed_url, params={"limit": 2}).json()
        assert [a["userAddress"] for a in latest] == [f"0x{11:040x}", f"0x{10:040x}"]
        assert len(client.get(feed_url, params={"limit": 100}).json()) == 14

    @pytest.mark.parametrize("limit", [0, 101, "many"])
    def test_limit_out_of_range(self, client, group, limit):
        response = client.get(f"/api/groups/{group['id']}/activities", params={"limit": limit})
        assert response.status_code == 400

    def test_unknown_group_is_empty(self, client):
        assert client.get("/api/groups/999/activities").json() == []

    def test_failed_activity_write_does_not_fail_request(self):
        with TestClient(create_app(FailingActivityStorage())) as client:
            response = client.post("/api/groups", json={"name": "Quiet", "admin": ADMIN})
            assert response.status_code == 201
            assert client.get(f"/api/groups/{response.json()['id']}/members").status_code == 200


class TestErrorResponses:
    def test_unexpected_error_is_500(self):
        with TestClient(create_app(BrokenStorage()), raise_server_exceptions=False) as client:
            response = client.get("/api/groups")
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}

    def test_malformed_json(self, client):
        response = client.post(
            "/api/users", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert "message" in response.json()

    def test_path_parameter_type(self, client):
        assert client.get("/api/groups/abc").status_code == 400

    def test_unknown_route(self, client):
        response = client.get("/api/nowhere")
        assert response.status_code == 404
        assert response.json() == {"message": "Not Found"}
