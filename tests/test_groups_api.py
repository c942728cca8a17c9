from conftest import ADMIN, MEMBER, OUTSIDER


class TestCreateGroup:
    def test_create(self, client, group):
        assert group["name"] == "Nairobi Traders"
        assert group["admin"] == ADMIN.lower()
        assert group["totalDeposits"] == 0
        assert group["totalLoaned"] == 0

    def test_admin_is_first_member(self, client, group):
        members = client.get(f"/api/groups/{group['id']}/members").json()
        assert [m["address"] for m in members] == [ADMIN.lower()]

    def test_admin_record_points_at_group(self, client, group):
        admin = client.get(f"/api/users/{ADMIN}").json()
        assert admin["groupId"] == group["id"]
        assert admin["registered"] is True

    def test_admin_without_user_record(self, client):
        response = client.post("/api/groups", json={"name": "Solo", "admin": OUTSIDER})
        assert response.status_code == 201
        assert client.get(f"/api/users/{OUTSIDER}").status_code == 404

    def test_totals_cannot_be_set_on_create(self, client):
        response = client.post(
            "/api/groups", json={"name": "Rich", "admin": MEMBER, "totalDeposits": 10**6}
        )
        assert response.status_code == 201
        assert response.json()["totalDeposits"] == 0

    def test_name_required(self, client):
        response = client.post("/api/groups", json={"admin": ADMIN})
        assert response.status_code == 400


class TestReadAndUpdateGroup:
    def test_list(self, client, group):
        response = client.get("/api/groups")
        assert response.status_code == 200
        assert [g["id"] for g in response.json()] == [group["id"]]

    def test_get(self, client, group):
        assert client.get(f"/api/groups/{group['id']}").json() == group

    def test_get_unknown(self, client):
        response = client.get("/api/groups/999")
        assert response.status_code == 404
        assert response.json() == {"message": "Group not found"}

    def test_patch(self, client, group):
        response = client.patch(f"/api/groups/{group['id']}", json={"totalLoaned": 700})
        assert response.status_code == 200
        assert response.json()["totalLoaned"] == 700
        assert response.json()["name"] == group["name"]

    def test_patch_unknown(self, client):
        assert client.patch("/api/groups/999", json={"name": "Ghost"}).status_code == 404

    def test_patch_null_name(self, client, group):
        response = client.patch(f"/api/groups/{group['id']}", json={"name": None})
        assert response.status_code == 400
        assert client.get(f"/api/groups/{group['id']}").json()["name"] == group["name"]

    def test_blank_name(self, client):
        response = client.post("/api/groups", json={"name": "  ", "admin": ADMIN})
        assert response.status_code == 400


class TestMembership:
    def test_join(self, client, group):
        client.post("/api/users", json={"address": MEMBER})
        response = client.post(
            f"/api/groups/{group['id']}/members", json={"memberAddress": MEMBER}
        )
        assert response.status_code == 201
        assert response.json()["memberAddress"] == MEMBER.lower()

        user = client.get(f"/api/users/{MEMBER}").json()
        assert user["groupId"] == group["id"]
        assert user["registered"] is True
        members = client.get(f"/api/groups/{group['id']}/members").json()
        assert [m["address"] for m in members] == [ADMIN.lower(), MEMBER.lower()]

    def test_join_twice(self, client, group):
        url = f"/api/groups/{group['id']}/members"
        client.post(url, json={"memberAddress": MEMBER})
        response = client.post(url, json={"memberAddress": MEMBER.lower()})
        assert response.status_code == 400
        assert response.json() == {"message": "Already a member of this group"}

    def test_admin_cannot_join_own_group(self, client, group):
        response = client.post(
            f"/api/groups/{group['id']}/members", json={"memberAddress": ADMIN}
        )
        assert response.status_code == 400

    def test_join_unknown_group(self, client):
        response = client.post("/api/groups/999/members", json={"memberAddress": MEMBER})
        assert response.status_code == 404
        assert response.json() == {"message": "Group not found"}

    def test_proposals_of_group(self, client, group, proposal):
        response = client.get(f"/api/groups/{group['id']}/proposals")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [proposal["id"]]
