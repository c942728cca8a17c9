from conftest import ADMIN, MEMBER, OUTSIDER, in_days


class TestRegisterUser:
    def test_create_returns_201_with_defaults(self, client):
        response = client.post("/api/users", json={"address": ADMIN})
        assert response.status_code == 201
        body = response.json()
        assert body["address"] == ADMIN.lower()
        assert body["creditScore"] == 100
        assert body["totalDeposits"] == 0
        assert body["registered"] is False
        assert body["isDefaulted"] is False
        assert body["groupId"] is None
        assert body["lastDepositTime"] is not None

    def test_existing_address_returns_200_and_same_record(self, client):
        first = client.post("/api/users", json={"address": ADMIN}).json()
        response = client.post("/api/users", json={"address": ADMIN.lower(), "creditScore": 10})
        assert response.status_code == 200
        assert response.json()["id"] == first["id"]
        assert response.json()["creditScore"] == 100

    def test_address_is_required(self, client):
        response = client.post("/api/users", json={"creditScore": 90})
        assert response.status_code == 400
        assert "address" in response.json()["message"]

    def test_address_too_long(self, client):
        response = client.post("/api/users", json={"address": "0x" + "a" * 60})
        assert response.status_code == 400

    def test_blank_address_rejected(self, client):
        response = client.post("/api/users", json={"address": "   "})
        assert response.status_code == 400
        assert client.get("/api/users/%20%20%20").status_code == 404

    def test_address_is_trimmed(self, client):
        response = client.post("/api/users", json={"address": f"  {ADMIN}  "})
        assert response.status_code == 201
        assert response.json()["address"] == ADMIN.lower()


class TestGetAndUpdateUser:
    def test_get_by_any_case(self, client):
        client.post("/api/users", json={"address": ADMIN})
        response = client.get(f"/api/users/{ADMIN.upper().replace('0X', '0x')}")
        assert response.status_code == 200
        assert response.json()["address"] == ADMIN.lower()

    def test_get_unknown(self, client):
        response = client.get(f"/api/users/{OUTSIDER}")
        assert response.status_code == 404
        assert response.json() == {"message": "User not found"}

    def test_patch_changes_only_given_fields(self, client):
        client.post("/api/users", json={"address": MEMBER})
        response = client.patch(
            f"/api/users/{MEMBER}", json={"totalDeposits": 300, "isDefaulted": True}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["totalDeposits"] == 300
        assert body["isDefaulted"] is True
        assert body["creditScore"] == 100

    def test_patch_unknown(self, client):
        response = client.patch(f"/api/users/{OUTSIDER}", json={"creditScore": 1})
        assert response.status_code == 404

    def test_patch_null_for_required_field(self, client):
        client.post("/api/users", json={"address": MEMBER})
        response = client.patch(f"/api/users/{MEMBER}", json={"creditScore": None})
        assert response.status_code == 400
        assert "creditScore" in response.json()["message"]

        stored = client.get(f"/api/users/{MEMBER}")
        assert stored.status_code == 200
        assert stored.json()["creditScore"] == 100

    def test_patch_null_group_id_clears_it(self, client, group):
        response = client.patch(f"/api/users/{ADMIN}", json={"groupId": None})
        assert response.status_code == 200
        assert response.json()["groupId"] is None
        assert client.get(f"/api/users/{ADMIN}").json()["groupId"] is None


class TestUserGroupAndLoans:
    def test_user_not_in_any_group(self, client):
        client.post("/api/users", json={"address": OUTSIDER})
        response = client.get(f"/api/users/{OUTSIDER}/group")
        assert response.status_code == 404
        assert response.json()["message"] == "User not in any group"

    def test_user_group(self, client, group):
        response = client.get(f"/api/users/{ADMIN}/group")
        assert response.status_code == 200
        assert response.json()["id"] == group["id"]

    def test_user_loans_include_guarantors(self, client, loan):
        response = client.get(f"/api/users/{MEMBER}/loans")
        assert response.status_code == 200
        loans = response.json()
        assert [item["id"] for item in loans] == [loan["id"]]
        assert len(loans[0]["guarantors"]) == 1

    def test_user_without_loans(self, client):
        assert client.get(f"/api/users/{OUTSIDER}/loans").json() == []
