import pytest

from conftest import GUARANTOR, MEMBER, OUTSIDER, in_days


def activity_types(client, group_id, limit=None):
    params = {"limit": limit} if limit else None
    response = client.get(f"/api/groups/{group_id}/activities", params=params)
    assert response.status_code == 200
    return [a["activityType"] for a in response.json()]


class TestRequestLoan:
    def test_request_with_guarantors(self, client, loan):
        assert loan["borrowerAddress"] == MEMBER.lower()
        assert loan["amount"] == 500
        assert loan["approved"] is False
        assert loan["repaid"] is False
        assert loan["defaulted"] is False
        assert loan["createdAt"] is not None

        guarantors = client.get(f"/api/loans/{loan['id']}/guarantors").json()
        assert [(g["guarantorAddress"], g["approved"]) for g in guarantors] == [
            (GUARANTOR.lower(), False)
        ]

    def test_request_records_activity(self, client, group, loan):
        assert activity_types(client, group["id"])[0] == "loan_request"

    def test_borrower_without_group_records_nothing(self, client, group):
        response = client.post(
            "/api/loans",
            json={"borrowerAddress": OUTSIDER, "amount": 50, "dueDate": in_days(10).isoformat()},
        )
        assert response.status_code == 201
        assert "loan_request" not in activity_types(client, group["id"])

    def test_amount_must_be_positive(self, client):
        response = client.post(
            "/api/loans",
            json={"borrowerAddress": MEMBER, "amount": 0, "dueDate": in_days(10).isoformat()},
        )
        assert response.status_code == 400

    def test_due_date_required(self, client):
        response = client.post("/api/loans", json={"borrowerAddress": MEMBER, "amount": 10})
        assert response.status_code == 400
        assert "dueDate" in response.json()["message"]

    @pytest.mark.parametrize("guarantor", ["", "   ", "0x" + "b" * 60])
    def test_invalid_guarantor_address_stores_nothing(self, client, guarantor):
        response = client.post(
            "/api/loans",
            json={
                "borrowerAddress": MEMBER,
                "amount": 100,
                "dueDate": in_days(10).isoformat(),
                "guarantors": [GUARANTOR, guarantor],
            },
        )
        assert response.status_code == 400
        assert "guarantors" in response.json()["message"]
        assert client.get(f"/api/users/{MEMBER}/loans").json() == []
        assert client.get(f"/api/guarantors/{GUARANTOR}").json() == []


class TestGetAndUpdateLoan:
    def test_get_includes_guarantors(self, client, loan):
        response = client.get(f"/api/loans/{loan['id']}")
        assert response.status_code == 200
        assert len(response.json()["guarantors"]) == 1

    def test_get_unknown(self, client):
        response = client.get("/api/loans/999")
        assert response.status_code == 404
        assert response.json() == {"message": "Loan not found"}

    def test_approve(self, client, group, loan):
        response = client.patch(f"/api/loans/{loan['id']}", json={"approved": True})
        assert response.status_code == 200
        assert response.json()["approved"] is True
        assert activity_types(client, group["id"])[0] == "loan_approved"

    def test_repay(self, client, group, loan):
        client.patch(f"/api/loans/{loan['id']}", json={"repaid": True})
        assert activity_types(client, group["id"])[0] == "loan_repaid"

    def test_default(self, client, group, loan):
        client.patch(f"/api/loans/{loan['id']}", json={"defaulted": True})
        assert activity_types(client, group["id"])[0] == "loan_defaulted"

    def test_approval_takes_precedence(self, client, group, loan):
        client.patch(f"/api/loans/{loan['id']}", json={"repaid": True, "approved": True})
        assert activity_types(client, group["id"])[0] == "loan_approved"

    def test_other_change(self, client, group, loan):
        response = client.patch(f"/api/loans/{loan['id']}", json={"amount": 900})
        assert response.json()["amount"] == 900
        assert activity_types(client, group["id"])[0] == "loan_update"

    def test_update_unknown(self, client):
        assert client.patch("/api/loans/999", json={"repaid": True}).status_code == 404

    def test_patch_null_amount(self, client, loan):
        response = client.patch(f"/api/loans/{loan['id']}", json={"amount": None})
        assert response.status_code == 400
        assert client.get(f"/api/loans/{loan['id']}").json()["amount"] == 500

    def test_patch_null_flag(self, client, loan):
        response = client.patch(f"/api/loans/{loan['id']}", json={"repaid": None})
        assert response.status_code == 400


class TestGuarantors:
    def test_add(self, client, group, loan):
        response = client.post(
            f"/api/loans/{loan['id']}/guarantors", json={"guarantorAddress": OUTSIDER}
        )
        assert response.status_code == 201
        assert response.json()["approved"] is False
        assert response.json()["loanId"] == loan["id"]
        assert len(client.get(f"/api/loans/{loan['id']}/guarantors").json()) == 2
        assert activity_types(client, group["id"])[0] == "guarantor_added"

    def test_add_to_unknown_loan(self, client):
        response = client.post("/api/loans/999/guarantors", json={"guarantorAddress": OUTSIDER})
        assert response.status_code == 404

    def test_list_for_unknown_loan(self, client):
        assert client.get("/api/loans/999/guarantors").status_code == 404

    def test_approve(self, client, group, loan):
        response = client.patch(
            f"/api/loans/{loan['id']}/guarantors/{GUARANTOR.lower()}", json={"approved": True}
        )
        assert response.status_code == 200
        assert response.json()["approved"] is True
        assert activity_types(client, group["id"])[0] == "guarantor_approved"

    def test_decline_records_nothing(self, client, group, loan):
        response = client.patch(
            f"/api/loans/{loan['id']}/guarantors/{GUARANTOR}", json={"approved": False}
        )
        assert response.status_code == 200
        assert "guarantor_approved" not in activity_types(client, group["id"])

    def test_unknown_guarantor(self, client, loan):
        response = client.patch(
            f"/api/loans/{loan['id']}/guarantors/{OUTSIDER}", json={"approved": True}
        )
        assert response.status_code == 404
        assert response.json() == {"message": "Guarantor not found"}

    def test_approved_flag_required(self, client, loan):
        response = client.patch(f"/api/loans/{loan['id']}/guarantors/{GUARANTOR}", json={})
        assert response.status_code == 400


class TestGuarantorRequests:
    def test_pending_and_approved(self, client, loan):
        url = f"/api/guarantors/{GUARANTOR}"
        pending = client.get(url, params={"approved": "false"}).json()
        assert [r["loan"]["id"] for r in pending] == [loan["id"]]
        assert client.get(url, params={"approved": "true"}).json() == []

        client.patch(f"/api/loans/{loan['id']}/guarantors/{GUARANTOR}", json={"approved": True})
        approved = client.get(url, params={"approved": "true"}).json()
        assert [r["loanId"] for r in approved] == [loan["id"]]
        assert approved[0]["loan"]["borrowerAddress"] == MEMBER.lower()

    def test_unfiltered(self, client, loan):
        assert len(client.get(f"/api/guarantors/{GUARANTOR}").json()) == 1
        assert client.get(f"/api/guarantors/{OUTSIDER}").json() == []
