import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from sacco_api.app.main import create_app
from sacco_api.app.storage import MemStorage, SQLiteStorage

ADMIN = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
MEMBER = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
GUARANTOR = "0x4B20993Bc481177ec7E8f571ceCaE8A9e22C02db"
OUTSIDER = "0x78731D3Ca6b7E34aC0F824c42a7cC18A495cabaB"


def in_days(days):
    """Timezone-aware timestamp ``days`` from now."""
    return datetime.now(timezone.utc) + timedelta(days=days)


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path):
    """Fresh backend per test; every test using it runs once per backend."""
    if request.param == "memory":
        backend = MemStorage()
    else:
        backend = SQLiteStorage(str(tmp_path / "sacco.db"))
    asyncio.run(backend.setup())
    return backend


@pytest.fixture
def client(storage):
    with TestClient(create_app(storage)) as test_client:
        yield test_client


@pytest.fixture
def group(client):
    """A group administered by ADMIN, who has a user record."""
    client.post("/api/users", json={"address": ADMIN})
    response = client.post("/api/groups", json={"name": "Nairobi Traders", "admin": ADMIN})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def loan(client, group):
    """A loan requested by MEMBER (a member of ``group``) with one guarantor."""
    client.post("/api/users", json={"address": MEMBER})
    client.post(f"/api/groups/{group['id']}/members", json={"memberAddress": MEMBER})
    response = client.post(
        "/api/loans",
        json={
            "borrowerAddress": MEMBER,
            "amount": 500,
            "dueDate": in_days(30).isoformat(),
            "guarantors": [GUARANTOR],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def proposal(client, group):
    response = client.post(
        "/api/proposals",
        json={
            "groupId": group["id"],
            "description": "Raise the loan ceiling",
            "deadline": in_days(7).isoformat(),
        },
    )
    assert response.status_code == 201, response.text
    return response.json()
