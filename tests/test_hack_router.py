"""
Tests for the HTTP surface

Verifies:
- Basic authentication guards every route
- Error kinds map to distinct status codes
- Full flow initiate -> request -> resolve -> read over HTTP
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from conftest import PLAYER_WALLET
from hack_resolver.main import app

PLAYER_AUTH = ("player", "player-pass")
ORACLE_AUTH = ("oracle", "oracle-pass")
RANDOMNESS_SUCCESS = "00" * 32

HACK_DATA = {
    "player_wallet": PLAYER_WALLET,
    "hack_nonce": 5,
    "hack_power": 50,
    "stealth": 20,
    "security_level": 10,
    "detection_chance": 80,
    "heat_level": 0,
    "success_floor": 20,
}


@pytest.fixture
def client(users, redis) -> TestClient:
    # No context manager: the lifespan would create tables on the production engines.
    return TestClient(app)


def initiate(client: TestClient, **overrides) -> dict:
    response = client.post("/initiate-hack", json={**HACK_DATA, **overrides}, auth=PLAYER_AUTH)
    assert response.status_code == 200, response.text
    return response.json()


class TestAuthentication:
    def test_missing_credentials(self, client):
        response = client.post("/initiate-hack", json=HACK_DATA)
        assert response.status_code == 401

    def test_wrong_password(self, client):
        response = client.post("/initiate-hack", json=HACK_DATA, auth=("player", "nope"))
        assert response.status_code == 401

    def test_unknown_user(self, client):
        response = client.post("/initiate-hack", json=HACK_DATA, auth=("ghost", "player-pass"))
        assert response.status_code == 401


class TestHackFlow:
    def test_full_flow(self, client, redis):
        hack_session = initiate(client)
        assert hack_session["status"] == "pending"
        assert hack_session["owner_context"] == "base_layer"
        assert hack_session["result"] is None
        address = hack_session["session_address"]

        response = client.post(
            "/request-randomness",
            json={"session_address": address, "player_wallet": PLAYER_WALLET, "caller_seed": 3},
            auth=PLAYER_AUTH,
        )
        assert response.status_code == 200
        assert response.json()["session_address"] == address

        response = client.get(f"/hack-result/{address}", auth=PLAYER_AUTH)
        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "NotResolved"

        response = client.post(
            "/resolve-hack", json={"session_address": address, "randomness": RANDOMNESS_SUCCESS}, auth=ORACLE_AUTH
        )
        assert response.status_code == 200
        result = response.json()
        assert result["success"] is True
        assert result["detected"] is False
        assert result["damage_seed"] == "00" * 8

        response = client.get(f"/hack-result/{address}", auth=PLAYER_AUTH)
        assert response.status_code == 200
        assert response.json() == result

        response = client.get(f"/hack-session/{address}", auth=PLAYER_AUTH)
        assert response.json()["status"] == "resolved"
        assert response.json()["result"] == result

    def test_delegate(self, client):
        address = initiate(client)["session_address"]
        response = client.post(
            "/delegate-hack",
            json={"session_address": address, "player_wallet": PLAYER_WALLET},
            auth=PLAYER_AUTH,
        )
        assert response.status_code == 200
        delegation = response.json()
        assert delegation["source_context"] == "base_layer"
        assert delegation["target_context"] == "ephemeral_rollup"
        assert len(bytes.fromhex(delegation["snapshot"])) == 73

        response = client.get(f"/hack-session/{address}", auth=PLAYER_AUTH)
        assert response.json()["owner_context"] == "ephemeral_rollup"

    def test_audit_lists_requests_and_delegations(self, client):
        address = initiate(client)["session_address"]
        response = client.get(f"/hack-session/{address}/audit", auth=PLAYER_AUTH)
        assert response.status_code == 200
        assert response.json() == {"session_address": address, "randomness_requests": [], "delegations": []}

        request = client.post(
            "/request-randomness",
            json={"session_address": address, "player_wallet": PLAYER_WALLET, "caller_seed": 9},
            auth=PLAYER_AUTH,
        ).json()
        client.post(
            "/delegate-hack",
            json={"session_address": address, "player_wallet": PLAYER_WALLET},
            auth=PLAYER_AUTH,
        )

        audit = client.get(f"/hack-session/{address}/audit", auth=PLAYER_AUTH).json()
        assert [item["request_id"] for item in audit["randomness_requests"]] == [request["request_id"]]
        assert audit["randomness_requests"][0]["caller_seed"] == 9
        assert len(audit["delegations"]) == 1
        assert audit["delegations"][0]["source_context"] == "base_layer"
        assert audit["delegations"][0]["target_context"] == "ephemeral_rollup"
        assert audit["delegations"][0]["delegated_at"] is not None

    def test_audit_of_unknown_session(self, client):
        response = client.get(f"/hack-session/{'ff' * 32}/audit", auth=PLAYER_AUTH)
        assert response.status_code == 404

    def test_stream_of_resolved_session(self, client):
        address = initiate(client)["session_address"]
        client.post(
            "/resolve-hack", json={"session_address": address, "randomness": RANDOMNESS_SUCCESS}, auth=ORACLE_AUTH
        )
        response = client.get(f"/stream/{address}", auth=PLAYER_AUTH)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert "event: hack_state" in response.text
        assert "event: hack_resolved" in response.text


class TestErrorMapping:
    def test_invalid_params(self, client):
        response = client.post("/initiate-hack", json={**HACK_DATA, "security_level": 0}, auth=PLAYER_AUTH)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
        assert response.json()["detail"]["kind"] == "InvalidParams"

    def test_out_of_range_field(self, client):
        response = client.post("/initiate-hack", json={**HACK_DATA, "heat_level": 256}, auth=PLAYER_AUTH)
        assert response.status_code == 422

    def test_bad_player_key(self, client):
        response = client.post("/initiate-hack", json={**HACK_DATA, "player_wallet": "abcd"}, auth=PLAYER_AUTH)
        assert response.status_code == 422

    def test_duplicate_session(self, client):
        initiate(client)
        response = client.post("/initiate-hack", json=HACK_DATA, auth=PLAYER_AUTH)
        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "DuplicateSession"

    def test_unauthorized_callback(self, client):
        address = initiate(client)["session_address"]
        response = client.post(
            "/resolve-hack", json={"session_address": address, "randomness": RANDOMNESS_SUCCESS}, auth=PLAYER_AUTH
        )
        assert response.status_code == 403
        assert response.json()["detail"]["kind"] == "UnauthorizedCallback"

        response = client.get(f"/hack-session/{address}", auth=PLAYER_AUTH)
        assert response.json()["status"] == "pending"

    def test_already_resolved(self, client):
        address = initiate(client)["session_address"]
        body = {"session_address": address, "randomness": RANDOMNESS_SUCCESS}
        assert client.post("/resolve-hack", json=body, auth=ORACLE_AUTH).status_code == 200
        response = client.post("/resolve-hack", json=body, auth=ORACLE_AUTH)
        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "AlreadyResolved"

    def test_short_randomness(self, client):
        address = initiate(client)["session_address"]
        response = client.post(
            "/resolve-hack", json={"session_address": address, "randomness": "00" * 31}, auth=ORACLE_AUTH
        )
        assert response.status_code == 422

    def test_session_not_found(self, client):
        response = client.get(f"/hack-session/{'ff' * 32}", auth=PLAYER_AUTH)
        assert response.status_code == 404
        response = client.get(f"/stream/{'ff' * 32}", auth=PLAYER_AUTH)
        assert response.status_code == 404

    def test_authority_cannot_initiate(self, client):
        response = client.post("/initiate-hack", json=HACK_DATA, auth=ORACLE_AUTH)
        assert response.status_code == 403
        assert response.json()["detail"]["kind"] == "UnauthorizedPlayer"
