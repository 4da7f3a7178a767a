"""
Tests for the HTTP API: envelopes, status codes and the end-to-end contract flow.
"""
import json
import logging
import uuid

import pytest
from fastapi import status

from contractflow.config import settings

NDA_PAYLOAD = {
    "name": "NDA",
    "description": "Mutual non-disclosure agreement",
    "fields": [
        {"type": "text", "label": "Party Name", "position_x": 10, "position_y": 20},
        {"type": "date", "label": "Effective Date"},
        {"type": "signature", "label": "Signature"},
        {"type": "checkbox", "label": "Agree"},
    ],
}


def _create_blueprint(client, payload=NDA_PAYLOAD):
    response = client.post("/blueprints", json=payload)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


def _create_contract(client, blueprint, name="Acme NDA", field_values=None):
    body = {"blueprint_id": blueprint["id"], "name": name}
    if field_values is not None:
        body["field_values"] = field_values
    response = client.post("/contracts", json=body)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


def _transition(client, contract_id, target):
    return client.post(f"/contracts/{contract_id}/transition", json={"target_status": target})


def _field_ids(blueprint):
    return {f["label"]: f["id"] for f in blueprint["fields"]}


def _assert_failure(response, status_code, error_code):
    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == error_code
    assert body["message"]
    return body


@pytest.mark.integration
class TestEndToEnd:
    """NDA blueprint through to a locked contract."""

    def test_nda_flow(self, client):
        blueprint = _create_blueprint(client)
        assert [f["order"] for f in blueprint["fields"]] == [0, 1, 2, 3]
        fields = _field_ids(blueprint)

        contract = _create_contract(client, blueprint, field_values={fields["Party Name"]: "Acme Corp"})
        assert contract["status"] == "created"
        assert contract["blueprint_name"] == "NDA"
        values = {v["label"]: v["value"] for v in contract["field_values"]}
        assert values == {"Party Name": "Acme Corp", "Effective Date": "", "Signature": "", "Agree": "false"}

        response = client.put(f"/contracts/{contract['id']}", json={"field_values": {
            fields["Effective Date"]: "2024-01-15",
            fields["Agree"]: "true",
        }})
        assert response.status_code == status.HTTP_200_OK
        values = {v["label"]: v["value"] for v in response.json()["data"]["field_values"]}
        assert values["Effective Date"] == "2024-01-15"
        assert values["Agree"] == "true"

        response = _transition(client, contract["id"], "approved")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Contract 'Acme NDA' transitioned from 'created' to 'approved'"

        response = client.put(f"/contracts/{contract['id']}", json={"field_values": {fields["Party Name"]: "Globex"}})
        _assert_failure(response, status.HTTP_409_CONFLICT, "NOT_EDITABLE")

        response = _transition(client, contract["id"], "signed")
        body = _assert_failure(response, status.HTTP_409_CONFLICT, "INVALID_TRANSITION")
        assert body["details"]["allowed_transitions"] == ["sent", "revoked"]

        for target in ("sent", "signed"):
            assert _transition(client, contract["id"], target).status_code == status.HTTP_200_OK

        response = _transition(client, contract["id"], "revoked")
        _assert_failure(response, status.HTTP_409_CONFLICT, "INVALID_TRANSITION")

        response = _transition(client, contract["id"], "locked")
        data = response.json()["data"]
        assert data["status"] == "locked"
        assert data["is_terminal"] is True
        assert data["allowed_transitions"] == []

        response = client.put(
            f"/blueprints/{blueprint['id']}",
            json={"fields": [{"type": "text", "label": "Replacement"}]},
        )
        _assert_failure(response, status.HTTP_409_CONFLICT, "SCHEMA_LOCKED")

        response = client.delete(f"/blueprints/{blueprint['id']}")
        _assert_failure(response, status.HTTP_409_CONFLICT, "HAS_DEPENDENTS")


@pytest.mark.integration
class TestBlueprintEndpoints:
    """Blueprint CRUD over HTTP."""

    def test_list_blueprints_empty(self, client):
        response = client.get("/blueprints")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "data": [], "message": None}

    def test_create_and_get(self, client):
        blueprint = _create_blueprint(client)
        assert blueprint["is_locked"] is False
        assert blueprint["contract_count"] == 0
        assert blueprint["fields"][0]["position_x"] == 10

        response = client.get(f"/blueprints/{blueprint['id']}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["name"] == "NDA"

    def test_unknown_field_type(self, client):
        payload = {"name": "Bad", "fields": [{"type": "video", "label": "Clip"}]}
        body = _assert_failure(client.post("/blueprints", json=payload), status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")
        assert body["details"]["errors"]

    def test_missing_fields(self, client):
        response = client.post("/blueprints", json={"name": "Empty", "fields": []})
        _assert_failure(response, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")

    def test_get_missing_blueprint(self, client):
        response = client.get(f"/blueprints/{uuid.uuid4()}")
        body = _assert_failure(response, status.HTTP_404_NOT_FOUND, "NOT_FOUND")
        assert body["details"]["resource"] == "Blueprint"

    def test_malformed_id(self, client):
        response = client.get("/blueprints/not-a-uuid")
        _assert_failure(response, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")

    def test_update_and_delete(self, client):
        blueprint = _create_blueprint(client)
        response = client.put(
            f"/blueprints/{blueprint['id']}",
            json={"name": "NDA v2", "fields": [{"type": "checkbox", "label": "Agree"}]},
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["name"] == "NDA v2"
        assert [f["label"] for f in data["fields"]] == ["Agree"]

        response = client.delete(f"/blueprints/{blueprint['id']}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == {"deleted": True, "id": blueprint["id"]}
        assert client.get(f"/blueprints/{blueprint['id']}").status_code == status.HTTP_404_NOT_FOUND

    def test_field_types(self, client):
        response = client.get("/blueprints/field-types")
        assert response.status_code == status.HTTP_200_OK
        types = {t["type"]: t["default_value"] for t in response.json()["data"]}
        assert types == {"text": "", "date": "", "signature": "", "checkbox": "false"}


@pytest.mark.integration
class TestContractEndpoints:
    """Contract endpoints over HTTP."""

    def test_invalid_target_status(self, client):
        contract = _create_contract(client, _create_blueprint(client))
        response = _transition(client, contract["id"], "archived")
        _assert_failure(response, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")

    def test_unknown_blueprint(self, client):
        response = client.post("/contracts", json={"blueprint_id": str(uuid.uuid4()), "name": "Orphan"})
        _assert_failure(response, status.HTTP_404_NOT_FOUND, "NOT_FOUND")

    def test_invalid_date_value(self, client):
        blueprint = _create_blueprint(client)
        response = client.post("/contracts", json={
            "blueprint_id": blueprint["id"],
            "name": "Bad date",
            "field_values": {_field_ids(blueprint)["Effective Date"]: "someday"},
        })
        _assert_failure(response, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")

    def test_allowed_transitions(self, client):
        contract = _create_contract(client, _create_blueprint(client))
        response = client.get(f"/contracts/{contract['id']}/transition")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["current_status"] == "created"
        assert data["allowed_transitions"] == ["approved", "revoked"]
        assert data["options"][0] == {"target": "approved", "label": "Approve", "variant": "primary"}

    def test_list_with_filter(self, client):
        blueprint = _create_blueprint(client)
        first = _create_contract(client, blueprint, name="first")
        _create_contract(client, blueprint, name="second")
        _transition(client, first["id"], "revoked")

        active = client.get("/contracts", params={"filter": "active"}).json()["data"]
        assert [c["name"] for c in active] == ["second"]
        everything = client.get("/contracts", params={"filter": "nonsense"}).json()["data"]
        assert {c["name"] for c in everything} == {"first", "second"}
        scoped = client.get("/contracts", params={"blueprint_id": blueprint["id"]}).json()["data"]
        assert len(scoped) == 2

    def test_stats(self, client):
        blueprint = _create_blueprint(client)
        _create_contract(client, blueprint)
        response = client.get("/contracts/stats")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["pending"] == 1
        assert data["blueprints"] == 1

    def test_get_missing_contract(self, client):
        response = client.get(f"/contracts/{uuid.uuid4()}")
        _assert_failure(response, status.HTTP_404_NOT_FOUND, "NOT_FOUND")


@pytest.mark.integration
class TestServiceEndpoints:
    """Lifecycle description, health and cross-cutting headers."""

    def test_lifecycle(self, client):
        response = client.get("/lifecycle")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["initial_status"] == "created"
        assert len(data["statuses"]) == 6

    def test_health(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["checks"]["database"] == "ok"

    def test_request_id_is_echoed(self, client):
        response = client.get("/healthz", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert client.get("/healthz").headers.get("X-Request-ID")

    def test_security_headers(self, client):
        response = client.get("/")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_oversize_body_with_content_length(self, client):
        response = client.post(
            "/blueprints",
            content=b"x" * (settings.MAX_BODY_SIZE + 1),
            headers={"Content-Type": "application/json"},
        )
        body = _assert_failure(response, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "PAYLOAD_TOO_LARGE")
        assert body["details"]["max_bytes"] == settings.MAX_BODY_SIZE

    def test_oversize_chunked_body(self, client):
        def chunks():
            yield b'{"name": "'
            for _ in range(2 * settings.MAX_BODY_SIZE // 65536):
                yield b"x" * 65536
            yield b'", "fields": [{"type": "text", "label": "a"}]}'

        response = client.post("/blueprints", content=chunks(), headers={"Content-Type": "application/json"})
        _assert_failure(response, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "PAYLOAD_TOO_LARGE")

    def test_small_chunked_body_is_accepted(self, client):
        payload = json.dumps(NDA_PAYLOAD).encode()

        def chunks():
            yield payload[:20]
            yield payload[20:]

        response = client.post("/blueprints", content=chunks(), headers={"Content-Type": "application/json"})
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["name"] == "NDA"

    def test_error_log_carries_request_id(self, client, caplog):
        caplog.set_level(logging.WARNING, logger="contractflow.exceptions")
        client.get(f"/blueprints/{uuid.uuid4()}", headers={"X-Request-ID": "req-404"})
        records = [r for r in caplog.records if getattr(r, "error_code", None) == "NOT_FOUND"]
        assert records
        assert records[0].request_id == "req-404"
