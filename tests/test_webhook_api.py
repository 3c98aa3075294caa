import json
from unittest.mock import patch

import pytest
from conftest import RecordingNotifier, make_user, post_submission, signed_headers
from fastapi.testclient import TestClient
from pydantic import ValidationError as PydanticValidationError

from lead_intake.api.main import create_app
from lead_intake.config.settings import IntakeSettings
from lead_intake.core.exceptions import create_storage_error
from lead_intake.core.schemas import EnrolledUser
from lead_intake.storage import JsonFileEnrollmentStore
from lead_intake.webhooks.signature import SIGNATURE_HEADER, SUBMISSION_ID_HEADER

ANA = {"name": "Ana", "email": "ana@x.com", "telephone": "+33600000000"}


class TestWebhookEndpoint:
    """Test the Framer webhook endpoint."""

    def test_valid_submission_enrolls_and_notifies(
        self, client: TestClient, json_store: JsonFileEnrollmentStore, notifier: RecordingNotifier
    ) -> None:
        """Test a signed submission is stored and confirmed."""
        response = post_submission(client, ANA, "sub_123")

        assert response.status_code == 200
        assert response.json() == {"success": True}

        stored = json_store.list_all()
        assert len(stored) == 1
        assert stored[0].id == "sub_123"
        assert stored[0].email == "ana@x.com"
        assert stored[0].telephone == "+33600000000"
        assert len(notifier.sent) == 1

    def test_localized_field_labels(self, client: TestClient, json_store: JsonFileEnrollmentStore) -> None:
        """Test French form labels are stored under their field names."""
        payload = {
            "Name": "Élodie",
            "Email": "elodie@x.com",
            "Téléphone": "+33611111111",
            "Newsletter": "on",
            "Niveau d'études": "Bac+3",
            "École": "Sorbonne",
        }
        response = post_submission(client, payload, "sub_200")

        assert response.status_code == 200
        user = json_store.find_by_email("elodie@x.com")
        assert user.telephone == "+33611111111"
        assert user.newsletter is True
        assert user.niveau_etudes == "Bac+3"
        assert user.ecole == "Sorbonne"

    def test_replay_is_idempotent(
        self, client: TestClient, json_store: JsonFileEnrollmentStore, notifier: RecordingNotifier
    ) -> None:
        """Test a replayed webhook succeeds without a second record or SMS."""
        first = post_submission(client, ANA, "sub_123")
        second = post_submission(client, ANA, "sub_123")

        assert first.status_code == 200
        assert second.status_code == 200
        assert json_store.count() == 1
        assert len(notifier.sent) == 1

    def test_same_email_new_submission_keeps_first(
        self, client: TestClient, json_store: JsonFileEnrollmentStore
    ) -> None:
        """Test the first enrollment for an email is kept."""
        post_submission(client, ANA, "sub_123")
        response = post_submission(client, {**ANA, "name": "Ana Other"}, "sub_456")

        assert response.status_code == 200
        assert [user.id for user in json_store.list_all()] == ["sub_123"]

    def test_secret_not_configured(
        self, settings: IntakeSettings, json_store: JsonFileEnrollmentStore, notifier: RecordingNotifier
    ) -> None:
        """Test nothing is accepted without a configured secret."""
        app = create_app(
            settings=settings.model_copy(update={"webhook_secret": None}),
            store=json_store,
            notifier=notifier,
            configure_logging=False,
        )
        response = post_submission(TestClient(app), ANA, "sub_123")

        assert response.status_code == 500
        assert json_store.count() == 0

    def test_telephone_required_when_configured(
        self, settings: IntakeSettings, json_store: JsonFileEnrollmentStore, notifier: RecordingNotifier
    ) -> None:
        """Test the SMS variant rejects submissions without a telephone."""
        app = create_app(
            settings=settings.model_copy(update={"require_telephone": True}),
            store=json_store,
            notifier=notifier,
            configure_logging=False,
        )
        response = post_submission(TestClient(app), {"name": "Ana", "email": "ana@x.com"}, "sub_123")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    def test_get_not_allowed(self, client: TestClient) -> None:
        """Test the webhook only accepts POST."""
        assert client.get("/api/webhook").status_code == 405


class TestWebhookRejections:
    """Test rejected webhook requests."""

    def test_missing_headers(self, client: TestClient, json_store: JsonFileEnrollmentStore) -> None:
        """Test a request without signature headers is rejected."""
        body = json.dumps(ANA).encode()
        response = client.post("/api/webhook", content=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required headers"}
        assert json_store.count() == 0

    def test_missing_submission_id_header(self, client: TestClient) -> None:
        """Test the submission id header is mandatory."""
        body = json.dumps(ANA).encode()
        headers = signed_headers(body, "sub_123")
        del headers[SUBMISSION_ID_HEADER]

        response = client.post("/api/webhook", content=body, headers=headers)

        assert response.status_code == 400

    def test_tampered_body_rejected(
        self, client: TestClient, json_store: JsonFileEnrollmentStore, notifier: RecordingNotifier
    ) -> None:
        """Test a body changed after signing is rejected."""
        body = json.dumps(ANA).encode()
        headers = signed_headers(body, "sub_123")
        tampered = json.dumps({**ANA, "email": "mallory@x.com"}).encode()

        response = client.post("/api/webhook", content=tampered, headers=headers)

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid signature"}
        assert json_store.count() == 0
        assert notifier.sent == []

    def test_wrong_secret_rejected(self, client: TestClient) -> None:
        """Test a signature made with another secret is rejected."""
        body = json.dumps(ANA).encode()
        response = client.post(
            "/api/webhook", content=body, headers=signed_headers(body, "sub_123", secret="other")
        )
        assert response.status_code == 401

    def test_signature_for_other_submission_rejected(self, client: TestClient) -> None:
        """Test a signature is bound to its submission id."""
        body = json.dumps(ANA).encode()
        headers = signed_headers(body, "sub_123")
        headers[SUBMISSION_ID_HEADER] = "sub_999"

        response = client.post("/api/webhook", content=body, headers=headers)

        assert response.status_code == 401

    def test_wrong_length_signature_rejected(self, client: TestClient) -> None:
        """Test a truncated signature is rejected."""
        body = json.dumps(ANA).encode()
        headers = signed_headers(body, "sub_123")
        headers[SIGNATURE_HEADER] = headers[SIGNATURE_HEADER][:-1]

        response = client.post("/api/webhook", content=body, headers=headers)

        assert response.status_code == 401

    def test_invalid_json(self, client: TestClient) -> None:
        """Test a signed body that is not JSON."""
        body = b"{not json"
        response = client.post("/api/webhook", content=body, headers=signed_headers(body, "sub_123"))

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON payload"}

    def test_non_object_json(self, client: TestClient) -> None:
        """Test a signed JSON body that is not an object."""
        body = b'["ana@x.com"]'
        response = client.post("/api/webhook", content=body, headers=signed_headers(body, "sub_123"))

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON payload"}

    def test_missing_required_fields(self, client: TestClient, json_store: JsonFileEnrollmentStore) -> None:
        """Test a blank email is reported as a missing field."""
        response = post_submission(client, {"name": "Ana", "email": "  "}, "sub_123")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}
        assert json_store.count() == 0

    def test_storage_failure(
        self, client: TestClient, json_store: JsonFileEnrollmentStore, notifier: RecordingNotifier
    ) -> None:
        """Test a store error returns the save failure body."""
        with patch.object(
            json_store, "find_by_email", side_effect=create_storage_error("read", "disk gone")
        ):
            response = post_submission(client, ANA, "sub_123")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save user"}
        assert notifier.sent == []

    def test_unexpected_error(self, client: TestClient, json_store: JsonFileEnrollmentStore) -> None:
        """Test unexpected errors return a generic body."""
        with patch.object(json_store, "find_by_email", side_effect=RuntimeError("boom")):
            response = post_submission(client, ANA, "sub_123")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestEnrolledEndpoint:
    """Test the enrollment listing endpoint."""

    def test_lists_newest_first(self, client: TestClient, json_store: JsonFileEnrollmentStore) -> None:
        """Test the collection is returned newest first."""
        for index in (1, 3, 2):
            json_store.insert_if_absent(make_user(index))

        response = client.get("/api/enrolled")

        assert response.status_code == 200
        assert [row["id"] for row in response.json()] == ["sub_003", "sub_002", "sub_001"]

    def test_empty_collection(self, client: TestClient) -> None:
        """Test an empty store returns an empty array."""
        response = client.get("/api/enrolled")

        assert response.status_code == 200
        assert response.json() == []

    def test_store_failure(self, client: TestClient, json_store: JsonFileEnrollmentStore) -> None:
        """Test a store error returns the fetch failure body."""
        with patch.object(json_store, "list_all", side_effect=create_storage_error("list", "down")):
            response = client.get("/api/enrolled")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch users"}

    def test_unexpected_failure_keeps_json_body(
        self, client: TestClient, json_store: JsonFileEnrollmentStore
    ) -> None:
        """Test an unexpected error still returns the fetch failure body."""
        with pytest.raises(PydanticValidationError) as exc_info:
            EnrolledUser.model_validate({"id": "sub_1", "email": "a@x.com", "name": None})

        with patch.object(json_store, "list_all", side_effect=exc_info.value):
            response = client.get("/api/enrolled")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch users"}


class TestServiceEndpoints:
    """Test health and info endpoints."""

    def test_health(self, client: TestClient) -> None:
        """Test health reports the store backend."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["store"]["backend"] == "json"

    def test_root(self, client: TestClient) -> None:
        """Test service information."""
        body = client.get("/").json()

        assert body["storage_backend"] == "json"
        assert body["sms_enabled"] is False

    def test_request_id_header(self, client: TestClient) -> None:
        """Test the middleware adds request id and timing headers."""
        response = client.get("/health")

        assert "X-Request-ID" in response.headers
        assert "X-Process-Time" in response.headers
