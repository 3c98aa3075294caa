import json
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from lead_intake.api.main import create_app
from lead_intake.config.settings import IntakeSettings
from lead_intake.core.database import DatabaseManager
from lead_intake.core.schemas import EnrolledUser
from lead_intake.infrastructure.sms import SMSNotifier
from lead_intake.storage import JsonFileEnrollmentStore, SqlEnrollmentStore
from lead_intake.webhooks.models import NotificationResult, NotificationStatus
from lead_intake.webhooks.signature import (
    SIGNATURE_HEADER,
    SUBMISSION_ID_HEADER,
    compute_signature,
)

WEBHOOK_SECRET = "test_framer_webhook_secret"


class RecordingNotifier(SMSNotifier):
    """Notifier that records every confirmation instead of sending it."""

    def __init__(self, status: NotificationStatus = NotificationStatus.SENT):
        self.status = status
        self.sent: list[EnrolledUser] = []

    async def send_enrollment_confirmation(self, user: EnrolledUser) -> NotificationResult:
        self.sent.append(user)
        return NotificationResult(status=self.status, recipient=user.telephone, message_sid="SM_test")


def make_user(index: int, **overrides) -> EnrolledUser:
    base = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
    data = {
        "id": f"sub_{index:03d}",
        "name": f"Candidate {index:03d}",
        "email": f"candidate{index:03d}@example.com",
        "enrolled_at": base + timedelta(hours=index),
    }
    data.update(overrides)
    return EnrolledUser(**data)


@pytest.fixture
def json_store(tmp_path) -> JsonFileEnrollmentStore:
    return JsonFileEnrollmentStore(tmp_path / "data" / "enrolled.json")


@pytest.fixture
def sql_store(tmp_path):
    store = SqlEnrollmentStore(DatabaseManager(f"sqlite:///{tmp_path / 'enrolled.db'}"))
    yield store
    store.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def settings(tmp_path) -> IntakeSettings:
    return IntakeSettings(
        _env_file=None,
        webhook_secret=WEBHOOK_SECRET,
        storage_backend="json",
        json_path=tmp_path / "data" / "enrolled.json",
    )


@pytest.fixture
def client(settings, json_store, notifier) -> TestClient:
    app = create_app(settings=settings, store=json_store, notifier=notifier, configure_logging=False)
    return TestClient(app)


def signed_headers(body: bytes, submission_id: str, secret: str = WEBHOOK_SECRET) -> dict[str, str]:
    return {
        SIGNATURE_HEADER: compute_signature(secret, submission_id, body),
        SUBMISSION_ID_HEADER: submission_id,
        "Content-Type": "application/json",
    }


def post_submission(client: TestClient, payload: dict, submission_id: str):
    body = json.dumps(payload).encode("utf-8")
    return client.post("/api/webhook", content=body, headers=signed_headers(body, submission_id))
