"""
Webhook and listing API router.
Collaborators are read from ``app.state`` so tests can inject their own.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.concurrency import run_in_threadpool

from ..config.settings import IntakeSettings
from ..core.exceptions import (
    AuthenticationError,
    BaseIntakeException,
    ConfigurationError,
    HTTPExceptionHandler,
    MissingFieldsError,
    StorageError,
    ValidationError,
)
from ..core.logging import mask_signature
from ..storage.base import EnrollmentStore
from .services import EnrollmentIntakeService
from .signature import SIGNATURE_HEADER, SUBMISSION_ID_HEADER, verify_signature


def get_app_settings(request: Request) -> IntakeSettings:
    return request.app.state.settings


def get_store(request: Request) -> EnrollmentStore:
    return request.app.state.store


def get_intake_service(request: Request) -> EnrollmentIntakeService:
    return request.app.state.intake_service


def _error(exc: Exception, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=HTTPExceptionHandler.status_code_for(exc),
        content={"error": message},
    )


def _decode_json(body: bytes) -> dict[str, Any]:
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(
            message="Invalid JSON payload",
            error_code="INVALID_JSON",
            details={"error": str(e)},
        ) from e

    if not isinstance(data, dict):
        raise ValidationError(
            message="Invalid JSON payload",
            error_code="INVALID_JSON",
            details={"error": f"expected object, got {type(data).__name__}"},
        )
    return data


def create_webhook_router() -> APIRouter:
    """
    Create the Framer webhook and enrollment listing router.

    Returns:
        Configured FastAPI router mounted under ``/api``
    """
    router = APIRouter(prefix="/api", tags=["enrollments"])

    @router.post("/webhook")
    async def handle_framer_webhook(
        request: Request,
        settings: IntakeSettings = Depends(get_app_settings),
        intake: EnrollmentIntakeService = Depends(get_intake_service),
    ) -> JSONResponse:
        """
        Handle a Framer form submission.

        Verifies the signature over the raw body, parses the enrollment
        fields and stores new emails. Replays for known emails succeed.
        """
        logger.info("📨 Webhook POST request received")

        try:
            body = await request.body()
            signature = request.headers.get(SIGNATURE_HEADER)
            submission_id = request.headers.get(SUBMISSION_ID_HEADER)

            logger.info(
                f"🔑 Headers: signature={mask_signature(signature)}, "
                f"submission_id={submission_id or 'missing'}, body={len(body)} bytes"
            )

            if not signature or not submission_id:
                raise ValidationError(
                    message="Missing required headers",
                    error_code="MISSING_HEADERS",
                    details={"signature": bool(signature), "submission_id": bool(submission_id)},
                )

            if not settings.webhook_secret:
                raise ConfigurationError(
                    message="Webhook secret is not configured",
                    error_code="WEBHOOK_SECRET_MISSING",
                )

            if not verify_signature(settings.webhook_secret, submission_id, body, signature):
                raise AuthenticationError(
                    message="Invalid signature",
                    error_code="INVALID_SIGNATURE",
                    details={"submission_id": submission_id},
                )
            logger.info("✅ Webhook signature valid")

            data = _decode_json(body)
            logger.debug(f"📊 Parsed webhook fields: {list(data.keys())}")

            submission = intake.parse_submission(data)
            result = await intake.enroll(submission, submission_id)

            if result.notification is not None:
                logger.info(f"📱 Notification outcome: {result.notification.status.value}")

            logger.info(f"🎉 Webhook processed successfully: {result.status.value}")
            return JSONResponse(status_code=200, content={"success": True})

        except MissingFieldsError as e:
            logger.error(f"❌ Missing required fields: {e.missing_fields}")
            return _error(e, "Missing required fields")

        except AuthenticationError as e:
            logger.error(f"❌ Invalid webhook signature for submission {e.details.get('submission_id')}")
            return _error(e, "Invalid signature")

        except ValidationError as e:
            logger.error(f"❌ Webhook validation error: {e.message} {e.details}")
            return _error(e, e.message)

        except StorageError as e:
            logger.error(f"❌ Failed to save user: {e.message}")
            return _error(e, "Failed to save user")

        except BaseIntakeException as e:
            logger.error(f"🚨 Webhook error: {e.message}")
            return _error(e, "Internal server error")

        except Exception as e:
            logger.exception(f"🚨 Unexpected webhook error: {e}")
            return _error(e, "Internal server error")

    @router.get("/enrolled")
    async def list_enrolled(
        store: EnrollmentStore = Depends(get_store),
    ) -> JSONResponse:
        """Return every enrollment, newest first."""
        logger.info("📋 API: Fetching all enrolled users")
        try:
            users = await run_in_threadpool(store.list_all)
        except StorageError as e:
            logger.error(f"❌ API: Failed to fetch users: {e.message}")
            return _error(e, "Failed to fetch users")
        except Exception as e:
            logger.exception(f"🚨 API: Unexpected error fetching users: {e}")
            return _error(e, "Failed to fetch users")

        logger.info(f"✅ API: Retrieved {len(users)} users")
        return JSONResponse(content=[user.model_dump(mode="json") for user in users])

    return router
