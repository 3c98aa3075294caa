"""
Enrollment intake service.
Deduplicates by email, persists new enrollments and sends a best-effort SMS.
"""

from loguru import logger
from starlette.concurrency import run_in_threadpool

from ..core.exceptions import create_storage_error
from ..core.schemas import EnrolledUser
from ..infrastructure.sms import DisabledNotifier, SMSNotifier
from ..storage.base import EnrollmentStore, InsertOutcome
from .models import (
    EnrollmentSubmission,
    IntakeResult,
    IntakeStatus,
    NotificationResult,
    NotificationStatus,
)


class EnrollmentIntakeService:
    """
    Processes authenticated enrollment submissions.

    Once a record is stored nothing downstream can turn the intake into a
    failure: the SMS outcome is only reported back in the result.
    """

    def __init__(
        self,
        store: EnrollmentStore,
        notifier: SMSNotifier | None = None,
        require_telephone: bool = False,
    ):
        """
        Initialize intake service with dependencies.

        Args:
            store: Enrollment store backend
            notifier: Confirmation SMS sender (disabled when omitted)
            require_telephone: Reject submissions without a telephone
        """
        self.store = store
        self.notifier = notifier or DisabledNotifier()
        self.require_telephone = require_telephone

    def parse_submission(self, data: object) -> EnrollmentSubmission:
        """Parse a decoded webhook body with this service's field requirements."""
        return EnrollmentSubmission.from_webhook_data(
            data, require_telephone=self.require_telephone
        )

    async def enroll(
        self, submission: EnrollmentSubmission, submission_id: str
    ) -> IntakeResult:
        """
        Enroll a candidate unless the email is already known.

        Args:
            submission: Validated submission fields
            submission_id: Authenticated Framer submission id

        Returns:
            Intake result with the optional SMS outcome

        Raises:
            StorageError: If the store cannot be read or the insert fails
        """
        logger.info(f"👤 Processing enrollment for: {submission.email}")

        existing = await run_in_threadpool(self.store.find_by_email, submission.email)
        if existing is not None:
            logger.info(f"ℹ️ User already enrolled: {submission.email}")
            return IntakeResult(
                status=IntakeStatus.ALREADY_ENROLLED,
                user_id=existing.id,
                email=existing.email,
            )

        user = submission.to_enrolled_user(submission_id)
        outcome = await run_in_threadpool(self.store.insert_if_absent, user)

        if outcome == InsertOutcome.DUPLICATE:
            logger.info(f"ℹ️ User enrolled concurrently: {submission.email}")
            winner = await run_in_threadpool(self.store.find_by_email, submission.email)
            return IntakeResult(
                status=IntakeStatus.ALREADY_ENROLLED,
                user_id=winner.id if winner else user.id,
                email=user.email,
            )

        if outcome == InsertOutcome.FAILED:
            raise create_storage_error("insert", f"could not save enrollment {submission_id}")

        logger.info(f"💾 Enrollment saved: id={user.id}")
        notification = await self._notify(user)

        return IntakeResult(
            status=IntakeStatus.ENROLLED,
            user_id=user.id,
            email=user.email,
            notification=notification,
        )

    async def _notify(self, user: EnrolledUser) -> NotificationResult:
        try:
            return await self.notifier.send_enrollment_confirmation(user)
        except Exception as e:
            # The enrollment is already committed
            logger.error(f"❌ Confirmation notifier raised for {user.email}: {e}")
            return NotificationResult(
                status=NotificationStatus.FAILED,
                recipient=user.telephone,
                error_message=str(e),
            )
