"""
Confirmation SMS clients.
Uses httpx for async calls to the Twilio Messages API.
"""

from abc import ABC, abstractmethod

import httpx
from loguru import logger

from ..config.settings import IntakeSettings
from ..core.exceptions import NotificationError, create_notification_error
from ..core.schemas import EnrolledUser
from ..webhooks.models import NotificationResult, NotificationStatus

CONFIRMATION_TEMPLATE = (
    "Hi {name}, your enrollment has been confirmed! Welcome to our program."
)


def render_confirmation(name: str) -> str:
    return CONFIRMATION_TEMPLATE.format(name=name)


class SMSNotifier(ABC):
    """Sends one confirmation message per new enrollment."""

    @abstractmethod
    async def send_enrollment_confirmation(self, user: EnrolledUser) -> NotificationResult:
        """Send the confirmation. Never raises; failures are reported in the result."""

    async def aclose(self) -> None:
        """Release network resources."""


class DisabledNotifier(SMSNotifier):
    """Notifier used when SMS is switched off."""

    async def send_enrollment_confirmation(self, user: EnrolledUser) -> NotificationResult:
        return NotificationResult(
            status=NotificationStatus.SKIPPED,
            recipient=user.telephone,
            error_message="SMS disabled",
        )


class TwilioSMSClient(SMSNotifier):
    """
    Async Twilio client for confirmation messages.
    Single attempt per enrollment; no retries.
    """

    BASE_URL = "https://api.twilio.com/2010-04-01"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Twilio client.

        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_number: Sender phone number in E.164 format
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use a mock transport)
        """
        self.account_sid = account_sid
        self.from_number = from_number
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            auth=(account_sid, auth_token),
            headers={"Accept": "application/json", "User-Agent": "Lead-Intake/1.0"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def send_sms(self, to: str, body: str) -> str:
        """
        Send a single SMS.

        Args:
            to: Recipient phone number
            body: Message text

        Returns:
            Twilio message SID

        Raises:
            NotificationError: If Twilio rejects the message
            httpx.HTTPError: On transport failures
        """
        response = await self._client.post(
            f"/Accounts/{self.account_sid}/Messages.json",
            data={"To": to, "From": self.from_number, "Body": body},
        )
        if response.status_code >= 400:
            try:
                reason = response.json().get("message", response.text)
            except ValueError:
                reason = response.text
            raise create_notification_error("twilio", response.status_code, reason[:500])

        return response.json().get("sid", "")

    async def send_enrollment_confirmation(self, user: EnrolledUser) -> NotificationResult:
        if not user.telephone:
            logger.info(f"📵 No telephone for {user.email}, skipping confirmation SMS")
            return NotificationResult(
                status=NotificationStatus.SKIPPED,
                error_message="No telephone provided",
            )

        try:
            logger.info(f"📱 Sending confirmation SMS to {user.telephone}")
            sid = await self.send_sms(user.telephone, render_confirmation(user.name))
            logger.info(f"✅ Confirmation SMS sent: {sid}")
            return NotificationResult(
                status=NotificationStatus.SENT,
                recipient=user.telephone,
                message_sid=sid,
            )
        except (NotificationError, httpx.HTTPError) as e:
            logger.error(f"❌ Failed to send confirmation SMS to {user.telephone}: {e}")
            return NotificationResult(
                status=NotificationStatus.FAILED,
                recipient=user.telephone,
                error_message=str(e),
            )

    async def aclose(self) -> None:
        await self._client.aclose()


def create_notifier(settings: IntakeSettings) -> SMSNotifier:
    """Create the notifier selected by configuration."""
    if not settings.sms_enabled:
        logger.info("📵 Confirmation SMS disabled")
        return DisabledNotifier()

    if not settings.sms_configured:
        logger.warning("SMS enabled without Twilio credentials; confirmation SMS disabled")
        return DisabledNotifier()

    logger.info("📱 Confirmation SMS enabled via Twilio")
    return TwilioSMSClient(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_from_number,
        timeout=settings.sms_timeout,
    )
