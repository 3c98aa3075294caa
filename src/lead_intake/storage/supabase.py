"""
Supabase enrollment store.

Talks to the managed Postgres table through Supabase's PostgREST API.
PostgREST reports an empty single-object lookup with the ``PGRST116`` code,
which is how "not found" is told apart from a real failure.
"""

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import create_storage_error
from ..core.schemas import EnrolledUser
from .base import EnrollmentStore, InsertOutcome

NO_ROWS_CODE = "PGRST116"
UNIQUE_VIOLATION_CODE = "23505"


def _error_code(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("code") if isinstance(body, dict) else None


class SupabaseEnrollmentStore(EnrollmentStore):
    """Enrollment store on a Supabase table (same schema as the SQL store)."""

    backend_name = "supabase"

    def __init__(
        self,
        url: str,
        api_key: str,
        table: str = "enrolled_users",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        """
        Initialize the Supabase store.

        Args:
            url: Supabase project URL
            api_key: Service role or anon key
            table: Table holding enrollments
            timeout: Request timeout in seconds
            client: Preconfigured client (tests pass one with a mock transport)
        """
        self.table = table
        self._client = client or httpx.Client(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "User-Agent": "Lead-Intake/1.0",
            },
            timeout=httpx.Timeout(timeout),
        )
        logger.info(f"🗄️ Supabase enrollment store on table '{table}'")

    def _request(self, operation: str, method: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, f"/{self.table}", **kwargs)
        except httpx.HTTPError as e:
            raise create_storage_error(operation, str(e)) from e

    def list_all(self) -> List[EnrolledUser]:
        logger.debug("📋 Fetching all enrolled users from Supabase")
        response = self._request(
            "list", "GET", params={"select": "*", "order": "enrolled_at.desc"}
        )
        if response.status_code != 200:
            raise create_storage_error("list", f"HTTP {response.status_code}: {response.text[:500]}")

        try:
            users = [EnrolledUser.model_validate(row) for row in response.json()]
        except (ValueError, TypeError, PydanticValidationError) as e:
            raise create_storage_error("list", f"unexpected response body: {e}") from e
        logger.debug(f"✅ Retrieved {len(users)} users from Supabase")
        return users

    def find_by_email(self, email: str) -> Optional[EnrolledUser]:
        logger.debug(f"🔍 Checking if user exists: {email}")
        response = self._request(
            "find_by_email",
            "GET",
            params={"select": "*", "email": f"eq.{email}"},
            headers={"Accept": "application/vnd.pgrst.object+json"},
        )
        if response.status_code == 200:
            try:
                return EnrolledUser.model_validate(response.json())
            except (ValueError, PydanticValidationError) as e:
                raise create_storage_error("find_by_email", f"unexpected response body: {e}") from e
        if _error_code(response) == NO_ROWS_CODE:
            return None
        raise create_storage_error(
            "find_by_email", f"HTTP {response.status_code}: {response.text[:500]}"
        )

    def insert_if_absent(self, user: EnrolledUser) -> InsertOutcome:
        logger.info(f"➕ Adding new user to Supabase: {user.email}")
        try:
            response = self._request(
                "insert",
                "POST",
                json=user.model_dump(mode="json"),
                headers={"Prefer": "return=minimal"},
            )
        except Exception as e:
            logger.error(f"❌ Failed to add user: {e}")
            return InsertOutcome.FAILED

        if response.status_code in (200, 201, 204):
            logger.info("✅ User added successfully")
            return InsertOutcome.INSERTED

        if response.status_code == 409 and _error_code(response) == UNIQUE_VIOLATION_CODE:
            try:
                existing = self.find_by_email(user.email)
            except Exception as e:
                logger.error(f"❌ Failed to re-check email after conflict: {e}")
                return InsertOutcome.FAILED
            if existing is not None:
                logger.info(f"ℹ️ Email already enrolled (conflict): {user.email}")
                return InsertOutcome.DUPLICATE

        logger.error(f"❌ Failed to add user: HTTP {response.status_code}: {response.text[:500]}")
        return InsertOutcome.FAILED

    def count(self) -> int:
        response = self._request(
            "count", "HEAD", params={"select": "id"}, headers={"Prefer": "count=exact"}
        )
        content_range = response.headers.get("content-range", "")
        if response.status_code not in (200, 206) or "/" not in content_range:
            raise create_storage_error("count", f"HTTP {response.status_code}, Content-Range '{content_range}'")
        total = content_range.rsplit("/", 1)[1]
        if not total.isdigit():
            raise create_storage_error("count", f"unexpected Content-Range '{content_range}'")
        return int(total)

    def close(self) -> None:
        self._client.close()

    def health_check(self) -> Dict[str, Any]:
        health = super().health_check()
        health["table"] = self.table
        return health
