"""
Enrollment store abstraction shared by every backend.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.schemas import EnrolledUser


class InsertOutcome(str, Enum):
    """Result of an insert-if-absent call."""

    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class EnrollmentStore(ABC):
    """
    Storage for enrolled users.

    Reads raise StorageError on failure. ``insert_if_absent`` never raises for
    backend failures; it reports them as ``InsertOutcome.FAILED``.
    """

    backend_name: str = "unknown"

    @abstractmethod
    def list_all(self) -> List[EnrolledUser]:
        """Return every enrollment, newest first."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[EnrolledUser]:
        """Return the enrollment with this exact email, if any."""

    @abstractmethod
    def insert_if_absent(self, user: EnrolledUser) -> InsertOutcome:
        """Insert the user unless the email is already enrolled."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of enrollments."""

    def close(self) -> None:
        """Release backend resources."""

    def health_check(self) -> Dict[str, Any]:
        """Report whether the store is reachable."""
        try:
            return {"status": "healthy", "backend": self.backend_name, "count": self.count()}
        except Exception as e:
            return {"status": "unhealthy", "backend": self.backend_name, "error": str(e)}


def sort_newest_first(users: List[EnrolledUser]) -> List[EnrolledUser]:
    return sorted(users, key=lambda user: user.enrolled_at, reverse=True)
