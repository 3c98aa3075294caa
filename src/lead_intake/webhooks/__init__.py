"""
Framer webhook handling for enrollment submissions.
Signature verification, payload parsing and intake results.
"""

from .models import EnrollmentSubmission, IntakeResult, IntakeStatus, NotificationResult

__all__ = ["EnrollmentSubmission", "IntakeResult", "IntakeStatus", "NotificationResult"]
