"""
SQL enrollment store backed by SQLAlchemy.
"""

from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError

from ..core.database import DatabaseManager
from ..core.exceptions import create_storage_error
from ..core.models import EnrolledUserRecord
from ..core.schemas import EnrolledUser
from .base import EnrollmentStore, InsertOutcome


def _to_schema(record: EnrolledUserRecord) -> EnrolledUser:
    return EnrolledUser(
        id=record.id,
        name=record.name,
        email=record.email,
        telephone=record.telephone,
        location=record.location,
        newsletter=record.newsletter,
        niveau_etudes=record.niveau_etudes,
        ecole=record.ecole,
        enrolled_at=record.enrolled_at,
    )


class SqlEnrollmentStore(EnrollmentStore):
    """
    Enrollment store on a relational table.

    Email uniqueness is enforced by the database, so two concurrent inserts
    for the same email resolve to one row and one ``DUPLICATE``.
    """

    backend_name = "sql"

    def __init__(self, db: DatabaseManager, create_tables: bool = True):
        self.db = db
        if create_tables:
            self.db.create_tables()

    def list_all(self) -> List[EnrolledUser]:
        logger.debug("📋 Fetching all enrolled users from database")
        try:
            with self.db.get_session() as session:
                records = session.execute(
                    select(EnrolledUserRecord).order_by(EnrolledUserRecord.enrolled_at.desc())
                ).scalars().all()
                users = [_to_schema(record) for record in records]
        except SQLAlchemyError as e:
            raise create_storage_error("list", str(e)) from e

        logger.debug(f"✅ Found {len(users)} users")
        return users

    def find_by_email(self, email: str) -> Optional[EnrolledUser]:
        logger.debug(f"🔍 Checking if user exists: {email}")
        try:
            with self.db.get_session() as session:
                record = session.execute(
                    select(EnrolledUserRecord).where(EnrolledUserRecord.email == email)
                ).scalar_one()
                return _to_schema(record)
        except NoResultFound:
            return None
        except SQLAlchemyError as e:
            raise create_storage_error("find_by_email", str(e)) from e

    def insert_if_absent(self, user: EnrolledUser) -> InsertOutcome:
        logger.info(f"➕ Adding new user to database: {user.email}")
        try:
            with self.db.get_session() as session:
                session.add(EnrolledUserRecord(**user.model_dump()))
        except IntegrityError as e:
            try:
                existing = self.find_by_email(user.email)
            except Exception as lookup_error:
                logger.error(f"❌ Failed to re-check email after constraint violation: {lookup_error}")
                return InsertOutcome.FAILED
            if existing is not None:
                logger.info(f"ℹ️ Email already enrolled (constraint): {user.email}")
                return InsertOutcome.DUPLICATE
            logger.error(f"❌ Failed to add user: {e.orig}")
            return InsertOutcome.FAILED
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to add user: {e}")
            return InsertOutcome.FAILED

        logger.info("✅ User added successfully")
        return InsertOutcome.INSERTED

    def count(self) -> int:
        try:
            with self.db.get_session() as session:
                return session.execute(
                    select(func.count()).select_from(EnrolledUserRecord)
                ).scalar_one()
        except SQLAlchemyError as e:
            raise create_storage_error("count", str(e)) from e

    def close(self) -> None:
        self.db.dispose()

    def health_check(self) -> Dict[str, Any]:
        health = self.db.health_check()
        health["backend"] = self.backend_name
        return health
