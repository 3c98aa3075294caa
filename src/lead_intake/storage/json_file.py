"""
JSON file enrollment store.

The whole collection lives in one JSON array. Every read-modify-write cycle
holds an exclusive lock: a process-local mutex plus ``fcntl.lockf`` on a
sidecar ``.lock`` file, so concurrent workers on one host cannot lose updates.
"""

import fcntl
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import StorageError, create_storage_error
from ..core.schemas import EnrolledUser
from .base import EnrollmentStore, InsertOutcome, sort_newest_first


class JsonFileEnrollmentStore(EnrollmentStore):
    """Enrollment store backed by a single JSON array file."""

    backend_name = "json"

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock_path = self.path.with_name(self.path.name + ".lock")
        self._mutex = threading.Lock()
        logger.info(f"🗄️ JSON enrollment store at {self.path}")

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._mutex:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._lock_path, "w", encoding="utf-8") as lock_file:
                fcntl.lockf(lock_file, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.lockf(lock_file, fcntl.LOCK_UN)

    def _read(self) -> List[EnrolledUser]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise create_storage_error("read", str(e)) from e

        if not isinstance(raw, list):
            raise create_storage_error("read", f"{self.path} does not hold a JSON array")

        try:
            return [EnrolledUser.model_validate(item) for item in raw]
        except PydanticValidationError as e:
            raise create_storage_error("read", f"invalid record in {self.path}: {e}") from e

    def _write(self, users: List[EnrolledUser]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(
            [user.model_dump(mode="json") for user in users],
            ensure_ascii=False,
            indent=2,
        )
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def list_all(self) -> List[EnrolledUser]:
        logger.debug("📋 Fetching all enrolled users from JSON store")
        with self._locked():
            users = self._read()
        logger.debug(f"✅ Found {len(users)} users")
        return sort_newest_first(users)

    def find_by_email(self, email: str) -> Optional[EnrolledUser]:
        logger.debug(f"🔍 Checking if user exists: {email}")
        with self._locked():
            users = self._read()
        return next((user for user in users if user.email == email), None)

    def insert_if_absent(self, user: EnrolledUser) -> InsertOutcome:
        logger.info(f"➕ Adding new user to JSON store: {user.email}")
        try:
            with self._locked():
                users = self._read()
                if any(existing.email == user.email for existing in users):
                    logger.info(f"ℹ️ Email already present, skipping insert: {user.email}")
                    return InsertOutcome.DUPLICATE
                if any(existing.id == user.id for existing in users):
                    logger.error(f"❌ Submission id already stored for another email: {user.id}")
                    return InsertOutcome.FAILED
                users.append(user)
                self._write(users)
        except (StorageError, OSError) as e:
            logger.error(f"❌ Failed to add user to JSON store: {e}")
            return InsertOutcome.FAILED

        logger.info(f"✅ User added successfully, total users: {len(users)}")
        return InsertOutcome.INSERTED

    def count(self) -> int:
        with self._locked():
            return len(self._read())
