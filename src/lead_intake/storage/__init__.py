"""
Enrollment store backends.
"""

from loguru import logger

from ..config.settings import IntakeSettings, StorageBackend
from ..core.exceptions import ConfigurationError
from .base import EnrollmentStore, InsertOutcome
from .json_file import JsonFileEnrollmentStore
from .sql import SqlEnrollmentStore
from .supabase import SupabaseEnrollmentStore


def create_store(settings: IntakeSettings) -> EnrollmentStore:
    """
    Create the enrollment store selected by configuration.

    Args:
        settings: Service settings

    Returns:
        Configured EnrollmentStore

    Raises:
        ConfigurationError: If the selected backend lacks required settings
    """
    backend = StorageBackend(settings.storage_backend)
    logger.info(f"📦 Enrollment store backend: {backend.value}")

    if backend == StorageBackend.JSON:
        return JsonFileEnrollmentStore(settings.json_path)

    if backend == StorageBackend.SQL:
        from ..core.database import DatabaseManager

        return SqlEnrollmentStore(DatabaseManager(settings.database_url, echo=settings.debug))

    if not settings.supabase_url or not settings.supabase_key:
        raise ConfigurationError(
            message="Supabase URL and key are required for the supabase backend",
            error_code="SUPABASE_NOT_CONFIGURED",
        )
    return SupabaseEnrollmentStore(
        url=settings.supabase_url,
        api_key=settings.supabase_key,
        table=settings.supabase_table,
    )


__all__ = [
    "EnrollmentStore",
    "InsertOutcome",
    "JsonFileEnrollmentStore",
    "SqlEnrollmentStore",
    "SupabaseEnrollmentStore",
    "create_store",
]
