import pytest
from pydantic import ValidationError

from lead_intake.config.settings import IntakeSettings, StorageBackend


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove settings variables inherited from the shell."""
    for name in ("FRAMER_WEBHOOK_SECRET", "INTAKE_WEBHOOK_SECRET", "INTAKE_PORT", "INTAKE_STORAGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    """Test default configuration values."""
    settings = IntakeSettings(_env_file=None)

    assert settings.port == 8000
    assert settings.storage_backend == StorageBackend.SQL
    assert settings.webhook_secret is None
    assert settings.sms_enabled is False
    assert settings.cors_origin_list == ["*"]


def test_environment_overrides(monkeypatch) -> None:
    """Test configuration can be overridden by environment variables."""
    monkeypatch.setenv("INTAKE_PORT", "9001")
    monkeypatch.setenv("INTAKE_STORAGE_BACKEND", "supabase")
    monkeypatch.setenv("FRAMER_WEBHOOK_SECRET", "from-framer-env")

    settings = IntakeSettings(_env_file=None)

    assert settings.port == 9001
    assert settings.storage_backend == StorageBackend.SUPABASE
    assert settings.webhook_secret == "from-framer-env"


def test_log_level_normalized_and_validated() -> None:
    """Test log level validation."""
    assert IntakeSettings(_env_file=None, log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValidationError):
        IntakeSettings(_env_file=None, log_level="LOUD")


def test_cors_origin_list() -> None:
    """Test comma separated CORS origins."""
    settings = IntakeSettings(_env_file=None, cors_origins="https://a.com, https://b.com,")
    assert settings.cors_origin_list == ["https://a.com", "https://b.com"]


def test_validate_config_reports_errors() -> None:
    """Test validation lists every configuration error."""
    settings = IntakeSettings(_env_file=None, storage_backend="supabase", sms_enabled=True)
    report = settings.validate_config()

    assert report["valid"] is False
    assert len(report["errors"]) == 3


def test_validate_config_valid() -> None:
    """Test a minimal valid configuration."""
    report = IntakeSettings(_env_file=None, webhook_secret="s").validate_config()

    assert report["valid"] is True
    assert report["errors"] == []
