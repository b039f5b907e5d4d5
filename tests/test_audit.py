"""Tests for the audit logger and settings."""

import asyncio
import pytest
from decimal import Decimal

from finflow.audit import AuditLogger, create_correlation_id
from finflow.config import StorageSettings, get_settings, validate_all_settings
from finflow.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from finflow.services.storage import LocalFinanceStorage, StorageUnavailableError


class BrokenAuditStorage(LocalFinanceStorage):

    async def append_event(self, event):
        raise StorageUnavailableError("audit sheet offline")


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_without_storage_only_logs_locally(self):
        logger = AuditLogger()
        assert asyncio.run(logger.log(AuditEventBuilder.transaction_deleted("t1"))) is True

    def test_persists_events(self):
        storage = LocalFinanceStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        asyncio.run(logger.log_transaction_created("t1", "10", correlation_id))
        asyncio.run(logger.log_error("ValueError", "boom", {"step": "import"}, correlation_id))

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in events] == [
            AuditEventType.TRANSACTION_CREATED,
            AuditEventType.SYSTEM_ERROR,
        ]
        assert events[1].severity == AuditSeverity.ERROR
        assert events[1].details == {"step": "import"}

    def test_storage_failure_does_not_raise(self):
        logger = AuditLogger(BrokenAuditStorage())
        result = asyncio.run(logger.log(AuditEventBuilder.budget_upserted("b1", "food", "500")))
        assert result is False


class TestSettings:
    """Tests for environment-driven configuration."""

    @pytest.fixture(autouse=True)
    def fresh_settings(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_storage_from_environment(self, monkeypatch):
        monkeypatch.setenv("FINFLOW_STORAGE_BACKEND", "local")
        monkeypatch.setenv("FINFLOW_STORAGE_LOCAL_PATH", "ledger.json")

        settings = get_settings().storage

        assert settings.backend == "local"
        assert settings.local_path == "ledger.json"

    def test_empty_path_means_memory_only(self):
        assert StorageSettings(local_path="  ").local_path is None

    def test_app_defaults(self, monkeypatch):
        monkeypatch.delenv("CURRENCY_QUANTUM", raising=False)
        monkeypatch.delenv("BUDGET_WARNING_RATIO", raising=False)

        app = get_settings().app

        assert app.currency_quantum == Decimal("0.01")
        assert app.budget_warning_ratio == Decimal("0.8")

    def test_validate_all_settings_local_backend(self, monkeypatch):
        monkeypatch.setenv("FINFLOW_STORAGE_BACKEND", "local")

        results = validate_all_settings()

        assert results["storage"] is True
        assert results["app"] is True
        assert "google_sheets" not in results

    def test_validate_all_settings_reports_missing_sheets_config(self, monkeypatch):
        monkeypatch.setenv("FINFLOW_STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        results = validate_all_settings()

        assert results["google_sheets"] is False
