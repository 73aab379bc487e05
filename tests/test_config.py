"""Tests for environment-driven configuration."""

import pytest
from decimal import Decimal

from smart_accountant.config import LedgerSettings, StorageSettings, get_settings, validate_all_settings
from smart_accountant.engine import Ledger, UnbalancedEntryError
from smart_accountant.models import JournalEntry, JournalItem


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestLedgerSettings:
    """Tests for LEDGER_ settings."""

    def test_defaults_match_seed_chart(self):
        settings = LedgerSettings()
        assert settings.revenue_account == "8"
        assert settings.cogs_account == "14"
        assert settings.inventory_asset_account == "3"
        assert settings.enforce_balanced_entries is True

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("LEDGER_REVENUE_ACCOUNT", " 9 ")
        monkeypatch.setenv("LEDGER_ENFORCE_BALANCED_ENTRIES", "false")
        settings = LedgerSettings()

        assert settings.revenue_account == "9"
        assert settings.enforce_balanced_entries is False

    def test_blank_role_rejected(self, monkeypatch):
        monkeypatch.setenv("LEDGER_COGS_ACCOUNT", "   ")
        with pytest.raises(ValueError, match="must not be blank"):
            LedgerSettings()

    def test_permissive_ledger_from_settings(self, monkeypatch):
        """Turning enforcement off lets an unbalanced entry through."""
        unbalanced = JournalEntry(id="JV-1", date="2024-01-01", items=(
            JournalItem(account_id="1", debit=Decimal("10")),
        ))

        with pytest.raises(UnbalancedEntryError):
            Ledger.from_settings(LedgerSettings()).poster.post_entry(unbalanced)

        monkeypatch.setenv("LEDGER_ENFORCE_BALANCED_ENTRIES", "false")
        ledger = Ledger.from_settings(LedgerSettings())
        ledger.poster.post_entry(unbalanced)
        assert ledger.chart.get("1").balance == Decimal("10")

    def test_low_stock_threshold_cannot_be_negative(self, monkeypatch):
        monkeypatch.setenv("LEDGER_LOW_STOCK_THRESHOLD", "-1")
        with pytest.raises(ValueError):
            LedgerSettings()


class TestSettings:
    """Tests for the root settings container."""

    def test_storage_paths(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
        settings = StorageSettings()
        assert settings.snapshot_path == tmp_path / "ledger.json"
        assert settings.audit_path == tmp_path / "audit.ndjson"

    def test_validate_all_settings_reports_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        results = validate_all_settings()

        assert results["gemini"] is False
        assert "gemini_error" in results
        assert results["storage"] is True
        assert results["ledger"] is True

    def test_validate_all_settings_with_api_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        assert validate_all_settings()["gemini"] is True
