"""
Configuration Management for Smart Accountant

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Account roles (revenue, cost of goods sold, inventory asset) are resolved
from this configuration once at setup, never from account names or
entry descriptions.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for the advisory service."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts before falling back to the default insight"
    )


class StorageSettings(BaseSettings):
    """Snapshot and audit file storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the ledger snapshot and audit log"
    )
    snapshot_filename: str = Field(
        default="ledger.json",
        description="File name of the working snapshot"
    )
    audit_filename: str = Field(
        default="audit.ndjson",
        description="File name of the append-only audit log"
    )

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / self.snapshot_filename

    @property
    def audit_path(self) -> Path:
        return self.data_dir / self.audit_filename


class LedgerSettings(BaseSettings):
    """
    Bookkeeping engine settings.

    The role accounts refer to account ids of the seeded chart of accounts.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    revenue_account: str = Field(
        default="8",
        description="Account credited with sales revenue"
    )
    cogs_account: str = Field(
        default="14",
        description="Expense account debited with cost of goods sold"
    )
    inventory_asset_account: str = Field(
        default="3",
        description="Asset account carrying inventory at cost"
    )
    default_clearing_account: str = Field(
        default="1",
        description="Cash/bank account used when none is selected"
    )

    enforce_balanced_entries: bool = Field(
        default=True,
        description="Reject journal entries whose debits and credits differ"
    )
    balance_tolerance: float = Field(
        default=0.01,
        gt=0.0,
        description="Tolerance for debit/credit and balance sheet checks"
    )
    low_stock_threshold: int = Field(
        default=5,
        ge=0,
        description="Quantity below which an item counts as low stock"
    )
    advisory_min_entries: int = Field(
        default=5,
        ge=0,
        description="Advice is only requested once more entries than this exist"
    )

    @field_validator("revenue_account", "cogs_account", "inventory_asset_account", "default_clearing_account")
    @classmethod
    def validate_account_id(cls, v: str) -> str:
        """Account ids must not be blank."""
        if not v.strip():
            raise ValueError("Account id must not be blank")
        return v.strip()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("gemini", "storage", "ledger"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
