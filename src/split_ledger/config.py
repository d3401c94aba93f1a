"""Configuration management for SplitLedger."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Participant id the CLI acts as when --as is omitted
    default_user: str | None = None

    # Expense defaults
    default_category: str = "Uncategorized"
    default_payment_method: str = "Cash"

    # Database path
    database_path: Path = Path.home() / ".split_ledger" / "split_ledger.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check your .env file and environment "
            f"variables. See .env.example for reference.\n"
            f"Error: {e}"
        ) from e
