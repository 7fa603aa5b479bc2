"""Planner configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings

from src.planner.errors import ConfigurationError

_PLACEHOLDER_PREFIX = "YOUR_"


class PlannerConfig(BaseSettings):
    """Planner configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Gemini (schedule generation, study hub, tutor, break activities)
    gemini_api_key: str = Field(
        default="",
        description="API key for the Gemini generative AI API",
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for every generation call",
    )

    # Firebase (auth + Firestore)
    firebase_credentials: str = Field(
        default="",
        description="Path to the Firebase service-account JSON file",
    )
    firebase_project_id: str = Field(
        default="",
        description="Firebase project ID",
    )

    # Google Calendar sync
    google_calendar_credentials: str = Field(
        default="",
        description="Path to an authorized-user token JSON for the Calendar API",
    )
    google_calendar_token_dir: str = Field(
        default="",
        description="Directory of per-user Calendar tokens named <uid>.json",
    )
    google_calendar_id: str = Field(
        default="primary",
        description="Calendar that receives synced study sessions",
    )
    timezone: str = Field(
        default="Asia/Kolkata",
        description="IANA timezone for calendar events and reminders",
    )

    # Access control
    admin_emails: str = Field(
        default="",
        description="Comma-separated admin emails (compared lowercase)",
    )

    # Pomodoro durations (minutes)
    pomodoro_minutes: int = Field(default=25, description="Focus session length")
    short_break_minutes: int = Field(default=5, description="Short break length")
    long_break_minutes: int = Field(default=15, description="Long break length")

    # API sessions
    session_idle_minutes: int = Field(
        default=60,
        description="API sessions unused this long are closed",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def admin_email_list(self) -> list[str]:
        return [
            email.strip().lower()
            for email in self.admin_emails.split(",")
            if email.strip()
        ]

    def require(self, *names: str) -> None:
        """Fail fast when a collaborator's settings are missing.

        Args:
            names: Field names that must hold a real (non-placeholder) value.

        Raises:
            ConfigurationError: Listing every missing field.
        """
        missing = [
            name
            for name in names
            if not str(getattr(self, name, "") or "").strip()
            or str(getattr(self, name)).upper().startswith(_PLACEHOLDER_PREFIX)
        ]
        if missing:
            raise ConfigurationError(
                "Configuration is missing or incomplete: "
                + ", ".join(name.upper() for name in missing)
            )


_config: PlannerConfig | None = None


def get_config() -> PlannerConfig:
    """Get the planner configuration singleton.

    Returns:
        PlannerConfig: Planner configuration instance
    """
    global _config
    if _config is None:
        _config = PlannerConfig()
    return _config
