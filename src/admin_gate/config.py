"""Application settings from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from admin_gate.logging_config import MIN_REDACT_LENGTH


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    SESSION_SECRET: str = os.environ.get("SESSION_SECRET", "")
    ADMIN_PASSWORD: str = os.environ.get("ADMIN_PASSWORD", "")
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development").lower()
    ALLOWED_ORIGINS: list[str] = _split_csv(os.environ.get("ALLOWED_ORIGINS", ""))
    SESSION_TTL_HOURS: int = int(os.environ.get("SESSION_TTL_HOURS", "24"))
    HOST: str = os.environ.get("HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("PORT", "8000"))
    DEBUG: bool = os.environ.get("DEBUG", "").lower() == "true"

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == "production"


@dataclass(frozen=True)
class AppConfig:
    """Per-app configuration handed to the gate, codec and routes.

    Built once in ``create_app`` from ``Settings`` plus explicit overrides, so
    tests can run with synthetic secrets without touching the environment.
    """

    secret: str = field(repr=False)
    admin_password: str = field(repr=False)
    production: bool
    allowed_origins: tuple[str, ...]
    session_ttl_hours: int

    @classmethod
    def from_settings(cls, **overrides) -> AppConfig:
        values = {
            "secret": Settings.SESSION_SECRET,
            "admin_password": Settings.ADMIN_PASSWORD,
            "production": Settings.is_production(),
            "allowed_origins": Settings.ALLOWED_ORIGINS,
            "session_ttl_hours": Settings.SESSION_TTL_HOURS,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["allowed_origins"] = tuple(values["allowed_origins"])
        return cls(**values)

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_hours * 3600

    def warnings(self) -> list[str]:
        """Describe missing settings that silently disable features."""
        messages = []
        if not self.secret:
            messages.append("SESSION_SECRET is not set. Every admin session will be rejected.")
        if not self.admin_password:
            messages.append("ADMIN_PASSWORD is not set. Admin login is disabled.")
        elif len(self.admin_password) < MIN_REDACT_LENGTH:
            messages.append(
                f"ADMIN_PASSWORD is shorter than {MIN_REDACT_LENGTH} characters and will not be masked in logs."
            )
        if self.production and not self.allowed_origins:
            messages.append("ALLOWED_ORIGINS is not set. Mutating requests will fail the origin check.")
        return messages
