"""
Iris Configuration
==================
OTP defaults and environment-driven settings.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .exceptions import ConfigurationError
from .timeutils import MS_PER_HOUR, MS_PER_MINUTE, MS_PER_SECOND


@dataclass
class OTPConfig:
    """Configuration for OTP issuance and rate limiting."""
    length: int = 6
    expiry_minutes: int = 5
    resend_cooldown_seconds: int = 120  # 2 minutes
    max_attempts: int = 5
    rate_limit_reset_hours: int = 1

    def __post_init__(self):
        if self.length < 1:
            raise ConfigurationError("OTP length must be at least 1")
        if self.expiry_minutes < 0:
            raise ConfigurationError("expiry_minutes cannot be negative")
        if self.resend_cooldown_seconds < 0:
            raise ConfigurationError("resend_cooldown_seconds cannot be negative")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.rate_limit_reset_hours <= 0:
            raise ConfigurationError("rate_limit_reset_hours must be positive")

    @property
    def expiry_ms(self) -> int:
        return self.expiry_minutes * MS_PER_MINUTE

    @property
    def expiry_seconds(self) -> int:
        return self.expiry_minutes * 60

    @property
    def cooldown_ms(self) -> int:
        return self.resend_cooldown_seconds * MS_PER_SECOND

    @property
    def reset_window_ms(self) -> int:
        return self.rate_limit_reset_hours * MS_PER_HOUR


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass
class IrisSettings:
    """Deployment settings, usually read from the environment."""
    secret_key: str = ""
    otp: OTPConfig = field(default_factory=OTPConfig)
    brevo_api_key: Optional[str] = None
    email_from: Optional[str] = None
    email_from_name: str = "Iris"
    app_name: str = "Iris"
    redis_url: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "IrisSettings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        env = os.environ if env is None else env
        defaults = OTPConfig()

        otp = OTPConfig(
            length=_env_int(env, "IRIS_OTP_LENGTH", defaults.length),
            expiry_minutes=_env_int(env, "IRIS_OTP_EXPIRY_MINUTES", defaults.expiry_minutes),
            resend_cooldown_seconds=_env_int(
                env, "IRIS_RESEND_COOLDOWN_SECONDS", defaults.resend_cooldown_seconds
            ),
            max_attempts=_env_int(env, "IRIS_MAX_ATTEMPTS", defaults.max_attempts),
            rate_limit_reset_hours=_env_int(
                env, "IRIS_RATE_LIMIT_RESET_HOURS", defaults.rate_limit_reset_hours
            ),
        )

        return cls(
            secret_key=env.get("IRIS_SECRET_KEY", ""),
            otp=otp,
            brevo_api_key=env.get("BREVO_API_KEY") or None,
            email_from=env.get("IRIS_EMAIL_FROM") or None,
            email_from_name=env.get("IRIS_EMAIL_FROM_NAME", "Iris"),
            app_name=env.get("IRIS_APP_NAME", "Iris"),
            redis_url=env.get("IRIS_REDIS_URL") or None,
        )
