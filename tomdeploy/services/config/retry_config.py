from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar

from tomdeploy.services.config.errors import ConfigurationError


@dataclass(frozen=True)
class RetryConfig:
    """Wait policy for eventually-consistent resources (service accounts).

    After a creation call the resource is given ``post_create_delay_seconds``
    before the first probe, then probed up to ``attempts`` times with
    ``interval_seconds`` between attempts.
    """

    _DEFAULT_ATTEMPTS: ClassVar[int] = 5
    _DEFAULT_INTERVAL_SECONDS: ClassVar[float] = 60.0
    _DEFAULT_POST_CREATE_DELAY_SECONDS: ClassVar[float] = 10.0

    attempts: int = _DEFAULT_ATTEMPTS
    interval_seconds: float = _DEFAULT_INTERVAL_SECONDS
    post_create_delay_seconds: float = _DEFAULT_POST_CREATE_DELAY_SECONDS

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ConfigurationError("Retry attempts must be at least 1")
        if self.interval_seconds < 0 or self.post_create_delay_seconds < 0:
            raise ConfigurationError("Retry delays must not be negative")

    @staticmethod
    def _float_from_env(name: str, default: float) -> float:
        raw = os.getenv(name)
        if not raw:
            return default
        try:
            return float(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid {name}; must be a number") from exc

    @staticmethod
    def from_env() -> "RetryConfig":
        attempts_raw = os.getenv("SERVICE_ACCOUNT_RETRY_ATTEMPTS")
        attempts = RetryConfig._DEFAULT_ATTEMPTS
        if attempts_raw:
            try:
                attempts = int(attempts_raw)
            except ValueError as exc:
                raise ConfigurationError("Invalid SERVICE_ACCOUNT_RETRY_ATTEMPTS; must be an integer") from exc

        return RetryConfig(
            attempts=attempts,
            interval_seconds=RetryConfig._float_from_env(
                "SERVICE_ACCOUNT_RETRY_INTERVAL_SECONDS", RetryConfig._DEFAULT_INTERVAL_SECONDS
            ),
            post_create_delay_seconds=RetryConfig._float_from_env(
                "SERVICE_ACCOUNT_POST_CREATE_DELAY_SECONDS", RetryConfig._DEFAULT_POST_CREATE_DELAY_SECONDS
            ),
        )
