from __future__ import annotations

import os
from dataclasses import dataclass

from clients.quickfix_client_sdk.config import DEFAULT_BASE_URL, SDKConfig, load_dotenv, normalize_base_url, parse_bool


@dataclass(frozen=True)
class AppConfig:
    base_url: str
    timeout_seconds: float
    verify_ssl: bool
    retry_max_attempts: int
    retry_backoff_ms: int
    page_size: int = 10
    search_debounce_ms: int = 500

    @classmethod
    def from_env(cls, env_file: str = ".env") -> "AppConfig":
        load_dotenv(env_file)
        config = cls(
            base_url=normalize_base_url(os.getenv("QUICKFIX_BASE_URL", DEFAULT_BASE_URL)),
            timeout_seconds=float(os.getenv("QUICKFIX_TIMEOUT_SECONDS", "30")),
            verify_ssl=parse_bool(os.getenv("QUICKFIX_VERIFY_SSL", "true"), default=True),
            retry_max_attempts=int(os.getenv("QUICKFIX_RETRY_MAX_ATTEMPTS", "3")),
            retry_backoff_ms=int(os.getenv("QUICKFIX_RETRY_BACKOFF_MS", "150")),
            page_size=int(os.getenv("QUICKFIX_PAGE_SIZE", "10")),
            search_debounce_ms=int(os.getenv("QUICKFIX_SEARCH_DEBOUNCE_MS", "500")),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if not self.base_url:
            raise ValueError("QUICKFIX_BASE_URL must not be empty")
        if self.timeout_seconds <= 0:
            raise ValueError("QUICKFIX_TIMEOUT_SECONDS must be greater than 0")
        if self.retry_max_attempts < 1:
            raise ValueError("QUICKFIX_RETRY_MAX_ATTEMPTS must be >= 1")
        if self.retry_backoff_ms < 0:
            raise ValueError("QUICKFIX_RETRY_BACKOFF_MS must be >= 0")
        if not 1 <= self.page_size <= 100:
            raise ValueError("QUICKFIX_PAGE_SIZE must be between 1 and 100")
        if self.search_debounce_ms < 0:
            raise ValueError("QUICKFIX_SEARCH_DEBOUNCE_MS must be >= 0")

    def to_sdk_config(self) -> SDKConfig:
        """Transport settings for the HTTP client, taken from this config."""
        return SDKConfig(
            base_url=normalize_base_url(self.base_url),
            timeout_seconds=self.timeout_seconds,
            verify_ssl=self.verify_ssl,
            retry_max_attempts=self.retry_max_attempts,
            retry_backoff_ms=self.retry_backoff_ms,
        )
