from __future__ import annotations

import os
from dataclasses import dataclass, replace

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    store_path: str = os.path.join("src", "data", "news.json")
    max_retries: int = 3
    retry_delay_ms: int = 2000
    request_timeout_ms: int = 30000
    selector_timeout_ms: int = 10000
    social_timeout_ms: int = 15000
    target_delay_ms: int = 1000
    user_agent: str = DEFAULT_USER_AGENT
    headless: bool = True
    dry_run: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        base = cls()
        return cls(
            store_path=os.getenv("NEWS_JSON_PATH", base.store_path),
            max_retries=_env_int("MONITOR_MAX_RETRIES", base.max_retries),
            retry_delay_ms=_env_int("MONITOR_RETRY_DELAY_MS", base.retry_delay_ms),
            request_timeout_ms=_env_int(
                "MONITOR_REQUEST_TIMEOUT_MS", base.request_timeout_ms
            ),
            selector_timeout_ms=_env_int(
                "MONITOR_SELECTOR_TIMEOUT_MS", base.selector_timeout_ms
            ),
            social_timeout_ms=_env_int(
                "MONITOR_SOCIAL_TIMEOUT_MS", base.social_timeout_ms
            ),
            target_delay_ms=_env_int("MONITOR_TARGET_DELAY_MS", base.target_delay_ms),
            user_agent=os.getenv("MONITOR_USER_AGENT", base.user_agent),
            headless=env_flag("MONITOR_HEADLESS", "1"),
            dry_run=env_flag("SCRAPER_DRY_RUN"),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Apply CLI overrides, ignoring values left as None."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
