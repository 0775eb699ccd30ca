from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class ProxyConfig:
    server: str
    username: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class Settings:
    base_url: str = "https://www.ebay.co.uk"
    proxy: ProxyConfig | None = None
    headless: bool = True
    navigation_timeout_ms: int = 30000
    settle_timeout_ms: int = 5000
    item_concurrency: int = 1
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    def store_url(self, username: str) -> str:
        return f"{self.base_url}/sch/i.html?_ssn={username}"

    def feedback_url(self, username: str) -> str:
        return f"{self.base_url}/fdbk/feedback_profile/{username}?filter=feedback_page%3ARECEIVED_AS_SELLER"

    def about_url(self, username: str) -> str:
        return f"{self.base_url}/usr/{username}?_tab=1"


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    log_file: Path


def load_settings() -> Settings:
    proxy = None
    proxy_address = os.getenv("PROXY_ADDRESS", "").strip()
    if proxy_address:
        proxy = ProxyConfig(
            server=proxy_address,
            username=os.getenv("PROXY_USERNAME") or None,
            password=os.getenv("PROXY_PASSWORD") or None,
        )

    return Settings(
        base_url=os.getenv("SELLERCHECK_BASE_URL", "https://www.ebay.co.uk").rstrip("/"),
        proxy=proxy,
        headless=_env_flag("BROWSER_HEADLESS", "1"),
        navigation_timeout_ms=int(os.getenv("NAVIGATION_TIMEOUT_MS", "30000")),
        settle_timeout_ms=int(os.getenv("SETTLE_TIMEOUT_MS", "5000")),
        item_concurrency=max(1, int(os.getenv("ITEM_CONCURRENCY", "1"))),
    )


def load_logging_config() -> LoggingConfig:
    base_dir = Path(os.getenv("APP_BASE_DIR", ".")).resolve()
    return LoggingConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=Path(os.getenv("LOG_FILE", str(base_dir / "logs" / "sellercheck.log"))),
    )
