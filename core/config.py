import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

DEFAULT_BASE_URL = "https://boardgamegeek.com"
BROWSERS = ("chromium", "firefox")


def _env_bool(env: Mapping[str, str], key: str, default: str) -> bool:
    return env.get(key, default).strip().lower() == "true"


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    to_stdout: bool = True
    to_file: bool = False
    file: str = "bgg_collection_sync.log"
    max_bytes: int = 2 * 1024 * 1024
    backups: int = 3

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "LoggingConfig":
        env = os.environ if env is None else env
        return cls(
            level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            to_stdout=_env_bool(env, "LOG_TO_STDOUT", "true"),
            to_file=_env_bool(env, "LOG_TO_FILE", "false"),
            file=env.get("LOG_FILE", "bgg_collection_sync.log").strip(),
            max_bytes=_env_int(env, "LOG_MAX_BYTES", 2 * 1024 * 1024),
            backups=_env_int(env, "LOG_BACKUPS", 3),
        )


@dataclass(frozen=True)
class Settings:
    """
    Run-wide settings, read once from the environment and passed to every
    component explicitly. Timeouts and delays ending in ``_ms`` are in
    milliseconds, the rest in seconds.
    """
    base_url: str = DEFAULT_BASE_URL
    api_token: str = ""
    request_timeout: float = 30.0
    pending_backoff_seconds: float = 5.0
    max_pending_attempts: int = 20
    step_timeout_ms: int = 5000
    ack_timeout_ms: int = 10000
    settle_ms: int = 500
    login_settle_ms: int = 2000
    item_delay_ms: int = 100
    browser: str = "chromium"
    headless: bool = True
    summary_file: str = ""
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        browser = env.get("BROWSER", "chromium").strip().lower()
        if browser not in BROWSERS:
            browser = "chromium"
        return cls(
            base_url=env.get("BGG_BASE_URL", DEFAULT_BASE_URL).strip().rstrip("/") or DEFAULT_BASE_URL,
            api_token=env.get("BGG_API_TOKEN", "").strip(),
            request_timeout=_env_float(env, "REQUEST_TIMEOUT", 30.0),
            pending_backoff_seconds=_env_float(env, "PENDING_BACKOFF_SECONDS", 5.0),
            max_pending_attempts=max(1, _env_int(env, "MAX_PENDING_ATTEMPTS", 20)),
            step_timeout_ms=_env_int(env, "STEP_TIMEOUT_MS", 5000),
            ack_timeout_ms=_env_int(env, "ACK_TIMEOUT_MS", 10000),
            settle_ms=_env_int(env, "SETTLE_MS", 500),
            login_settle_ms=_env_int(env, "LOGIN_SETTLE_MS", 2000),
            item_delay_ms=_env_int(env, "ITEM_DELAY_MS", 100),
            browser=browser,
            summary_file=env.get("SUMMARY_FILE", "").strip(),
            logging=LoggingConfig.from_env(env),
        )

    def with_overrides(
        self,
        browser: Optional[str] = None,
        headless: Optional[bool] = None,
        log_level: Optional[str] = None,
    ) -> "Settings":
        updated = self
        if browser is not None:
            updated = replace(updated, browser=browser)
        if headless is not None:
            updated = replace(updated, headless=headless)
        if log_level is not None:
            updated = replace(updated, logging=replace(updated.logging, level=log_level.upper()))
        return updated
