from core.config import LoggingConfig, Settings


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings.base_url == "https://boardgamegeek.com"
    assert settings.pending_backoff_seconds == 5.0
    assert settings.max_pending_attempts == 20
    assert settings.browser == "chromium"
    assert settings.headless is True
    assert settings.logging == LoggingConfig()


def test_values_are_read_from_environment():
    settings = Settings.from_env(
        {
            "BGG_BASE_URL": "https://example.test/",
            "PENDING_BACKOFF_SECONDS": "1.5",
            "MAX_PENDING_ATTEMPTS": "3",
            "STEP_TIMEOUT_MS": "250",
            "BROWSER": "Firefox",
            "LOG_LEVEL": "debug",
            "LOG_TO_FILE": "true",
        }
    )

    assert settings.base_url == "https://example.test"
    assert settings.pending_backoff_seconds == 1.5
    assert settings.max_pending_attempts == 3
    assert settings.step_timeout_ms == 250
    assert settings.browser == "firefox"
    assert settings.logging.level == "DEBUG"
    assert settings.logging.to_file is True


def test_bad_values_fall_back_to_defaults():
    settings = Settings.from_env({"ITEM_DELAY_MS": "soon", "BROWSER": "netscape", "MAX_PENDING_ATTEMPTS": "0"})

    assert settings.item_delay_ms == 100
    assert settings.browser == "chromium"
    assert settings.max_pending_attempts == 1


def test_cli_overrides():
    settings = Settings.from_env({}).with_overrides(browser="firefox", headless=False, log_level="debug")

    assert settings.browser == "firefox"
    assert settings.headless is False
    assert settings.logging.level == "DEBUG"
    assert Settings.from_env({}).with_overrides() == Settings.from_env({})
