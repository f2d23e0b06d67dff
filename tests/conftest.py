from contextlib import contextmanager
from typing import List

import pytest

from core.config import Settings
from fakes import BASE_URL, FakeSession, add_collection_form, add_login_form


@pytest.fixture
def settings() -> Settings:
    return Settings(
        base_url=BASE_URL,
        settle_ms=0,
        login_settle_ms=0,
        item_delay_ms=0,
        pending_backoff_seconds=5.0,
        max_pending_attempts=4,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def session_factory():
    """Context-manager factory that hands out one FakeSession per call."""
    opened: List[FakeSession] = []

    @contextmanager
    def factory(settings):
        fake = FakeSession()
        add_login_form(fake)
        add_collection_form(fake)
        opened.append(fake)
        try:
            yield fake
        finally:
            fake.close()

    factory.opened = opened
    return factory
