from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import expect, sync_playwright

from core.config import Settings
from core.errors import StepError, StepTimeout
from core.logger import get_logger

logger = get_logger(__name__)

VIEWPORT = {"width": 1400, "height": 1000}


@contextmanager
def _translate(action: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise StepTimeout(f"{action}: {e}") from e
    except PlaywrightError as e:
        raise StepError(f"{action}: {e}") from e


class PlaywrightSession:
    """UiSession backed by a Playwright page (sync API)."""

    def __init__(self, page: Page, settings: Settings, closer: Optional[Callable[[], None]] = None):
        self._page = page
        self._settings = settings
        self._closer = closer
        self._closed = False

    @property
    def page(self) -> Page:
        return self._page

    def navigate(self, url: str) -> None:
        logger.debug("Navigating to %s", url)
        with _translate(f"navigate to {url}"):
            self._page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=int(self._settings.request_timeout * 1000),
            )

    def current_url(self) -> str:
        return self._page.url

    def find_all(self, selector: str, within: Optional[Locator] = None) -> List[Locator]:
        root = within if within is not None else self._page
        with _translate(f"find {selector}"):
            return root.locator(selector).all()

    def wait_for(self, selector: str, timeout_ms: int) -> Locator:
        locator = self._page.locator(selector).first
        with _translate(f"wait for {selector}"):
            locator.wait_for(state="attached", timeout=timeout_ms)
        return locator

    def wait_visible(self, element: Locator, timeout_ms: int) -> None:
        with _translate("wait until visible"):
            element.wait_for(state="visible", timeout=timeout_ms)

    def wait_enabled(self, element: Locator, timeout_ms: int) -> None:
        try:
            expect(element).to_be_enabled(timeout=timeout_ms)
        except AssertionError as e:
            raise StepTimeout(f"wait until enabled: {e}") from e

    def click(self, element: Locator) -> None:
        timeout = self._settings.step_timeout_ms
        with _translate("scroll into view"):
            element.scroll_into_view_if_needed(timeout=timeout)
        try:
            element.click(timeout=timeout)
        except PlaywrightError as e:
            # Overlays in headless mode can intercept the pointer; fall back to a DOM click.
            logger.debug("Pointer click failed (%s); dispatching click event.", e)
            with _translate("click"):
                element.dispatch_event("click")

    def set_text(self, element: Locator, text: str) -> None:
        with _translate("fill text"):
            element.fill(text, timeout=self._settings.step_timeout_ms)
            element.dispatch_event("blur")

    def select_option(self, element: Locator, value: str) -> None:
        with _translate(f"select option {value}"):
            for option in element.locator("option").all():
                raw = option.get_attribute("value") or ""
                label = (option.inner_text() or "").strip()
                # Angular renders option values as "number:3".
                if raw.split(":")[-1].strip() == value or label.startswith(value):
                    element.select_option(value=raw, timeout=self._settings.step_timeout_ms)
                    return
        raise StepError(f"no option matching {value!r}")

    def is_checked(self, element: Locator) -> bool:
        with _translate("read checkbox state"):
            return element.is_checked(timeout=self._settings.step_timeout_ms)

    def visible_text(self, element: Locator) -> str:
        with _translate("read visible text"):
            return element.inner_text(timeout=self._settings.step_timeout_ms)

    def title(self) -> str:
        with _translate("read title"):
            return self._page.title()

    def pause(self, ms: int) -> None:
        if ms > 0:
            with _translate("pause"):
                self._page.wait_for_timeout(ms)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self._closer is not None:
                self._closer()
            else:
                self._page.close()
            logger.debug("Browser session closed.")
        except PlaywrightError as e:
            logger.warning("Failed to close browser session cleanly: %s", e)


@contextmanager
def open_session(settings: Settings) -> Iterator[PlaywrightSession]:
    """Launch the configured browser and yield a session, closing it on exit."""
    with sync_playwright() as playwright:
        engine = getattr(playwright, settings.browser)
        logger.info(
            "Starting %s (%s).", settings.browser, "headless" if settings.headless else "visible"
        )
        browser = engine.launch(headless=settings.headless)
        context = browser.new_context(viewport=VIEWPORT)
        page = context.new_page()
        session = PlaywrightSession(page, settings, closer=browser.close)
        try:
            yield session
        finally:
            session.close()
