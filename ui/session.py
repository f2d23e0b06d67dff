from typing import Any, List, Optional, Protocol, Sequence

from core.logger import get_logger

logger = get_logger(__name__)

Element = Any


class UiSession(Protocol):
    """
    The narrow browser surface the convergence driver works against.

    Waits take a timeout in milliseconds and raise ``StepTimeout`` when it
    runs out; any other automation error surfaces as ``StepError``.
    """

    def navigate(self, url: str) -> None: ...

    def current_url(self) -> str: ...

    def find_all(self, selector: str, within: Optional[Element] = None) -> List[Element]: ...

    def wait_for(self, selector: str, timeout_ms: int) -> Element: ...

    def wait_visible(self, element: Element, timeout_ms: int) -> None: ...

    def wait_enabled(self, element: Element, timeout_ms: int) -> None: ...

    def click(self, element: Element) -> None: ...

    def set_text(self, element: Element, text: str) -> None: ...

    def select_option(self, element: Element, value: str) -> None: ...

    def is_checked(self, element: Element) -> bool: ...

    def visible_text(self, element: Element) -> str: ...

    def title(self) -> str: ...

    def pause(self, ms: int) -> None: ...

    def close(self) -> None: ...


def first_match(
    session: UiSession, strategies: Sequence[str], within: Optional[Element] = None
) -> Optional[Element]:
    """Return the first element found by the ordered locator strategies."""
    for selector in strategies:
        found = session.find_all(selector, within=within)
        if found:
            return found[0]
        logger.debug("Locator %s found nothing.", selector)
    return None
