import re
from typing import Callable, List, Optional, Sequence, TypeVar

from ui import bgg_pages
from ui.session import UiSession, first_match

from .config import Settings
from .errors import StepError, StepFailed
from .logger import get_logger
from .models import (
    AlreadyConverged,
    FoundVariant,
    ItemOutcome,
    ListedVersion,
    MatchResult,
    NoVariantNeeded,
    NotFound,
    StatusFlag,
    WorkItem,
)
from .resolver import language_code, needs_variant_search, resolve

logger = get_logger(__name__)

T = TypeVar("T")

ListingReader = Callable[[UiSession], Sequence[ListedVersion]]

# Order in which checkboxes are set after the reset.
CHECKBOX_ORDER = (
    StatusFlag.OWN,
    StatusFlag.FOR_TRADE,
    StatusFlag.WANT,
    StatusFlag.WANT_TO_BUY,
    StatusFlag.PREV_OWNED,
    StatusFlag.PREORDERED,
    StatusFlag.WANT_TO_PLAY,
)

_TITLE_SUFFIX_RE = re.compile(r"\s*\|.*$")


class ConvergenceDriver:
    """
    Converges one work item at a time through the collection form.

    The driver owns the browser session for the run. Every UI step gets its
    own bounded wait. Steps the item cannot do without (opening the form,
    saving, the save confirmation) end the item as failed; checkboxes and
    text fields are best effort and only logged when they fail.
    """

    def __init__(
        self,
        session: UiSession,
        settings: Settings,
        listing_reader: ListingReader = bgg_pages.read_version_listing,
    ):
        self.session = session
        self.settings = settings
        self.listing_reader = listing_reader

    def converge(self, item: WorkItem) -> ItemOutcome:
        try:
            self._open_game_page(item)
            result = self._search_variant(item)

            if isinstance(result, AlreadyConverged):
                logger.warning(
                    "Version already in collection/wishlist for %s: %s (position %d); skipping.",
                    item.entity_id, result.label, result.position,
                )
                return ItemOutcome.SKIPPED

            if isinstance(result, FoundVariant):
                self._apply_variant(item, result)
                logger.info("Added version for %s: %s", item.entity_id, result.label)
            else:
                if isinstance(result, NotFound):
                    logger.warning(
                        "Version matching %s not found for %s; adding the base game instead.",
                        list(result.targets), item.entity_id,
                    )
                self._apply_base(item, reload=not isinstance(result, NoVariantNeeded))

            self._log_saved(item)
            return ItemOutcome.VERIFIED

        except StepFailed as e:
            logger.error("Failed to add %s (%s): %s", item.entity_id, item.display_name, e)
            return ItemOutcome.FAILED

    # ---------- steps ----------

    def _required(self, step: str, action: Callable[[], T]) -> T:
        try:
            return action()
        except StepError as e:
            raise StepFailed(step, e) from e

    def _optional(self, step: str, action: Callable[[], object]) -> bool:
        try:
            action()
            return True
        except StepError as e:
            logger.warning("Could not %s: %s", step, e)
            return False

    def _open_game_page(self, item: WorkItem) -> None:
        url = bgg_pages.entity_url(self.settings, item.entity_id)
        logger.info("Opening page for ID %s", item.entity_id)
        self._required("open game page", lambda: self.session.navigate(url))
        self.session.pause(self.settings.settle_ms)

    def _search_variant(self, item: WorkItem) -> MatchResult:
        if not needs_variant_search(item):
            return NoVariantNeeded()

        url = bgg_pages.versions_url(self.session.current_url(), language_code(item) or "")
        try:
            self.session.navigate(url)
            self.session.pause(self.settings.settle_ms)
            listing: Sequence[ListedVersion] = self.listing_reader(self.session)
        except StepError as e:
            logger.warning("Could not read versions for %s: %s", item.entity_id, e)
            listing = []

        return resolve(item, listing)

    def _apply_base(self, item: WorkItem, reload: bool) -> None:
        if reload:
            url = bgg_pages.entity_url(self.settings, item.entity_id)
            self._required("reload game page", lambda: self.session.navigate(url))
            self.session.pause(self.settings.settle_ms)

        button = self._required(
            "locate Add to Collection button",
            lambda: first_match(self.session, bgg_pages.ADD_TO_COLLECTION),
        )
        if button is None:
            raise StepFailed("locate Add to Collection button", "not found on page")
        self._click(button, "Add to Collection", self.settings.ack_timeout_ms)
        self._fill_and_submit(item)

    def _apply_variant(self, item: WorkItem, found: FoundVariant) -> None:
        rows = self._required(
            "locate version rows",
            lambda: self.session.find_all(bgg_pages.VERSION_ROW),
        )
        # Version rows look identical; only the position tells them apart.
        if found.position >= len(rows):
            raise StepFailed(
                "locate version row",
                f"position {found.position} but only {len(rows)} rows",
            )
        buttons = self._required(
            "locate version button",
            lambda: self.session.find_all(bgg_pages.VERSION_ADD_BUTTON, within=rows[found.position]),
        )
        if not buttons:
            raise StepFailed("locate version button", f"no button in row {found.position}")
        self._click(buttons[0], "Add to Collection (version)", self.settings.step_timeout_ms)
        self.session.pause(self.settings.settle_ms)
        self._fill_and_submit(item)

    def _click(self, element, label: str, timeout_ms: int) -> None:
        def action():
            self.session.wait_visible(element, timeout_ms)
            self.session.wait_enabled(element, timeout_ms)
            self.session.click(element)

        self._required(f"click {label}", action)
        logger.debug("Clicked %s", label)

    def _fill_and_submit(self, item: WorkItem) -> None:
        timeout = self.settings.step_timeout_ms

        def open_modal():
            modal = self.session.wait_for(bgg_pages.COLLECTION_MODAL, timeout)
            self.session.wait_visible(modal, timeout)

        self._required("open collection form", open_modal)

        self._reset_checkboxes()
        for flag in CHECKBOX_ORDER:
            self._set_checkbox(flag, item.entry.is_set(flag))

        if item.entry.is_set(StatusFlag.WISHLIST):
            self._set_checkbox(StatusFlag.WISHLIST, True)
            priority = item.entry.flag(StatusFlag.WISHLIST_PRIORITY)
            if priority is not None:
                self._set_priority(int(priority))
            wishlist_comment = item.entry.flag(StatusFlag.WISHLIST_COMMENT)
            if wishlist_comment:
                self._set_text(StatusFlag.WISHLIST_COMMENT, str(wishlist_comment), "Wishlist Comment")

        comment = item.entry.flag(StatusFlag.COMMENT)
        if comment:
            self._set_text(StatusFlag.COMMENT, str(comment), "Comment")

        save = self._required("locate Save button", lambda: first_match(self.session, bgg_pages.SAVE_BUTTON))
        if save is None:
            raise StepFailed("locate Save button", "not found in form")
        self._click(save, "Save", timeout)

        self._required(
            "confirm save",
            lambda: self.session.wait_for(bgg_pages.SAVED_NOTIFICATION, self.settings.ack_timeout_ms),
        )

    def _reset_checkboxes(self) -> None:
        for flag, selector in bgg_pages.CHECKBOXES.items():
            def reset(selector=selector):
                found: List = self.session.find_all(selector)
                if not found:
                    raise StepError(f"{selector} not found")
                if self.session.is_checked(found[0]):
                    self.session.click(found[0])

            self._optional(f"reset checkbox {bgg_pages.CHECKBOX_LABELS[flag]}", reset)
        logger.debug("Reset all checkboxes")

    def _set_checkbox(self, flag: StatusFlag, should_check: bool) -> None:
        label = bgg_pages.CHECKBOX_LABELS[flag]
        timeout = self.settings.step_timeout_ms

        def action():
            el = self.session.wait_for(bgg_pages.CHECKBOXES[flag], timeout)
            self.session.wait_visible(el, timeout)
            if self.session.is_checked(el) != should_check:
                self.session.click(el)
                logger.debug("Set %s to %s", label, "checked" if should_check else "unchecked")

        self._optional(f"set {label}", action)

    def _set_priority(self, priority: int) -> None:
        timeout = self.settings.step_timeout_ms

        def action():
            el = self.session.wait_for(bgg_pages.WISHLIST_PRIORITY, timeout)
            self.session.select_option(el, str(priority))

        self._optional("set wishlist priority", action)

    def _set_text(self, flag: StatusFlag, text: str, label: str) -> None:
        timeout = self.settings.step_timeout_ms

        def action():
            el = self.session.wait_for(bgg_pages.TEXT_AREAS[flag], self.settings.ack_timeout_ms)
            self.session.wait_visible(el, timeout)
            self.session.set_text(el, text)

        if self._optional(f"set {label}", action):
            logger.debug("Added %s", label)

    def _log_saved(self, item: WorkItem) -> None:
        title: Optional[str] = None
        try:
            title = self.session.title()
        except StepError as e:
            logger.debug("Could not read page title: %s", e)
        name = _TITLE_SUFFIX_RE.sub("", title) if title else item.display_name
        logger.info("Saved %s: %s", item.entity_id, name)
