from typing import Dict, List, Tuple

from core.config import Settings
from core.errors import AuthenticationFailed, StepError
from core.logger import get_logger
from core.models import ListedVersion, StatusFlag

from .session import UiSession, first_match

logger = get_logger(__name__)

LOGGED_IN_TITLE = "BoardGameGeek | Gaming Unplugged Since 2000"

COOKIE_CONSENT = [
    "button.fc-cta-consent",
    "button.fc-button.fc-cta-consent.fc-primary-button",
]
USERNAME_FIELD = ["input#inputUsername", "input#username"]
PASSWORD_FIELD = ["input#inputPassword", "input#password"]
LOGIN_SUBMIT = ["button[type='submit']", "button.login-submit", "button.btn-primary"]

# Collection form on the game page
ADD_TO_COLLECTION = [
    "button[ng-disabled='colltoolbarctrl.loading']",
    "xpath=//button[@ng-disabled='colltoolbarctrl.loading']",
]
COLLECTION_MODAL = ".modal-dialog"
SAVE_BUTTON = ["button[type='submit'].btn-primary:not([disabled])"]
SAVED_NOTIFICATION = "div.cg-notify-message-template span.ng-scope"

CHECKBOXES: Dict[StatusFlag, str] = {
    flag: f"[ng-model='item.status.{flag.value}']"
    for flag in (
        StatusFlag.OWN,
        StatusFlag.FOR_TRADE,
        StatusFlag.WANT,
        StatusFlag.WANT_TO_BUY,
        StatusFlag.PREV_OWNED,
        StatusFlag.WISHLIST,
        StatusFlag.PREORDERED,
        StatusFlag.WANT_TO_PLAY,
    )
}
CHECKBOX_LABELS: Dict[StatusFlag, str] = {
    StatusFlag.OWN: "OWN",
    StatusFlag.FOR_TRADE: "FOR TRADE",
    StatusFlag.WANT: "WANT",
    StatusFlag.WANT_TO_BUY: "WANT TO BUY",
    StatusFlag.PREV_OWNED: "PREVIOUSLY OWNED",
    StatusFlag.WISHLIST: "WISHLIST",
    StatusFlag.PREORDERED: "PREORDERED",
    StatusFlag.WANT_TO_PLAY: "WANT TO PLAY",
}
WISHLIST_PRIORITY = "select[ng-model='item.wishlistpriority']"
TEXT_AREAS: Dict[StatusFlag, str] = {
    StatusFlag.COMMENT: "textarea#comment, #comment",
    StatusFlag.WISHLIST_COMMENT: "textarea#wishlistcomment, #wishlistcomment",
}

# Versions tab
VERSION_ROW = "li.summary-item"
VERSION_TITLE = "h3.summary-item-title"
VERSION_STATUS = "collection-button-status-list span.ng-binding"
# Looked up within a single version row.
VERSION_ADD_BUTTON = "button[add-to-collection-button]"


def entity_url(settings: Settings, entity_id: int) -> str:
    return f"{settings.base_url}/boardgame/{entity_id}"


def versions_url(game_url: str, lang_code: str) -> str:
    base = game_url.split("?", 1)[0].rstrip("/")
    return f"{base}/versions?pageid=1&language={lang_code}"


def collection_url(settings: Settings, username: str) -> str:
    return f"{settings.base_url}/collection/user/{username}"


def _accept_cookie_consent(session: UiSession, settings: Settings) -> None:
    try:
        button = first_match(session, COOKIE_CONSENT)
        if button is None:
            logger.info("Cookie consent not found; continuing.")
            return
        session.wait_visible(button, settings.step_timeout_ms)
        session.click(button)
        logger.info("Cookie consent accepted.")
    except StepError as e:
        logger.info("Cookie consent not handled (%s); continuing.", e)


def login(session: UiSession, username: str, password: str, settings: Settings) -> None:
    """Log in through the login form. Raises AuthenticationFailed."""
    logger.info("Logging in as %s.", username)
    try:
        session.navigate(f"{settings.base_url}/login")
    except StepError as e:
        raise AuthenticationFailed(f"could not open login page: {e}") from e

    _accept_cookie_consent(session, settings)

    fields: List[Tuple[str, List[str], str]] = [
        ("Username field", USERNAME_FIELD, username),
        ("Password field", PASSWORD_FIELD, password),
    ]
    try:
        for label, strategies, value in fields:
            element = first_match(session, strategies)
            if element is None:
                raise AuthenticationFailed(f"{label} not found on login page")
            session.set_text(element, value)

        submit = first_match(session, LOGIN_SUBMIT)
        if submit is None:
            raise AuthenticationFailed("Login submit button not found")
        session.click(submit)
    except StepError as e:
        raise AuthenticationFailed(f"login form could not be submitted: {e}") from e

    session.pause(settings.login_settle_ms)
    try:
        title = session.title()
    except StepError as e:
        raise AuthenticationFailed(f"could not read page title: {e}") from e
    if title != LOGGED_IN_TITLE:
        raise AuthenticationFailed("Login failed. Please check username and password")
    logger.info("Login succeeded.")


def read_version_listing(session: UiSession) -> List[ListedVersion]:
    """
    Read the rendered versions tab in display order, one entry per row.
    Rows without a title are kept with an empty label so positions line up
    with VERSION_ROW.
    """
    listing: List[ListedVersion] = []
    for row in session.find_all(VERSION_ROW):
        titles = session.find_all(VERSION_TITLE, within=row)
        label = session.visible_text(titles[0]) if titles else ""
        has_status = bool(session.find_all(VERSION_STATUS, within=row))
        listing.append(ListedVersion(label=label, has_existing_status=has_status))
    logger.debug("Versions tab lists %d versions.", len(listing))
    return listing
