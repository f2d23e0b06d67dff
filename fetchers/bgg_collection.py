import time
from typing import Any, Callable, Dict, List, Optional

import requests
from bs4 import BeautifulSoup
from bs4.element import Tag
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from core.config import Settings
from core.errors import TransportFailure
from core.logger import get_logger

logger = get_logger(__name__)

COLLECTION_PATH = "/xmlapi2/collection"
USER_AGENT = "bgg-collection-sync/1.0 (+https://boardgamegeek.com)"


class CollectionPending(Exception):
    """BGG accepted the request but has not prepared the collection yet."""


def build_session(settings: Settings) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    if settings.api_token:
        session.headers.update({"Authorization": f"Bearer {settings.api_token}"})
    return session


def _request_collection(
    http: requests.Session, url: str, params: Dict[str, str], timeout: float
) -> str:
    resp = http.get(url, params=params, timeout=timeout)
    status = resp.status_code

    if status == 202:
        raise CollectionPending()
    if status == 502:
        raise TransportFailure("BGG server seems to be down (502).")
    if status != 200:
        raise TransportFailure(f"Unexpected status code {status} from {url}.")
    return resp.text


def _log_pending(retry_state: RetryCallState) -> None:
    sleep_for = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "[Pending] BGG needs some time to prepare the collection. Retrying in %.0fs (attempt %d).",
        sleep_for,
        retry_state.attempt_number,
    )


def _child_text(item: Tag, name: str) -> Optional[str]:
    child = item.find(name, recursive=False)
    if child is None:
        return None
    return child.get_text(strip=True)


def _error_message(soup: BeautifulSoup) -> Optional[str]:
    errors = soup.find("errors") or soup.find("error")
    if errors is None:
        return None
    message = errors.find("message")
    if message is not None and message.get_text(strip=True):
        return message.get_text(strip=True)
    return errors.get_text(" ", strip=True) or "unknown error"


def parse_collection_xml(xml: str) -> List[Dict[str, Any]]:
    """
    Decode an ``/xmlapi2/collection`` response into raw records:
    ``objectid``, ``name``, ``yearpublished``, ``status`` (attribute dict),
    ``comment`` and ``wishlistcomment``.
    """
    soup = BeautifulSoup(xml, "xml")

    message = _error_message(soup)
    if message is not None:
        raise TransportFailure(f"Access to the existing BGG collection failed: {message}")

    items_tag = soup.find("items")
    if items_tag is None:
        raise TransportFailure("Collection response has no <items> element.")

    records: List[Dict[str, Any]] = []
    for item in items_tag.find_all("item", recursive=False):
        status_tag = item.find("status", recursive=False)
        records.append(
            {
                "objectid": item.get("objectid"),
                "name": _child_text(item, "name") or "",
                "yearpublished": _child_text(item, "yearpublished"),
                "status": dict(status_tag.attrs) if status_tag is not None else {},
                "comment": _child_text(item, "comment"),
                "wishlistcomment": _child_text(item, "wishlistcomment"),
            }
        )

    total = items_tag.get("totalitems")
    logger.info(
        "Access to collection successful. Found %s items.",
        total if total is not None else len(records),
    )
    return records


def fetch_existing_state(
    username: str,
    settings: Settings,
    http: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Dict[str, Any]]:
    """
    Fetch the user's current collection. A "pending" (202) answer is retried
    after a fixed backoff, at most ``settings.max_pending_attempts`` times.
    Raises TransportFailure on anything that leaves us without data.
    """
    http = http or build_session(settings)
    url = f"{settings.base_url}{COLLECTION_PATH}"
    params = {"username": username}

    logger.info("Fetching collection for user %s (%s).", username, url)

    retrying = Retrying(
        retry=retry_if_exception_type(CollectionPending),
        wait=wait_fixed(settings.pending_backoff_seconds),
        stop=stop_after_attempt(settings.max_pending_attempts),
        before_sleep=_log_pending,
        sleep=sleep,
        reraise=True,
    )

    try:
        xml = retrying(_request_collection, http, url, params, settings.request_timeout)
    except CollectionPending as e:
        raise TransportFailure(
            f"Collection still pending after {settings.max_pending_attempts} attempts."
        ) from e
    except requests.RequestException as e:
        raise TransportFailure(f"Could not fetch collection: {e}") from e

    return parse_collection_xml(xml)
