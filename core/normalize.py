import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import InputRejected
from .logger import get_logger
from .models import TEXT_FLAGS, CollectionEntry, StatusFlag, StatusValue

logger = get_logger(__name__)

ENTITY_ID_KEYS = ["objectid", "objectId", "id", "object id"]
ENTITY_NAME_KEYS = ["objectname", "object name", "name"]
VARIANT_NAME_KEYS = ["version_nickname", "version nickname", "version"]
VARIANT_YEAR_KEYS = ["version_yearpublished", "version year published", "year"]
VARIANT_LANGUAGES_KEYS = ["version_languages", "version languages"]

FLAG_KEYS: Dict[StatusFlag, List[str]] = {
    StatusFlag.OWN: ["own"],
    StatusFlag.FOR_TRADE: ["fortrade", "for_trade"],
    StatusFlag.WANT: ["want"],
    StatusFlag.WANT_TO_BUY: ["wanttobuy", "want_to_buy"],
    StatusFlag.PREV_OWNED: ["prevowned", "prev_owned", "previouslyowned", "previously_owned"],
    StatusFlag.WISHLIST: ["wishlist"],
    StatusFlag.WISHLIST_PRIORITY: ["wishlistpriority", "wishlist_priority"],
    StatusFlag.PREORDERED: ["preordered", "pre_ordered"],
    StatusFlag.WANT_TO_PLAY: ["wanttoplay", "want_to_play"],
    StatusFlag.COMMENT: ["comment", "textfield.comment"],
    StatusFlag.WISHLIST_COMMENT: ["wishlistcomment", "wishlist_comment", "textfield.wishlistcomment"],
}

_WS_RE = re.compile(r"\s+")


def normalize_key(key: str) -> str:
    return _WS_RE.sub("", key or "").lower()


def to_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value == "1" or value.lower() == "true"


def to_int(value: Optional[str]) -> Optional[int]:
    """Parse an integer, returning None for missing or non-numeric input."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def to_priority(value: Optional[str]) -> Optional[int]:
    priority = to_int(value)
    if priority is None or not 1 <= priority <= 5:
        return None
    return priority


def _text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _entity_id(raw: Optional[str]) -> int:
    entity_id = to_int(raw)
    if entity_id is None or entity_id <= 0:
        raise InputRejected(f"missing or invalid object id {raw!r}")
    return entity_id


def variant_label_for(entity_name: str, variant_name: Optional[str]) -> Optional[str]:
    if not variant_name:
        return None
    return f"{entity_name} - {variant_name}".strip()


class _Row:
    """Case- and whitespace-insensitive view over a CSV row."""

    def __init__(self, row: Mapping[str, Any]):
        self._map: Dict[str, str] = {}
        for key, value in row.items():
            if key is None:
                continue
            self._map[normalize_key(str(key))] = "" if value is None else str(value)

    def get(self, keys: Sequence[str]) -> Optional[str]:
        for key in keys:
            value = self._map.get(normalize_key(key))
            if value is not None and value != "":
                return value
        return None


def _finish_status(status: Dict[StatusFlag, StatusValue]) -> Dict[StatusFlag, StatusValue]:
    # Priority only means something on a wishlisted item.
    if not status.get(StatusFlag.WISHLIST):
        status.pop(StatusFlag.WISHLIST_PRIORITY, None)
    return status


def normalize_row(row: Mapping[str, Any]) -> CollectionEntry:
    """Map one ingested CSV row to a CollectionEntry. Raises InputRejected."""
    r = _Row(row)
    entity_id = _entity_id(r.get(ENTITY_ID_KEYS))
    entity_name = (r.get(ENTITY_NAME_KEYS) or "").strip()
    variant_name = _text(r.get(VARIANT_NAME_KEYS))

    status: Dict[StatusFlag, StatusValue] = {}
    for flag, keys in FLAG_KEYS.items():
        raw = r.get(keys)
        if flag is StatusFlag.WISHLIST_PRIORITY:
            priority = to_priority(raw)
            if priority is not None:
                status[flag] = priority
        elif flag in TEXT_FLAGS:
            text = _text(raw)
            if text is not None:
                status[flag] = text
        else:
            status[flag] = to_bool(raw)

    return CollectionEntry(
        entity_id=entity_id,
        entity_name=entity_name,
        variant_name=variant_name,
        variant_year=_text(r.get(VARIANT_YEAR_KEYS)),
        variant_languages=_text(r.get(VARIANT_LANGUAGES_KEYS)),
        variant_label=variant_label_for(entity_name, variant_name),
        status=_finish_status(status),
    )


def normalize_record(record: Mapping[str, Any]) -> CollectionEntry:
    """
    Map one record decoded from the collection API to a CollectionEntry.

    Expected keys: ``objectid``, ``name``, ``yearpublished``, ``status``
    (the raw attribute mapping of the ``<status>`` element), ``comment``
    and ``wishlistcomment``.
    """
    entity_id = _entity_id(record.get("objectid"))
    attrs = record.get("status") or {}

    status: Dict[StatusFlag, StatusValue] = {}
    for flag in StatusFlag:
        if flag in TEXT_FLAGS:
            continue
        if flag.value not in attrs:
            continue
        if flag is StatusFlag.WISHLIST_PRIORITY:
            priority = to_priority(attrs[flag.value])
            if priority is not None:
                status[flag] = priority
        else:
            status[flag] = attrs[flag.value] == "1"

    for flag in TEXT_FLAGS:
        text = _text(record.get(flag.value))
        if text is not None:
            status[flag] = text

    return CollectionEntry(
        entity_id=entity_id,
        entity_name=(record.get("name") or "").strip(),
        variant_year=_text(record.get("yearpublished")),
        status=_finish_status(status),
    )


def _normalize_all(raw_items: Iterable[Mapping[str, Any]], normalizer, source: str) -> List[CollectionEntry]:
    entries: List[CollectionEntry] = []
    for idx, raw in enumerate(raw_items, start=1):
        try:
            entries.append(normalizer(raw))
        except InputRejected as e:
            logger.warning("Dropping %s record #%d: %s", source, idx, e)
    return entries


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> List[CollectionEntry]:
    return _normalize_all(rows, normalize_row, "CSV")


def normalize_records(records: Iterable[Mapping[str, Any]]) -> List[CollectionEntry]:
    return _normalize_all(records, normalize_record, "collection")
