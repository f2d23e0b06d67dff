from typing import Optional

from .logger import get_logger
from .models import BOOLEAN_FLAGS, CollectionEntry, StatusFlag, StatusValue

logger = get_logger(__name__)


def _comparable(entry: CollectionEntry, flag: StatusFlag) -> Optional[StatusValue]:
    value = entry.status.get(flag)
    if flag in BOOLEAN_FLAGS:
        return bool(value)
    if value == "":
        return None
    return value


def same_version(a: CollectionEntry, b: CollectionEntry) -> bool:
    """
    True when both entries describe the same game with exactly the same
    collection status.

    Absent boolean flags compare as False. Absent numeric and text flags only
    match other absent values, and an empty text counts as absent.
    """
    if a.entity_id != b.entity_id:
        return False
    if a.entity_name != b.entity_name:
        logger.debug(
            "Object names differ for %s: %r vs %r", a.entity_id, a.entity_name, b.entity_name
        )
        return False

    for flag in StatusFlag:
        left = _comparable(a, flag)
        right = _comparable(b, flag)
        if left != right or type(left) is not type(right):
            logger.debug(
                "Status mismatch for %s on %r: %r vs %r", a.entity_id, flag.value, left, right
            )
            return False
    return True
