import re
from typing import Dict, Optional, Sequence

from .logger import get_logger
from .models import (
    AlreadyConverged,
    FoundVariant,
    ListedVersion,
    MatchResult,
    NoVariantNeeded,
    NotFound,
    WorkItem,
)

logger = get_logger(__name__)

# BGG language ids used by the versions tab filter.
LANGUAGE_IDS: Dict[str, str] = {
    "Afrikaans": "2677",
    "Arabic": "2178",
    "English": "2184",
    "Estonian": "2185",
    "Latvian": "2196",
    "Lithuanian": "2197",
    "Basque": "2711",
    "Bulgarian": "2675",
    "Japanese": "2194",
    "Catalan": "2179",
    "Chinese": "2181",
    "Croatian": "2656",
    "Serbian": "2681",
    "Slovenian": "2207",
    "Czech": "2180",
    "Slovak": "2206",
    "Danish": "2182",
    "Portuguese": "2200",
    "Dutch": "2183",
    "Russian": "2202",
    "Finnish": "2186",
    "French": "2187",
    "German": "2188",
    "Greek": "2189",
    "Hebrew": "2190",
    "Hungarian": "2191",
    "Icelandic": "2347",
    "Italian": "2193",
    "Korean": "2195",
    "Norwegian": "2198",
    "Polish": "2199",
    "Romanian": "2201",
    "Macedonian": "3069",
    "Spanish": "2203",
    "Swedish": "2204",
    "Thai": "2709",
}

_WS_RE = re.compile(r"\s+")
_DASH_RE = re.compile(r"[\u2010-\u2015\u2212\ufe58\ufe63\uff0d]")


def normalize_label(text: str) -> str:
    text = _WS_RE.sub(" ", text or "").strip()
    return _DASH_RE.sub("-", text)


def language_code(item: WorkItem) -> Optional[str]:
    language = item.first_preferred_language
    if language is None:
        return None
    return LANGUAGE_IDS.get(language)


def needs_variant_search(item: WorkItem) -> bool:
    return bool(item.entry.variant_name) and language_code(item) is not None


def resolve(item: WorkItem, listing: Sequence[ListedVersion]) -> MatchResult:
    """
    Find the listed version matching the work item.

    A row that already carries a collection status wins over any label match:
    that slot is taken, and adding the game again would duplicate it.
    """
    if not needs_variant_search(item):
        return NoVariantNeeded()

    targets = item.target_labels
    wanted = {normalize_label(t) for t in targets}

    for position, version in enumerate(listing):
        label = normalize_label(version.label)
        if not label:
            continue
        if version.has_existing_status:
            logger.debug("Version at %d already has a status: %r", position, label)
            return AlreadyConverged(label=label, position=position)
        if label in wanted:
            return FoundVariant(label=label, position=position)

    return NotFound(targets=targets)
