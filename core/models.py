from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple, Union

StatusValue = Union[bool, int, str]


class StatusFlag(str, Enum):
    OWN = "own"
    FOR_TRADE = "fortrade"
    WANT = "want"
    WANT_TO_BUY = "wanttobuy"
    PREV_OWNED = "prevowned"
    WISHLIST = "wishlist"
    WISHLIST_PRIORITY = "wishlistpriority"
    PREORDERED = "preordered"
    WANT_TO_PLAY = "wanttoplay"
    COMMENT = "comment"
    WISHLIST_COMMENT = "wishlistcomment"


BOOLEAN_FLAGS: Tuple[StatusFlag, ...] = (
    StatusFlag.OWN,
    StatusFlag.FOR_TRADE,
    StatusFlag.WANT,
    StatusFlag.WANT_TO_BUY,
    StatusFlag.PREV_OWNED,
    StatusFlag.WISHLIST,
    StatusFlag.PREORDERED,
    StatusFlag.WANT_TO_PLAY,
)
TEXT_FLAGS: Tuple[StatusFlag, ...] = (StatusFlag.COMMENT, StatusFlag.WISHLIST_COMMENT)


@dataclass(frozen=True)
class CollectionEntry:
    """
    Canonical form of one collection item, whether it came from the user's
    CSV file or from the existing BGG collection.
    Unset status flags are simply missing from ``status``.
    """
    entity_id: int
    entity_name: str = ""
    variant_name: Optional[str] = None
    variant_year: Optional[str] = None
    variant_languages: Optional[str] = None
    variant_label: Optional[str] = None
    status: Mapping[StatusFlag, StatusValue] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "status", MappingProxyType(dict(self.status)))

    def flag(self, key: StatusFlag) -> Optional[StatusValue]:
        return self.status.get(key)

    def is_set(self, key: StatusFlag) -> bool:
        return bool(self.status.get(key))

    @property
    def display_name(self) -> str:
        return self.variant_label or self.entity_name or str(self.entity_id)


@dataclass(frozen=True)
class WorkItem:
    """A desired entry that is not satisfied remotely and must be converged."""
    entry: CollectionEntry

    @property
    def entity_id(self) -> int:
        return self.entry.entity_id

    @property
    def status(self) -> Mapping[StatusFlag, StatusValue]:
        return self.entry.status

    @property
    def display_name(self) -> str:
        return self.entry.display_name

    @property
    def first_preferred_language(self) -> Optional[str]:
        langs = self.entry.variant_languages
        if not langs:
            return None
        first = langs.split(";")[0].strip()
        return first or "English"

    @property
    def variant_full_label(self) -> Optional[str]:
        if not self.entry.variant_name:
            return None
        if self.entry.variant_label:
            return self.entry.variant_label
        return f"{self.entry.entity_name} - {self.entry.variant_name}"

    @property
    def variant_full_label_with_year(self) -> Optional[str]:
        label = self.variant_full_label
        if label is None:
            return None
        if self.entry.variant_year:
            return f"{label} ({self.entry.variant_year})"
        return label

    @property
    def target_labels(self) -> Tuple[str, ...]:
        label = self.variant_full_label
        if label is None:
            return ()
        with_year = self.variant_full_label_with_year
        if with_year == label:
            return (label,)
        return (label, with_year)


@dataclass(frozen=True)
class ListedVersion:
    """One row of the versions tab, as rendered on the page."""
    label: str
    has_existing_status: bool = False


class MatchResult:
    """Outcome of resolving a work item against a version listing."""


@dataclass(frozen=True)
class AlreadyConverged(MatchResult):
    label: str
    position: int


@dataclass(frozen=True)
class FoundVariant(MatchResult):
    label: str
    position: int


@dataclass(frozen=True)
class NoVariantNeeded(MatchResult):
    pass


@dataclass(frozen=True)
class NotFound(MatchResult):
    targets: Tuple[str, ...] = ()


class ItemOutcome(str, Enum):
    VERIFIED = "verified"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RunSummary:
    parsed: int = 0
    rejected: int = 0
    unchanged: int = 0
    planned: int = 0
    verified: int = 0
    skipped: int = 0
    failed: int = 0
    failed_ids: List[int] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.verified + self.skipped + self.failed

    def record(self, item: WorkItem, outcome: ItemOutcome) -> None:
        if outcome is ItemOutcome.VERIFIED:
            self.verified += 1
        elif outcome is ItemOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.failed_ids.append(item.entity_id)
