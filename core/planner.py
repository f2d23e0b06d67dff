from typing import List, Sequence

from .logger import get_logger
from .matching import same_version
from .models import CollectionEntry, WorkItem

logger = get_logger(__name__)


def plan(
    desired: Sequence[CollectionEntry], existing: Sequence[CollectionEntry]
) -> List[WorkItem]:
    """
    Compute the ordered work list: desired entries that neither exist remotely
    in exactly this configuration nor repeat an earlier surviving entry.

    Comparison is pairwise (n*m against the remote collection, k^2 among the
    survivors), which is fine for collections of a few thousand games.
    """
    survivors: List[CollectionEntry] = []

    for entry in desired:
        if any(same_version(entry, other) for other in existing):
            logger.info(
                "Skipping %s (%s): this exact version is already in the collection.",
                entry.entity_id, entry.display_name,
            )
            continue

        if any(same_version(entry, kept) for kept in survivors):
            logger.info("Skipping duplicate input row for %s.", entry.entity_id)
            continue

        survivors.append(entry)

    return [WorkItem(entry) for entry in survivors]
