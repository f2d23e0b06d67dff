import csv
from pathlib import Path
from typing import Dict, List, Union

from core.errors import InputRejected
from core.logger import get_logger

logger = get_logger(__name__)


def load_rows(path: Union[str, Path]) -> List[Dict[str, str]]:
    """
    Read a collection CSV (header row required) into a list of raw rows.
    Header names are kept as written; the normalizer matches them loosely.
    """
    path = Path(path)
    if not path.is_file():
        raise InputRejected(f"CSV file not found: {path}")

    rows: List[Dict[str, str]] = []
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            for row in reader:
                cleaned = {
                    k.strip(): (v or "").strip()
                    for k, v in row.items()
                    if isinstance(k, str)
                }
                if not any(cleaned.values()):
                    continue
                rows.append(cleaned)
    except UnicodeDecodeError as e:
        raise InputRejected(f"CSV file is not valid UTF-8: {path} ({e.reason} at byte {e.start})") from e

    logger.info("Parsed %d records from %s.", len(rows), path)
    return rows
