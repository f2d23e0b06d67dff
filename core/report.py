import datetime
from pathlib import Path

import pytz
from jinja2 import Environment, FileSystemLoader

from .logger import get_logger
from .models import RunSummary

logger = get_logger(__name__)

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
)


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).replace(microsecond=0).isoformat()


def build_run_summary(summary: RunSummary, username: str) -> str:
    template = env.get_template("run_summary.txt")
    return template.render(
        summary=summary,
        username=username,
        finished_at=now_utc_iso(),
    )


def write_summary(text: str, path: str) -> None:
    if not path:
        return
    try:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        logger.info("Run summary written to %s", target)
    except OSError as e:
        logger.warning("Failed to write run summary to %s: %s", path, e)
