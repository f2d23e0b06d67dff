import argparse
import sys
from pathlib import Path
from typing import Callable, ContextManager, List, Optional, Sequence

from core.config import Settings
from core.converge import ConvergenceDriver
from core.errors import AuthenticationFailed, InputRejected, StepError, TransportFailure
from core.logger import get_logger, setup_logging
from core.models import ItemOutcome, RunSummary, WorkItem
from core.normalize import normalize_records, normalize_rows
from core.planner import plan
from core.report import build_run_summary, write_summary
from fetchers import SOURCES
from fetchers.bgg_collection import fetch_existing_state
from fetchers.csv_source import load_rows
from ui import bgg_pages
from ui.session import UiSession

logger = get_logger(__name__)

SessionFactory = Callable[[Settings], ContextManager[UiSession]]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bgg-collection-sync",
        description="Add the games listed in a CSV file to a BoardGameGeek collection.",
    )
    parser.add_argument("csv_path", help="Path to the collection CSV file")
    parser.add_argument("-u", "--username", required=True, help="BGG user name")
    parser.add_argument("-p", "--password", required=True, help="BGG password")
    parser.add_argument("--firefox", action="store_true", help="Use Firefox instead of Chromium")
    parser.add_argument(
        "--show-browser",
        action="store_true",
        help="Run with a visible browser and keep it open after the run",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


def _default_session_factory(settings: Settings) -> ContextManager[UiSession]:
    from ui.playwright_session import open_session

    return open_session(settings)


def load_desired_rows(path: str):
    loader = SOURCES.get(Path(path).suffix.lower())
    if loader is None:
        logger.warning("Unknown file type for %s; reading it as CSV.", path)
        loader = load_rows
    return loader(path)


def converge_all(
    driver: ConvergenceDriver,
    work: List[WorkItem],
    settings: Settings,
    summary: RunSummary,
) -> None:
    total = len(work)
    for idx, item in enumerate(work, start=1):
        logger.info("[%d/%d] Processing %s - %s", idx, total, item.entity_id, item.display_name)
        outcome = ItemOutcome.FAILED
        try:
            outcome = driver.converge(item)
            # small delay to be polite
            driver.session.pause(settings.item_delay_ms)
        except Exception as e:
            logger.exception("Unhandled error while adding %s: %s", item.entity_id, e)
        summary.record(item, outcome)


def _keep_browser_open(session: UiSession, settings: Settings, username: str) -> None:
    try:
        session.navigate(bgg_pages.collection_url(settings, username))
    except StepError as e:
        logger.warning("Could not open the collection page: %s", e)
    if sys.stdin.isatty():
        input("Browser left open due to --show-browser. Press Enter to close it.")


def _report(summary: RunSummary, username: str, settings: Settings) -> None:
    text = build_run_summary(summary, username)
    for line in text.splitlines():
        logger.info(line)
    write_summary(text, settings.summary_file)


def run(
    args: argparse.Namespace,
    settings: Settings,
    fetch=fetch_existing_state,
    session_factory: SessionFactory = _default_session_factory,
) -> int:
    summary = RunSummary()

    logger.info("Parsing CSV at %s...", args.csv_path)
    try:
        rows = load_desired_rows(args.csv_path)
    except InputRejected as e:
        logger.error("%s", e)
        return 1

    desired = normalize_rows(rows)
    summary.parsed = len(desired)
    summary.rejected = len(rows) - len(desired)
    if not desired:
        logger.warning("No records parsed from CSV. Exiting.")
        return 0
    logger.info("Parsed %d records.", len(desired))

    try:
        existing = normalize_records(fetch(args.username, settings))
    except TransportFailure as e:
        logger.error("%s", e)
        return 1

    work = plan(desired, existing)
    summary.planned = len(work)
    summary.unchanged = len(desired) - len(work)
    if not work:
        logger.info("No new items to add after filtering.")
        _report(summary, args.username, settings)
        return 0

    logger.info("Adding %d new items to collection.", len(work))

    try:
        with session_factory(settings) as session:
            try:
                bgg_pages.login(session, args.username, args.password, settings)
            except AuthenticationFailed as e:
                logger.error("%s", e)
                return 1

            driver = ConvergenceDriver(session, settings)
            converge_all(driver, work, settings, summary)

            if not settings.headless:
                _keep_browser_open(session, settings, args.username)

        logger.info("Finished run.")
        return 0
    finally:
        _report(summary, args.username, settings)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env().with_overrides(
        browser="firefox" if args.firefox else None,
        headless=False if args.show_browser else None,
        log_level="DEBUG" if args.debug else None,
    )
    setup_logging(settings.logging)

    try:
        return run(args, settings)
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
