from core.models import ItemOutcome, RunSummary
from core.report import build_run_summary
from fakes import make_item


def test_summary_counts_every_outcome():
    summary = RunSummary(parsed=4, rejected=1, unchanged=1, planned=3)
    summary.record(make_item(13), ItemOutcome.VERIFIED)
    summary.record(make_item(822), ItemOutcome.SKIPPED)
    summary.record(make_item(30549), ItemOutcome.FAILED)

    text = build_run_summary(summary, "alice")

    assert "for alice" in text
    assert "Processed: 3" in text
    assert "Added: 1 · Skipped: 1 · Failed: 1" in text
    assert "- 30549" in text


def test_summary_without_failures_lists_no_ids():
    text = build_run_summary(RunSummary(parsed=1, planned=1, verified=1), "alice")

    assert "Failed object ids" not in text
