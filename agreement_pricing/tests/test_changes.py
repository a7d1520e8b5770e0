import json

import pytest

from agreement_pricing.pricing.changes import Baseline, ChangeRecorder, field_display_name
from agreement_pricing.utils.trace import JsonlChangeSink, build_trace_logger


def _recorder():
    baseline = Baseline()
    baseline.capture("saniclean", {"per_visit_price": 100.0, "insideBeltwayRatePerFixture": 7})
    return ChangeRecorder(baseline)


def test_repeated_edits_collapse_against_the_original_baseline():
    rec = _recorder()
    for value in (90, 85, 80):
        rec.record("saniclean", "per_visit_price", value, quantity=10, frequency="weekly")

    entries = rec.entries()
    assert len(entries) == 1
    e = entries[0]
    assert e.field_key == "customPerVisitPrice"
    assert e.field_display_name == "Per Visit Price"
    assert e.original_value == 100.0
    assert e.new_value == 80.0
    assert e.change_amount == -20.0
    assert e.change_percentage == pytest.approx(-20.0)
    assert e.quantity == 10
    assert e.frequency == "weekly"


def test_edit_back_to_baseline_removes_the_entry():
    rec = _recorder()
    rec.record("saniclean", "per_visit_price", 90)
    rec.record("saniclean", "per_visit_price", 100)
    assert rec.entries() == []


def test_fields_without_baseline_are_not_logged():
    rec = _recorder()
    assert rec.record("saniclean", "contract_total", 5000) is None
    assert rec.record("sanipod", "per_visit_price", 5) is None
    assert rec.entries() == []


def test_rate_edits_keep_their_key():
    rec = _recorder()
    entry = rec.record("saniclean", "insideBeltwayRatePerFixture", 8, is_rate=True)
    assert entry.field_key == "insideBeltwayRatePerFixture"
    assert entry.field_display_name == "Inside Beltway Rate Per Fixture"


def test_baseline_is_captured_once_unless_replaced():
    baseline = Baseline()
    baseline.capture("x", {"a": 1})
    baseline.capture("x", {"a": 2})
    assert baseline.get("x", "a") == 1
    baseline.capture("x", {"a": 3}, replace=True)
    assert baseline.get("x", "a") == 3


def test_display_names():
    assert field_display_name("customContractTotal") == "Contract Total"
    assert field_display_name("extra_area") == "Extra Area Price"
    assert field_display_name("pod_service") == "Pod Service"


def test_flush_writes_jsonl_change_log(tmp_path):
    rec = _recorder()
    rec.record("saniclean", "per_visit_price", 120, quantity=4, frequency="monthly")
    path = tmp_path / "changes.jsonl"

    count = rec.flush(JsonlChangeSink(build_trace_logger(path), agreement_id="A-1"))

    assert count == 1
    assert rec.entries() == []
    lines = path.read_text(encoding="utf-8").splitlines()
    event = json.loads(lines[0])
    assert event["phase"] == "override_change"
    assert event["agreement_id"] == "A-1"
    assert event["service_id"] == "saniclean"
    assert event["payload"]["fieldKey"] == "customPerVisitPrice"
    assert event["payload"]["originalValue"] == 100.0
    assert event["payload"]["newValue"] == 120.0
    assert event["payload"]["changePercentage"] == pytest.approx(20.0)
