from dataclasses import replace
from datetime import date, datetime

from donordesk.domain.models import Accepted, DonationRecord, PickupRequest
from donordesk.domain.stages import ItemCondition, TimeSlot
from donordesk.services import aggregation


def _record(quantity: int, day: int, donor_id: str = "d1", completed: int | None = None) -> DonationRecord:
    return DonationRecord(
        donor_id=donor_id,
        item_name="Blankets",
        quantity=quantity,
        donated_at=datetime(2026, 4, day, 10, 30),
        completed_at=datetime(2026, 4, completed) if completed else None,
    )


def test_empty_records_summarize_to_zero() -> None:
    summary = aggregation.summarize_donor("d1", "Dana", [])
    assert summary.items_donated == 0
    assert summary.total_donations == 0
    assert summary.last_donation_date == "N/A"
    assert summary.impact_score == 0


def test_summary_totals() -> None:
    summary = aggregation.summarize_donor("d1", "Dana", [_record(3, 2), _record(5, 7)])
    assert summary.items_donated == 8
    assert summary.total_donations == 2
    assert summary.last_donation_date == "2026-04-07"
    assert summary.display_name == "Dana"


def test_completion_date_preferred() -> None:
    summary = aggregation.summarize_donor("d1", None, [_record(1, 2, completed=20), _record(1, 9)])
    assert summary.last_donation_date == "2026-04-20"
    assert summary.display_name == "d1"


def test_aggregation_is_additive() -> None:
    part_a = [_record(3, 1), _record(4, 2)]
    part_b = [_record(6, 3)]
    a = aggregation.summarize_donor("d1", "Dana", part_a)
    b = aggregation.summarize_donor("d1", "Dana", part_b)
    both = aggregation.summarize_donor("d1", "Dana", part_a + part_b)
    assert both.items_donated == a.items_donated + b.items_donated
    assert both.total_donations == a.total_donations + b.total_donations


def test_impact_score_is_monotonic() -> None:
    assert aggregation.impact_score(0, 0) == 0
    assert aggregation.impact_score(5, 1) < aggregation.impact_score(6, 1)
    assert aggregation.impact_score(5, 1) < aggregation.impact_score(5, 2)


def test_records_from_requests_skips_pending() -> None:
    pending = PickupRequest(
        donor_id="d1",
        item_name="Shoes",
        condition=ItemCondition.NEW,
        quantity=2,
        submitted_at=datetime(2026, 4, 1),
    )
    decided = replace(
        pending,
        donor_id="d2",
        decision=Accepted("o1", date(2026, 4, 3), TimeSlot.EVENING),
    )
    records = aggregation.records_from_requests([pending, decided])
    assert [r.donor_id for r in records] == ["d2"]


def test_summarize_all_groups_by_donor() -> None:
    records = [_record(3, 1, "d1"), _record(5, 2, "d1"), _record(5, 3, "d2")]
    summaries = {s.donor_id: s for s in aggregation.summarize_all(records, {"d1": "Dana"})}
    assert summaries["d1"].items_donated == 8
    assert summaries["d1"].display_name == "Dana"
    assert summaries["d2"].display_name == "d2"


def test_summary_filtered_by_item_category() -> None:
    records = [
        _record(3, 2),
        replace(_record(4, 9), item_name="Books"),
        replace(_record(2, 12), item_name="Books"),
    ]
    books = aggregation.summarize_donor("d1", "Dana", records, item_name="Books")
    assert (books.items_donated, books.total_donations, books.last_donation_date) == (6, 2, "2026-04-12")
    assert aggregation.summarize_donor("d1", "Dana", records, item_name="Toys").last_donation_date == "N/A"
    assert aggregation.summarize_donor("d1", "Dana", records).items_donated == 9
    assert aggregation.donation_categories(records) == ["Blankets", "Books"]
