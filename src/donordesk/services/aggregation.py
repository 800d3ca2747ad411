from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping

from donordesk.domain.models import NOT_AVAILABLE, DonationRecord, DonorSummary, PickupRequest

ITEM_WEIGHT = 10
DONATION_WEIGHT = 5


def impact_score(items_donated: int, total_donations: int) -> int:
    return ITEM_WEIGHT * max(items_donated, 0) + DONATION_WEIGHT * max(total_donations, 0)


def summarize_donor(
    donor_id: str,
    display_name: str | None,
    records: Iterable[DonationRecord],
    item_name: str | None = None,
) -> DonorSummary:
    """Fold one donor's donation records into a summary.

    An empty record set is a valid input and yields zero totals with
    ``last_donation_date`` set to ``"N/A"``. When ``item_name`` is given, only
    records of that item category count.
    """
    items = 0
    count = 0
    latest = None
    for record in records:
        if item_name and record.item_name != item_name:
            continue
        items += record.quantity
        count += 1
        day = record.effective_date
        if latest is None or day > latest:
            latest = day
    return DonorSummary(
        donor_id=donor_id,
        display_name=display_name or donor_id,
        total_donations=count,
        items_donated=items,
        last_donation_date=latest.isoformat() if latest else NOT_AVAILABLE,
        impact_score=impact_score(items, count),
    )


def donation_categories(records: Iterable[DonationRecord]) -> list[str]:
    return sorted({record.item_name for record in records if record.item_name})


def records_from_requests(requests: Iterable[PickupRequest]) -> list[DonationRecord]:
    # Pending requests are not donation events yet.
    return [
        DonationRecord(
            donor_id=request.donor_id,
            item_name=request.item_name,
            quantity=request.quantity,
            donated_at=request.submitted_at,
        )
        for request in requests
        if not request.is_pending
    ]


def summarize_all(
    records: Iterable[DonationRecord],
    names: Mapping[str, str] | None = None,
) -> list[DonorSummary]:
    names = names or {}
    grouped: dict[str, list[DonationRecord]] = defaultdict(list)
    for record in records:
        grouped[record.donor_id].append(record)
    return [
        summarize_donor(donor_id, names.get(donor_id), donor_records)
        for donor_id, donor_records in grouped.items()
    ]
