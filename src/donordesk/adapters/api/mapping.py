from __future__ import annotations

from datetime import datetime, time
from typing import Any

from donordesk.domain import rules
from donordesk.domain.models import (
    Accepted,
    Declined,
    Decision,
    DonationRecord,
    DonorProfile,
    LeaderboardRow,
    PickupRequest,
)
from donordesk.domain.rules import ValidationError
from donordesk.domain.stages import ItemCondition, RequestStatus, TimeSlot


def request_from_payload(row: dict[str, Any], default_status: str | None = None) -> PickupRequest:
    donor_id = _text(row.get("donor_id"))
    rules.require(donor_id, "donor_id")
    quantity = rules.require_positive(row.get("number_items"), "number_items")
    submitted_at = _moment(row.get("donation_date"), "donation_date")
    status = normalize_status(row.get("status") or default_status)
    return PickupRequest(
        donor_id=donor_id,
        item_name=_text(row.get("itemname")),
        condition=normalize_condition(row.get("condition")),
        quantity=quantity,
        submitted_at=submitted_at,
        notes=_text(row.get("additional_notes")) or None,
        decision=_decision(status, row),
    )


def donation_from_payload(row: dict[str, Any], donor_id: str | None = None) -> DonationRecord:
    owner = _text(row.get("donor_id")) or (donor_id or "")
    rules.require(owner, "donor_id")
    completed = row.get("completed_at") or row.get("pickup_date")
    return DonationRecord(
        donor_id=owner,
        item_name=_text(row.get("itemname")),
        quantity=rules.require_positive(row.get("number_items"), "number_items"),
        donated_at=_moment(row.get("donation_date"), "donation_date"),
        completed_at=_moment(completed, "completed_at") if completed else None,
    )


def profile_from_payload(row: dict[str, Any]) -> DonorProfile:
    donor_id = _text(row.get("donor_id"))
    rules.require(donor_id, "donor_id")
    return DonorProfile(
        donor_id=donor_id,
        name=_text(row.get("full_name")) or donor_id,
        address=_text(row.get("address")) or None,
    )


def leaderboard_row_from_payload(row: dict[str, Any]) -> LeaderboardRow:
    donor_id = _text(row.get("donor_id"))
    rules.require(donor_id, "donor_id")
    items = rules.require_non_negative(row.get("items_donated") or 0, "items_donated")
    return LeaderboardRow(
        donor_id=donor_id,
        display_name=_text(row.get("full_name")) or donor_id,
        items_donated=items,
    )


def normalize_status(value: Any) -> RequestStatus:
    text = _text(value).lower()
    if not text:
        return RequestStatus.PENDING
    rules.validate_enum(text, [s.value for s in RequestStatus], "status")
    return RequestStatus(text)


def normalize_condition(value: Any) -> ItemCondition:
    text = _text(value).lower().replace("-", "_").replace(" ", "_")
    rules.require(text, "condition")
    rules.validate_enum(text, [c.value for c in ItemCondition], "condition")
    return ItemCondition(text)


def normalize_time_slot(value: Any) -> TimeSlot:
    text = _text(value)
    rules.require(text, "pickup_time")
    rules.validate_enum(text, [slot.value for slot in TimeSlot], "pickup_time")
    return TimeSlot(text)


def _decision(status: RequestStatus, row: dict[str, Any]) -> Decision | None:
    if status is RequestStatus.PENDING:
        return None
    organization_id = _text(row.get("organisation_id") or row.get("organization_id"))
    if status is RequestStatus.DECLINED:
        return Declined(organization_id=organization_id)
    scheduled_date = rules.parse_date(_text(row.get("pickup_date")) or None, "pickup_date")
    if scheduled_date is None:
        raise ValidationError("Accepted requests must carry pickup_date and pickup_time.")
    return Accepted(
        organization_id=organization_id,
        scheduled_date=scheduled_date,
        scheduled_time=normalize_time_slot(row.get("pickup_time")),
    )


def _moment(value: Any, field: str) -> datetime:
    text = _text(value)
    rules.require(text, field)
    if len(text) == 10:
        day = rules.parse_date(text, field)
        return datetime.combine(day, time.min)
    return rules.parse_datetime(text, field)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
