from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from donordesk.domain.stages import ItemCondition, RequestStatus, Tier, TimeSlot

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class Accepted:
    organization_id: str
    scheduled_date: date
    scheduled_time: TimeSlot


@dataclass(frozen=True)
class Declined:
    organization_id: str


Decision = Accepted | Declined


@dataclass(frozen=True)
class PickupRequest:
    """A donor's pending or decided pickup request.

    Scheduling details live on the ``Accepted`` decision, so a request carries
    a scheduled date and time exactly when it has been accepted.
    """

    donor_id: str
    item_name: str
    condition: ItemCondition
    quantity: int
    submitted_at: datetime
    notes: str | None = None
    decision: Decision | None = None

    @property
    def status(self) -> RequestStatus:
        if isinstance(self.decision, Accepted):
            return RequestStatus.ACCEPTED
        if isinstance(self.decision, Declined):
            return RequestStatus.DECLINED
        return RequestStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.decision is None

    @property
    def organization_id(self) -> str | None:
        return self.decision.organization_id if self.decision else None

    @property
    def scheduled_date(self) -> date | None:
        return self.decision.scheduled_date if isinstance(self.decision, Accepted) else None

    @property
    def scheduled_time(self) -> TimeSlot | None:
        return self.decision.scheduled_time if isinstance(self.decision, Accepted) else None


@dataclass(frozen=True)
class DonationRecord:
    donor_id: str
    item_name: str
    quantity: int
    donated_at: datetime
    completed_at: datetime | None = None

    @property
    def effective_date(self) -> date:
        moment = self.completed_at or self.donated_at
        return moment.date()


@dataclass(frozen=True)
class DonorSummary:
    donor_id: str
    display_name: str
    total_donations: int
    items_donated: int
    last_donation_date: str
    impact_score: int


@dataclass(frozen=True)
class LeaderboardRow:
    donor_id: str
    display_name: str
    items_donated: int


@dataclass(frozen=True)
class DonorProfile:
    donor_id: str
    name: str
    address: str | None = None


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    summary: DonorSummary | LeaderboardRow
    tier: Tier | None

    @property
    def donor_id(self) -> str:
        return self.summary.donor_id

    @property
    def display_name(self) -> str:
        return self.summary.display_name

    @property
    def items_donated(self) -> int:
        return self.summary.items_donated
