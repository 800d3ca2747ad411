from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from donordesk.adapters.api.client import RemoteFailure
from donordesk.domain.models import (
    DonationRecord,
    DonorProfile,
    DonorSummary,
    LeaderboardEntry,
    LeaderboardRow,
    PickupRequest,
)
from donordesk.domain.rules import InvalidTransition, ValidationError
from donordesk.domain.stages import LeaderboardOrder, Tab, TimeSlot
from donordesk.services import aggregation, ranking
from donordesk.services.events import EventLogger
from donordesk.services.partition import partition
from donordesk.services.transitions import DecisionSubmitter, TransitionEngine
from donordesk.store.requests import RequestSnapshot, RequestStore


class DonationService(DecisionSubmitter, Protocol):
    def list_pickup_requests(self, organization_id: str) -> list[PickupRequest]: ...

    def list_accepted_requests(self) -> list[PickupRequest]: ...

    def list_declined_requests(self) -> list[PickupRequest]: ...

    def fetch_donor_directory(self, donor_ids: Iterable[str]) -> dict[str, DonorProfile]: ...

    def fetch_donor_profile(self, donor_id: str) -> DonorProfile: ...

    def fetch_donation_history(self, donor_id: str) -> list[DonationRecord]: ...

    def fetch_leaderboard(self) -> list[LeaderboardRow]: ...


@dataclass(frozen=True)
class TransitionOutcome:
    ok: bool
    snapshot: RequestSnapshot
    reason: str | None = None
    error_kind: str | None = None


@dataclass(frozen=True)
class PickupView:
    tab: Tab
    requests: tuple[PickupRequest, ...]
    counts: dict[Tab, int]
    version: int


class PickupDesk:
    """Organization-side view over pickup requests and the donor leaderboard."""

    def __init__(
        self,
        client: DonationService,
        organization_id: str | None,
        store: RequestStore | None = None,
        logger: EventLogger | None = None,
    ) -> None:
        self.client = client
        self.organization_id = organization_id
        self.store = store or RequestStore()
        self.logger = logger
        self.engine = TransitionEngine(self.store, client, logger=logger)
        self.donor_directory: dict[str, DonorProfile] = {}

    def refresh(self) -> RequestSnapshot:
        if not self.organization_id:
            raise ValidationError("organization_id is required to load pickup requests.")
        records = [
            *self.client.list_pickup_requests(self.organization_id),
            *self.client.list_accepted_requests(),
            *self.client.list_declined_requests(),
        ]
        directory = self.client.fetch_donor_directory(record.donor_id for record in records)
        snapshot = self.store.load(records)
        self.donor_directory = directory
        if self.logger is not None:
            self.logger.log(
                event_type="refreshed",
                organization_id=self.organization_id,
                reason=f"version={snapshot.version} requests={len(snapshot)}",
            )
        return snapshot

    def view(self, tab: Tab | str = Tab.ACTIVE) -> PickupView:
        snapshot = self.store.snapshot()
        parts = partition(snapshot)
        selected = Tab(tab)
        return PickupView(
            tab=selected,
            requests=parts.select(selected),
            counts=parts.counts,
            version=snapshot.version,
        )

    def accept(
        self,
        donor_id: str,
        scheduled_date: date | str | None,
        scheduled_time: TimeSlot | str | None,
        today: date | None = None,
    ) -> TransitionOutcome:
        return self._run(
            lambda: self.engine.accept(
                donor_id, self.organization_id or "", scheduled_date, scheduled_time, today=today
            )
        )

    def decline(self, donor_id: str) -> TransitionOutcome:
        return self._run(lambda: self.engine.decline(donor_id, self.organization_id or ""))

    def donor_name(self, donor_id: str) -> str:
        profile = self.donor_directory.get(donor_id)
        return profile.name if profile else "Unknown Donor"

    def donor_summary(self, donor_id: str, category: str | None = None) -> DonorSummary:
        profile = self.client.fetch_donor_profile(donor_id)
        history = self.client.fetch_donation_history(donor_id)
        return aggregation.summarize_donor(donor_id, profile.name, history, item_name=category)

    def donor_categories(self, donor_id: str) -> list[str]:
        return aggregation.donation_categories(self.client.fetch_donation_history(donor_id))

    def leaderboard(
        self,
        search: str | None = None,
        order: LeaderboardOrder | str = LeaderboardOrder.ITEMS,
    ) -> list[LeaderboardEntry]:
        entries = ranking.rank_donors(self.client.fetch_leaderboard())
        return ranking.search_leaderboard(entries, search, order=order)

    def local_leaderboard(self) -> list[LeaderboardEntry]:
        records = aggregation.records_from_requests(self.store.snapshot())
        names = {donor_id: profile.name for donor_id, profile in self.donor_directory.items()}
        return ranking.rank_donors(aggregation.summarize_all(records, names))

    def _run(self, operation) -> TransitionOutcome:
        try:
            snapshot = operation()
        except ValidationError as exc:
            return self._failed(exc, "validation")
        except InvalidTransition as exc:
            return self._failed(exc, "invalid_transition")
        except RemoteFailure as exc:
            return self._failed(exc, "remote_failure")
        return TransitionOutcome(ok=True, snapshot=snapshot)

    def _failed(self, exc: Exception, kind: str) -> TransitionOutcome:
        return TransitionOutcome(
            ok=False,
            snapshot=self.store.snapshot(),
            reason=str(exc),
            error_kind=kind,
        )
