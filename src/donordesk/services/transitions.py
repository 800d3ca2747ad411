from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Protocol

from donordesk.adapters.api.client import RemoteFailure
from donordesk.adapters.api.mapping import normalize_time_slot
from donordesk.domain import rules
from donordesk.domain.models import Accepted, Declined, PickupRequest
from donordesk.domain.rules import InvalidTransition, RequestNotFound, ValidationError
from donordesk.domain.stages import TimeSlot
from donordesk.services.events import EventLogger
from donordesk.services.utils import today as current_day
from donordesk.store.requests import RequestSnapshot, RequestStore


class DecisionSubmitter(Protocol):
    def submit_accept(
        self, donor_id: str, organization_id: str, scheduled_date: date, scheduled_time: TimeSlot
    ) -> None: ...

    def submit_decline(self, donor_id: str, organization_id: str) -> None: ...


def accept(
    request: PickupRequest | None,
    organization_id: str,
    scheduled_date: date | str | None,
    scheduled_time: TimeSlot | str | None,
    today: date | None = None,
) -> PickupRequest:
    pending = _require_pending(request, "accept")
    rules.require(organization_id, "organization_id")
    day = rules.parse_date(scheduled_date, "scheduled_date")
    if day is None:
        raise ValidationError("scheduled_date is required.")
    if day < (today or current_day()):
        raise ValidationError("scheduled_date cannot be in the past.")
    slot = scheduled_time if isinstance(scheduled_time, TimeSlot) else _time_slot(scheduled_time)
    return replace(
        pending,
        decision=Accepted(organization_id=organization_id, scheduled_date=day, scheduled_time=slot),
    )


def decline(request: PickupRequest | None, organization_id: str) -> PickupRequest:
    pending = _require_pending(request, "decline")
    rules.require(organization_id, "organization_id")
    return replace(pending, decision=Declined(organization_id=organization_id))


def _require_pending(request: PickupRequest | None, action: str) -> PickupRequest:
    if request is None:
        raise RequestNotFound(f"Cannot {action}: pickup request not found.")
    if not request.is_pending:
        raise InvalidTransition(
            f"Cannot {action} request for donor {request.donor_id}: already {request.status.value}."
        )
    return request


def _time_slot(value: str | None) -> TimeSlot:
    try:
        return normalize_time_slot(value)
    except ValidationError as exc:
        raise ValidationError(f"scheduled_time must be one of: {', '.join(s.value for s in TimeSlot)}") from exc


class TransitionEngine:
    """Applies accept/decline decisions to the store.

    Each transition runs read, validate, submit and commit while holding the
    donor's lock. The store changes only after the submitter returns.
    """

    def __init__(
        self,
        store: RequestStore,
        submitter: DecisionSubmitter,
        logger: EventLogger | None = None,
    ) -> None:
        self.store = store
        self.submitter = submitter
        self.logger = logger
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    def accept(
        self,
        donor_id: str,
        organization_id: str,
        scheduled_date: date | str | None,
        scheduled_time: TimeSlot | str | None,
        today: date | None = None,
    ) -> RequestSnapshot:
        with self._lock_for(donor_id):
            current = self.store.get(donor_id)
            try:
                updated = accept(current, organization_id, scheduled_date, scheduled_time, today=today)
            except (ValidationError, InvalidTransition) as exc:
                self._log("rejected", donor_id, organization_id, str(exc))
                raise
            try:
                self.submitter.submit_accept(
                    donor_id, organization_id, updated.scheduled_date, updated.scheduled_time
                )
            except RemoteFailure as exc:
                self._log("remote_failure", donor_id, organization_id, str(exc))
                raise
            snapshot = self._commit(current, updated, organization_id)
            self._log("accepted", donor_id, organization_id, None)
            return snapshot

    def decline(self, donor_id: str, organization_id: str) -> RequestSnapshot:
        with self._lock_for(donor_id):
            current = self.store.get(donor_id)
            try:
                updated = decline(current, organization_id)
            except (ValidationError, InvalidTransition) as exc:
                self._log("rejected", donor_id, organization_id, str(exc))
                raise
            try:
                self.submitter.submit_decline(donor_id, organization_id)
            except RemoteFailure as exc:
                self._log("remote_failure", donor_id, organization_id, str(exc))
                raise
            snapshot = self._commit(current, updated, organization_id)
            self._log("declined", donor_id, organization_id, None)
            return snapshot

    @contextmanager
    def _lock_for(self, donor_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock, users = self._locks.get(donor_id) or (threading.Lock(), 0)
            self._locks[donor_id] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                lock, users = self._locks[donor_id]
                if users == 1:
                    del self._locks[donor_id]
                else:
                    self._locks[donor_id] = (lock, users - 1)

    def _commit(self, current: PickupRequest, updated: PickupRequest, organization_id: str) -> RequestSnapshot:
        try:
            return self.store.commit(current, updated)
        except InvalidTransition as exc:
            self._log("stale_commit", updated.donor_id, organization_id, str(exc))
            raise

    def _log(self, event_type: str, donor_id: str, organization_id: str, reason: str | None) -> None:
        if self.logger is None:
            return
        self.logger.log(
            event_type=event_type,
            donor_id=donor_id,
            organization_id=organization_id,
            reason=reason,
        )
