from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from donordesk.domain.models import PickupRequest
from donordesk.domain.rules import InvalidTransition, RequestNotFound


@dataclass(frozen=True)
class RequestSnapshot:
    version: int
    requests: tuple[PickupRequest, ...]

    def get(self, donor_id: str) -> PickupRequest | None:
        for request in self.requests:
            if request.donor_id == donor_id:
                return request
        return None

    def __iter__(self) -> Iterator[PickupRequest]:
        return iter(self.requests)

    def __len__(self) -> int:
        return len(self.requests)


class RequestStore:
    """In-memory arena of pickup requests keyed by donor id.

    Every write bumps ``version``. Readers get immutable snapshots, so
    computations over the store never see a write mid-flight.
    """

    def __init__(self, records: Iterable[PickupRequest] | None = None) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, PickupRequest] = {}
        self._version = 0
        if records is not None:
            self.load(records)

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def load(self, records: Iterable[PickupRequest]) -> RequestSnapshot:
        arena: dict[str, PickupRequest] = {}
        for record in records:
            # Later rows win: decided collections are fetched after the active one.
            arena[record.donor_id] = record
        with self._lock:
            self._records = arena
            self._version += 1
            return self._snapshot_locked()

    def get(self, donor_id: str) -> PickupRequest | None:
        with self._lock:
            return self._records.get(donor_id)

    def snapshot(self) -> RequestSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def commit(self, expected: PickupRequest, updated: PickupRequest) -> RequestSnapshot:
        if expected.donor_id != updated.donor_id:
            raise ValueError("commit cannot change the donor id of a request.")
        with self._lock:
            current = self._records.get(expected.donor_id)
            if current is None:
                raise RequestNotFound(f"No pickup request for donor {expected.donor_id}.")
            if current != expected:
                raise InvalidTransition(
                    f"Pickup request for donor {expected.donor_id} changed before commit."
                )
            self._records[updated.donor_id] = updated
            self._version += 1
            return self._snapshot_locked()

    def _snapshot_locked(self) -> RequestSnapshot:
        return RequestSnapshot(version=self._version, requests=tuple(self._records.values()))
