from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from donordesk.domain.models import PickupRequest
from donordesk.domain.stages import RequestStatus, Tab

_TAB_BY_STATUS = {
    RequestStatus.PENDING: Tab.ACTIVE,
    RequestStatus.ACCEPTED: Tab.ACCEPTED,
    RequestStatus.DECLINED: Tab.DECLINED,
}


@dataclass(frozen=True)
class Partition:
    active: tuple[PickupRequest, ...]
    accepted: tuple[PickupRequest, ...]
    declined: tuple[PickupRequest, ...]

    def select(self, tab: Tab | str) -> tuple[PickupRequest, ...]:
        return getattr(self, Tab(tab).value)

    @property
    def counts(self) -> dict[Tab, int]:
        return {tab: len(self.select(tab)) for tab in Tab}

    @property
    def total(self) -> int:
        return len(self.active) + len(self.accepted) + len(self.declined)


def partition(requests: Iterable[PickupRequest]) -> Partition:
    buckets: dict[Tab, list[PickupRequest]] = {tab: [] for tab in Tab}
    for request in requests:
        buckets[_TAB_BY_STATUS[request.status]].append(request)
    return Partition(
        active=tuple(buckets[Tab.ACTIVE]),
        accepted=tuple(buckets[Tab.ACCEPTED]),
        declined=tuple(buckets[Tab.DECLINED]),
    )
