import threading
from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from donordesk.adapters.api.client import RemoteFailure
from donordesk.domain.models import PickupRequest
from donordesk.domain.rules import InvalidTransition, RequestNotFound, ValidationError
from donordesk.domain.stages import ItemCondition, RequestStatus, TimeSlot
from donordesk.services import transitions
from donordesk.services.events import EventLogger
from donordesk.services.transitions import TransitionEngine
from donordesk.store.requests import RequestStore

TODAY = date(2026, 3, 10)
SLOT = "9:00 AM - 11:00 AM"


class FakeSubmitter:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = []

    def submit_accept(self, donor_id, organization_id, scheduled_date, scheduled_time):
        self.calls.append(("accept", donor_id, organization_id, scheduled_date, scheduled_time))
        if self.fail:
            raise RemoteFailure("Donation service error 500: boom", status_code=500)

    def submit_decline(self, donor_id, organization_id):
        self.calls.append(("decline", donor_id, organization_id))
        if self.fail:
            raise RemoteFailure("Donation service error 503: down", status_code=503)


def _request(donor_id: str = "x") -> PickupRequest:
    return PickupRequest(
        donor_id=donor_id,
        item_name="Winter coats",
        condition=ItemCondition.GOOD,
        quantity=3,
        submitted_at=datetime(2026, 3, 1, 12, 0),
    )


def test_accept_sets_schedule() -> None:
    accepted = transitions.accept(_request(), "o1", "2026-03-12", SLOT, today=TODAY)
    assert accepted.status is RequestStatus.ACCEPTED
    assert accepted.organization_id == "o1"
    assert accepted.scheduled_date == date(2026, 3, 12)
    assert accepted.scheduled_time is TimeSlot.MORNING


def test_accept_allows_today() -> None:
    accepted = transitions.accept(_request(), "o1", TODAY, TimeSlot.EVENING, today=TODAY)
    assert accepted.scheduled_date == TODAY


def test_accept_does_not_mutate_input() -> None:
    original = _request()
    transitions.accept(original, "o1", TODAY, SLOT, today=TODAY)
    assert original.status is RequestStatus.PENDING
    assert original.scheduled_date is None


@pytest.mark.parametrize(
    ("scheduled_date", "scheduled_time"),
    [
        (TODAY - timedelta(days=1), SLOT),
        (None, SLOT),
        ("03/12/2026", SLOT),
        (TODAY, "8:00 AM - 9:00 AM"),
        (TODAY, None),
    ],
)
def test_accept_rejects_bad_schedule(scheduled_date, scheduled_time) -> None:
    with pytest.raises(ValidationError):
        transitions.accept(_request(), "o1", scheduled_date, scheduled_time, today=TODAY)


def test_accept_requires_organization() -> None:
    with pytest.raises(ValidationError):
        transitions.accept(_request(), " ", TODAY, SLOT, today=TODAY)


def test_missing_request_is_not_found() -> None:
    with pytest.raises(RequestNotFound):
        transitions.decline(None, "o1")


def test_decided_request_cannot_be_decided_again() -> None:
    accepted = transitions.accept(_request(), "o1", TODAY, SLOT, today=TODAY)
    declined = transitions.decline(_request(), "o1")
    with pytest.raises(InvalidTransition):
        transitions.decline(accepted, "o1")
    with pytest.raises(InvalidTransition):
        transitions.accept(accepted, "o1", TODAY, SLOT, today=TODAY)
    with pytest.raises(InvalidTransition):
        transitions.accept(declined, "o1", TODAY, SLOT, today=TODAY)
    with pytest.raises(InvalidTransition):
        transitions.decline(declined, "o1")


def test_status_check_precedes_schedule_validation() -> None:
    declined = transitions.decline(_request(), "o1")
    with pytest.raises(InvalidTransition):
        transitions.accept(declined, "o1", TODAY - timedelta(days=5), "nope", today=TODAY)


def test_engine_commits_after_remote_success(tmp_path) -> None:
    store = RequestStore([_request()])
    submitter = FakeSubmitter()
    logger = EventLogger(path=tmp_path / "events.jsonl", workspace="demo")
    engine = TransitionEngine(store, submitter, logger=logger)

    snapshot = engine.accept("x", "o1", "2026-03-11", SLOT, today=TODAY)

    assert snapshot.get("x").status is RequestStatus.ACCEPTED
    assert store.get("x").scheduled_time is TimeSlot.MORNING
    assert submitter.calls == [("accept", "x", "o1", date(2026, 3, 11), TimeSlot.MORNING)]
    assert '"event_type": "accepted"' in (tmp_path / "events.jsonl").read_text()


def test_engine_past_date_fails_without_remote_call() -> None:
    store = RequestStore([_request()])
    submitter = FakeSubmitter()
    engine = TransitionEngine(store, submitter)
    before = store.snapshot()

    with pytest.raises(ValidationError):
        engine.accept("x", "o1", TODAY - timedelta(days=1), SLOT, today=TODAY)

    assert submitter.calls == []
    assert store.snapshot() == before


def test_engine_decline_after_accept_fails() -> None:
    store = RequestStore([_request()])
    submitter = FakeSubmitter()
    engine = TransitionEngine(store, submitter)
    engine.accept("x", "o1", TODAY, SLOT, today=TODAY)
    version = store.version

    with pytest.raises(InvalidTransition):
        engine.decline("x", "o1")

    assert store.get("x").status is RequestStatus.ACCEPTED
    assert store.version == version
    assert len(submitter.calls) == 1


def test_engine_second_accept_is_rejected() -> None:
    store = RequestStore([_request()])
    submitter = FakeSubmitter()
    engine = TransitionEngine(store, submitter)
    engine.accept("x", "o1", TODAY, SLOT, today=TODAY)

    with pytest.raises(InvalidTransition):
        engine.accept("x", "o2", TODAY, TimeSlot.EVENING, today=TODAY)

    assert store.get("x").organization_id == "o1"
    assert store.get("x").scheduled_time is TimeSlot.MORNING


def test_engine_remote_failure_leaves_store_unchanged(tmp_path) -> None:
    store = RequestStore([_request()])
    logger = EventLogger(path=tmp_path / "events.jsonl", workspace="demo")
    engine = TransitionEngine(store, FakeSubmitter(fail=True), logger=logger)
    before = store.snapshot()

    with pytest.raises(RemoteFailure):
        engine.decline("x", "o1")

    assert store.snapshot() == before
    assert store.get("x").is_pending
    assert '"event_type": "remote_failure"' in (tmp_path / "events.jsonl").read_text()


def test_engine_unknown_donor() -> None:
    engine = TransitionEngine(RequestStore(), FakeSubmitter())
    with pytest.raises(RequestNotFound):
        engine.decline("ghost", "o1")


class SlowSubmitter(FakeSubmitter):
    """Blocks inside the remote call until the test releases it."""

    def __init__(self, on_submit=None) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()
        self.on_submit = on_submit

    def submit_accept(self, donor_id, organization_id, scheduled_date, scheduled_time):
        super().submit_accept(donor_id, organization_id, scheduled_date, scheduled_time)
        self._wait()

    def submit_decline(self, donor_id, organization_id):
        super().submit_decline(donor_id, organization_id)
        self._wait()

    def _wait(self) -> None:
        self.entered.set()
        if self.on_submit is not None:
            self.on_submit()
        assert self.release.wait(timeout=5)


def test_concurrent_accept_and_decline_decide_once() -> None:
    store = RequestStore([_request()])
    submitter = SlowSubmitter()
    engine = TransitionEngine(store, submitter)
    errors = []

    def run(action) -> None:
        try:
            action()
        except InvalidTransition as exc:
            errors.append(exc)

    accepting = threading.Thread(
        target=run, args=(lambda: engine.accept("x", "o1", TODAY, SLOT, today=TODAY),)
    )
    declining = threading.Thread(target=run, args=(lambda: engine.decline("x", "o2"),))
    accepting.start()
    assert submitter.entered.wait(timeout=5)
    declining.start()
    submitter.release.set()
    accepting.join(timeout=5)
    declining.join(timeout=5)

    assert len(submitter.calls) == 1
    assert submitter.calls[0][0] == "accept"
    assert len(errors) == 1
    assert store.get("x").status is RequestStatus.ACCEPTED
    assert store.get("x").organization_id == "o1"
    assert engine._locks == {}


def test_reload_during_remote_call_fails_commit(tmp_path) -> None:
    store = RequestStore([_request()])
    refreshed = replace(_request(), quantity=9)
    submitter = SlowSubmitter(on_submit=lambda: store.load([refreshed]))
    submitter.release.set()
    logger = EventLogger(path=tmp_path / "events.jsonl", workspace="demo")
    engine = TransitionEngine(store, submitter, logger=logger)

    with pytest.raises(InvalidTransition):
        engine.accept("x", "o1", TODAY, SLOT, today=TODAY)

    assert store.get("x") == refreshed
    assert store.get("x").is_pending
    assert store.version == 2
    log = (tmp_path / "events.jsonl").read_text()
    assert '"event_type": "stale_commit"' in log
    assert '"event_type": "accepted"' not in log


def test_donor_locks_are_released_after_transitions() -> None:
    store = RequestStore([_request("a"), _request("b")])
    engine = TransitionEngine(store, FakeSubmitter())
    engine.accept("a", "o1", TODAY, SLOT, today=TODAY)
    with pytest.raises(InvalidTransition):
        engine.decline("a", "o1")
    with pytest.raises(RequestNotFound):
        engine.decline("ghost", "o1")
    engine.decline("b", "o1")
    assert engine._locks == {}
