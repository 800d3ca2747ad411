from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

import requests

from donordesk.adapters.api import mapping
from donordesk.domain.models import DonationRecord, DonorProfile, LeaderboardRow, PickupRequest
from donordesk.domain.stages import TimeSlot


class RemoteFailure(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DonationApiClient:
    """Client for the remote donation service.

    Every non-2xx response and every transport error surfaces as
    ``RemoteFailure``; nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout: float = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if api_token:
            self.session.headers.update({"Authorization": f"Bearer {api_token}"})

    def list_pickup_requests(self, organization_id: str) -> list[PickupRequest]:
        data = self._request("GET", "/organisationPickup", params={"organizations_id": organization_id})
        return [mapping.request_from_payload(row) for row in _rows(data)]

    def list_accepted_requests(self) -> list[PickupRequest]:
        data = self._request("GET", "/req_accept")
        return [mapping.request_from_payload(row, default_status="accepted") for row in _rows(data)]

    def list_declined_requests(self) -> list[PickupRequest]:
        data = self._request("GET", "/req_decline")
        return [mapping.request_from_payload(row, default_status="declined") for row in _rows(data)]

    def fetch_donor_directory(self, donor_ids: Iterable[str]) -> dict[str, DonorProfile]:
        ids = sorted(set(donor_ids))
        if not ids:
            return {}
        data = self._request("GET", "/donorInfo", params={"donor_ids": ",".join(ids)})
        profiles = [mapping.profile_from_payload(row) for row in _rows(data)]
        return {profile.donor_id: profile for profile in profiles}

    def fetch_donor_profile(self, donor_id: str) -> DonorProfile:
        data = self._request("GET", "/donordetails", params={"donor_id": donor_id})
        if not isinstance(data, dict):
            raise RemoteFailure("Donor details response must be an object.")
        return mapping.profile_from_payload({"donor_id": donor_id, **data})

    def fetch_donation_history(self, donor_id: str) -> list[DonationRecord]:
        data = self._request("GET", "/donationDetails", params={"donor_id": donor_id})
        return [mapping.donation_from_payload(row, donor_id=donor_id) for row in _rows(data)]

    def fetch_leaderboard(self) -> list[LeaderboardRow]:
        data = self._request("GET", "/leaderBoard")
        return [mapping.leaderboard_row_from_payload(row) for row in _rows(data)]

    def submit_accept(
        self,
        donor_id: str,
        organization_id: str,
        scheduled_date: date,
        scheduled_time: TimeSlot,
    ) -> None:
        self._request(
            "POST",
            "/acceptRequest",
            json={
                "donor_id": donor_id,
                "organisation_id": organization_id,
                "pickup_date": scheduled_date.isoformat(),
                "pickup_time": scheduled_time.value,
            },
        )

    def submit_decline(self, donor_id: str, organization_id: str) -> None:
        self._request(
            "POST",
            "/declineRequest",
            json={"donor_id": donor_id, "organisation_id": organization_id},
        )

    def _request(self, method: str, path: str, params: dict[str, Any] | None = None, json: Any | None = None):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RemoteFailure(f"Request to {path} failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise RemoteFailure(
                f"Donation service error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteFailure(f"Donation service returned invalid JSON for {path}.") from exc


def _rows(data: Any) -> list[dict[str, Any]]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise RemoteFailure("Expected a list of records from the donation service.")
    return [row for row in data if isinstance(row, dict)]
