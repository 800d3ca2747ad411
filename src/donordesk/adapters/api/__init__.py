from donordesk.adapters.api.client import DonationApiClient, RemoteFailure

__all__ = ["DonationApiClient", "RemoteFailure"]
