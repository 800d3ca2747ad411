from donordesk.domain.models import (
    Accepted,
    Declined,
    Decision,
    DonationRecord,
    DonorProfile,
    DonorSummary,
    LeaderboardEntry,
    LeaderboardRow,
    PickupRequest,
)
from donordesk.domain.rules import InvalidTransition, RequestNotFound, ValidationError

__all__ = [
    "Accepted",
    "Declined",
    "Decision",
    "DonationRecord",
    "DonorProfile",
    "DonorSummary",
    "InvalidTransition",
    "LeaderboardEntry",
    "LeaderboardRow",
    "PickupRequest",
    "RequestNotFound",
    "ValidationError",
]
