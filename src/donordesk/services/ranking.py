from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from donordesk.domain import rules
from donordesk.domain.models import LeaderboardEntry
from donordesk.domain.stages import LeaderboardOrder, PodiumBadge, Tier
from donordesk.services.utils import casefold_key

# Canonical tier table, ascending by minimum items donated.
TIER_TABLE: tuple[tuple[int, Tier], ...] = (
    (1, Tier.BRONZE),
    (3, Tier.SILVER),
    (5, Tier.GOLD),
    (10, Tier.SAPPHIRE),
    (15, Tier.RUBY),
    (20, Tier.EMERALD),
    (25, Tier.AMETHYST),
    (30, Tier.PEARL),
    (40, Tier.OBSIDIAN),
    (50, Tier.DIAMOND),
)


class Rankable(Protocol):
    @property
    def donor_id(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    @property
    def items_donated(self) -> int: ...


def tier_for(items_donated: int) -> Tier | None:
    tier = None
    for threshold, candidate in TIER_TABLE:
        if items_donated < threshold:
            break
        tier = candidate
    return tier


def podium_badge(rank: int) -> PodiumBadge | None:
    if rank == 1:
        return PodiumBadge.CROWN
    if rank in (2, 3):
        return PodiumBadge.MEDAL
    return None


def leaderboard_order_key(donor: Rankable) -> tuple[int, str, str]:
    return (-donor.items_donated, casefold_key(donor.display_name), donor.donor_id)


def rank_donors(donors: Iterable[Rankable]) -> list[LeaderboardEntry]:
    ordered = sorted(donors, key=leaderboard_order_key)
    return [
        LeaderboardEntry(rank=position, summary=donor, tier=tier_for(donor.items_donated))
        for position, donor in enumerate(ordered, start=1)
    ]


def search_leaderboard(
    entries: Iterable[LeaderboardEntry],
    term: str | None,
    order: LeaderboardOrder | str = LeaderboardOrder.ITEMS,
) -> list[LeaderboardEntry]:
    """Filter ranked entries by display name and reorder them for display.

    Entries keep the rank they were given over the full board, whatever the
    filter or display order.
    """
    if not isinstance(order, LeaderboardOrder):
        rules.validate_enum(order, [o.value for o in LeaderboardOrder], "order")
        order = LeaderboardOrder(order)
    needle = casefold_key(term).strip()
    matches = [entry for entry in entries if not needle or needle in casefold_key(entry.display_name)]
    if order is LeaderboardOrder.NAME:
        matches.sort(key=lambda entry: (casefold_key(entry.display_name), entry.donor_id))
    else:
        matches.sort(key=lambda entry: entry.rank)
    return matches
