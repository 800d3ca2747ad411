from __future__ import annotations

from enum import Enum


class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class ItemCondition(str, Enum):
    NEW = "new"
    LIKE_NEW = "like_new"
    GOOD = "good"
    FAIR = "fair"


class TimeSlot(str, Enum):
    MORNING = "9:00 AM - 11:00 AM"
    MIDDAY = "11:00 AM - 1:00 PM"
    EARLY_AFTERNOON = "1:00 PM - 3:00 PM"
    LATE_AFTERNOON = "3:00 PM - 5:00 PM"
    EVENING = "5:00 PM - 7:00 PM"


class Tab(str, Enum):
    ACTIVE = "active"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class LeaderboardOrder(str, Enum):
    ITEMS = "items"
    NAME = "name"


class Tier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    SAPPHIRE = "sapphire"
    RUBY = "ruby"
    EMERALD = "emerald"
    AMETHYST = "amethyst"
    PEARL = "pearl"
    OBSIDIAN = "obsidian"
    DIAMOND = "diamond"


class PodiumBadge(str, Enum):
    CROWN = "crown"
    MEDAL = "medal"
