"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


# State machine: maps current status -> set of valid next statuses
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.OPEN: {RideStatus.CLOSED},
    RideStatus.CLOSED: set(),
}


class MatchQuality(str, enum.Enum):
    """Match tiers, declared from most to least desirable."""

    PERFECT = "perfect"
    GOOD = "good"
    NEARBY = "nearby"

    @property
    def rank(self) -> int:
        return list(MatchQuality).index(self)


class VerificationStatus(str, enum.Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
