"""
Tiered Ride Matching
====================

Every open ride with enough free seats is scored against the rider's
query and dropped into exactly one tier:

1. **perfect** -- pickup <= 5 km, drop <= 5 km, time gap <= 60 min
2. **good**    -- pickup <= 15 km, drop <= 15 km, time gap <= 180 min
3. **nearby**  -- everything else with the seats (catch-all, no ceiling)

A missing preferred time never penalises a ride.  A ride with unusable
coordinates gets ``inf`` distances and lands in *nearby*; one bad record
never aborts the batch.

Ordering
--------
Within a tier rides are sorted by ``pickup + drop`` distance, ascending.
``list.sort`` is stable, so exact ties keep candidate order.

Complexity
----------
Let N = candidates.  Scoring is O(N), sorting O(N log N) per tier.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .distance import point_distance_km
from .entities import Ride, RideRequest
from .enums import MatchQuality


@dataclass(frozen=True)
class MatchThresholds:
    perfect_radius_km: float = 5.0
    perfect_time_window_minutes: float = 60.0
    good_radius_km: float = 15.0
    good_time_window_minutes: float = 180.0


DEFAULT_THRESHOLDS = MatchThresholds()


@dataclass(frozen=True)
class RideMatchMetrics:
    pickup_distance_km: float
    drop_distance_km: float
    time_diff_minutes: Optional[float] = None

    @property
    def combined_distance_km(self) -> float:
        return self.pickup_distance_km + self.drop_distance_km


@dataclass(frozen=True)
class RideMatch:
    ride: Ride
    match_quality: MatchQuality
    metrics: RideMatchMetrics


@dataclass
class RideMatchResponse:
    matches: dict[MatchQuality, list[RideMatch]] = field(
        default_factory=lambda: {quality: [] for quality in MatchQuality}
    )

    @property
    def totals(self) -> dict[MatchQuality, int]:
        return {quality: len(items) for quality, items in self.matches.items()}

    @property
    def total(self) -> int:
        return sum(self.totals.values())


# ── Scoring ───────────────────────────────────────────────────────────


def time_diff_minutes(
    preferred_time: Optional[datetime], ride: Ride
) -> Optional[float]:
    """
    Absolute gap between the preferred instant and the ride's departure.

    ``None`` when no preference was given.  ``inf`` when a preference was
    given but the ride's schedule cannot be parsed.
    """
    if preferred_time is None:
        return None
    departure = ride.departure_at
    if departure is None:
        return math.inf
    return abs((preferred_time - departure).total_seconds()) / 60.0


def compute_metrics(request: RideRequest, ride: Ride) -> RideMatchMetrics:
    return RideMatchMetrics(
        pickup_distance_km=point_distance_km(request.pickup, ride.start),
        drop_distance_km=point_distance_km(request.drop, ride.destination),
        time_diff_minutes=time_diff_minutes(request.preferred_time, ride),
    )


def _within(
    metrics: RideMatchMetrics, radius_km: float, window_minutes: float
) -> bool:
    on_time = (
        metrics.time_diff_minutes is None
        or metrics.time_diff_minutes <= window_minutes
    )
    return (
        metrics.pickup_distance_km <= radius_km
        and metrics.drop_distance_km <= radius_km
        and on_time
    )


def classify_match(
    metrics: RideMatchMetrics,
    thresholds: MatchThresholds = DEFAULT_THRESHOLDS,
) -> MatchQuality:
    if _within(
        metrics,
        thresholds.perfect_radius_km,
        thresholds.perfect_time_window_minutes,
    ):
        return MatchQuality.PERFECT
    if _within(
        metrics, thresholds.good_radius_km, thresholds.good_time_window_minutes
    ):
        return MatchQuality.GOOD
    return MatchQuality.NEARBY


# ── Engine ────────────────────────────────────────────────────────────


def match_rides(
    request: RideRequest,
    candidates: list[Ride],
    thresholds: MatchThresholds = DEFAULT_THRESHOLDS,
) -> RideMatchResponse:
    """Partition *candidates* into quality tiers for *request*.  Pure."""
    response = RideMatchResponse()

    for ride in candidates:
        if not ride.can_seat(request.seats_required):
            continue
        metrics = compute_metrics(request, ride)
        quality = classify_match(metrics, thresholds)
        response.matches[quality].append(
            RideMatch(ride=ride, match_quality=quality, metrics=metrics)
        )

    for items in response.matches.values():
        items.sort(key=lambda m: m.metrics.combined_distance_km)

    return response
