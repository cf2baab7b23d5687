"""Unit tests for the tiered ride matching engine."""

import math
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from src.domain.entities import GeoPoint, RideRequest
from src.domain.enums import MatchQuality, RideStatus
from src.domain.matching import (
    MatchThresholds,
    RideMatchMetrics,
    classify_match,
    match_rides,
)
from tests.conftest import DROP, PICKUP, make_ride

T = datetime(2026, 10, 20, 9, 0, tzinfo=timezone.utc)


def north_of(point: GeoPoint, km: float) -> GeoPoint:
    """A point exactly *km* great-circle kilometres due north of *point*."""
    return GeoPoint(point.label, point.lat + math.degrees(km / 6371.0), point.lng)


def request(preferred_time=T, seats: int = 1) -> RideRequest:
    return RideRequest(
        pickup=PICKUP, drop=DROP, preferred_time=preferred_time, seats_required=seats
    )


class TestClassifyMatch:
    def test_perfect_within_all_limits(self):
        m = RideMatchMetrics(2.0, 3.0, 30.0)
        assert classify_match(m) == MatchQuality.PERFECT

    def test_no_preferred_time_is_never_penalised(self):
        m = RideMatchMetrics(4.9, 4.9, None)
        assert classify_match(m) == MatchQuality.PERFECT

    def test_good_when_distance_exceeds_perfect_radius(self):
        m = RideMatchMetrics(8.0, 2.0, 10.0)
        assert classify_match(m) == MatchQuality.GOOD

    def test_good_when_time_exceeds_perfect_window(self):
        m = RideMatchMetrics(1.0, 1.0, 61.0)
        assert classify_match(m) == MatchQuality.GOOD

    def test_time_window_boundaries_are_inclusive(self):
        assert classify_match(RideMatchMetrics(1.0, 1.0, 60.0)) == MatchQuality.PERFECT
        assert classify_match(RideMatchMetrics(1.0, 1.0, 180.0)) == MatchQuality.GOOD

    def test_nearby_when_too_far(self):
        m = RideMatchMetrics(40.0, 2.0, None)
        assert classify_match(m) == MatchQuality.NEARBY

    def test_nearby_when_too_late(self):
        m = RideMatchMetrics(1.0, 1.0, 181.0)
        assert classify_match(m) == MatchQuality.NEARBY

    def test_infinite_distance_is_nearby(self):
        m = RideMatchMetrics(math.inf, 1.0, None)
        assert classify_match(m) == MatchQuality.NEARBY

    def test_custom_thresholds(self):
        tight = MatchThresholds(perfect_radius_km=1.0, good_radius_km=2.0)
        assert classify_match(RideMatchMetrics(1.5, 1.5, None), tight) == MatchQuality.GOOD


class TestMatchRides:
    def test_empty_candidates_give_zero_totals(self):
        result = match_rides(request(), [])
        assert result.totals == {q: 0 for q in MatchQuality}
        assert all(items == [] for items in result.matches.values())

    def test_close_ride_half_an_hour_off_is_perfect(self):
        ride = make_ride(
            start=north_of(PICKUP, 2.0), destination=north_of(DROP, 3.0), time="09:30"
        )
        result = match_rides(request(), [ride])

        assert result.totals[MatchQuality.PERFECT] == 1
        match = result.matches[MatchQuality.PERFECT][0]
        assert match.match_quality == MatchQuality.PERFECT
        assert match.metrics.pickup_distance_km == pytest.approx(2.0, abs=0.01)
        assert match.metrics.drop_distance_km == pytest.approx(3.0, abs=0.01)
        assert match.metrics.time_diff_minutes == pytest.approx(30.0)

    def test_same_ride_two_hundred_minutes_off_falls_to_nearby(self):
        ride = make_ride(
            start=north_of(PICKUP, 2.0), destination=north_of(DROP, 3.0), time="12:20"
        )
        result = match_rides(request(), [ride])

        assert result.totals == {
            MatchQuality.PERFECT: 0,
            MatchQuality.GOOD: 0,
            MatchQuality.NEARBY: 1,
        }
        assert result.matches[MatchQuality.NEARBY][0].metrics.time_diff_minutes == pytest.approx(200.0)

    def test_time_gap_is_absolute(self):
        ride = make_ride(time="08:15")
        result = match_rides(request(), [ride])
        assert result.matches[MatchQuality.PERFECT][0].metrics.time_diff_minutes == pytest.approx(45.0)

    def test_no_preferred_time_reports_null_gap(self):
        ride = make_ride(time="23:59")
        result = match_rides(request(preferred_time=None), [ride])
        match = result.matches[MatchQuality.PERFECT][0]
        assert match.metrics.time_diff_minutes is None

    def test_naive_preferred_time_is_utc(self):
        ride = make_ride(time="09:30")
        result = match_rides(request(preferred_time=datetime(2026, 10, 20, 9, 0)), [ride])
        assert result.matches[MatchQuality.PERFECT][0].metrics.time_diff_minutes == pytest.approx(30.0)

    def test_good_tier(self):
        ride = make_ride(
            start=north_of(PICKUP, 10.0), destination=north_of(DROP, 12.0), time="10:30"
        )
        result = match_rides(request(), [ride])
        assert result.totals[MatchQuality.GOOD] == 1

    def test_far_ride_still_visible_as_nearby(self):
        ride = make_ride(start=north_of(PICKUP, 300.0), destination=north_of(DROP, 300.0))
        result = match_rides(request(), [ride])
        assert result.totals[MatchQuality.NEARBY] == 1

    def test_insufficient_seats_excluded_everywhere(self):
        ride = make_ride(available=1)
        result = match_rides(request(seats=2), [ride])
        assert result.total == 0

    def test_exact_seat_fit_is_matched(self):
        ride = make_ride(available=2)
        result = match_rides(request(seats=2), [ride])
        assert result.total == 1

    def test_closed_ride_excluded(self):
        ride = make_ride()
        ride.status = RideStatus.CLOSED
        assert match_rides(request(), [ride]).total == 0

    def test_non_finite_coordinates_isolated_to_nearby(self):
        broken = make_ride(ride_id=1, start=GeoPoint("bad", math.nan, 77.2))
        healthy = make_ride(ride_id=2)
        result = match_rides(request(), [broken, healthy])

        assert [m.ride.id for m in result.matches[MatchQuality.PERFECT]] == [2]
        nearby = result.matches[MatchQuality.NEARBY]
        assert [m.ride.id for m in nearby] == [1]
        assert math.isinf(nearby[0].metrics.pickup_distance_km)

    def test_unset_coordinates_are_nearby(self):
        ride = make_ride(destination=GeoPoint("", 0.0, 0.0))
        result = match_rides(request(), [ride])
        assert math.isinf(result.matches[MatchQuality.NEARBY][0].metrics.drop_distance_km)

    def test_unparseable_schedule_is_nearby_when_time_requested(self):
        ride = make_ride(time="soon")
        result = match_rides(request(), [ride])
        match = result.matches[MatchQuality.NEARBY][0]
        assert math.isinf(match.metrics.time_diff_minutes)

    def test_unparseable_schedule_ignored_without_preferred_time(self):
        ride = make_ride(time="soon")
        result = match_rides(request(preferred_time=None), [ride])
        assert result.totals[MatchQuality.PERFECT] == 1

    def test_tier_sorted_by_combined_distance(self):
        far = make_ride(ride_id=1, start=north_of(PICKUP, 4.0), destination=north_of(DROP, 4.0))
        near = make_ride(ride_id=2, start=north_of(PICKUP, 0.5), destination=north_of(DROP, 0.5))
        mid = make_ride(ride_id=3, start=north_of(PICKUP, 1.0), destination=north_of(DROP, 2.0))
        result = match_rides(request(), [far, near, mid])
        assert [m.ride.id for m in result.matches[MatchQuality.PERFECT]] == [2, 3, 1]

    def test_ties_keep_candidate_order(self):
        rides = [make_ride(ride_id=i) for i in (5, 3, 9)]
        result = match_rides(request(), rides)
        assert [m.ride.id for m in result.matches[MatchQuality.PERFECT]] == [5, 3, 9]

    def test_totals_cover_every_seatable_candidate(self):
        base = make_ride()
        candidates = [
            replace(base, id=1),
            replace(base, id=2, start=north_of(PICKUP, 9.0)),
            replace(base, id=3, start=north_of(PICKUP, 90.0)),
            replace(base, id=4, time="15:00"),
            replace(base, id=5, start=GeoPoint("x", math.inf, 0.0)),
            replace(base, id=6, seats=replace(base.seats, available=1)),
            replace(base, id=7, time="10:59"),
        ]
        result = match_rides(request(seats=2), candidates)

        seatable = [r for r in candidates if r.seats.available >= 2]
        assert result.total == len(seatable) == 6
        for quality, items in result.matches.items():
            assert result.totals[quality] == len(items)
            assert all(m.match_quality == quality for m in items)
        assert 6 not in {m.ride.id for items in result.matches.values() for m in items}

    def test_tier_members_respect_their_limits(self):
        candidates = [
            make_ride(ride_id=i, start=north_of(PICKUP, float(i)), time=f"{9 + i // 3:02d}:{(i * 7) % 60:02d}")
            for i in range(1, 20)
        ]
        result = match_rides(request(), candidates)

        for m in result.matches[MatchQuality.PERFECT]:
            assert m.metrics.pickup_distance_km <= 5 and m.metrics.drop_distance_km <= 5
            assert m.metrics.time_diff_minutes <= 60
        for m in result.matches[MatchQuality.GOOD]:
            assert m.metrics.pickup_distance_km <= 15 and m.metrics.drop_distance_km <= 15
            assert m.metrics.time_diff_minutes <= 180
