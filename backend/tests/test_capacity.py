"""Unit tests for weekly hours capacity."""
import math
from datetime import datetime, timezone

from skillswap.domain.entities import SwapRequest, SwapStatus
from skillswap.services.swaps.capacity import Capacity, allocated_hours, validate_proposed_hours


def _request(id, status, hours, offered="s1", requested="s2"):
    return SwapRequest(
        id=id,
        from_user_id="a",
        to_user_id="b",
        offered_skill_id=offered,
        requested_skill_id=requested,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        status=status,
        hours_per_week=hours,
    )


def test_unset_capacity_is_unlimited():
    assert Capacity(None).remaining == math.inf
    assert Capacity(0, allocated=10).is_unlimited
    assert not Capacity(None).is_fully_booked


def test_remaining_never_negative():
    cap = Capacity(5, allocated=8)
    assert cap.remaining == 0
    assert cap.is_fully_booked
    assert not cap.is_partially_booked
    assert Capacity(5, allocated=2).is_partially_booked


def test_allocated_counts_only_accepted():
    requests = [
        _request("r1", SwapStatus.ACCEPTED, 2),
        _request("r2", SwapStatus.PENDING, 3),
        _request("r3", SwapStatus.ACCEPTED, 1.5, offered="other", requested="s1"),
        _request("r4", SwapStatus.ACCEPTED, None),
        _request("r5", SwapStatus.DECLINED, 4),
    ]
    assert allocated_hours(requests, "s1") == 3.5


def test_proposed_within_both_capacities():
    check = validate_proposed_hours(Capacity(10, 2), Capacity(6, 0), 4)
    assert check.is_valid
    assert check.can_proceed
    assert check.max_available == 6
    assert check.warnings == []


def test_proposed_exceeds_lesser_capacity():
    check = validate_proposed_hours(Capacity(10), Capacity(3), 4)
    assert not check.is_valid
    assert check.can_proceed
    assert check.max_available == 3
    assert any("Maximum available is 3h/week" in w for w in check.warnings)


def test_using_all_remaining_hours_warns():
    check = validate_proposed_hours(Capacity(5, 2), Capacity(None), 3)
    assert check.is_valid
    assert any("all remaining hours" in w for w in check.warnings)


def test_fully_booked_cannot_proceed():
    check = validate_proposed_hours(Capacity(4, 4), Capacity(10), 1)
    assert not check.is_valid
    assert not check.can_proceed
    assert any("No capacity available" in w for w in check.warnings)


def test_both_unlimited():
    check = validate_proposed_hours(Capacity(None), Capacity(None), 40)
    assert check.is_valid
    assert check.max_available == math.inf
