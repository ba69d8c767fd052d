from datetime import datetime

import pytest

from evapi.admission import Decision, can_admit, check_interval, intervals_overlap
from evapi.errors import ServiceError

EXIST_START = datetime(2026, 2, 24, 10, 0)
EXIST_END = datetime(2026, 2, 24, 12, 0)


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (datetime(2026, 2, 24, 11, 0), datetime(2026, 2, 24, 13, 0), True),   # partial
        (datetime(2026, 2, 24, 10, 30), datetime(2026, 2, 24, 11, 30), True),  # contained
        (datetime(2026, 2, 24, 9, 0), datetime(2026, 2, 24, 14, 0), True),    # containing
        (datetime(2026, 2, 24, 12, 0), datetime(2026, 2, 24, 14, 0), True),   # starts at end
        (datetime(2026, 2, 24, 8, 0), datetime(2026, 2, 24, 10, 0), True),    # ends at start
        (datetime(2026, 2, 24, 8, 0), datetime(2026, 2, 24, 9, 59), False),
        (datetime(2026, 2, 24, 12, 1), datetime(2026, 2, 24, 13, 0), False),
    ],
)
def test_intervals_overlap_is_inclusive(start, end, expected):
    assert intervals_overlap(EXIST_START, EXIST_END, start, end) is expected


def test_touching_intervals_overlap_both_ways():
    t1 = datetime(2026, 2, 24, 10, 0)
    t2 = datetime(2026, 2, 24, 12, 0)
    t3 = datetime(2026, 2, 24, 14, 0)
    assert intervals_overlap(t1, t2, t2, t3)
    assert intervals_overlap(t2, t3, t1, t2)


def test_can_admit_empty_station():
    decision = can_admit(1, 0)
    assert decision == Decision(admitted=True, capacity=1, overlapping=0)
    assert decision.available == 1


def test_can_admit_rejects_when_full():
    decision = can_admit(1, 1)
    assert not decision.admitted
    assert decision.available == 0


def test_can_admit_allows_until_capacity():
    assert can_admit(3, 2).admitted
    assert not can_admit(3, 3).admitted
    assert not can_admit(3, 7).admitted


@pytest.mark.parametrize("overlapping", [0, 1, 50, 10_000])
def test_unconstrained_station_admits_everything(overlapping):
    decision = can_admit(None, overlapping)
    assert decision.admitted
    assert decision.available is None


def test_check_interval_accepts_ordered_interval():
    check_interval(EXIST_START, EXIST_END)


@pytest.mark.parametrize("start, end", [(EXIST_END, EXIST_START), (EXIST_START, EXIST_START)])
def test_check_interval_rejects_reversed_or_empty(start, end):
    with pytest.raises(ServiceError) as exc:
        check_interval(start, end)
    assert exc.value.status == 400
    assert exc.value.code == "VALIDATION_FAILED"
