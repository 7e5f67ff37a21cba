"""Tests for occupied intervals and the overlap rule."""

from datetime import timedelta

import pytest

from cinema.core.errors import ValidationError
from cinema.scheduling.interval import Interval, conflicts, overlaps
from tests.conftest import at


class TestInterval:
    def test_for_screening_includes_cleaning_buffer(self):
        interval = Interval.for_screening(at(14), 120, 30)
        assert interval.start == at(14)
        assert interval.end == at(16, 30)
        assert interval.length == timedelta(minutes=150)

    def test_zero_buffer(self):
        assert Interval.for_screening(at(10), 90, 0).end == at(11, 30)

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            Interval.for_screening(at(10), -5, 30)

    def test_negative_buffer_rejected(self):
        with pytest.raises(ValidationError):
            Interval.for_screening(at(10), 90, -1)

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            Interval(at(12), at(11))

    def test_contains(self):
        outer = Interval(at(9), at(21))
        assert outer.contains(Interval(at(10), at(12)))
        assert outer.contains(outer)
        assert not outer.contains(Interval(at(20), at(22)))


class TestOverlaps:
    def test_overlapping(self):
        a = Interval(at(14), at(16, 30))
        b = Interval(at(15), at(17))
        assert overlaps(a, b)
        assert overlaps(b, a)

    def test_touching_endpoints_do_not_overlap(self):
        """The next screening may start exactly when the buffer ends."""
        a = Interval(at(14), at(16, 30))
        b = Interval(at(16, 30), at(18, 30))
        assert not overlaps(a, b)
        assert not overlaps(b, a)

    def test_nested(self):
        outer = Interval(at(10), at(14))
        inner = Interval(at(11), at(12))
        assert overlaps(outer, inner)
        assert overlaps(inner, outer)

    def test_interval_overlaps_itself(self):
        a = Interval(at(10), at(11))
        assert overlaps(a, a)

    def test_disjoint(self):
        assert not overlaps(Interval(at(9), at(10)), Interval(at(11), at(12)))

    def test_conflicts_returns_only_overlapping(self):
        booked = [
            Interval(at(9), at(11)),
            Interval(at(11), at(13)),
            Interval(at(14), at(16)),
        ]
        candidate = Interval(at(10, 30), at(12))
        assert conflicts(candidate, booked) == booked[:2]
        assert conflicts(Interval(at(13), at(14)), booked) == []
