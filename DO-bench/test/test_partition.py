"""Test suite for sub-range partitioning."""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from common.partition import count_sub_ranges, iter_sub_ranges


class TestSubRanges:
    """Test cases for iter_sub_ranges."""

    def test_covers_range_without_gaps_or_overlaps(self):
        """Union of sub-ranges is exactly [0, total) for a spread of inputs."""
        for total in (1, 2, 7, 10, 199, 200, 201):
            for per_call in (1, 3, 10, 50, 250):
                covered = []
                for start, end in iter_sub_ranges(total, per_call):
                    assert start < end
                    covered.extend(range(start, end))
                assert covered == list(range(total)), (total, per_call)

    def test_last_sub_range_is_truncated(self):
        ranges = list(iter_sub_ranges(25, 10))
        assert ranges == [(0, 10), (10, 20), (20, 25)]
        assert ranges[-1][1] - ranges[-1][0] == 25 % 10

    def test_last_sub_range_full_when_divisible(self):
        ranges = list(iter_sub_ranges(30, 10))
        assert ranges[-1] == (20, 30)

    def test_completion_count(self):
        """200 chunks at 10 per call is exactly 20 units."""
        assert len(list(iter_sub_ranges(200, 10))) == 20
        assert count_sub_ranges(200, 10) == 20

    def test_count_matches_iteration(self):
        for total, per_call in ((1, 1), (10, 3), (200, 30), (200, 50), (5, 40)):
            assert count_sub_ranges(total, per_call) == len(list(iter_sub_ranges(total, per_call)))

    def test_chunks_per_call_larger_than_total(self):
        assert list(iter_sub_ranges(5, 40)) == [(0, 5)]

    def test_is_lazy_and_restartable(self):
        gen = iter_sub_ranges(10**12, 1)
        assert next(gen) == (0, 1)
        assert next(gen) == (1, 2)
        assert list(iter_sub_ranges(4, 2)) == list(iter_sub_ranges(4, 2))

    @pytest.mark.parametrize("total, per_call", [(0, 1), (-1, 1), (10, 0), (10, -5)])
    def test_rejects_non_positive_arguments(self, total, per_call):
        with pytest.raises(ValueError):
            list(iter_sub_ranges(total, per_call))
