"""
Unit tests for seeded bracket helpers.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from courtside.exceptions import ValidationError
from courtside.seeding import BYE, calculate_byes, next_power_of_two, place_bye_teams, seeded_pair_order


class TestBracketSize:
    """Tests for bracket size and bye counts."""

    def test_next_power_of_two_exact(self):
        """Test bracket size for exact power of 2."""
        assert next_power_of_two(2) == 2
        assert next_power_of_two(4) == 4
        assert next_power_of_two(16) == 16

    def test_next_power_of_two_rounds_up(self):
        """Test bracket size rounds up to next power of 2."""
        assert next_power_of_two(3) == 4
        assert next_power_of_two(5) == 8
        assert next_power_of_two(9) == 16

    def test_next_power_of_two_zero(self):
        """Test bracket size for zero teams."""
        assert next_power_of_two(0) == 0

    def test_calculate_byes(self):
        """Test byes calculation."""
        assert calculate_byes(8) == 0
        assert calculate_byes(5) == 3
        assert calculate_byes(6) == 2
        assert calculate_byes(12) == 4


class TestSeededPairOrder:
    """Tests for the recursive seeding order."""

    def test_base_case(self):
        """A bracket of 2 is just [0, 1]."""
        assert seeded_pair_order(2) == [0, 1]

    def test_four(self):
        assert seeded_pair_order(4) == [0, 3, 1, 2]

    def test_eight(self):
        """Test standard 8-slot order: 1v8, 4v5, 2v7, 3v6."""
        assert seeded_pair_order(8) == [0, 7, 3, 4, 1, 6, 2, 5]

    @pytest.mark.parametrize("size", [2, 4, 8, 16, 32])
    def test_pairs_sum_to_complement(self, size):
        """Slot s always meets slot size - 1 - s in round one."""
        order = seeded_pair_order(size)
        assert sorted(order) == list(range(size))
        for i in range(0, size, 2):
            assert order[i] + order[i + 1] == size - 1

    def test_top_two_seeds_in_opposite_halves(self):
        """Seeds 1 and 2 can only meet in the final."""
        order = seeded_pair_order(16)
        assert order.index(0) < 8
        assert order.index(1) >= 8

    @pytest.mark.parametrize("size", [0, 1, 3, 6, 12])
    def test_rejects_non_power_of_two(self, size):
        with pytest.raises(ValidationError):
            seeded_pair_order(size)


class TestPlaceByeTeams:
    """Tests for laying out a roster over bracket slots."""

    def test_default_byes_fill_last_slots(self):
        """Without explicit byes the lowest seed slots hold BYE."""
        slots = place_bye_teams(['A', 'B', 'C', 'D', 'E'], None, 8)
        assert slots == ['A', 'B', 'C', 'D', 'E', BYE, BYE, BYE]

    def test_full_bracket_has_no_byes(self):
        assert place_bye_teams(['A', 'B', 'C', 'D'], None, 4) == ['A', 'B', 'C', 'D']

    def test_explicit_byes_take_bye_opponent_slots(self):
        """Requested teams move to the slots facing a BYE, best slot first."""
        slots = place_bye_teams(['A', 'B', 'C', 'D', 'E'], ['E', 'D'], 8)
        assert slots == ['E', 'D', 'A', 'B', 'C', BYE, BYE, BYE]

    def test_unknown_bye_team_ignored(self):
        slots = place_bye_teams(['A', 'B', 'C'], ['Z'], 4)
        assert slots == ['A', 'B', 'C', BYE]

    def test_surplus_byes_ignored(self):
        """Only as many requests as there are byes are honoured."""
        slots = place_bye_teams(['A', 'B', 'C'], ['C', 'B'], 4)
        assert slots == ['C', 'A', 'B', BYE]

    def test_every_team_placed_once(self):
        teams = [f'T{i}' for i in range(1, 12)]
        slots = place_bye_teams(teams, ['T11', 'T7', 'T3'], 16)
        placed = [s for s in slots if s != BYE]
        assert sorted(placed) == sorted(teams)
        assert slots.count(BYE) == 5
