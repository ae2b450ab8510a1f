"""
Seeded bracket helpers shared by single and double elimination.
"""
import logging
import math
from typing import List, Optional

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

# Synthetic slot filler for brackets whose roster is not a power of 2
BYE = 'BYE'


def next_power_of_two(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    return next_power_of_two(num_teams) - num_teams


def seeded_pair_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order as 0-based slot indices.
    Pairing consecutive elements gives the first round matchups, and if all
    higher seeds win they meet in the proper rounds.

    For 8 slots: [0, 7, 3, 4, 1, 6, 2, 5]
    This gives matchups: 1v8, 4v5, 2v7, 3v6

    The base case is a bracket of 2, which is just [0, 1]; every larger order
    is built from the order of half its size, so this anchors all of them.
    """
    if bracket_size < 2 or bracket_size & (bracket_size - 1):
        raise ValidationError(f"Bracket size must be a power of 2, got {bracket_size}")

    if bracket_size == 2:
        return [0, 1]

    result = []
    for seed in seeded_pair_order(bracket_size // 2):
        # Pair each seed with its complement
        result.extend([seed, bracket_size - 1 - seed])
    return result


def place_bye_teams(team_ids: List[str], bye_team_ids: Optional[List[str]], bracket_size: int) -> List[str]:
    """
    Lay out the roster over ``bracket_size`` slots, padding with BYE markers.

    Without explicit byes the roster order is kept and the lowest seed slots
    hold the BYE markers. With explicit byes, the named teams are moved into
    the slots seeding pairs against a BYE marker (best slot first); every
    other team fills the remaining slots in roster order.
    """
    num_byes = bracket_size - len(team_ids)
    slots: List[Optional[str]] = [None] * bracket_size
    for index in range(len(team_ids), bracket_size):
        slots[index] = BYE

    requested = []
    for team_id in bye_team_ids or []:
        if team_id not in team_ids:
            logger.warning("Ignoring bye for unknown team %s", team_id)
        elif team_id not in requested:
            requested.append(team_id)
    if len(requested) > num_byes:
        logger.warning("Only %d byes available, ignoring byes for %s", num_byes, requested[num_byes:])
        requested = requested[:num_byes]

    if not requested:
        return [team_id for team_id in team_ids] + slots[len(team_ids):]

    # Slot s always meets slot (size - 1 - s) in the first round
    bye_opponent_slots = sorted(bracket_size - 1 - index for index in range(len(team_ids), bracket_size))
    for slot, team_id in zip(bye_opponent_slots, requested):
        slots[slot] = team_id

    remaining = iter(team_id for team_id in team_ids if team_id not in requested)
    for index in range(len(team_ids)):
        if slots[index] is None:
            slots[index] = next(remaining)

    return slots
