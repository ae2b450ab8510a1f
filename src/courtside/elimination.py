"""
Single elimination bracket generation and management.
"""
import logging
import math
from typing import List, Optional, Tuple

from .exceptions import ValidationError
from .models import BracketTag, Match, MatchStatus, make_match_id
from .seeding import BYE, next_power_of_two, place_bye_teams, seeded_pair_order

logger = logging.getLogger(__name__)

# Match code prefix per bracket tag: R1-M1, W1-M1, L1-M1
ROUND_PREFIX = {
    BracketTag.NONE: 'R',
    BracketTag.WINNERS: 'W',
    BracketTag.LOSERS: 'L',
}


def get_round_name(round_num: int, total_rounds: int) -> str:
    """Get the name of a round from its number and the bracket depth."""
    teams_in_round = 2 ** (total_rounds - round_num + 1)
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def match_code(bracket: BracketTag, round_num: int, position: int) -> str:
    if bracket == BracketTag.GRAND_FINALS:
        return 'GF'
    return f"{ROUND_PREFIX[bracket]}{round_num}-M{position}"


def new_match(competition_id: str, bracket: BracketTag, round_num: int, position: int,
              home_team_id: Optional[str] = None, away_team_id: Optional[str] = None) -> Match:
    """Create a pending match with a deterministic id."""
    return Match(
        id=make_match_id(competition_id, match_code(bracket, round_num, position)),
        competition_id=competition_id,
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        status=MatchStatus.PENDING,
        round=round_num,
        position=position,
        bracket=bracket,
    )


def get_next_match_position(round_num: int, position: int) -> Tuple[int, int, str]:
    """
    Get the match that a winner advances to.

    Returns (next_round, next_position, slot) where slot is 'home' for odd
    positions and 'away' for even ones.
    """
    next_position = math.ceil(position / 2)
    slot = 'home' if position % 2 == 1 else 'away'
    return round_num + 1, next_position, slot


def build_seeded_rounds(team_ids: List[str], competition_id: str, bye_team_ids: Optional[List[str]],
                        bracket: BracketTag) -> List[Match]:
    """
    Build every round of a seeded knockout bracket tagged ``bracket``.

    Round 1 pairs come from the seeded order; a pair against a BYE marker is
    created already completed with the real team as winner, and that team is
    pre-filled into its round 2 slot. Later rounds are placeholders.
    """
    bracket_size = next_power_of_two(len(team_ids))
    total_rounds = int(math.log2(bracket_size))
    slots = place_bye_teams(team_ids, bye_team_ids, bracket_size)
    bracket_order = seeded_pair_order(bracket_size)

    matches = []
    # Round 2 (round, position, slot) -> team advanced by a bye
    bye_advances = {}

    for i in range(0, len(bracket_order), 2):
        position = i // 2 + 1
        home = slots[bracket_order[i]]
        away = slots[bracket_order[i + 1]]

        if home == BYE or away == BYE:
            team_id = away if home == BYE else home
            match = new_match(competition_id, bracket, 1, position,
                              home_team_id=None if home == BYE else home,
                              away_team_id=None if away == BYE else away)
            match.status = MatchStatus.COMPLETED
            match.winner_id = team_id
            match.is_bye = True
            bye_advances[get_next_match_position(1, position)] = team_id
        else:
            match = new_match(competition_id, bracket, 1, position, home, away)
        matches.append(match)

    # Generate placeholder matches for subsequent rounds
    matches_in_round = bracket_size // 2
    for round_num in range(2, total_rounds + 1):
        matches_in_round //= 2
        for position in range(1, matches_in_round + 1):
            match = new_match(competition_id, bracket, round_num, position)
            if round_num == 2:
                match.home_team_id = bye_advances.get((2, position, 'home'))
                match.away_team_id = bye_advances.get((2, position, 'away'))
            matches.append(match)

    return matches


def generate_single_elimination_bracket(team_ids: List[str], competition_id: str,
                                        bye_team_ids: Optional[List[str]] = None) -> List[Match]:
    """
    Generate a seeded single elimination bracket.

    Teams are seeded in the order provided. Rosters that are not a power of 2
    get byes for the top seeds, or for ``bye_team_ids`` when given.
    The result always holds bracket_size - 1 matches, byes included.
    """
    if len(team_ids) < 2:
        raise ValidationError("Single elimination requires at least 2 teams")
    if len(set(team_ids)) != len(team_ids):
        raise ValidationError("Team ids must be unique")

    matches = build_seeded_rounds(team_ids, competition_id, bye_team_ids, BracketTag.NONE)
    logger.debug("Built single elimination bracket for %s: %d teams, %d matches",
                 competition_id, len(team_ids), len(matches))
    return matches


def place_team(matches: List[Match], bracket: BracketTag, round_num: int, position: int,
               slot: str, team_id: str) -> List[Match]:
    """Return a new match list with ``team_id`` placed into one slot of one match."""
    updated = []
    for match in matches:
        if match.bracket == bracket and match.round == round_num and match.position == position:
            match = match.with_team(slot, team_id)
        updated.append(match)
    return updated


def advance_winner(matches: List[Match], completed_match: Match, winner_id: str) -> List[Match]:
    """
    Update bracket after a match is completed.
    Returns the updated matches list; only the next round match changes.
    """
    bracket_matches = [m for m in matches if m.bracket == completed_match.bracket]
    total_rounds = max((m.round for m in bracket_matches), default=0)

    # If this is the final, no advancement needed
    if completed_match.round >= total_rounds:
        return list(matches)

    next_round, next_position, slot = get_next_match_position(completed_match.round, completed_match.position)
    logger.debug("Advancing %s from %s to round %d position %d (%s)",
                 winner_id, completed_match.id, next_round, next_position, slot)
    return place_team(matches, completed_match.bracket, next_round, next_position, slot, winner_id)


def get_bracket_structure(matches: List[Match], bracket: BracketTag = BracketTag.NONE) -> List[List[Match]]:
    """Group one bracket's matches by round, each round sorted by position."""
    bracket_matches = [m for m in matches if m.bracket == bracket]
    total_rounds = max((m.round for m in bracket_matches), default=0)
    return [
        sorted((m for m in bracket_matches if m.round == round_num), key=lambda m: m.position)
        for round_num in range(1, total_rounds + 1)
    ]


def get_champion(matches: List[Match]) -> Optional[str]:
    """Winner of the final, once it has been played."""
    rounds = get_bracket_structure(matches)
    if not rounds or not rounds[-1]:
        return None
    return rounds[-1][0].winner_id
