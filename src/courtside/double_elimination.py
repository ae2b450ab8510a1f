"""
Double elimination bracket generation and management.

In double elimination:
- Teams must lose twice to be eliminated
- Winners Bracket: Teams that haven't lost yet
- Losers Bracket: Teams that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion, a single
  deciding match (no bracket reset)

Losers bracket layout for a bracket of N (winners bracket has W rounds):
- L Round 1: N/4 matches, losers of winners round 1 pair off
- For each winners round 2..W-1, a drop-in round (that round's winners
  bracket losers vs losers bracket survivors) then a halving round
- Losers Final: winners final loser vs the last losers bracket survivor

For 8 teams:
- L Round 1: 4 W1 losers pair off -> 2 matches
- L Round 2: 2 W2 losers + 2 L1 winners -> 2 matches
- L Round 3: 2 L2 winners pair off -> 1 match
- L Round 4 (Losers Final): W3 loser + L3 winner -> 1 match
"""
import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional

from .elimination import build_seeded_rounds, get_next_match_position, new_match, place_team
from .exceptions import ValidationError
from .models import BracketTag, Match, MatchStatus
from .seeding import next_power_of_two

logger = logging.getLogger(__name__)


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    For N teams in winners bracket (power of 2):
    - Winners bracket has log2(N) rounds
    - Losers bracket has 2 * (log2(N) - 1) rounds
    """
    if bracket_size < 4:
        return 0
    winners_rounds = int(math.log2(bracket_size))
    return 2 * (winners_rounds - 1)


def get_double_elim_round_name(round_num: int, bracket: BracketTag, total_winners_rounds: int,
                               total_losers_rounds: int = 0) -> str:
    """Get the display name of a round in a double elimination bracket."""
    if bracket == BracketTag.GRAND_FINALS:
        return "Grand Final"

    if bracket == BracketTag.WINNERS:
        teams_in_round = 2 ** (total_winners_rounds - round_num + 1)
        if teams_in_round == 2:
            return "Winners Final"
        elif teams_in_round == 4:
            return "Winners Semifinal"
        elif teams_in_round == 8:
            return "Winners Quarterfinal"
        else:
            return f"Winners Round of {teams_in_round}"

    rounds_from_end = total_losers_rounds - round_num
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num}"


def _generate_losers_bracket(competition_id: str, bracket_size: int, total_winners_rounds: int,
                             winners_matches: List[Match]) -> List[Match]:
    """
    Generate the empty losers bracket.

    A round 1 match whose two feeding winners round 1 matches are both byes
    would never receive a team, so it is left out.
    """
    first_round_byes = {m.position for m in winners_matches if m.round == 1 and m.is_bye}
    matches = []

    losers_match_count = bracket_size // 4
    losers_round = 1
    for position in range(1, losers_match_count + 1):
        if {position * 2 - 1, position * 2} <= first_round_byes:
            continue
        matches.append(new_match(competition_id, BracketTag.LOSERS, losers_round, position))

    for _ in range(2, total_winners_rounds):
        # Drop-in round: losers from the winners bracket enter
        losers_round += 1
        for position in range(1, losers_match_count + 1):
            matches.append(new_match(competition_id, BracketTag.LOSERS, losers_round, position))

        # Losers bracket survivors pair off
        losers_round += 1
        losers_match_count //= 2
        for position in range(1, losers_match_count + 1):
            matches.append(new_match(competition_id, BracketTag.LOSERS, losers_round, position))

    # Losers Final
    losers_round += 1
    matches.append(new_match(competition_id, BracketTag.LOSERS, losers_round, 1))
    return matches


def generate_double_elimination_bracket(team_ids: List[str], competition_id: str,
                                        bye_team_ids: Optional[List[str]] = None) -> List[Match]:
    """
    Generate complete double elimination bracket structure.

    The winners bracket is seeded exactly like single elimination; the losers
    bracket and grand final start as placeholders and fill in as results
    arrive through advance_double_elimination.
    """
    if len(team_ids) < 4:
        raise ValidationError("Double elimination requires at least 4 teams")
    if len(set(team_ids)) != len(team_ids):
        raise ValidationError("Team ids must be unique")

    bracket_size = next_power_of_two(len(team_ids))
    total_winners_rounds = int(math.log2(bracket_size))

    winners_bracket = build_seeded_rounds(team_ids, competition_id, bye_team_ids, BracketTag.WINNERS)
    losers_bracket = _generate_losers_bracket(competition_id, bracket_size, total_winners_rounds, winners_bracket)
    grand_final = new_match(competition_id, BracketTag.GRAND_FINALS, 1, 1)

    matches = winners_bracket + losers_bracket + [grand_final]
    logger.debug("Built double elimination bracket for %s: %d teams, %d matches",
                 competition_id, len(team_ids), len(matches))
    return matches


def _find(matches: List[Match], bracket: BracketTag, round_num: int, position: int) -> Optional[Match]:
    for match in matches:
        if match.bracket == bracket and match.round == round_num and match.position == position:
            return match
    return None


def _slot_is_dead(matches: List[Match], round_num: int, position: int, slot: str) -> bool:
    """True when a losers bracket slot can never receive a team because its feeder was a bye."""
    if round_num == 1:
        feeder_position = position * 2 - 1 if slot == 'home' else position * 2
        feeder = _find(matches, BracketTag.WINNERS, 1, feeder_position)
        return feeder is not None and feeder.is_bye
    if round_num == 2 and slot == 'away':
        # Fed by a losers round 1 match that was never created
        return _find(matches, BracketTag.LOSERS, 1, position) is None
    return False


def _enter_losers(matches: List[Match], round_num: int, position: int, slot: str, team_id: str,
                  total_losers_rounds: int) -> List[Match]:
    """Place a team in the losers bracket, completing the match as a bye if no opponent can arrive."""
    matches = place_team(matches, BracketTag.LOSERS, round_num, position, slot, team_id)
    other_slot = 'away' if slot == 'home' else 'home'
    if not _slot_is_dead(matches, round_num, position, other_slot):
        return matches

    logger.debug("Losers round %d position %d has no opponent for %s, recording a bye",
                 round_num, position, team_id)
    matches = [
        replace(m, status=MatchStatus.COMPLETED, winner_id=team_id, is_bye=True)
        if m.bracket == BracketTag.LOSERS and m.round == round_num and m.position == position else m
        for m in matches
    ]
    return _advance_losers_winner(matches, round_num, position, team_id, total_losers_rounds)


def _advance_losers_winner(matches: List[Match], round_num: int, position: int, winner_id: str,
                           total_losers_rounds: int) -> List[Match]:
    if round_num >= total_losers_rounds:
        return place_team(matches, BracketTag.GRAND_FINALS, 1, 1, 'away', winner_id)
    if round_num % 2 == 1:
        # Into the next drop-in round, facing a winners bracket loser
        return _enter_losers(matches, round_num + 1, position, 'away', winner_id, total_losers_rounds)
    next_round, next_position, slot = get_next_match_position(round_num, position)
    return _enter_losers(matches, next_round, next_position, slot, winner_id, total_losers_rounds)


def advance_double_elimination(matches: List[Match], completed_match: Match, winner_id: str) -> List[Match]:
    """
    Route the winner (and, from the winners bracket, the loser) of a completed match.

    Returns the updated matches list. The grand final is terminal.
    """
    bracket = completed_match.bracket
    if bracket == BracketTag.GRAND_FINALS:
        return list(matches)

    total_winners_rounds = max((m.round for m in matches if m.bracket == BracketTag.WINNERS), default=0)
    total_losers_rounds = max((m.round for m in matches if m.bracket == BracketTag.LOSERS), default=0)
    round_num, position = completed_match.round, completed_match.position

    if bracket == BracketTag.LOSERS:
        logger.debug("Advancing %s from %s in losers bracket", winner_id, completed_match.id)
        return _advance_losers_winner(list(matches), round_num, position, winner_id, total_losers_rounds)

    if round_num < total_winners_rounds:
        next_round, next_position, slot = get_next_match_position(round_num, position)
        updated = place_team(matches, BracketTag.WINNERS, next_round, next_position, slot, winner_id)
    else:
        updated = place_team(matches, BracketTag.GRAND_FINALS, 1, 1, 'home', winner_id)

    if completed_match.is_bye:
        return updated

    loser_id = completed_match.away_team_id if winner_id == completed_match.home_team_id else completed_match.home_team_id
    if loser_id is None:
        return updated

    logger.debug("Dropping %s from %s into losers bracket", loser_id, completed_match.id)
    if round_num == 1:
        _, losers_position, slot = get_next_match_position(round_num, position)
        return _enter_losers(updated, 1, losers_position, slot, loser_id, total_losers_rounds)
    return _enter_losers(updated, round_num * 2 - 2, position, 'home', loser_id, total_losers_rounds)


def get_double_bracket_structure(matches: List[Match]) -> Dict:
    """
    Get structured bracket data for display.

    Returns dict with:
    - 'winners': list of rounds, each a list of matches sorted by position
    - 'losers': same for the losers bracket
    - 'grand_final': the grand final match or None
    """
    def rounds_of(bracket: BracketTag) -> List[List[Match]]:
        bracket_matches = [m for m in matches if m.bracket == bracket]
        total = max((m.round for m in bracket_matches), default=0)
        return [
            sorted((m for m in bracket_matches if m.round == r), key=lambda m: m.position)
            for r in range(1, total + 1)
        ]

    grand_final = next((m for m in matches if m.bracket == BracketTag.GRAND_FINALS), None)
    return {
        'winners': rounds_of(BracketTag.WINNERS),
        'losers': rounds_of(BracketTag.LOSERS),
        'grand_final': grand_final,
    }


def get_double_elim_champion(matches: List[Match]) -> Optional[str]:
    """Winner of the grand final, once it has been played."""
    grand_final = next((m for m in matches if m.bracket == BracketTag.GRAND_FINALS), None)
    return grand_final.winner_id if grand_final else None
