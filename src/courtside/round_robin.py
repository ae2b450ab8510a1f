"""
Round robin schedule generation and standings.
"""
import logging
from typing import Dict, List, Optional

from .config import CompetitionConfig
from .elimination import new_match
from .exceptions import ValidationError
from .models import BracketTag, Match, StandingRow

logger = logging.getLogger(__name__)


def generate_round_robin_schedule(team_ids: List[str], competition_id: str) -> List[Match]:
    """
    Generates a round robin schedule where every team plays every other team once.

    Uses the circle method: the last slot stays fixed and the others rotate,
    so nobody plays twice in a round. With an odd roster a phantom slot is
    added and whoever meets it sits the round out; no match is created for it.
    """
    if len(team_ids) < 2:
        raise ValidationError("Round robin requires at least 2 teams")
    if len(set(team_ids)) != len(team_ids):
        raise ValidationError("Team ids must be unique")

    teams: List[Optional[str]] = list(team_ids)
    if len(teams) % 2:
        teams.append(None)

    n = len(teams)
    matches = []
    for round_index in range(n - 1):
        position = 0
        for pairing in range(n // 2):
            home = (round_index + pairing) % (n - 1)
            away = (n - 1 - pairing + round_index) % (n - 1)
            # Last team stays fixed, others rotate
            if pairing == 0:
                away = n - 1

            home_team_id, away_team_id = teams[home], teams[away]
            if home_team_id is None or away_team_id is None:
                continue

            position += 1
            matches.append(new_match(competition_id, BracketTag.NONE, round_index + 1, position,
                                     home_team_id, away_team_id))

    logger.debug("Built round robin for %s: %d teams, %d matches", competition_id, len(team_ids), len(matches))
    return matches


def _match_winner(match: Match) -> Optional[str]:
    """Explicit winner first, otherwise the higher score; None for a tie."""
    if match.winner_id in (match.home_team_id, match.away_team_id):
        return match.winner_id
    if match.home_score > match.away_score:
        return match.home_team_id
    if match.away_score > match.home_score:
        return match.away_team_id
    return None


def calculate_standings(team_ids: List[str], matches: List[Match],
                        config: Optional[CompetitionConfig] = None) -> List[StandingRow]:
    """
    Calculate standings from completed matches.

    Ranking: competition points -> point differential. Teams still level
    after that keep their roster order.
    """
    config = config or CompetitionConfig()
    standings: Dict[str, StandingRow] = {team_id: StandingRow(team_id=team_id) for team_id in team_ids}

    for match in matches:
        if not match.is_completed or match.is_bye:
            continue
        home = standings.get(match.home_team_id)
        away = standings.get(match.away_team_id)
        if home is None or away is None:
            continue

        home.played += 1
        away.played += 1
        home.points_for += match.home_score
        home.points_against += match.away_score
        away.points_for += match.away_score
        away.points_against += match.home_score

        winner_id = _match_winner(match)
        if winner_id is None:
            if config.allow_ties:
                home.tied += 1
                away.tied += 1
                home.competition_points += config.points_for_tie or 0
                away.competition_points += config.points_for_tie or 0
            else:
                logger.warning("Match %s ended level but ties are not allowed; no points awarded", match.id)
        else:
            winner, loser = (home, away) if winner_id == match.home_team_id else (away, home)
            winner.won += 1
            winner.competition_points += config.points_for_win
            loser.lost += 1
            loser.competition_points += config.points_for_loss

    for row in standings.values():
        row.points_diff = row.points_for - row.points_against

    # sorted() is stable, so roster order breaks remaining ties
    return sorted(standings.values(), key=lambda row: (-row.competition_points, -row.points_diff))


def get_round_robin_winner(team_ids: List[str], matches: List[Match],
                           config: Optional[CompetitionConfig] = None) -> Optional[str]:
    """Standings leader once every match has been completed."""
    if not matches or not all(m.is_completed for m in matches):
        return None
    standings = calculate_standings(team_ids, matches, config)
    return standings[0].team_id if standings else None
