"""
Win 2 & Out continuous rotation across one or more courts.

Endless mode: nobody is ever eliminated.
- Loser always goes to the back of the queue
- Winner stays on court unless they have now won 2 in a row
- A team winning 2 in a row is crowned champion, its streak resets and it goes
  to the queue behind the loser; both seats refill from the queue front
"""
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from .exceptions import InvariantViolation, ValidationError
from .models import Match, MatchStatus, RotationResult, Win2OutCourt, Win2OutState, Win2OutTeamStatus, make_match_id

logger = logging.getLogger(__name__)

WINS_TO_CHAMPION = 2


def courts_in_play_for(team_ids: List[str], number_of_courts: int) -> int:
    if number_of_courts < 1:
        raise ValidationError("At least one court is required")
    min_teams = number_of_courts * 2
    if len(team_ids) < min_teams:
        raise ValidationError(f"{number_of_courts} court(s) require at least {min_teams} teams")
    if len(set(team_ids)) != len(team_ids):
        raise ValidationError("Team ids must be unique")
    # Clamp courts to maximum possible
    return min(number_of_courts, len(team_ids) // 2)


def rotation_match(competition_id: str, court_number: int, round_num: int,
                   home_team_id: str, away_team_id: str) -> Match:
    """Pending match for one court; the position is the court number."""
    return Match(
        id=make_match_id(competition_id, f"C{court_number}-G{round_num}"),
        competition_id=competition_id,
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        status=MatchStatus.PENDING,
        round=round_num,
        position=court_number,
    )


def initialize_win2out_state(competition_id: str, team_ids: List[str], number_of_courts: int = 1) -> Win2OutState:
    """
    Initialize Win 2 & Out state for a competition.
    The first two teams per court play, the rest wait in the queue in roster order.
    """
    courts_in_play = courts_in_play_for(team_ids, number_of_courts)

    courts = []
    statuses = []
    for index, team_id in enumerate(team_ids):
        court_number = index // 2 + 1 if index < courts_in_play * 2 else None
        statuses.append(Win2OutTeamStatus(team_id=team_id, current_court=court_number))
    for court_number in range(1, courts_in_play + 1):
        first = (court_number - 1) * 2
        courts.append(Win2OutCourt(court_number=court_number, team_ids=(team_ids[first], team_ids[first + 1])))

    return Win2OutState(
        competition_id=competition_id,
        team_statuses=statuses,
        queue=list(team_ids[courts_in_play * 2:]),
        courts=courts,
        number_of_courts=courts_in_play,
    )


def generate_initial_matches(competition_id: str, team_ids: List[str], number_of_courts: int = 1) -> List[Match]:
    """Generate the opening match for every court."""
    courts_in_play = courts_in_play_for(team_ids, number_of_courts)
    return [
        rotation_match(competition_id, court + 1, 1, team_ids[court * 2], team_ids[court * 2 + 1])
        for court in range(courts_in_play)
    ]


def build_win2out(team_ids: List[str], competition_id: str,
                  number_of_courts: int = 1) -> Tuple[List[Match], Win2OutState]:
    """Opening matches plus the initial rotation state."""
    state = initialize_win2out_state(competition_id, team_ids, number_of_courts)
    matches = generate_initial_matches(competition_id, team_ids, number_of_courts)
    logger.debug("Built Win 2 & Out for %s: %d teams on %d court(s)",
                 competition_id, len(team_ids), state.number_of_courts)
    return matches, state


def resolve_result(completed_match: Match) -> Tuple[str, str]:
    """Return (winner_id, loser_id) of a completed rotation match."""
    winner_id = completed_match.winner_id
    if not winner_id or winner_id not in completed_match.team_ids:
        raise InvariantViolation(f"Match {completed_match.id} must have a winner")
    loser_id = completed_match.away_team_id if winner_id == completed_match.home_team_id else completed_match.home_team_id
    if not loser_id:
        raise InvariantViolation(f"Match {completed_match.id} must have two teams")
    return winner_id, loser_id


def find_court_index(courts: List, winner_id: str, loser_id: str) -> int:
    for index, court in enumerate(courts):
        if winner_id in court.team_ids and loser_id in court.team_ids:
            return index
    raise InvariantViolation(f"Could not find court holding {winner_id} and {loser_id}")


def process_match_result(state: Win2OutState, completed_match: Match) -> RotationResult:
    """
    Process a completed match and return the updated Win 2 & Out state.

    The court's next match (round + 1, position = court number) is always
    produced, since the teams leaving the court are queued before the free
    seats are refilled.
    """
    winner_id, loser_id = resolve_result(completed_match)
    court_index = find_court_index(state.courts, winner_id, loser_id)
    court = state.courts[court_index]

    statuses: Dict[str, Win2OutTeamStatus] = {s.team_id: s for s in state.team_statuses}
    winner_status = statuses[winner_id]
    became_champion = winner_status.win_streak + 1 >= WINS_TO_CHAMPION

    statuses[winner_id] = replace(
        winner_status,
        win_streak=0 if became_champion else winner_status.win_streak + 1,
        matches_played=winner_status.matches_played + 1,
        champion_count=winner_status.champion_count + (1 if became_champion else 0),
    )
    statuses[loser_id] = replace(
        statuses[loser_id],
        win_streak=0,
        matches_played=statuses[loser_id].matches_played + 1,
        current_court=None,
    )

    queue = list(state.queue)
    # Loser goes to back of queue first, a new champion lines up behind
    queue.append(loser_id)
    new_champions = []
    if became_champion:
        new_champions.append(winner_id)
        statuses[winner_id] = replace(statuses[winner_id], current_court=None)
        queue.append(winner_id)
        home_id = queue.pop(0)
        away_id = queue.pop(0)
        champion_id: Optional[str] = None
        logger.info("%s crowned champion on court %d", winner_id, court.court_number)
    else:
        home_id = winner_id
        away_id = queue.pop(0)
        champion_id = winner_id

    for team_id in (home_id, away_id):
        statuses[team_id] = replace(statuses[team_id], current_court=court.court_number)

    courts = list(state.courts)
    courts[court_index] = replace(court, team_ids=(home_id, away_id), current_champion_id=champion_id)

    next_match = rotation_match(state.competition_id, court.court_number, completed_match.round + 1, home_id, away_id)
    updated_state = replace(
        state,
        team_statuses=[statuses[s.team_id] for s in state.team_statuses],
        queue=queue,
        courts=courts,
        is_complete=False,
    )
    return RotationResult(updated_state=updated_state, next_match=next_match, new_champions=new_champions)


def get_teams_by_status(state: Win2OutState) -> Dict[str, List[Win2OutTeamStatus]]:
    """
    Get teams grouped by their status.

    Returns dict with:
    - 'champions': teams crowned at least once, most crowns first
    - 'in_queue': statuses in queue order
    - 'on_court': statuses of teams currently on a court
    """
    by_id = {s.team_id: s for s in state.team_statuses}
    on_court_ids = {team_id for court in state.courts for team_id in court.team_ids}
    champions = sorted((s for s in state.team_statuses if s.champion_count > 0),
                       key=lambda s: -s.champion_count)
    return {
        'champions': champions,
        'in_queue': [by_id[team_id] for team_id in state.queue if team_id in by_id],
        'on_court': [s for s in state.team_statuses if s.team_id in on_court_ids],
    }


def get_current_champion_streak(state: Win2OutState, court_number: int = 1) -> int:
    """Win streak of the team holding the given court, 0 if nobody is on a streak."""
    court = next((c for c in state.courts if c.court_number == court_number), None)
    if court is None or court.current_champion_id is None:
        return 0
    status = next((s for s in state.team_statuses if s.team_id == court.current_champion_id), None)
    return status.win_streak if status else 0


def get_champion_count(state: Win2OutState, team_id: str) -> int:
    """Get total champion crowns for a team."""
    status = next((s for s in state.team_statuses if s.team_id == team_id), None)
    return status.champion_count if status else 0
