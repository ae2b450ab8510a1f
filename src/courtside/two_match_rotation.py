"""
Two Match Rotation: teams play at most two matches per visit to a court.

RULES:
- First match per court: winner stays, loser goes to queue
- After that, a team that has played 2 matches this session goes to the back
  of the queue
- If the winner is not rotating, the loser always goes to the queue
- If the winner is rotating and the loser has not reached 2 matches, the
  loser stays on to face the next challenger
- Going to the queue resets a team's session matches
"""
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from .models import Match, RotationResult, TwoMatchCourt, TwoMatchRotationState, TwoMatchTeamStatus
from .win2out import courts_in_play_for, find_court_index, resolve_result, rotation_match

logger = logging.getLogger(__name__)

SESSION_MATCH_CAP = 2


def initialize_two_match_rotation_state(competition_id: str, team_ids: List[str],
                                        number_of_courts: int = 1) -> TwoMatchRotationState:
    """
    Initialize Two Match Rotation state for a competition.
    Supports multiple courts running simultaneously.
    """
    courts_in_play = courts_in_play_for(team_ids, number_of_courts)

    statuses = []
    for index, team_id in enumerate(team_ids):
        court_number = index // 2 + 1 if index < courts_in_play * 2 else None
        statuses.append(TwoMatchTeamStatus(team_id=team_id, current_court=court_number))

    courts = [
        TwoMatchCourt(court_number=number, team_ids=(team_ids[(number - 1) * 2], team_ids[(number - 1) * 2 + 1]))
        for number in range(1, courts_in_play + 1)
    ]

    return TwoMatchRotationState(
        competition_id=competition_id,
        team_statuses=statuses,
        queue=list(team_ids[courts_in_play * 2:]),
        courts=courts,
        number_of_courts=courts_in_play,
    )


def build_two_match_rotation(team_ids: List[str], competition_id: str,
                             number_of_courts: int = 1) -> Tuple[List[Match], TwoMatchRotationState]:
    """Opening matches plus the initial rotation state."""
    state = initialize_two_match_rotation_state(competition_id, team_ids, number_of_courts)
    matches = [
        rotation_match(competition_id, court.court_number, 1, court.team_ids[0], court.team_ids[1])
        for court in state.courts
    ]
    logger.debug("Built Two Match Rotation for %s: %d teams on %d court(s)",
                 competition_id, len(team_ids), state.number_of_courts)
    return matches, state


def process_match_result(state: TwoMatchRotationState, completed_match: Match) -> RotationResult:
    """
    Process a completed match and return the updated Two Match Rotation state.
    Each court rotates independently of the others.
    """
    winner_id, loser_id = resolve_result(completed_match)
    court_index = find_court_index(state.courts, winner_id, loser_id)
    court = state.courts[court_index]

    statuses: Dict[str, TwoMatchTeamStatus] = {s.team_id: s for s in state.team_statuses}
    winner = statuses[winner_id]
    loser = statuses[loser_id]
    statuses[winner_id] = winner = replace(
        winner,
        session_matches=winner.session_matches + 1,
        total_matches=winner.total_matches + 1,
        total_wins=winner.total_wins + 1,
    )
    statuses[loser_id] = loser = replace(
        loser,
        session_matches=loser.session_matches + 1,
        total_matches=loser.total_matches + 1,
        total_losses=loser.total_losses + 1,
    )

    staying_id: Optional[str] = None
    to_queue: List[str] = []

    if court.is_first_match:
        staying_id = winner_id
        to_queue.append(loser_id)
    else:
        winner_must_rotate = winner.session_matches >= SESSION_MATCH_CAP
        loser_must_rotate = loser.session_matches >= SESSION_MATCH_CAP

        if winner_must_rotate:
            to_queue.append(winner_id)
            if loser_must_rotate:
                to_queue.append(loser_id)
            else:
                # Loser hasn't played 2 yet, so they hold the court
                staying_id = loser_id
        else:
            staying_id = winner_id
            to_queue.append(loser_id)

    for team_id in to_queue:
        statuses[team_id] = replace(statuses[team_id], session_matches=0, current_court=None)

    queue = list(state.queue) + to_queue
    if staying_id is not None:
        home_id, away_id = staying_id, queue.pop(0)
    else:
        logger.debug("Both teams rotated off court %d", court.court_number)
        home_id, away_id = queue.pop(0), queue.pop(0)

    for team_id in (home_id, away_id):
        statuses[team_id] = replace(statuses[team_id], current_court=court.court_number)

    courts = list(state.courts)
    courts[court_index] = replace(court, team_ids=(home_id, away_id), is_first_match=False)

    next_match = rotation_match(state.competition_id, court.court_number, completed_match.round + 1, home_id, away_id)
    updated_state = replace(
        state,
        team_statuses=[statuses[s.team_id] for s in state.team_statuses],
        queue=queue,
        courts=courts,
        is_complete=False,
    )
    return RotationResult(updated_state=updated_state, next_match=next_match)


def get_teams_by_status(state: TwoMatchRotationState) -> Dict[str, List]:
    """
    Get teams grouped by their status.

    Returns dict with:
    - 'on_court': (status, court number, is first match on court) per seat
    - 'in_queue': statuses in queue order
    - 'leaderboard': teams with at least one match, by wins then win rate
    """
    by_id = {s.team_id: s for s in state.team_statuses}
    on_court = [
        (by_id[team_id], court.court_number, court.is_first_match)
        for court in state.courts
        for team_id in court.team_ids
        if team_id in by_id
    ]
    leaderboard = sorted(
        (s for s in state.team_statuses if s.total_matches > 0),
        key=lambda s: (-s.total_wins, -(s.total_wins / s.total_matches)),
    )
    return {
        'on_court': on_court,
        'in_queue': [by_id[team_id] for team_id in state.queue if team_id in by_id],
        'leaderboard': leaderboard,
    }


def get_session_match_count(state: TwoMatchRotationState, team_id: str) -> int:
    """Get session match count for a specific team."""
    status = next((s for s in state.team_statuses if s.team_id == team_id), None)
    return status.session_matches if status else 0


def get_team_court(state: TwoMatchRotationState, team_id: str) -> Optional[TwoMatchCourt]:
    """Get court info for a specific team."""
    return next((c for c in state.courts if team_id in c.team_ids), None)
