"""
Competition formats and the build/advance entry points that dispatch to the
format engines.

A competition is one of five record types, one per format. Only the rotation
formats carry a rotation state, so a bracket competition can never hold a
queue and a rotation competition can never hold a bracket.
"""
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple, Union

from .config import CompetitionConfig
from .double_elimination import advance_double_elimination, generate_double_elimination_bracket, get_double_elim_champion
from .elimination import advance_winner, generate_single_elimination_bracket, get_champion
from .exceptions import InvariantViolation, ValidationError
from .models import BracketTag, Match, RotationResult, TwoMatchRotationState, Win2OutState
from .round_robin import generate_round_robin_schedule, get_round_robin_winner
from .scoring import start_series, wins_needed
from . import two_match_rotation, win2out

logger = logging.getLogger(__name__)


class CompetitionFormat(str, Enum):
    ROUND_ROBIN = "round_robin"
    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"
    WIN2OUT = "win2out"
    TWO_MATCH_ROTATION = "two_match_rotation"


# Rotation formats need 2 teams per court on top of this
MIN_TEAMS = {
    CompetitionFormat.ROUND_ROBIN: 2,
    CompetitionFormat.SINGLE_ELIMINATION: 2,
    CompetitionFormat.DOUBLE_ELIMINATION: 4,
    CompetitionFormat.WIN2OUT: 2,
    CompetitionFormat.TWO_MATCH_ROTATION: 2,
}

ROTATION_FORMATS = (CompetitionFormat.WIN2OUT, CompetitionFormat.TWO_MATCH_ROTATION)


@dataclass
class Competition:
    id: str
    team_ids: List[str]
    name: str = ''
    config: CompetitionConfig = field(default_factory=CompetitionConfig)
    series_length: Optional[int] = None

    format: ClassVar[CompetitionFormat]

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'name': self.name,
            'format': self.format.value,
            'teamIds': list(self.team_ids),
            'config': self.config.to_dict(),
            'seriesLength': self.series_length,
        }
        state = getattr(self, 'state', None)
        if state is not None:
            data['state'] = state.to_dict()
        return data


@dataclass
class RoundRobinCompetition(Competition):
    format: ClassVar[CompetitionFormat] = CompetitionFormat.ROUND_ROBIN


@dataclass
class SingleEliminationCompetition(Competition):
    format: ClassVar[CompetitionFormat] = CompetitionFormat.SINGLE_ELIMINATION


@dataclass
class DoubleEliminationCompetition(Competition):
    format: ClassVar[CompetitionFormat] = CompetitionFormat.DOUBLE_ELIMINATION


@dataclass(kw_only=True)
class Win2OutCompetition(Competition):
    state: Win2OutState
    format: ClassVar[CompetitionFormat] = CompetitionFormat.WIN2OUT


@dataclass(kw_only=True)
class TwoMatchRotationCompetition(Competition):
    state: TwoMatchRotationState
    format: ClassVar[CompetitionFormat] = CompetitionFormat.TWO_MATCH_ROTATION


AnyCompetition = Union[
    RoundRobinCompetition,
    SingleEliminationCompetition,
    DoubleEliminationCompetition,
    Win2OutCompetition,
    TwoMatchRotationCompetition,
]
RotationState = Union[Win2OutState, TwoMatchRotationState]


def parse_format(value) -> CompetitionFormat:
    try:
        return CompetitionFormat(value)
    except ValueError:
        raise ValidationError(f"Unknown competition format: {value!r}")


def build_competition(competition_format, team_ids: List[str], competition_id: str, name: str = '',
                      config: Optional[CompetitionConfig] = None, number_of_courts: int = 1,
                      bye_team_ids: Optional[List[str]] = None,
                      series_length: Optional[int] = None) -> Tuple[AnyCompetition, List[Match]]:
    """
    Create a competition record and its initial matches.

    Bracket and round robin playable matches become best-of-``series_length``
    series when a length above 1 is given.
    """
    competition_format = parse_format(competition_format)
    if series_length is not None:
        wins_needed(series_length)
    config = config or CompetitionConfig()
    common = dict(id=competition_id, team_ids=list(team_ids), name=name, config=config)

    if competition_format in ROTATION_FORMATS:
        if series_length and series_length > 1:
            logger.warning("Series length ignored for %s", competition_format.value)
        if competition_format == CompetitionFormat.WIN2OUT:
            matches, state = win2out.build_win2out(team_ids, competition_id, number_of_courts)
            competition = Win2OutCompetition(state=state, **common)
        else:
            matches, state = two_match_rotation.build_two_match_rotation(team_ids, competition_id, number_of_courts)
            competition = TwoMatchRotationCompetition(state=state, **common)
        logger.info("Created %s competition %s with %d teams", competition_format.value, competition_id, len(team_ids))
        return competition, matches

    if competition_format == CompetitionFormat.ROUND_ROBIN:
        matches = generate_round_robin_schedule(team_ids, competition_id)
        competition = RoundRobinCompetition(series_length=series_length, **common)
    elif competition_format == CompetitionFormat.SINGLE_ELIMINATION:
        matches = generate_single_elimination_bracket(team_ids, competition_id, bye_team_ids)
        competition = SingleEliminationCompetition(series_length=series_length, **common)
    else:
        matches = generate_double_elimination_bracket(team_ids, competition_id, bye_team_ids)
        competition = DoubleEliminationCompetition(series_length=series_length, **common)

    if series_length and series_length > 1:
        matches = [m if m.is_bye else start_series(m, series_length) for m in matches]

    logger.info("Created %s competition %s with %d teams and %d matches",
                competition_format.value, competition_id, len(team_ids), len(matches))
    return competition, matches


def advance_bracket(matches: List[Match], completed_match: Match, winner_id: str) -> List[Match]:
    """Route a bracket result using the rules of the match's bracket tag."""
    if completed_match.bracket == BracketTag.NONE:
        return advance_winner(matches, completed_match, winner_id)
    return advance_double_elimination(matches, completed_match, winner_id)


def advance_rotation(state: RotationState, completed_match: Match) -> RotationResult:
    """Rotate the court a completed match was played on."""
    if isinstance(state, Win2OutState):
        return win2out.process_match_result(state, completed_match)
    if isinstance(state, TwoMatchRotationState):
        return two_match_rotation.process_match_result(state, completed_match)
    raise InvariantViolation(f"Not a rotation state: {type(state).__name__}")


def advance_competition(competition: AnyCompetition, matches: List[Match],
                        completed_match: Match) -> Tuple[AnyCompetition, List[Match], List[Match]]:
    """
    Apply one completed match to a competition.

    Returns (competition, matches, new_matches) where new_matches are the
    matches that just became playable: the next rotation match, or bracket
    matches whose second team has arrived.
    """
    if not completed_match.is_completed or not completed_match.winner_id:
        raise InvariantViolation(f"Match {completed_match.id} must be completed with a winner")

    matches = [completed_match if m.id == completed_match.id else m for m in matches]

    if isinstance(competition, (Win2OutCompetition, TwoMatchRotationCompetition)):
        result = advance_rotation(competition.state, completed_match)
        competition = replace(competition, state=result.updated_state)
        new_matches = [result.next_match] if result.next_match else []
        return competition, matches + new_matches, new_matches

    if isinstance(competition, RoundRobinCompetition):
        return competition, matches, []

    before = {m.id: m for m in matches}
    updated = advance_bracket(matches, completed_match, completed_match.winner_id)
    new_matches = [
        m for m in updated
        if not m.is_completed and not m.is_placeholder and before[m.id].is_placeholder
    ]
    return competition, updated, new_matches


def determine_competition_winner(competition: AnyCompetition, matches: List[Match]) -> Optional[str]:
    """Overall winner once decided; rotation formats never finish."""
    if isinstance(competition, RoundRobinCompetition):
        return get_round_robin_winner(competition.team_ids, matches, competition.config)
    if isinstance(competition, SingleEliminationCompetition):
        return get_champion(matches)
    if isinstance(competition, DoubleEliminationCompetition):
        return get_double_elim_champion(matches)
    return None
