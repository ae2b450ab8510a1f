"""
Data model shared by every competition format.

Matches and rotation states are plain dataclasses. The engine never mutates
one it was handed; every transition builds new values with
``dataclasses.replace``. An unassigned team slot is ``None``.
"""
from dataclasses import dataclass, field, fields, replace, is_dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class MatchStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class BracketTag(str, Enum):
    NONE = "none"
    WINNERS = "winners"
    LOSERS = "losers"
    GRAND_FINALS = "grand_finals"


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def _plain(value):
    """Convert a model value into JSON/YAML friendly primitives."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _Serializable:
    """camelCase dict round-tripping for the external UI/persistence layers."""

    def to_dict(self) -> Dict:
        return {_camel(f.name): _plain(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def _kwargs(cls, data: Dict) -> Dict:
        kwargs = {}
        for f in fields(cls):
            if f.name in data:
                kwargs[f.name] = data[f.name]
            elif _camel(f.name) in data:
                kwargs[f.name] = data[_camel(f.name)]
        return kwargs

    @classmethod
    def from_dict(cls, data: Dict):
        return cls(**cls._kwargs(data))


@dataclass
class Team(_Serializable):
    id: str
    name: str
    color: Optional[str] = None


def make_match_id(competition_id: str, code: str) -> str:
    """Deterministic match id, e.g. ``cup:W1-M3``."""
    return f"{competition_id}:{code}"


@dataclass
class Match(_Serializable):
    id: str
    competition_id: Optional[str]
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    home_score: int = 0
    away_score: int = 0
    status: MatchStatus = MatchStatus.PENDING
    round: int = 1
    position: int = 1
    bracket: BracketTag = BracketTag.NONE
    winner_id: Optional[str] = None
    is_bye: bool = False
    series_length: Optional[int] = None
    home_wins: Optional[int] = None
    away_wins: Optional[int] = None
    series_game: Optional[int] = None

    def __post_init__(self):
        # Accept raw strings coming from deserialized payloads
        self.status = MatchStatus(self.status)
        self.bracket = BracketTag(self.bracket or BracketTag.NONE)
        # Legacy payloads use "" for an undecided slot
        if self.home_team_id == "":
            self.home_team_id = None
        if self.away_team_id == "":
            self.away_team_id = None

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def is_placeholder(self) -> bool:
        return self.home_team_id is None or self.away_team_id is None

    @property
    def team_ids(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.home_team_id, self.away_team_id)

    @property
    def loser_id(self) -> Optional[str]:
        """The team that did not win, or None for byes and undecided matches."""
        if self.winner_id is None:
            return None
        if self.winner_id == self.home_team_id:
            return self.away_team_id
        if self.winner_id == self.away_team_id:
            return self.home_team_id
        return None

    def with_team(self, slot: str, team_id: Optional[str]) -> 'Match':
        """Return a copy with ``team_id`` placed in the ``home`` or ``away`` slot."""
        if slot == 'home':
            return replace(self, home_team_id=team_id)
        return replace(self, away_team_id=team_id)


@dataclass
class StandingRow(_Serializable):
    team_id: str
    played: int = 0
    won: int = 0
    lost: int = 0
    tied: int = 0
    points_for: int = 0
    points_against: int = 0
    points_diff: int = 0
    competition_points: int = 0


# ---------------------------------------------------------------------------
# Rotation formats
# ---------------------------------------------------------------------------

@dataclass
class Win2OutTeamStatus(_Serializable):
    team_id: str
    win_streak: int = 0
    matches_played: int = 0
    champion_count: int = 0
    current_court: Optional[int] = None


@dataclass
class Win2OutCourt(_Serializable):
    court_number: int
    team_ids: Tuple[str, str]
    current_champion_id: Optional[str] = None

    def __post_init__(self):
        self.team_ids = tuple(self.team_ids)


@dataclass
class Win2OutState(_Serializable):
    competition_id: str
    team_statuses: List[Win2OutTeamStatus]
    queue: List[str]
    courts: List[Win2OutCourt]
    number_of_courts: int
    is_complete: bool = False

    @classmethod
    def from_dict(cls, data: Dict) -> 'Win2OutState':
        kwargs = cls._kwargs(data)
        kwargs['team_statuses'] = [Win2OutTeamStatus.from_dict(s) for s in kwargs.get('team_statuses', [])]
        kwargs['courts'] = [Win2OutCourt.from_dict(c) for c in kwargs.get('courts', [])]
        kwargs['queue'] = list(kwargs.get('queue', []))
        return cls(**kwargs)


@dataclass
class TwoMatchTeamStatus(_Serializable):
    team_id: str
    session_matches: int = 0
    total_matches: int = 0
    total_wins: int = 0
    total_losses: int = 0
    current_court: Optional[int] = None


@dataclass
class TwoMatchCourt(_Serializable):
    court_number: int
    team_ids: Tuple[str, str]
    is_first_match: bool = True

    def __post_init__(self):
        self.team_ids = tuple(self.team_ids)


@dataclass
class TwoMatchRotationState(_Serializable):
    competition_id: str
    team_statuses: List[TwoMatchTeamStatus]
    queue: List[str]
    courts: List[TwoMatchCourt]
    number_of_courts: int
    is_complete: bool = False

    @classmethod
    def from_dict(cls, data: Dict) -> 'TwoMatchRotationState':
        kwargs = cls._kwargs(data)
        kwargs['team_statuses'] = [TwoMatchTeamStatus.from_dict(s) for s in kwargs.get('team_statuses', [])]
        kwargs['courts'] = [TwoMatchCourt.from_dict(c) for c in kwargs.get('courts', [])]
        kwargs['queue'] = list(kwargs.get('queue', []))
        return cls(**kwargs)


@dataclass
class RotationResult:
    """Outcome of advancing a rotation format by one completed match."""
    updated_state: object
    next_match: Optional[Match]
    new_champions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'state': self.updated_state.to_dict(),
            'nextMatch': self.next_match.to_dict() if self.next_match else None,
            'newChampions': list(self.new_champions),
        }
