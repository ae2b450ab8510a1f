"""
Competition configuration: scoring points and display terminology.

Configs are stored as YAML, the same way tournament constraints are, and any
key left out falls back to the defaults below.
"""
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, Optional

import yaml

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_POINTS_FOR_WIN = 3
DEFAULT_POINTS_FOR_LOSS = 0
DEFAULT_POINTS_FOR_TIE = 1


@dataclass
class Terminology:
    venue: str = "court"
    venue_plural: str = "courts"
    match: str = "match"
    match_plural: str = "matches"


@dataclass
class CompetitionConfig:
    points_for_win: int = DEFAULT_POINTS_FOR_WIN
    points_for_tie: Optional[int] = None
    points_for_loss: int = DEFAULT_POINTS_FOR_LOSS
    allow_ties: bool = False
    terminology: Terminology = field(default_factory=Terminology)

    def to_dict(self) -> Dict:
        data = asdict(self)
        return {
            'pointsForWin': data['points_for_win'],
            'pointsForTie': data['points_for_tie'],
            'pointsForLoss': data['points_for_loss'],
            'allowTies': data['allow_ties'],
            'terminology': {
                'venue': self.terminology.venue,
                'venuePlural': self.terminology.venue_plural,
                'match': self.terminology.match,
                'matchPlural': self.terminology.match_plural,
            },
        }


DEFAULT_COMPETITION_CONFIG = CompetitionConfig()


def _pick(data: Dict, snake: str, camel: str, default=None):
    if snake in data:
        return data[snake]
    return data.get(camel, default)


def _as_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer, got {value!r}")


def get_competition_config(partial: Optional[Dict] = None) -> CompetitionConfig:
    """
    Build a complete config by merging a partial mapping over the defaults.

    Keys may be snake_case or camelCase. A tie value is only kept when ties are
    allowed; allowing ties without a value awards DEFAULT_POINTS_FOR_TIE.
    """
    if not partial:
        return CompetitionConfig()
    if not isinstance(partial, dict):
        raise ValidationError("Competition config must be a mapping")

    allow_ties = bool(_pick(partial, 'allow_ties', 'allowTies', False))
    points_for_tie = None
    if allow_ties:
        raw_tie = _pick(partial, 'points_for_tie', 'pointsForTie')
        points_for_tie = DEFAULT_POINTS_FOR_TIE if raw_tie is None else _as_int(raw_tie, 'points_for_tie')
    elif _pick(partial, 'points_for_tie', 'pointsForTie') is not None:
        logger.warning("points_for_tie ignored because ties are not allowed")

    terminology_data = partial.get('terminology') or {}
    defaults = Terminology()
    venue = terminology_data.get('venue', defaults.venue)
    terminology = Terminology(
        venue=venue,
        # A custom venue without an explicit plural gets a naive one
        venue_plural=_pick(terminology_data, 'venue_plural', 'venuePlural',
                           defaults.venue_plural if venue == defaults.venue else venue + "s"),
        match=terminology_data.get('match', defaults.match),
        match_plural=_pick(terminology_data, 'match_plural', 'matchPlural', defaults.match_plural),
    )

    return CompetitionConfig(
        points_for_win=_as_int(_pick(partial, 'points_for_win', 'pointsForWin', DEFAULT_POINTS_FOR_WIN), 'points_for_win'),
        points_for_tie=points_for_tie,
        points_for_loss=_as_int(_pick(partial, 'points_for_loss', 'pointsForLoss', DEFAULT_POINTS_FOR_LOSS), 'points_for_loss'),
        allow_ties=allow_ties,
        terminology=terminology,
    )


def load_competition_config(file_path: str) -> CompetitionConfig:
    """Load a competition config from a YAML file; an empty file gives the defaults."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        try:
            data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid competition config {file_path}: {e}")
    logger.debug("Loaded competition config from %s", file_path)
    return get_competition_config(data or {})
