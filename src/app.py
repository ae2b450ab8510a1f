"""
Flask web application for Courtside competition formats.

The API is stateless: callers post the current matches (and rotation state)
and receive the updated values back. Nothing is stored server side.
"""
import os
import logging
from dataclasses import replace
from typing import Dict, List

from flask import Flask, request, jsonify

from courtside.config import CompetitionConfig, get_competition_config, load_competition_config
from courtside.exceptions import InvariantViolation, ValidationError
from courtside.formats import (MIN_TEAMS, ROTATION_FORMATS, CompetitionFormat, advance_bracket, advance_rotation,
                               build_competition, parse_format)
from courtside.models import Match, MatchStatus, TwoMatchRotationState, Win2OutState
from courtside.round_robin import calculate_standings

app = Flask(__name__)

CONFIG_FILE = os.environ.get('COURTSIDE_CONFIG_FILE')
LOG_LEVEL = os.environ.get('COURTSIDE_LOG_LEVEL', 'INFO')

_level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
app.logger.setLevel(_level)
logging.getLogger('courtside').setLevel(_level)


def get_default_config() -> CompetitionConfig:
    """Load the server-wide default config, falling back to built-in defaults."""
    if not CONFIG_FILE:
        return CompetitionConfig()
    if not os.path.exists(CONFIG_FILE):
        app.logger.warning(f'Config file {CONFIG_FILE} not found, using defaults')
        return CompetitionConfig()
    return load_competition_config(CONFIG_FILE)


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------

def _json_body() -> Dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _require(data: Dict, key: str):
    if data.get(key) is None:
        raise ValidationError(f'Missing {key}')
    return data[key]


def _team_ids(data: Dict, key: str = 'teamIds') -> List[str]:
    team_ids = _require(data, key)
    if not isinstance(team_ids, list) or not all(isinstance(t, str) and t for t in team_ids):
        raise ValidationError(f'{key} must be a list of team ids')
    return team_ids


def _int(data: Dict, key: str, default=None):
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'{key} must be an integer')
    return value


def _parse_match(data) -> Match:
    if not isinstance(data, dict):
        raise ValidationError('Match must be a JSON object')
    try:
        return Match.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValidationError(f'Invalid match: {e}')


def _parse_matches(data: Dict) -> List[Match]:
    matches = _require(data, 'matches')
    if not isinstance(matches, list):
        raise ValidationError('matches must be a list')
    return [_parse_match(m) for m in matches]


def _parse_config(data: Dict) -> CompetitionConfig:
    """Merge a request's partial config over the server default."""
    default = get_default_config()
    partial = data.get('config')
    if not partial:
        return default
    if not isinstance(partial, dict):
        raise ValidationError('config must be a JSON object')
    merged = default.to_dict()
    merged.update(partial)
    return get_competition_config(merged)


def _parse_state(competition_format: CompetitionFormat, data):
    if not isinstance(data, dict):
        raise ValidationError('state must be a JSON object')
    state_class = Win2OutState if competition_format == CompetitionFormat.WIN2OUT else TwoMatchRotationState
    try:
        return state_class.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValidationError(f'Invalid rotation state: {e}')


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@app.errorhandler(ValidationError)
def handle_validation_error(e):
    app.logger.info(f'Rejected request to {request.path}: {e}')
    return jsonify({'error': str(e)}), 400


@app.errorhandler(InvariantViolation)
def handle_invariant_violation(e):
    app.logger.warning(f'Invariant violated on {request.path}: {e}')
    return jsonify({'error': str(e)}), 409


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.route('/api/formats', methods=['GET'])
def api_formats():
    """List supported formats and their minimum team counts."""
    return jsonify({'formats': [
        {
            'format': competition_format.value,
            'minTeams': MIN_TEAMS[competition_format],
            'usesCourts': competition_format in ROTATION_FORMATS,
        }
        for competition_format in CompetitionFormat
    ]})


@app.route('/api/competitions/build', methods=['POST'])
def api_build_competition():
    """Create a competition and its opening matches."""
    data = _json_body()
    competition_format = parse_format(_require(data, 'format'))
    competition_id = _require(data, 'competitionId')
    if not isinstance(competition_id, str):
        raise ValidationError('competitionId must be a string')
    bye_team_ids = data.get('byeTeamIds')
    if bye_team_ids is not None:
        bye_team_ids = _team_ids(data, 'byeTeamIds')

    competition, matches = build_competition(
        competition_format,
        _team_ids(data),
        competition_id,
        name=data.get('name') or '',
        config=_parse_config(data),
        number_of_courts=_int(data, 'numberOfCourts', 1),
        bye_team_ids=bye_team_ids,
        series_length=_int(data, 'seriesLength'),
    )
    app.logger.info(f'Built {competition_format.value} competition {competition_id} ({len(matches)} matches)')
    return jsonify({
        'competition': competition.to_dict(),
        'matches': [m.to_dict() for m in matches],
    })


@app.route('/api/brackets/advance', methods=['POST'])
def api_advance_bracket():
    """Record a bracket result and route its teams onward."""
    data = _json_body()
    matches = _parse_matches(data)
    completed = _parse_match(_require(data, 'completedMatch'))
    winner_id = data.get('winnerId') or completed.winner_id

    if not winner_id:
        raise InvariantViolation(f'Match {completed.id} must have a winner')
    if winner_id not in completed.team_ids:
        raise ValidationError(f'{winner_id} did not play in match {completed.id}')
    if completed.id not in {m.id for m in matches}:
        raise ValidationError(f'Match {completed.id} is not part of this bracket')

    completed = replace(completed, status=MatchStatus.COMPLETED, winner_id=winner_id)
    matches = [completed if m.id == completed.id else m for m in matches]
    updated = advance_bracket(matches, completed, winner_id)
    return jsonify({'matches': [m.to_dict() for m in updated]})


@app.route('/api/rotations/advance', methods=['POST'])
def api_advance_rotation():
    """Rotate a court after a completed match."""
    data = _json_body()
    competition_format = parse_format(_require(data, 'format'))
    if competition_format not in ROTATION_FORMATS:
        raise ValidationError(f'{competition_format.value} is not a rotation format')
    state = _parse_state(competition_format, _require(data, 'state'))
    completed = _parse_match(_require(data, 'completedMatch'))
    if not completed.is_completed:
        raise InvariantViolation(f'Match {completed.id} is not completed')

    result = advance_rotation(state, completed)
    if result.new_champions:
        app.logger.info(f'New champions in {state.competition_id}: {", ".join(result.new_champions)}')
    return jsonify(result.to_dict())


@app.route('/api/standings', methods=['POST'])
def api_standings():
    """Compute round robin standings from completed matches."""
    data = _json_body()
    standings = calculate_standings(_team_ids(data), _parse_matches(data), _parse_config(data))
    return jsonify({'standings': [row.to_dict() for row in standings]})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
