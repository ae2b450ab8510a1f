"""
Print the opening schedule of a competition built from a teams file.

    python src/generate_matches.py data/teams.yaml --format double_elimination
"""
import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

import yaml

from courtside.config import CompetitionConfig, load_competition_config
from courtside.double_elimination import get_double_elim_round_name
from courtside.elimination import get_round_name
from courtside.exceptions import CourtsideError, ValidationError
from courtside.formats import ROTATION_FORMATS, CompetitionFormat, build_competition
from courtside.models import BracketTag, Match, Team

logger = logging.getLogger(__name__)

BRACKET_ORDER = [BracketTag.NONE, BracketTag.WINNERS, BracketTag.LOSERS, BracketTag.GRAND_FINALS]


def _team_from_entry(entry) -> Team:
    if isinstance(entry, dict):
        if not entry.get('name'):
            raise ValidationError(f"Team entry without a name: {entry}")
        return Team(id=str(entry.get('id') or entry['name']), name=str(entry['name']), color=entry.get('color'))
    return Team(id=str(entry), name=str(entry))


def load_teams(file_path: str) -> List[Team]:
    """
    Load teams from YAML.

    The file is either a list of team names, or a mapping of pool name to team
    names, in which case the pools are concatenated in file order. A team may
    also be a mapping with name and optional id/color.
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        try:
            data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid teams file {file_path}: {e}")

    if not data:
        return []
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict):
        entries = []
        for pool_name, team_names in data.items():
            if not isinstance(team_names, list):
                raise ValidationError(f"Pool {pool_name} must list its teams")
            entries.extend(team_names or [])
    else:
        raise ValidationError(f"Teams file {file_path} must hold a list or a mapping of pools")

    return [_team_from_entry(entry) for entry in entries]


def _round_label(competition_format: CompetitionFormat, bracket: BracketTag, round_num: int,
                 rounds_per_bracket: Dict[BracketTag, int]) -> str:
    if competition_format == CompetitionFormat.SINGLE_ELIMINATION:
        return get_round_name(round_num, rounds_per_bracket[bracket])
    if competition_format == CompetitionFormat.DOUBLE_ELIMINATION:
        return get_double_elim_round_name(round_num, bracket,
                                          rounds_per_bracket.get(BracketTag.WINNERS, 0),
                                          rounds_per_bracket.get(BracketTag.LOSERS, 0))
    if competition_format in ROTATION_FORMATS:
        return "Opening matches"
    return f"Round {round_num}"


def _match_line(match: Match, names: Dict[str, str], competition_format: CompetitionFormat) -> str:
    home = names.get(match.home_team_id, match.home_team_id) if match.home_team_id else "TBD"
    away = names.get(match.away_team_id, match.away_team_id) if match.away_team_id else "TBD"
    if match.is_bye:
        winner = names.get(match.winner_id, match.winner_id)
        return f"{winner} (bye)"
    if competition_format in ROTATION_FORMATS:
        return f"Court {match.position}: {home} vs {away}"
    return f"{home} vs {away}"


def format_schedule(matches: List[Match], teams: List[Team], competition_format: CompetitionFormat) -> List[str]:
    """Render matches as text lines grouped by bracket and round."""
    names = {team.id: team.name for team in teams}
    rounds_per_bracket: Dict[BracketTag, int] = {}
    for match in matches:
        rounds_per_bracket[match.bracket] = max(rounds_per_bracket.get(match.bracket, 0), match.round)

    lines = []
    for bracket in BRACKET_ORDER:
        for round_num in range(1, rounds_per_bracket.get(bracket, 0) + 1):
            round_matches = sorted((m for m in matches if m.bracket == bracket and m.round == round_num),
                                   key=lambda m: m.position)
            if not round_matches:
                continue
            if lines:
                lines.append("")  # Blank line between rounds
            lines.append(f"# {_round_label(competition_format, bracket, round_num, rounds_per_bracket)}")
            lines.extend(_match_line(m, names, competition_format) for m in round_matches)
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print the opening schedule of a competition.")
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)
    parser.add_argument('teams_file', nargs='?', default=os.path.join(base_dir, 'data', 'teams.yaml'),
                        help="YAML list of teams, or mapping of pool -> teams")
    parser.add_argument('--format', dest='competition_format', default=CompetitionFormat.ROUND_ROBIN.value,
                        choices=[f.value for f in CompetitionFormat])
    parser.add_argument('--courts', type=int, default=1, help="Courts for rotation formats")
    parser.add_argument('--competition-id', default='competition')
    parser.add_argument('--config', help="Competition config YAML file")
    parser.add_argument('--bye', action='append', dest='bye_team_ids', default=None,
                        help="Team that should receive a first round bye (repeatable)")
    parser.add_argument('--series-length', type=int, default=None)
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        config = load_competition_config(args.config) if args.config else CompetitionConfig()
        teams = load_teams(args.teams_file)
        competition_format = CompetitionFormat(args.competition_format)
        competition, matches = build_competition(
            competition_format,
            [team.id for team in teams],
            args.competition_id,
            config=config,
            number_of_courts=args.courts,
            bye_team_ids=args.bye_team_ids,
            series_length=args.series_length,
        )
    except (CourtsideError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.debug("Built %s with %d matches", competition.format.value, len(matches))
    for line in format_schedule(matches, teams, competition_format):
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
