"""
Unit tests for the schedule preview command.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from courtside.exceptions import ValidationError
from courtside.formats import CompetitionFormat, build_competition
from courtside.models import Team
from generate_matches import format_schedule, load_teams, main


class TestLoadTeams:
    """Tests for reading teams files."""

    def test_pool_mapping(self, teams_file):
        teams = load_teams(teams_file)
        assert [t.name for t in teams] == ['Team A', 'Team B', 'Team C', 'Team D', 'Team E']
        assert teams[0].id == 'Team A'

    def test_plain_list(self, tmp_path):
        path = tmp_path / "teams.yaml"
        path.write_text("- Eagles\n- Hawks\n- {name: Owls, id: owls, color: '#333'}\n")
        teams = load_teams(str(path))
        assert [t.id for t in teams] == ['Eagles', 'Hawks', 'owls']
        assert teams[2].color == '#333'

    def test_empty_file(self, tmp_path):
        path = tmp_path / "teams.yaml"
        path.write_text("")
        assert load_teams(str(path)) == []

    def test_scalar_file_rejected(self, tmp_path):
        path = tmp_path / "teams.yaml"
        path.write_text("just a string\n")
        with pytest.raises(ValidationError):
            load_teams(str(path))

    def test_entry_without_name(self, tmp_path):
        path = tmp_path / "teams.yaml"
        path.write_text("- {id: x}\n")
        with pytest.raises(ValidationError):
            load_teams(str(path))


class TestFormatSchedule:
    """Tests for rendering schedules."""

    def test_round_robin(self):
        teams = [Team(id=t, name=f'Team {t}') for t in 'ABC']
        _, matches = build_competition(CompetitionFormat.ROUND_ROBIN, [t.id for t in teams], 'rr')
        lines = format_schedule(matches, teams, CompetitionFormat.ROUND_ROBIN)
        assert lines[0] == '# Round 1'
        assert sum(1 for line in lines if ' vs ' in line) == 3
        assert 'Team A' in '\n'.join(lines)

    def test_single_elimination_names_rounds_and_byes(self):
        teams = [Team(id=t, name=t) for t in 'ABCDE']
        _, matches = build_competition(CompetitionFormat.SINGLE_ELIMINATION, [t.id for t in teams], 'se')
        lines = format_schedule(matches, teams, CompetitionFormat.SINGLE_ELIMINATION)
        assert lines[0] == '# Quarterfinal'
        assert 'A (bye)' in lines
        assert 'D vs E' in lines
        assert '# Final' in lines
        assert 'TBD vs TBD' in lines

    def test_double_elimination_headers(self):
        teams = [Team(id=t, name=t) for t in 'ABCD']
        _, matches = build_competition(CompetitionFormat.DOUBLE_ELIMINATION, [t.id for t in teams], 'de')
        headers = [line for line in format_schedule(matches, teams, CompetitionFormat.DOUBLE_ELIMINATION)
                   if line.startswith('#')]
        assert headers == ['# Winners Semifinal', '# Winners Final', '# Losers Semifinal',
                           '# Losers Final', '# Grand Final']

    def test_rotation_lists_courts(self):
        teams = [Team(id=t, name=t) for t in 'ABCDE']
        _, matches = build_competition(CompetitionFormat.WIN2OUT, [t.id for t in teams], 'w2o', number_of_courts=2)
        lines = format_schedule(matches, teams, CompetitionFormat.WIN2OUT)
        assert lines == ['# Opening matches', 'Court 1: A vs B', 'Court 2: C vs D']


class TestMain:
    """Tests for the command line entry point."""

    def test_prints_schedule(self, teams_file, capsys):
        assert main([teams_file, '--format', 'single_elimination']) == 0
        out = capsys.readouterr().out
        assert '# Quarterfinal' in out
        assert 'Team A (bye)' in out

    def test_rotation_with_courts(self, teams_file, capsys):
        assert main([teams_file, '--format', 'two_match_rotation', '--courts', '2']) == 0
        out = capsys.readouterr().out
        assert 'Court 2: Team C vs Team D' in out

    def test_with_config(self, teams_file, config_file, capsys):
        assert main([teams_file, '--config', config_file, '--competition-id', 'league']) == 0
        assert '# Round 1' in capsys.readouterr().out

    def test_error_goes_to_stderr(self, teams_file, capsys):
        assert main([teams_file, '--format', 'win2out', '--courts', '3']) == 1
        captured = capsys.readouterr()
        assert captured.out == ''
        assert captured.err.startswith('Error:')

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / 'nope.yaml')]) == 1
        assert 'Error:' in capsys.readouterr().err
