"""
Unit tests for competition building and format dispatch.
"""
import pytest
import sys
import os
from dataclasses import replace

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from courtside.config import CompetitionConfig
from courtside.exceptions import InvariantViolation, ValidationError
from courtside.formats import (
    CompetitionFormat,
    DoubleEliminationCompetition,
    RoundRobinCompetition,
    SingleEliminationCompetition,
    TwoMatchRotationCompetition,
    Win2OutCompetition,
    advance_bracket,
    advance_competition,
    advance_rotation,
    build_competition,
    determine_competition_winner,
)
from courtside.models import MatchStatus, Win2OutState


def complete(matches, match_id, winner_id):
    match = next(m for m in matches if m.id == match_id)
    return replace(match, status=MatchStatus.COMPLETED, winner_id=winner_id)


class TestBuildCompetition:
    """Tests for building each format."""

    @pytest.mark.parametrize("competition_format, expected_type", [
        (CompetitionFormat.ROUND_ROBIN, RoundRobinCompetition),
        (CompetitionFormat.SINGLE_ELIMINATION, SingleEliminationCompetition),
        (CompetitionFormat.DOUBLE_ELIMINATION, DoubleEliminationCompetition),
        (CompetitionFormat.WIN2OUT, Win2OutCompetition),
        (CompetitionFormat.TWO_MATCH_ROTATION, TwoMatchRotationCompetition),
    ])
    def test_competition_type_per_format(self, competition_format, expected_type, eight_teams):
        competition, matches = build_competition(competition_format, eight_teams, 'c1', name='Cup')
        assert isinstance(competition, expected_type)
        assert competition.format == competition_format
        assert competition.name == 'Cup'
        assert matches

    def test_accepts_format_string(self, six_teams):
        competition, matches = build_competition('round_robin', six_teams, 'rr')
        assert isinstance(competition, RoundRobinCompetition)
        assert len(matches) == 15

    def test_unknown_format(self, six_teams):
        with pytest.raises(ValidationError):
            build_competition('swiss', six_teams, 'c1')

    def test_only_rotation_formats_carry_state(self, six_teams):
        bracket, _ = build_competition(CompetitionFormat.SINGLE_ELIMINATION, six_teams, 'se')
        rotation, _ = build_competition(CompetitionFormat.WIN2OUT, six_teams, 'w2o', number_of_courts=2)
        assert not hasattr(bracket, 'state')
        assert isinstance(rotation.state, Win2OutState)
        assert rotation.state.number_of_courts == 2

    def test_series_length_applied_to_playable_matches(self):
        _, matches = build_competition(CompetitionFormat.SINGLE_ELIMINATION, ['A', 'B', 'C'], 'se', series_length=3)
        for match in matches:
            if match.is_bye:
                assert match.series_length is None
            else:
                assert match.series_length == 3

    def test_series_length_ignored_for_rotations(self, six_teams):
        _, matches = build_competition(CompetitionFormat.WIN2OUT, six_teams, 'w2o', series_length=3)
        assert matches[0].series_length is None

    def test_config_kept(self, six_teams):
        config = CompetitionConfig(points_for_win=2)
        competition, _ = build_competition(CompetitionFormat.ROUND_ROBIN, six_teams, 'rr', config=config)
        assert competition.config.points_for_win == 2

    def test_to_dict(self, six_teams):
        competition, _ = build_competition(CompetitionFormat.TWO_MATCH_ROTATION, six_teams, 'tmr')
        data = competition.to_dict()
        assert data['format'] == 'two_match_rotation'
        assert data['teamIds'] == six_teams
        assert data['state']['queue'] == ['C', 'D', 'E', 'F']
        assert 'state' not in build_competition(CompetitionFormat.ROUND_ROBIN, six_teams, 'rr')[0].to_dict()

    def test_double_elimination_minimum(self):
        with pytest.raises(ValidationError):
            build_competition(CompetitionFormat.DOUBLE_ELIMINATION, ['A', 'B', 'C'], 'de')

    def test_even_series_length_rejected(self, six_teams):
        with pytest.raises(ValidationError):
            build_competition(CompetitionFormat.ROUND_ROBIN, six_teams, 'rr', series_length=2)


class TestDispatch:
    """Tests for bracket and rotation dispatch."""

    def test_advance_bracket_single(self, eight_teams):
        _, matches = build_competition(CompetitionFormat.SINGLE_ELIMINATION, eight_teams, 'se')
        completed = complete(matches, 'se:R1-M1', 'T8')
        updated = advance_bracket(matches, completed, 'T8')
        assert next(m for m in updated if m.id == 'se:R2-M1').home_team_id == 'T8'

    def test_advance_bracket_double_routes_loser(self, eight_teams):
        _, matches = build_competition(CompetitionFormat.DOUBLE_ELIMINATION, eight_teams, 'de')
        completed = complete(matches, 'de:W1-M1', 'T1')
        updated = advance_bracket(matches, completed, 'T1')
        assert next(m for m in updated if m.id == 'de:L1-M1').home_team_id == 'T8'

    def test_advance_rotation(self, six_teams):
        competition, matches = build_competition(CompetitionFormat.WIN2OUT, six_teams, 'w2o')
        result = advance_rotation(competition.state, complete(matches, 'w2o:C1-G1', 'A'))
        assert result.next_match.team_ids == ('A', 'C')

    def test_advance_rotation_rejects_other_state(self):
        with pytest.raises(InvariantViolation):
            advance_rotation(object(), None)


class TestAdvanceCompetition:
    """Tests for applying results to a competition."""

    def test_requires_completed_match(self, six_teams):
        competition, matches = build_competition(CompetitionFormat.ROUND_ROBIN, six_teams, 'rr')
        with pytest.raises(InvariantViolation):
            advance_competition(competition, matches, matches[0])

    def test_round_robin_records_result(self, six_teams):
        competition, matches = build_competition(CompetitionFormat.ROUND_ROBIN, six_teams, 'rr')
        completed = replace(matches[0], status=MatchStatus.COMPLETED, winner_id=matches[0].home_team_id)
        _, updated, new_matches = advance_competition(competition, matches, completed)
        assert new_matches == []
        assert updated[0].is_completed

    def test_bracket_reports_newly_playable_matches(self, eight_teams):
        competition, matches = build_competition(CompetitionFormat.SINGLE_ELIMINATION, eight_teams, 'se')
        _, matches, new_matches = advance_competition(competition, matches, complete(matches, 'se:R1-M1', 'T1'))
        assert new_matches == []
        _, matches, new_matches = advance_competition(competition, matches, complete(matches, 'se:R1-M2', 'T5'))
        assert [m.id for m in new_matches] == ['se:R2-M1']
        assert new_matches[0].team_ids == ('T1', 'T5')

    def test_rotation_appends_next_match(self, six_teams):
        competition, matches = build_competition(CompetitionFormat.TWO_MATCH_ROTATION, six_teams, 'tmr')
        updated_competition, updated, new_matches = advance_competition(
            competition, matches, complete(matches, 'tmr:C1-G1', 'B'))
        assert len(updated) == 2
        assert new_matches[0].team_ids == ('B', 'C')
        assert updated_competition.state.queue == ['D', 'E', 'F', 'A']
        assert competition.state.queue == ['C', 'D', 'E', 'F']


class TestCompetitionWinner:
    """Tests for the overall winner."""

    def test_single_elimination(self):
        competition, matches = build_competition(CompetitionFormat.SINGLE_ELIMINATION, ['A', 'B'], 'se')
        assert determine_competition_winner(competition, matches) is None
        _, matches, _ = advance_competition(competition, matches, complete(matches, 'se:R1-M1', 'B'))
        assert determine_competition_winner(competition, matches) == 'B'

    def test_round_robin(self):
        competition, matches = build_competition(CompetitionFormat.ROUND_ROBIN, ['A', 'B'], 'rr')
        completed = replace(matches[0], home_score=25, away_score=10, status=MatchStatus.COMPLETED,
                            winner_id=matches[0].home_team_id)
        _, matches, _ = advance_competition(competition, matches, completed)
        assert determine_competition_winner(competition, matches) == completed.home_team_id

    def test_rotation_has_no_winner(self, six_teams):
        competition, matches = build_competition(CompetitionFormat.WIN2OUT, six_teams, 'w2o')
        assert determine_competition_winner(competition, matches) is None
