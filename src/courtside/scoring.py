"""
Match lifecycle helpers used by the scoring layer: start, score, complete,
and best-of-N series.

These only move a single match through pending -> in_progress -> completed;
advancing the competition afterwards is the format engines' job.
"""
from dataclasses import replace
from typing import Optional

from .exceptions import ValidationError
from .models import Match, MatchStatus


def _check_playable(match: Match):
    if match.is_completed:
        raise ValidationError(f"Match {match.id} is already completed")
    if match.is_placeholder:
        raise ValidationError(f"Match {match.id} is still waiting for its teams")


def start_match(match: Match) -> Match:
    _check_playable(match)
    return replace(match, status=MatchStatus.IN_PROGRESS)


def update_score(match: Match, home_score: int, away_score: int) -> Match:
    """Set the running score of a match, starting it if needed."""
    _check_playable(match)
    if home_score < 0 or away_score < 0:
        raise ValidationError("Scores cannot be negative")
    return replace(match, home_score=home_score, away_score=away_score, status=MatchStatus.IN_PROGRESS)


def complete_match(match: Match, winner_id: Optional[str] = None) -> Match:
    """
    Mark a match completed.

    Without an explicit winner the higher score wins; a level score needs an
    explicit winner.
    """
    _check_playable(match)
    if winner_id is None:
        if match.home_score == match.away_score:
            raise ValidationError(f"Match {match.id} is level, a winner must be given")
        winner_id = match.home_team_id if match.home_score > match.away_score else match.away_team_id
    if winner_id not in match.team_ids:
        raise ValidationError(f"{winner_id} did not play in match {match.id}")
    return replace(match, status=MatchStatus.COMPLETED, winner_id=winner_id)


def wins_needed(series_length: int) -> int:
    """Games needed to take a best-of-N series."""
    if series_length < 1 or series_length % 2 == 0:
        raise ValidationError(f"Series length must be a positive odd number, got {series_length}")
    return series_length // 2 + 1


def start_series(match: Match, series_length: int) -> Match:
    """Turn a match into a best-of-``series_length`` series."""
    wins_needed(series_length)
    if series_length == 1:
        return replace(match, series_length=None, home_wins=None, away_wins=None, series_game=None)
    return replace(match, series_length=series_length, home_wins=0, away_wins=0, series_game=1)


def record_series_game(match: Match, home_score: int, away_score: int) -> Match:
    """
    Record one finished game of a series.

    The game winner's series tally goes up and game scores reset for the next
    game. Once a side reaches the majority the match is completed with that
    side as winner, keeping the deciding game's score.
    """
    _check_playable(match)
    if not match.series_length:
        raise ValidationError(f"Match {match.id} is not a series")
    if home_score == away_score:
        raise ValidationError("A series game cannot end level")
    if home_score < 0 or away_score < 0:
        raise ValidationError("Scores cannot be negative")

    home_wins = (match.home_wins or 0) + (1 if home_score > away_score else 0)
    away_wins = (match.away_wins or 0) + (1 if away_score > home_score else 0)
    needed = wins_needed(match.series_length)

    if home_wins >= needed or away_wins >= needed:
        return replace(
            match,
            home_wins=home_wins,
            away_wins=away_wins,
            home_score=home_score,
            away_score=away_score,
            status=MatchStatus.COMPLETED,
            winner_id=match.home_team_id if home_wins >= needed else match.away_team_id,
        )

    return replace(
        match,
        home_wins=home_wins,
        away_wins=away_wins,
        home_score=0,
        away_score=0,
        series_game=(match.series_game or 1) + 1,
        status=MatchStatus.IN_PROGRESS,
    )
