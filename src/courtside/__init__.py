"""
Courtside: competition formats for court-based tournaments.
"""
from .exceptions import CourtsideError, InvariantViolation, ValidationError
from .formats import CompetitionFormat, advance_bracket, advance_competition, advance_rotation, build_competition

__version__ = '0.1.0'
