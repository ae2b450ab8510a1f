"""
Exceptions raised by the format engine.
"""


class CourtsideError(Exception):
    """Base class for all format engine errors."""


class ValidationError(CourtsideError, ValueError):
    """Raised when the input to a build or scoring operation is not acceptable.

    Typical causes are too few teams for the chosen format or court count.
    Nothing has been created when this is raised.
    """


class InvariantViolation(CourtsideError, RuntimeError):
    """Raised when an advance call receives a match the current state cannot accept.

    For example a completed match with no winner, or a match whose teams are
    not sitting on any court.
    """
