"""
Result-reporting failures.

A ProgressionValidationError leaves the match exactly as it was; routes map it
to 422 and MatchNotFoundError to 404.
"""


class ProgressionError(Exception):
    """Base exception for result reporting and bracket progression"""

    pass


class ProgressionValidationError(ProgressionError):
    """The requested result or transition is not allowed"""

    pass


class MatchNotFoundError(ProgressionValidationError):
    """No match with the given id (for the given event)"""

    pass
