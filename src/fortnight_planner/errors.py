from __future__ import annotations

"""Error types raised by the scheduling core.

Every error can carry ``subject``: the name of the task or event being
processed, so a caller can tell the user which entry needs fixing.
"""


class PlannerError(Exception):
    def __init__(self, message: str, subject: str = ""):
        super().__init__(message)
        self.subject = subject


class ParseError(PlannerError):
    def __init__(self, phrase: str, message: str | None = None, subject: str = ""):
        super().__init__(message or f"Unrecognized day or day range '{phrase}'", subject)
        self.phrase = phrase


class ValidationError(PlannerError):
    def __init__(self, subject: str, message: str):
        super().__init__(message, subject)


class MalformedDeadline(PlannerError):
    def __init__(self, deadline: str, message: str, subject: str = ""):
        super().__init__(message, subject)
        self.deadline = deadline


class NoOccurrenceFound(PlannerError):
    pass


class ConfigError(PlannerError):
    pass


__all__ = [
    "PlannerError",
    "ParseError",
    "ValidationError",
    "MalformedDeadline",
    "NoOccurrenceFound",
    "ConfigError",
]
