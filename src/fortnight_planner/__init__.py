"""Fortnight Planner: two-week rotating calendar and task urgency engine."""

__version__ = "0.1.0"
