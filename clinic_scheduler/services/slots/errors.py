"""Scheduling error taxonomy.

Only ``InvalidFormat``, ``NotFound`` and ``Conflict`` ever reach a caller.
``DataCorruption`` is raised and recovered inside the slot store.
"""


class SchedulingError(Exception):
    """Base class for slot engine failures."""


class InvalidFormat(SchedulingError, ValueError):
    """A time or date string could not be parsed."""


class NotFound(SchedulingError):
    """The requested slot or booking does not exist."""


class Conflict(SchedulingError):
    """The slot is taken, or the booking is in a state that forbids the change."""


class DataCorruption(SchedulingError):
    """A cached slot row is malformed and cannot be trusted."""
