"""
🚧 SCHEDULING ERRORS
====================
Why a single request could not be placed. The run catches these per request,
writes them down, and moves on to the next one.
"""


class SchedulingError(Exception):
    """Base class. `kind` is the short name shown in run results."""

    kind = "scheduling_error"


class UnplaceableRequest(SchedulingError):
    """No free (day, period) combination fits the request."""

    kind = "unplaceable"


class MissingSubjectReference(SchedulingError):
    """The request names a subject that the derived subject set does not have."""

    kind = "missing_subject"


class InvariantViolation(SchedulingError):
    """A cell picked by the search was taken by the time we tried to write it."""

    kind = "invariant_violation"


class DiscardedRequest(SchedulingError):
    """Placed on the working grid, then thrown away with it by a strict run."""

    kind = "discarded"
