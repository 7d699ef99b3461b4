"""
Errors surfaced by chore wheel operations.

ValidationError -> tell the resident what is wrong, never retry
StateError      -> "try later" (poll still open) or "already done"
NotFoundError   -> unknown house / resident / chore / poll / claim / proposal
"""


class ChoreWheelError(Exception):
    pass


class ValidationError(ChoreWheelError, ValueError):
    pass


class StateError(ChoreWheelError):
    pass


class NotFoundError(ChoreWheelError, LookupError):
    pass
