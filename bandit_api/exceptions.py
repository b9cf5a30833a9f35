"""Error taxonomy for the bandit engine."""


class BanditError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(BanditError, ValueError):
    """Caller passed parameters outside an operation's contract.

    Raised for non-positive Gamma/Beta parameters and for an empty arm set.
    These are programming errors; correct callers never trigger them.
    """


class NotFoundError(BanditError, LookupError):
    """Unknown experiment or arm identifier."""


class ConflictError(BanditError):
    """An experiment with the same name already exists."""


class StoreFailureError(BanditError):
    """The backing store could not complete a read or write."""
