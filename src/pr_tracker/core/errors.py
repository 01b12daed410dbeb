"""
Exception taxonomy for record persistence and administration.

Invalid set data (weight or reps not positive) is deliberately absent:
the record engine treats it as ordinary input and answers "no record".
"""


class RecordsError(Exception):
    """Base class for pr-tracker errors."""


class StoreUnavailable(RecordsError):
    """The record store could not be read or written."""


class SaveFailed(RecordsError):
    """
    A commit did not reach the store.

    The controller has already rolled its local table back to the value it
    held before the commit when this is raised.
    """


class RecordNotFound(RecordsError, KeyError):
    """An administrative delete targeted an exercise or weight with no record."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""
