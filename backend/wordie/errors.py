"""Error taxonomy shared by the scheduling engine and its collaborators."""


class SrsError(Exception):
    pass


class ValidationError(SrsError):
    """Caller supplied bad input or called an operation out of order."""


class StorageError(SrsError):
    """The database collaborator failed; the operation was rolled back."""


class InvariantViolation(SrsError):
    """Stored state is inconsistent (e.g. a linked word has no card)."""
