class PBError(Exception):
    """Failure talking to the PocketBase backend."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class NotFoundError(PBError):
    """Referenced record (project, task, user) does not exist."""


class UnauthorizedError(PBError):
    """Missing or rejected credentials."""


class UnavailableError(PBError):
    """Backend call failed: network error, timeout or unexpected status."""


class ColumnInUseError(ValueError):
    """A column still referenced by tasks cannot be removed."""

    def __init__(self, column_id: str, count: int):
        super().__init__(f"Column '{column_id}' still holds {count} task(s)")
        self.column_id = column_id
        self.count = count
