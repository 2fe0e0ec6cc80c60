"""Error taxonomy shared by the store, record operations and handlers."""


class StudentApiError(Exception):
    """Base class for errors raised while serving student requests."""


class ValidationError(StudentApiError):
    """Create body is malformed or missing required fields (400)."""


class NotFoundError(StudentApiError):
    """No record matches the requested identifier (404)."""


class ConflictError(StudentApiError):
    """A record with the same identifier already exists (409)."""


class StorageError(StudentApiError):
    """The backing file could not be read, parsed or written (500)."""
