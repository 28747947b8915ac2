"""Custom exception classes for the curriculum admin API.

All domain-level errors should be raised as one of these typed exceptions so
that FastAPI exception handlers can convert them to structured HTTP responses.
"""


class StoreError(Exception):
    """Raised when the relational store rejects or fails an operation.

    The message is shown to the admin verbatim, so it always names the
    operation that failed, e.g. ``"Failed to create subject: <detail>"``.
    """


class FetchError(StoreError):
    """Raised when a read against the relational store fails."""


class OrderConflictError(StoreError):
    """Raised when an insert collides with an existing sibling order index.

    Args:
        message: Human-readable description of the collision.
        order_number: The order index that was already taken.
    """

    def __init__(self, message: str, order_number: int | None = None) -> None:
        super().__init__(message)
        self.order_number: int | None = order_number


class EntityNotFoundError(Exception):
    """Raised when a requested hierarchy row does not exist.

    Args:
        kind: Entity kind (``subject``, ``term``, ``week``, ``chapter``, ...).
        entity_id: The identifier that was not found.
    """

    def __init__(self, kind: str, entity_id: object) -> None:
        super().__init__(f"{kind.capitalize()} with id={entity_id} not found")
        self.kind: str = kind
        self.entity_id: str = str(entity_id)


class FormValidationError(Exception):
    """Raised when a form field fails validation before any I/O happens.

    Args:
        message: Text to render next to the offending field.
        field: Name of the offending field, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field: str | None = field


class FileValidationError(FormValidationError):
    """Raised when an uploaded file has a disallowed extension or size."""

    def __init__(self, message: str, field: str | None = "file") -> None:
        super().__init__(message, field=field)


class DraftValidationError(FormValidationError):
    """Raised when a quiz question draft is incomplete."""


class StorageError(Exception):
    """Raised when the object store fails an upload or delete.

    Args:
        message: Detail from the underlying client exception.
        bucket: Bucket the operation targeted.
        path: Object key the operation targeted.
    """

    def __init__(self, message: str, bucket: str = "", path: str = "") -> None:
        super().__init__(message)
        self.bucket: str = bucket
        self.path: str = path


class AuthenticationError(Exception):
    """Raised when credentials or a bearer token are missing or invalid."""


class AccessDeniedError(Exception):
    """Raised when an authenticated profile lacks a required role.

    Args:
        current_role: The caller's role, or None when no profile exists.
        required_roles: Roles that would have been accepted.
    """

    def __init__(self, current_role: str | None, required_roles: list[str]) -> None:
        super().__init__(
            "You don't have permission to access the admin dashboard."
        )
        self.current_role: str | None = current_role
        self.required_roles: list[str] = list(required_roles)


class SubmissionCancelled(Exception):
    """Raised when a form submission continues after its form was closed."""
