# database/errors.py
"""
Domain errors shared by repositories and controllers.

Anything deriving from DomainError carries a message that is safe to show to
the user as-is (toast/notification). Raw sqlite3 errors are translated at the
repository boundary where a clearer message exists.
"""


class DomainError(Exception):
    """Domain-level error the controller/UI can surface directly."""
    pass


class ValidationError(DomainError):
    """Input rejected before any write was attempted."""
    pass


class DocumentNotFound(DomainError):
    """The document being loaded/edited no longer exists."""
    pass


class DuplicateNumberError(DomainError):
    """A document number is already used by another document of the same user."""
    pass


class InsufficientStockError(DomainError):
    """A stock movement would drive a product below zero while the floor is enforced."""
    pass
