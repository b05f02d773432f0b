"""
Cafe Desk - Error taxonomy

Every failure the service reports to a caller is one of these. The app
entrypoint registers a single handler that turns them into
``{"detail": ..., "error": ...}`` JSON responses.
"""


class CafeError(Exception):
    status_code: int = 400
    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(CafeError):
    """Bad input caught before any store call (bad table, empty cart, ...)."""

    status_code = 422
    kind = "validation_error"


class NotFound(CafeError):
    status_code = 404
    kind = "not_found"


class AuthenticationFailed(CafeError):
    """Wrong credentials, unknown employee ID, closed session."""

    status_code = 401
    kind = "authentication_error"


class PermissionDenied(CafeError):
    """Deactivated account or a role outside the endpoint's allow-list."""

    status_code = 403
    kind = "permission_denied"


class BusinessRuleViolation(CafeError):
    status_code = 409
    kind = "business_rule"


class InvalidTransition(BusinessRuleViolation):
    kind = "invalid_transition"


class ConcurrencyConflict(CafeError):
    """The row changed between our read and our conditional write."""

    status_code = 409
    kind = "conflict"


class StoreUnavailable(CafeError):
    status_code = 503
    kind = "store_error"
