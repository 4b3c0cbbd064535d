"""
Error taxonomy for the assessment engine.

Every error carries a stable ``kind`` that clients can switch on and an HTTP
status the presentation layer maps it to. Structural errors surface to the
caller; ``ValidationError`` and ``InfrastructureDegraded`` are recovered
internally (per-item zero score, cache fail-open).
"""


class AssessmentError(Exception):
    kind = "assessment_error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = message or (self.__class__.__doc__ or self.kind).strip()


class AuthenticationRequired(AssessmentError):
    """Authentication required"""

    kind = "authentication_required"
    status_code = 401


class NotFound(AssessmentError):
    """Resource not found"""

    kind = "not_found"
    status_code = 404


class InvalidFilter(AssessmentError):
    """Invalid practice filter"""

    kind = "invalid_filter"
    status_code = 400


class OwnershipViolation(AssessmentError):
    """Attempt does not belong to current user"""

    kind = "ownership_violation"
    status_code = 403


class AlreadyCompleted(AssessmentError):
    """Attempt has already been submitted"""

    kind = "already_completed"
    status_code = 409


class ValidationError(AssessmentError):
    """Malformed answer payload"""

    kind = "validation_error"
    status_code = 422


class InfrastructureDegraded(AssessmentError):
    """Cache backend unavailable"""

    kind = "infrastructure_degraded"
    status_code = 503
