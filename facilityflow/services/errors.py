"""
FacilityFlow error taxonomy.

Services raise these; only the API layer translates them to HTTP.
"""


class FacilityFlowError(Exception):
    """Base class for all engine errors."""
    code = "FACILITYFLOW_ERROR"


class PermissionDenied(FacilityFlowError):
    """Actor's role or assignment does not allow the requested operation."""
    code = "PERMISSION_DENIED"


class InvalidTransition(FacilityFlowError):
    """Status precondition violated (e.g. closing a closed issue)."""
    code = "INVALID_TRANSITION"


class NotFound(FacilityFlowError):
    """Referenced issue or actor does not exist."""
    code = "NOT_FOUND"


class ValidationError(FacilityFlowError):
    """Required fields missing on issue creation."""
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])
