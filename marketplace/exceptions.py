class WorkflowError(ValueError):
    """Base class for business-rule violations surfaced to API callers"""

    code = "workflow_error"
    status_code = 400

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class ValidationError(WorkflowError):
    """Missing or malformed required field"""

    code = "validation_error"


class NotFound(WorkflowError):
    """Resource not found"""

    code = "not_found"
    status_code = 404


class IllegalTransition(WorkflowError):
    """Status transition not permitted"""

    code = "illegal_transition"


class MissingTrackingInfo(WorkflowError):
    """Carrier and tracking number are required to ship an order"""

    code = "missing_tracking_info"


class ConcurrentUpdate(WorkflowError):
    """Record was modified by another request"""

    code = "concurrent_update"
    status_code = 409


class NotEligible(WorkflowError):
    """Workflow precondition not met"""

    code = "not_eligible"
    status_code = 422


class NoZoneFound(WorkflowError):
    """No shipping zone matches the destination"""

    code = "no_zone_found"
    status_code = 404


class NoRateApplicable(WorkflowError):
    """No shipping rate applies to the package"""

    code = "no_rate_applicable"
    status_code = 422


class EvidenceRequired(WorkflowError):
    """At least one evidence file is required"""

    code = "evidence_required"


class EvidenceLimitExceeded(WorkflowError):
    """At most 5 evidence files are allowed"""

    code = "evidence_limit_exceeded"


class AlreadyDecided(WorkflowError):
    """Verification has already been decided"""

    code = "already_decided"
    status_code = 409


class ReasonRequired(WorkflowError):
    """A rejection reason is required"""

    code = "reason_required"


class InvalidCredentials(WorkflowError):
    """Invalid credentials"""

    code = "invalid_credentials"
    status_code = 401
