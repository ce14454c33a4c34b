# enrollment_portal/core/errors.py
"""
Domain errors raised by the services.

Every error carries a stable ``kind`` and a human readable ``message``;
routers translate them into HTTP responses using ``status_code``.
"""


class PortalError(Exception):
    kind = "PortalError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_detail(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFound(PortalError):
    kind = "NotFound"
    status_code = 404


class EnrollmentNotFound(NotFound):
    kind = "EnrollmentNotFound"


class AlreadyProcessed(PortalError):
    kind = "AlreadyProcessed"
    status_code = 409


class InvalidAmount(PortalError):
    kind = "InvalidAmount"
    status_code = 400


class ValidationFailed(PortalError):
    kind = "ValidationFailed"
    status_code = 400


class Conflict(PortalError):
    kind = "Conflict"
    status_code = 409


class Forbidden(PortalError):
    kind = "Forbidden"
    status_code = 403


class IdentityProvisionFailed(PortalError):
    kind = "IdentityProvisionFailed"
    status_code = 502


class DependencyUnavailable(PortalError):
    kind = "DependencyUnavailable"
    status_code = 503
