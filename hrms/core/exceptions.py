"""Custom exception classes for the HRMS access engine."""

from fastapi import HTTPException, status


class HRMSError(Exception):
    """Base exception for HRMS."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class UnknownRoleError(HRMSError):
    """Raised when a role name is not in the registry (configuration defect)."""

    def __init__(self, role_name: str):
        self.role_name = role_name
        super().__init__(f"Unknown role '{role_name}'")


class RoleConfigurationError(HRMSError):
    """Raised when the role table itself is invalid."""
    pass


class AuthorizationError(HRMSError):
    """Raised when a policy denies the requested action."""
    pass


class DependencyUnavailableError(HRMSError):
    """Raised when a collaborator (store, directory) call fails.

    This is a transient condition, never a policy decision: callers surface
    it as 503 and must not turn it into a denial.
    """
    pass


class ResourceNotFoundError(HRMSError):
    """Raised when a requested resource is not found."""
    pass


# HTTP exception shortcuts
def not_found(detail: str = "Resource not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def forbidden(detail: str = "Insufficient permissions") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def service_unavailable(detail: str = "Authorization temporarily unavailable") -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
