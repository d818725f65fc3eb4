"""
Custom Exceptions for CMS Pro
=============================

Services raise these instead of HTTPException so the business rules stay
independent of the web layer. Each class carries the HTTP status it maps to;
the handler registered in ``cmspro.main`` renders them as:

    {"success": false, "detail": "<message>", "error": {"code": ..., "message": ..., "details": {...}}}

Usage:
    from cmspro.core.exceptions import ComplaintNotFoundError, ForbiddenError

    if not complaint:
        raise ComplaintNotFoundError(complaint_id)
"""

from typing import Optional, Any, Dict


class CMSProError(Exception):
    """Base exception for all CMS Pro errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(CMSProError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class DuplicateIdentityError(CMSProError):
    """Email already registered"""

    status_code = 400

    def __init__(self, email: str):
        super().__init__(
            "Email is already registered",
            code="DUPLICATE_IDENTITY",
            details={"email": email}
        )


class InvalidOrExpiredTokenError(CMSProError):
    """Approval token unknown, already claimed, or past its expiry"""

    status_code = 400

    def __init__(self):
        super().__init__("Invalid or expired approval token", code="INVALID_OR_EXPIRED_TOKEN")


class InvalidStateError(CMSProError):
    """Operation not allowed in the record's current state"""

    status_code = 400

    def __init__(self, message: str, current_state: Optional[str] = None):
        super().__init__(message, code="INVALID_STATE")
        if current_state:
            self.details["current_state"] = current_state


# ============================================
# Authentication & Authorization Errors
# ============================================

class InvalidCredentialsError(CMSProError):
    """Unknown email or wrong password"""

    status_code = 401

    def __init__(self):
        super().__init__("Invalid credentials", code="INVALID_CREDENTIALS")


class UnauthenticatedError(CMSProError):
    """Missing, malformed, or expired session token"""

    status_code = 401

    def __init__(self, message: str = "Not authorized, no valid token"):
        super().__init__(message, code="UNAUTHENTICATED")


class PendingApprovalError(CMSProError):
    """Account exists but has not been approved yet"""

    status_code = 403

    def __init__(self):
        super().__init__(
            "Your account is pending approval. Please wait for the super admin to activate it.",
            code="PENDING_APPROVAL"
        )


class ForbiddenError(CMSProError):
    """Caller lacks the role or ownership needed for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="FORBIDDEN")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(CMSProError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ComplaintNotFoundError(ResourceNotFoundError):
    """Complaint not found"""

    def __init__(self, complaint_id: str):
        super().__init__("Complaint", complaint_id)


# ============================================
# Availability / Dependency Errors
# ============================================

class SystemOfflineError(CMSProError):
    """Writes refused while an administrator has the system offline"""

    status_code = 503

    def __init__(self):
        super().__init__(
            "The system is currently offline for maintenance. Please try again later.",
            code="SYSTEM_OFFLINE"
        )


class DependencyFailureError(CMSProError):
    """An external collaborator (e.g. email) failed"""

    status_code = 500

    def __init__(self, message: str, dependency: Optional[str] = None):
        super().__init__(message, code="DEPENDENCY_FAILURE")
        if dependency:
            self.details["dependency"] = dependency


def error_response(error: CMSProError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "detail": error.message,
        "error": error.to_dict()
    }
