"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages (OWASP A04)

IMPORTANT: NEVER use base Exception class. Always use custom exceptions.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses, HTTP status code mapping, and prevents sensitive data
    leaks in error messages.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        # WHY: Filter out sensitive fields to prevent data leaks
        sensitive_fields = {"password", "token", "secret", "key", "api_key"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions (OWASP A07)
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when authentication fails.

    WHY: One exception for every authentication failure (unknown email,
    wrong password, missing session) prevents disclosing which step failed.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication failed"


class AuthorizationError(AppException):
    """
    Raised when user lacks permissions for an action.

    WHY: Distinguishing authorization (403) from authentication (401) helps
    frontends show appropriate messages ("You don't have permission" vs
    "Please log in").

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "You do not have permission to perform this action"


class TokenExpiredError(AuthenticationError):
    """Raised when the session token has expired."""

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """
    Raised when the session token is malformed, revoked or has an invalid
    signature.
    """

    default_message = "Token is invalid"


class InsufficientPermissionsError(AuthorizationError):
    """
    Raised when user's role doesn't allow an action.

    HTTP Status: 403 Forbidden
    """

    default_message = "Insufficient permissions"


# ============================================================================
# Validation & Input Exceptions (OWASP A03: Injection Prevention)
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    WHY: Validation errors should return 400 Bad Request with details
    about which fields failed validation, helping users correct their input.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    WHY: 404 Not Found is the standard HTTP status for missing resources.
    Rows belonging to another organization are reported the same way.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class ResourceAlreadyExistsError(AppException):
    """
    Raised when attempting to create a resource that already exists.

    WHY: 409 Conflict indicates the request can't be completed due to
    conflicting state (e.g., email already registered, student already
    enrolled).

    HTTP Status: 409 Conflict
    """

    status_code = 409
    default_message = "Resource already exists"


class DependentRowsExistError(AppException):
    """
    Raised when other rows still reference a row being deleted or changed.

    WHY: Departments with subjects, subjects with classes and teachers with
    classes are restrict-on-delete; the client must remove the dependents
    first.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Cannot delete: dependent records exist"


class CapacityExceededError(AppException):
    """
    Raised when enrolling into a class that is already full.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Class is at full capacity"


class OrganizationNotFoundError(ResourceNotFoundError):
    """Raised when an organization doesn't exist."""

    default_message = "Organization not found"


class UserNotFoundError(ResourceNotFoundError):
    """Raised when a user doesn't exist in the caller's organization."""

    default_message = "User not found"


class DepartmentNotFoundError(ResourceNotFoundError):
    """Raised when a department doesn't exist in the caller's organization."""

    default_message = "Department not found"


class SubjectNotFoundError(ResourceNotFoundError):
    """Raised when a subject doesn't exist in the caller's organization."""

    default_message = "Subject not found"


class ClassNotFoundError(ResourceNotFoundError):
    """Raised when a class doesn't exist in the caller's organization."""

    default_message = "Class not found"


class EnrollmentNotFoundError(ResourceNotFoundError):
    """Raised when an enrollment doesn't exist."""

    default_message = "Enrollment not found"


# ============================================================================
# Rate Limiting Exceptions (OWASP A05: Security Misconfiguration)
# ============================================================================


class RateLimitExceeded(AppException):
    """
    Raised when rate limit is exceeded.

    HTTP Status: 429 Too Many Requests
    """

    status_code = 429
    default_message = "Rate limit exceeded"
