"""
Error taxonomy for OmniPost.

Every domain error carries a machine-readable code and the HTTP status the
API renders it with. EnhancementFailure never leaves the AI client.
"""

from typing import Any, Optional


class OmniPostError(Exception):
    """
    Base exception for OmniPost.
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[Any] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class DuplicateEmailError(OmniPostError):
    """
    Raised when registering with an email that already exists.
    """

    def __init__(self, message: str = "Email already exists", details: Optional[Any] = None):
        super().__init__(message, code="DUPLICATE_EMAIL", status_code=409, details=details)


class DuplicateHandleError(OmniPostError):
    """
    Raised when registering with a handle that already exists.
    """

    def __init__(self, message: str = "Handle already exists", details: Optional[Any] = None):
        super().__init__(message, code="DUPLICATE_HANDLE", status_code=409, details=details)


class InvalidCredentialsError(OmniPostError):
    """
    Raised when no user matches the given email and password.
    """

    def __init__(self, message: str = "Invalid email or password", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_CREDENTIALS", status_code=401, details=details)


class AuthenticationRequiredError(OmniPostError):
    """
    Raised when an operation needs an active session and there is none.
    """

    def __init__(self, message: str = "Sign in to continue", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_REQUIRED", status_code=401, details=details)


class ValidationError(OmniPostError):
    """
    Raised when input validation fails.
    """

    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)


class ResourceNotFoundError(OmniPostError):
    """
    Raised when a requested resource is not found.
    """

    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)


class StorageFailure(OmniPostError):
    """
    Raised when the key-value store is corrupted, unreachable or full.
    Fatal: callers do not retry.
    """

    def __init__(self, message: str = "Storage failure", details: Optional[Any] = None):
        super().__init__(message, code="STORAGE_FAILURE", status_code=500, details=details)


class EnhancementFailure(OmniPostError):
    """
    Raised inside the AI client when a completion is unusable.
    Always absorbed; callers see the original text or no tags.
    """

    def __init__(self, message: str = "AI enhancement failed", details: Optional[Any] = None):
        super().__init__(message, code="ENHANCEMENT_FAILURE", status_code=502, details=details)
