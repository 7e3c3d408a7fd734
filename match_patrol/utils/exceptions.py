"""
Custom Exception Classes for the Match Patrol API
"""
from typing import Dict, Any, Optional
from fastapi import HTTPException


class MatchPatrolError(Exception):
    """Base exception for the Match Patrol API"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None,
        http_status: Optional[int] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.http_status = http_status
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(MatchPatrolError):
    """Raised when a required field is missing or malformed"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class ProfileNotFound(MatchPatrolError):
    """Raised when no profile is stored for a uid"""

    def __init__(self, uid: str, **kwargs):
        super().__init__(f"Profile not found for user {uid}", error_code="PROFILE_NOT_FOUND",
                         details={"uid": uid}, **kwargs)


class AllocationExhausted(MatchPatrolError):
    """Raised when every display id candidate collided"""

    def __init__(self, base_name: str, attempts: int, **kwargs):
        super().__init__(
            f"Could not allocate a unique display id for '{base_name}' after {attempts} attempts",
            error_code="ALLOCATION_EXHAUSTED",
            details={"base_name": base_name, "attempts": attempts},
            **kwargs
        )


class UpstreamUnavailable(MatchPatrolError):
    """Raised when the matching service times out, refuses, or answers badly"""

    def __init__(self, message: str, endpoint: str = None, status_code: int = None, **kwargs):
        details = kwargs.pop('details', {})
        if endpoint:
            details['endpoint'] = endpoint
        if status_code:
            details['status_code'] = status_code
        self.status_code = status_code
        super().__init__(message, error_code="UPSTREAM_UNAVAILABLE", details=details, **kwargs)


class SyncPushFailed(MatchPatrolError):
    """Raised when a profile could not be pushed to the matching service"""

    def __init__(self, message: str, display_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if display_id:
            details['display_id'] = display_id
        super().__init__(message, error_code="SYNC_PUSH_FAILED", details=details, **kwargs)


class DatabaseError(MatchPatrolError):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class ConfigurationError(MatchPatrolError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


# HTTP Exception Mapping
def map_to_http_exception(exc: MatchPatrolError) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ValidationError: 400,
        ProfileNotFound: 404,
        AllocationExhausted: 409,
        ConfigurationError: 500,
        DatabaseError: 500,
        UpstreamUnavailable: 502,
        SyncPushFailed: 502,
    }

    status_code = exc.http_status or status_code_mapping.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


class ExceptionContext:
    """Context manager that wraps driver errors raised inside a store operation"""

    def __init__(self, operation: str, logger=None, collection: str = None, **context):
        self.operation = operation
        self.logger = logger
        self.collection = collection
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return False

        # Domain exceptions and store-level signals pass through untouched
        if isinstance(exc_val, MatchPatrolError) or getattr(exc_val, "passthrough", False):
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )
        raise DatabaseError(
            f"Database error in {self.operation}: {str(exc_val)}",
            operation=self.operation,
            collection=self.collection,
            details=dict(self.context),
            cause=exc_val
        ) from exc_val
