"""FlacronBuild error handling.

Custom exceptions and error codes for the estimate pipeline.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ATTACHMENT = "INVALID_ATTACHMENT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Pipeline Errors
    UNKNOWN_ROLE = "UNKNOWN_ROLE"
    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
    MALFORMED_MODEL_OUTPUT = "MALFORMED_MODEL_OUTPUT"
    ARITHMETIC_DEGRADATION = "ARITHMETIC_DEGRADATION"
    PIPELINE_FAILED = "PIPELINE_FAILED"

    # Persistence Errors
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


class FlacronError(Exception):
    """Base exception for FlacronBuild errors.

    Provides structured error information for server-side diagnostics.
    Clients only ever see a generic message.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize FlacronError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logs and diagnostics.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(FlacronError):
    """Validation-specific error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[list] = None,
        details: Optional[Dict] = None,
        code: str = ErrorCode.VALIDATION_ERROR
    ):
        merged = dict(details or {})
        if field:
            merged["field"] = field
        if errors:
            merged["errors"] = errors
        super().__init__(
            code=code,
            message=message,
            details=merged
        )
        self.errors = errors or []


class ConfigurationError(FlacronError):
    """Raised when required configuration is missing at startup."""

    def __init__(self, message: str, setting: str):
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            details={"setting": setting}
        )
        self.setting = setting


class UnknownRoleError(FlacronError):
    """No prompt template exists for the requested role.

    A caller error; never retried and never replaced by a default role.
    """

    def __init__(self, role: Any):
        super().__init__(
            code=ErrorCode.UNKNOWN_ROLE,
            message=f"No prompt template for role: {role!r}",
            details={"role": role}
        )
        self.role = role


class ModelUnavailableError(FlacronError):
    """The generation API could not be reached or answered with non-2xx.

    The only error class a caller may reasonably retry.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=ErrorCode.MODEL_UNAVAILABLE,
            message=message,
            details={**(details or {}), "status_code": status_code}
        )
        self.status_code = status_code


class MalformedModelOutputError(FlacronError):
    """Model text could not be parsed even after the documented repairs."""

    def __init__(
        self,
        message: str,
        raw_text: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=ErrorCode.MALFORMED_MODEL_OUTPUT,
            message=message,
            details={**(details or {}), "raw_length": len(raw_text or "")}
        )
        self.raw_text = raw_text


class ProjectNotFoundError(FlacronError):
    """Project lookup failed."""

    def __init__(self, project_id: Any):
        super().__init__(
            code=ErrorCode.PROJECT_NOT_FOUND,
            message=f"Project not found: {project_id}",
            details={"project_id": project_id}
        )
        self.project_id = project_id


class PersistenceError(FlacronError):
    """Repository read/write failure."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.PERSISTENCE_ERROR,
            message=message,
            details=details
        )


class PipelineError(FlacronError):
    """Terminal failure of an estimate request.

    Wraps the underlying error with the stage the request reached.
    """

    def __init__(
        self,
        cause: FlacronError,
        stage: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=cause.code,
            message=cause.message,
            details={**cause.details, **(details or {}), "stage": stage}
        )
        self.cause = cause
        self.stage = stage
