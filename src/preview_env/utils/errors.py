"""
Error handling utilities for preview environment runs.

Provides standardized errors with error codes, and the step annotation used by
the controller to report which step of a run failed.
"""

from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError


class AppError(Exception):
    """
    Application error with error code and message.

    Raised by every component; the CLI turns it into a non-zero exit.
    """

    def __init__(self, error_code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def step(self) -> Optional[str]:
        """Name of the controller step that raised this error, if annotated."""
        return self.details.get("step")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logs."""
        return {
            "errorCode": self.error_code,
            "message": self.message,
            **self.details,
        }


class WaitTimeoutError(AppError):
    """
    A bounded wait ran out before the resource reached steady state.

    Kept apart from mutation failures: the change was accepted, so a later poll
    (or a re-run) may still succeed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.WAIT_TIMEOUT, message, details)


class ErrorCode:
    """Standard error codes for the application."""

    # Input errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    LOOKUP_FAILED = "LOOKUP_FAILED"
    MUTATION_FAILED = "MUTATION_FAILED"
    INVALID_STATE = "INVALID_STATE"

    # Waiting
    WAIT_TIMEOUT = "WAIT_TIMEOUT"

    # Collaborators
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


def aws_error_code(error: Exception) -> Optional[str]:
    """Return the AWS error code of a botocore ClientError (e.g. ``NoSuchBucket``)."""
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", "")) or None
    return None


def wrap_aws_error(error_code: str, message: str, error: Exception, **details: Any) -> AppError:
    """
    Wrap a botocore failure into an AppError, keeping the AWS error code.

    Args:
        error_code: ErrorCode for the failure class (lookup or mutation)
        message: What was being attempted
        error: Original exception
        details: Extra context (bucket, distribution id, ...)
    """
    if isinstance(error, AppError):
        return error
    aws_code = aws_error_code(error)
    return AppError(
        error_code,
        f"{message}: {error}",
        {"awsErrorCode": aws_code, **details} if aws_code else dict(details),
    )


def annotate_step(error: Exception, step: str) -> AppError:
    """
    Annotate an error with the controller step that failed.

    Non-AppError exceptions become INTERNAL_ERROR; WaitTimeoutError stays a
    WaitTimeoutError so callers can still tell it apart.
    """
    if isinstance(error, AppError):
        details = {**error.details, "step": step}
        message = f"failed to {step}: {error.message}"
        if isinstance(error, WaitTimeoutError):
            annotated: AppError = WaitTimeoutError(message, details)
        else:
            annotated = AppError(error.error_code, message, details)
        return annotated
    if isinstance(error, (ClientError, BotoCoreError)):
        return AppError(ErrorCode.MUTATION_FAILED, f"failed to {step}: {error}", {"step": step})
    return AppError(ErrorCode.INTERNAL_ERROR, f"failed to {step}: {error}", {"step": step})


def handle_error(error: Exception) -> Dict[str, Any]:
    """
    Convert exception to standardized error dict.

    Args:
        error: Exception to handle

    Returns:
        Error dictionary for logging
    """
    if isinstance(error, AppError):
        return error.to_dict()

    # Unexpected error - return generic message
    return {
        "errorCode": ErrorCode.INTERNAL_ERROR,
        "message": f"An unexpected error occurred: {error}",
    }
