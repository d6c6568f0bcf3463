"""Tests for error handling utilities."""

from botocore.exceptions import ClientError, EndpointConnectionError

from preview_env.utils.errors import (
    AppError,
    ErrorCode,
    WaitTimeoutError,
    annotate_step,
    aws_error_code,
    handle_error,
    wrap_aws_error,
)


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "PutObject")


class TestAppError:
    """Tests for AppError class."""

    def test_app_error_with_message(self) -> None:
        """Test creating AppError with message."""
        error = AppError(ErrorCode.NOT_FOUND, "no hosted zone found for domain: example.test")

        assert error.error_code == ErrorCode.NOT_FOUND
        assert error.message == "no hosted zone found for domain: example.test"
        assert error.details == {}
        assert error.step is None

    def test_app_error_to_dict(self) -> None:
        """Test converting AppError to dict."""
        error = AppError(ErrorCode.MUTATION_FAILED, "failed to create bucket", {"bucket": "pr-42-site"})

        assert error.to_dict() == {
            "errorCode": ErrorCode.MUTATION_FAILED,
            "message": "failed to create bucket",
            "bucket": "pr-42-site",
        }

    def test_wait_timeout_error_code(self) -> None:
        """WaitTimeoutError is an AppError with its own code."""
        error = WaitTimeoutError("still InProgress", {"distributionId": "E1"})

        assert isinstance(error, AppError)
        assert error.error_code == ErrorCode.WAIT_TIMEOUT


class TestWrapAwsError:
    """Tests for aws_error_code and wrap_aws_error."""

    def test_keeps_aws_code(self) -> None:
        """The botocore error code is kept in the details."""
        error = wrap_aws_error(ErrorCode.MUTATION_FAILED, "failed to upload", _client_error("AccessDenied"), key="a.js")

        assert error.error_code == ErrorCode.MUTATION_FAILED
        assert error.message.startswith("failed to upload: ")
        assert error.details == {"awsErrorCode": "AccessDenied", "key": "a.js"}

    def test_connection_error_has_no_aws_code(self) -> None:
        """Transport errors carry no AWS code."""
        error = wrap_aws_error(
            ErrorCode.LOOKUP_FAILED, "failed to list", EndpointConnectionError(endpoint_url="https://s3")
        )

        assert error.details == {}
        assert aws_error_code(ValueError("x")) is None

    def test_app_error_passes_through(self) -> None:
        """Already-wrapped errors are not wrapped twice."""
        original = AppError(ErrorCode.NOT_FOUND, "missing")

        assert wrap_aws_error(ErrorCode.LOOKUP_FAILED, "failed", original) is original


class TestAnnotateStep:
    """Tests for annotate_step."""

    def test_app_error_keeps_code(self) -> None:
        """The step is prefixed and recorded; the code is kept."""
        error = annotate_step(AppError(ErrorCode.LOOKUP_FAILED, "failed to list", {"awsErrorCode": "Throttling"}), "find distribution")

        assert error.message == "failed to find distribution: failed to list"
        assert error.error_code == ErrorCode.LOOKUP_FAILED
        assert error.details == {"awsErrorCode": "Throttling", "step": "find distribution"}
        assert error.step == "find distribution"

    def test_wait_timeout_stays_distinct(self) -> None:
        """A timeout is still a WaitTimeoutError after annotation."""
        error = annotate_step(WaitTimeoutError("still InProgress"), "delete CloudFront distribution")

        assert isinstance(error, WaitTimeoutError)

    def test_raw_client_error(self) -> None:
        """Unwrapped botocore errors become mutation failures."""
        error = annotate_step(_client_error("AccessDenied"), "set bucket policy")

        assert error.error_code == ErrorCode.MUTATION_FAILED
        assert error.step == "set bucket policy"

    def test_unexpected_exception(self) -> None:
        """Anything else is an internal error."""
        error = annotate_step(KeyError("Id"), "manage CloudFront distribution")

        assert error.error_code == ErrorCode.INTERNAL_ERROR


class TestHandleError:
    """Tests for handle_error function."""

    def test_handle_app_error(self) -> None:
        """Test handling AppError returns error dict."""
        result = handle_error(AppError(ErrorCode.CONFIGURATION_ERROR, "PR number is required (--pr)", {"parameter": "pr"}))

        assert result["errorCode"] == ErrorCode.CONFIGURATION_ERROR
        assert result["parameter"] == "pr"

    def test_handle_generic_exception(self) -> None:
        """Test handling generic exception returns internal error."""
        result = handle_error(ValueError("Unexpected error"))

        assert result["errorCode"] == ErrorCode.INTERNAL_ERROR
        assert "unexpected" in result["message"].lower()
