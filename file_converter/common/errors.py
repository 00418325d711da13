from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID_REQUEST = "invalid_request"
    UNSUPPORTED_CONVERSION = "unsupported_conversion"
    EXTERNAL_TOOL_FAILURE = "external_tool_failure"
    OUTPUT_NOT_FOUND = "output_not_found"
    EMPTY_OUTPUT = "empty_output"
    SUBMISSION_FAILURE = "submission_failure"
    POLL_FAILURE = "poll_failure"
    DOWNLOAD_FAILURE = "download_failure"
    REMOTE_JOB_FAILED = "remote_job_failed"
    KEY_CHECK_FAILURE = "key_check_failure"
    TIMEOUT = "timeout"
    NO_CONVERSION_PATH_AVAILABLE = "no_conversion_path_available"


DEFAULT_HTTP_STATUS = {
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.UNSUPPORTED_CONVERSION: 400,
    ErrorKind.EXTERNAL_TOOL_FAILURE: 500,
    ErrorKind.OUTPUT_NOT_FOUND: 500,
    ErrorKind.EMPTY_OUTPUT: 500,
    ErrorKind.SUBMISSION_FAILURE: 502,
    ErrorKind.POLL_FAILURE: 502,
    ErrorKind.DOWNLOAD_FAILURE: 502,
    ErrorKind.REMOTE_JOB_FAILED: 502,
    ErrorKind.KEY_CHECK_FAILURE: 502,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.NO_CONVERSION_PATH_AVAILABLE: 503,
}


class ConversionError(Exception):
    """Single error type raised by every conversion step.

    Args:
        kind: What went wrong, used to pick the client-facing status.
        message: Short human readable summary.
        details: Diagnostic text (stderr, remote response body, ...).
        status_code: HTTP status reported by a remote service, if any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details
        self.status_code = status_code

    @property
    def http_status(self) -> int:
        if self.status_code and 400 <= self.status_code < 600:
            return self.status_code
        return DEFAULT_HTTP_STATUS[self.kind]

    def to_dict(self) -> dict:
        content = {"error": self.message}
        if self.details:
            content["details"] = self.details
        return content

    def __repr__(self) -> str:
        return (
            f"ConversionError(kind={self.kind.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )


class NoConversionPathError(ConversionError):
    """Neither LibreOffice nor a remote API key is available"""

    def __init__(self, message: str, details: str, restricted_runtime: bool) -> None:
        super().__init__(ErrorKind.NO_CONVERSION_PATH_AVAILABLE, message, details=details)
        self.restricted_runtime = restricted_runtime
