"""Error taxonomy for the Dyn QPS check.

Transport failures are kept apart from application failures so the entry point
can map them to different verdicts:

- TransportError: connection refused, timeouts, broken framing
- AuthenticationError / BadResponseError / RetryExhaustedError: the API answered,
  but not with what we need
- MalformedReportError / InsufficientDataError: the report could not be turned
  into a percentile
- InvalidConfigurationError: bad operator input
"""


class DynQPSError(Exception):
    """Base class for every classified failure of a check run."""


class InvalidConfigurationError(DynQPSError, ValueError):
    pass


class TransportError(DynQPSError):
    """The API could not be reached or spoke broken HTTP."""


class AuthenticationError(DynQPSError):
    """Login did not yield a session token."""

    def __init__(self, reason: str, api_messages: list[str] | None = None) -> None:
        self.api_messages = api_messages or []
        detail = f"Authentication failed: {reason}"
        if self.api_messages:
            detail += f" ({'; '.join(self.api_messages)})"
        super().__init__(detail)


class BadResponseError(DynQPSError):
    def __init__(self, status_code: int, reason: str | None = None) -> None:
        self.status_code = status_code
        detail = f"Unexpected HTTP status {status_code}"
        if reason:
            detail += f": {reason}"
        super().__init__(detail)


class RetryExhaustedError(DynQPSError):
    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Could not complete request after {attempts} retries")


class MalformedReportError(DynQPSError):
    """The report body is not JSON or carries no CSV payload."""


class InsufficientDataError(DynQPSError, ValueError):
    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"At least 2 rate samples are needed for a percentile, got {count}")


class SessionTerminationError(DynQPSError):
    """Logout failed. Advisory only: never overrides a computed verdict."""
