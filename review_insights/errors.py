"""Error taxonomy for the analysis engine."""


class ReviewInsightsError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(ReviewInsightsError):
    """AI analysis is required but not configured, and fallback is disabled."""


class DocumentError(ReviewInsightsError):
    """A context document could not be turned into text."""


class CompletionError(ReviewInsightsError):
    """Base class for completion API failures.

    All subclasses are recoverable via the rule-based fallback when it is
    enabled; otherwise the orchestrator promotes them to AnalysisFailed.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CompletionTimeout(CompletionError):
    """The call did not finish within its wall-clock budget."""


class InvalidCredentials(CompletionError):
    """The API key was rejected."""


class RateLimited(CompletionError):
    """The API is throttling requests."""


class ServiceUnavailable(CompletionError):
    """The API answered with a server-side (5xx) error."""


class RequestFailed(CompletionError):
    """The API answered with any other non-success status."""


class TransportError(CompletionError):
    """The request never got an HTTP answer."""


class AnalysisFailed(ReviewInsightsError):
    """AI analysis failed and fallback is disabled."""

    def __init__(self, subject: str, cause: BaseException):
        """Wrap the underlying failure for one employee or the team."""
        super().__init__(
            f"AI analysis failed for {subject} and fallback is disabled. Error: {cause}"
        )
        self.subject = subject
        self.cause = cause
