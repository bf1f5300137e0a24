"""Exception hierarchy for analysis runs and the HTTP layer."""

from fastapi import HTTPException, status


class AnalysisError(Exception):
    """Base class for every error raised inside an analysis run."""


# ---------------------------------------------------------------------------
# Transport errors (retried by RetryExecutor around each provider call)
# ---------------------------------------------------------------------------


class ProviderError(AnalysisError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProviderTimeout(ProviderError):
    def __init__(self, timeout: float):
        super().__init__(f"Provider call timed out after {timeout:.1f}s")
        self.timeout = timeout


class ProviderRateLimited(ProviderError):
    pass


class ProviderQuotaExceeded(ProviderError):
    pass


# ---------------------------------------------------------------------------
# Content errors (retried as a whole generate+analyze pipeline)
# ---------------------------------------------------------------------------


class ContentError(AnalysisError):
    pass


class InsufficientGeneration(ContentError):
    def __init__(self, length: int, minimum: int):
        super().__init__(f"Generated content too short ({length} < {minimum} chars)")
        self.length = length


class InvalidAnalysisResponse(ContentError):
    def __init__(self, reason: str):
        super().__init__(f"Invalid analysis response: {reason}")
        self.reason = reason


class ExtractionError(ContentError):
    pass


class NoJSONFound(ExtractionError):
    def __init__(self, message: str = "No JSON object found in response"):
        super().__init__(message)


class JSONParseError(ExtractionError):
    def __init__(self, detail: str):
        super().__init__(f"Could not parse JSON: {detail}")
        self.detail = detail


# ---------------------------------------------------------------------------
# Other
# ---------------------------------------------------------------------------


class CacheError(AnalysisError):
    """Raised by cache backends. CacheGateway converts it into a miss."""


class InvalidRunError(AnalysisError, ValueError):
    """Caller error: empty question list or malformed configuration."""


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
