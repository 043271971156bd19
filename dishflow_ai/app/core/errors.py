"""Error types raised by the extraction and conversion services.

Every error carries a stable ``error_code`` that the API layer returns to
clients. None of these errors are retried by the invocation helper.
"""

from typing import Optional


class DishflowError(Exception):
    error_code = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamUnavailableError(DishflowError):
    """The model service kept failing with transient errors until attempts ran out."""

    error_code = "upstream_unavailable"
    status_code = 503

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class ContentRejectedError(DishflowError):
    error_code = "content_rejected"
    status_code = 422


class IrrelevantContentError(ContentRejectedError):
    """The model judged the source to be something other than a recipe."""

    error_code = "irrelevant_content"

    def __init__(self, reason: str):
        super().__init__(f"irrelevant content: {reason}")
        self.reason = reason


class ContentBlockedError(ContentRejectedError):
    error_code = "content_blocked"


class TruncatedResponseError(DishflowError):
    error_code = "response_truncated"
    status_code = 502


class EmptyResponseError(DishflowError):
    error_code = "empty_response"
    status_code = 502


class UnexpectedFinishReasonError(DishflowError):
    error_code = "unexpected_finish_reason"
    status_code = 502

    def __init__(self, finish_reason: str):
        super().__init__(f"unexpected finish reason: {finish_reason}")
        self.finish_reason = finish_reason


class ResponseParseError(DishflowError):
    error_code = "parse_error"
    status_code = 502

    def __init__(self, message: str, excerpt: str = ""):
        super().__init__(message)
        self.excerpt = excerpt


class FetchError(DishflowError):
    error_code = "fetch_failed"
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = status_code


class BlockedHostError(FetchError):
    """The target host resolves to an internal or otherwise forbidden address."""

    error_code = "blocked_host"


class UnsupportedContentTypeError(FetchError):
    error_code = "unsupported_content_type"

    def __init__(self, content_type: str):
        super().__init__(f"unsupported content type: {content_type}")
        self.content_type = content_type


class MediaProcessingError(DishflowError):
    error_code = "media_processing_failed"
    status_code = 502


class MediaProcessingTimeoutError(MediaProcessingError):
    error_code = "media_processing_timeout"
    status_code = 504


class ConversionError(DishflowError):
    error_code = "conversion_failed"
    status_code = 502


class AIUnavailableError(DishflowError):
    """No Gemini client is configured for this process."""

    error_code = "ai_unavailable"
    status_code = 503


class PayloadTooLargeError(DishflowError):
    error_code = "payload_too_large"
    status_code = 413
