"""Error taxonomy for the model client and the analysis features."""

from __future__ import annotations

from puckcoach.schemas.enums import AnalyzerErrorKind


class GeminiError(RuntimeError):
    """Base class for failures talking to the hosted model."""


class TransportError(GeminiError):
    """Connection could not be established or was lost."""


class RequestTimeoutError(GeminiError):
    """The request did not complete within its timeout."""


class UpstreamHTTPError(GeminiError):
    """The endpoint answered with a non-success HTTP status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class UpstreamResponseError(GeminiError):
    """The endpoint answered 2xx but the body carried an error or was unusable."""


class UploadError(GeminiError):
    """The file upload step failed or returned no file URI."""


class CircuitOpenError(GeminiError):
    """Request refused locally because the circuit breaker is open."""


class OperationCancelledError(GeminiError):
    """The caller cancelled the operation."""


class FlowDataError(ValueError):
    """Invalid access to a flow's stage data."""


def is_retryable_failure(exc: BaseException) -> bool:
    """Timeouts, lost connections and 5xx responses are worth one more attempt."""
    if isinstance(exc, (RequestTimeoutError, TransportError)):
        return True
    if isinstance(exc, UpstreamHTTPError):
        return exc.status_code >= 500
    return False


_TITLES: dict[AnalyzerErrorKind, str] = {
    AnalyzerErrorKind.NETWORK_ISSUE: "Connection Error",
    AnalyzerErrorKind.AI_PROCESSING_FAILED: "Analysis Failed",
    AnalyzerErrorKind.INVALID_CONTENT: "Invalid Video",
    AnalyzerErrorKind.VALIDATION_PARSING_FAILED: "Validation Failed",
    AnalyzerErrorKind.ANALYSIS_PARSING_FAILED: "Processing Failed",
}

_SUGGESTIONS: dict[AnalyzerErrorKind, str] = {
    AnalyzerErrorKind.NETWORK_ISSUE: "Check your internet connection and try again.",
    AnalyzerErrorKind.AI_PROCESSING_FAILED: "Try recording a shorter, clearer video.",
    AnalyzerErrorKind.INVALID_CONTENT: "Record a hockey shot with proper form.",
    AnalyzerErrorKind.VALIDATION_PARSING_FAILED: (
        "This is usually temporary. Try again in a few seconds."
    ),
    AnalyzerErrorKind.ANALYSIS_PARSING_FAILED: (
        "The analysis completed but couldn't be displayed. Try analyzing again."
    ),
}

INVALID_CONTENT_TIPS = (
    "Use a hockey stick and puck",
    "Record on ice, street, or synthetic surface",
    "Ensure the full shooting motion is visible",
    "Use good lighting and keep camera steady",
)

_NETWORK_HINTS = ("connection error", "network", "internet", "offline")


class AnalyzerError(Exception):
    """User-facing failure of a validation or analysis step."""

    def __init__(self, kind: AnalyzerErrorKind, detail: str = "") -> None:
        super().__init__(f"{_TITLES[kind]}: {detail}" if detail else _TITLES[kind])
        self.kind = kind
        self.detail = detail

    @property
    def title(self) -> str:
        return _TITLES[self.kind]

    @property
    def failure_reason(self) -> str:
        if self.kind == AnalyzerErrorKind.NETWORK_ISSUE:
            return (
                "Unable to connect to the analysis service. "
                "Please check your internet connection."
            )
        if self.kind == AnalyzerErrorKind.AI_PROCESSING_FAILED:
            return f"The AI service couldn't analyze your video. {self.detail}".strip()
        return self.detail

    @property
    def recovery_suggestion(self) -> str:
        return _SUGGESTIONS[self.kind]

    @property
    def is_retryable(self) -> bool:
        """Invalid content needs new media; every other kind can reuse the inputs."""
        return self.kind != AnalyzerErrorKind.INVALID_CONTENT

    @property
    def action_label(self) -> str:
        return "Try Again" if self.is_retryable else "Record New Video"

    @classmethod
    def invalid_content(cls, reason: str) -> "AnalyzerError":
        return cls(AnalyzerErrorKind.INVALID_CONTENT, reason)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "AnalyzerError":
        """Map a lower-level failure onto the user-facing taxonomy."""
        if isinstance(exc, AnalyzerError):
            return exc
        if isinstance(exc, (TransportError, RequestTimeoutError)):
            return cls(AnalyzerErrorKind.NETWORK_ISSUE, str(exc))
        message = str(exc)
        if any(hint in message.lower() for hint in _NETWORK_HINTS):
            return cls(AnalyzerErrorKind.NETWORK_ISSUE, message)
        return cls(AnalyzerErrorKind.AI_PROCESSING_FAILED, message)
