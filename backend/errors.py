from typing import Any, Dict, Optional


class PortraitError(Exception):
    """Base for every error that is turned into a JSON error body."""

    status_code = 500
    message = "Internal server error. Please try again."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidInput(PortraitError):
    status_code = 400
    message = "Invalid request body."


class PayloadTooLarge(PortraitError):
    status_code = 413
    message = "Request body too large."


class RateLimited(PortraitError):
    status_code = 429
    message = "Too many requests. Please slow down."

    def __init__(
        self,
        message: Optional[str] = None,
        retry_after: Optional[str] = None,
        retry_after_seconds: int = 0,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.retry_after_seconds = retry_after_seconds

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.retry_after:
            body["retryAfter"] = self.retry_after
        return body


class UpstreamError(PortraitError):
    status_code = 502
    message = "Failed to generate portrait. Please try again."

    def __init__(self, detail: str):
        super().__init__()
        self.detail = detail

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message, "detail": self.detail}


class ParseError(PortraitError):
    status_code = 500
    message = "Invalid response from AI. Please try again."


class InternalError(PortraitError):
    status_code = 500
