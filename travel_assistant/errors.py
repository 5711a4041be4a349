"""
Error taxonomy shared by the assistant pipeline and the HTTP layer.

Every error carries the HTTP status it maps to; main.py renders them as
{"error": message} responses.
"""
from typing import Optional


class TravelAssistantError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.message}


class MissingCredential(TravelAssistantError):
    status_code = 500

    def __init__(self, name: str):
        super().__init__(f"{name} is missing in environment variables")
        self.name = name


class InvalidInput(TravelAssistantError):
    status_code = 400


class UpstreamError(TravelAssistantError):
    """Non-2xx answer (or a non-OK API status) from an external service."""

    def __init__(self, status: Optional[int], message: str):
        # Upstream 4xx/5xx are passed through, anything else becomes a 502
        code = int(status) if status and 400 <= int(status) < 600 else 502
        super().__init__(message, code)
        self.upstream_status = status


class NetworkError(TravelAssistantError):
    status_code = 502


class MalformedResponse(TravelAssistantError):
    status_code = 500

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text

    def to_dict(self) -> dict:
        return {"error": self.message, "raw": self.raw_text}


class NotFound(TravelAssistantError):
    status_code = 404


class StoreUnavailable(TravelAssistantError):
    status_code = 503


class StaleTurn(TravelAssistantError):
    status_code = 409
