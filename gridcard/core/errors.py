"""Error taxonomy for upstream calls, raised at the HTTP boundary (see http.py)."""
from typing import Optional


class GridcardError(Exception):
    """Base for all errors this app raises on purpose."""


class AuthRequired(GridcardError):
    """No stored Yoto token; the user has to connect first."""

    def __init__(self, message: str = "Not authenticated. Please connect with Yoto first.") -> None:
        super().__init__(message)


class InvalidContent(GridcardError):
    """Card content the caller sent cannot be published (empty card, track without text or audio)."""


class UpstreamError(GridcardError):
    """Upstream call failed (non-2xx response, or no response at all)."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: str = "",
        url: str = "",
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
        self.url = url


class UpstreamAuthError(UpstreamError):
    """Upstream rejected our token (401); the user has to reconnect."""


class UpstreamUnavailable(UpstreamError):
    """Connection to the upstream failed."""


class UpstreamTimeout(UpstreamError):
    """Upstream did not answer within the request timeout."""


class TranscodeTimeout(GridcardError):
    """Transcoding did not finish within the poll budget."""

    def __init__(self, upload_id: str, attempts: int) -> None:
        super().__init__(f"Transcoding timed out after {attempts} attempts (upload {upload_id})")
        self.upload_id = upload_id
        self.attempts = attempts
