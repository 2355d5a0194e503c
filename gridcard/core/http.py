"""Outbound HTTP boundary: one request, typed errors, and client-side throttling."""
import logging
import time
from typing import Any, Callable, Optional

import requests

from gridcard.core.errors import (
    UpstreamAuthError,
    UpstreamError,
    UpstreamTimeout,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

# Cap on upstream body text carried in error messages
_MAX_ERROR_BODY = 500


def send(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    **kwargs: Any,
) -> requests.Response:
    """Issue one request and return the 2xx response.

    Raises UpstreamTimeout, UpstreamUnavailable, UpstreamAuthError (401) or
    UpstreamError (any other non-2xx). Never retries.
    """
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        raise UpstreamTimeout(f"{method} {url} timed out after {timeout}s", url=url) from e
    except requests.RequestException as e:
        raise UpstreamUnavailable(f"{method} {url} failed: {e}", url=url) from e

    if 200 <= response.status_code < 300:
        return response

    body = (response.text or "")[:_MAX_ERROR_BODY]
    if response.status_code == 401:
        raise UpstreamAuthError(
            f"Unauthorized: {body}", status=response.status_code, body=body, url=url
        )
    raise UpstreamError(
        f"HTTP {response.status_code}: {body}", status=response.status_code, body=body, url=url
    )


def send_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    **kwargs: Any,
) -> Any:
    """Like send(), but decode the JSON body. An undecodable body is an UpstreamError."""
    response = send(session, method, url, timeout=timeout, **kwargs)
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(
            f"{method} {url} returned invalid JSON", status=response.status_code, url=url
        ) from e


class Throttle:
    """Spaces consecutive calls by at least min_interval seconds (fixed delay, no backoff)."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None

    def wait(self) -> float:
        """Block until the next call may go out; returns the delay slept."""
        delay = 0.0
        if self._last is not None:
            delay = self.min_interval - (self._clock() - self._last)
            if delay > 0:
                self._sleep(delay)
            else:
                delay = 0.0
        self._last = self._clock()
        return delay
