"""Authenticated calls to the Yoto REST APIs (main API and Labs API)."""
from typing import Any, Dict, Optional

import requests

from gridcard.config import (
    AUDIO_UPLOAD_TIMEOUT_SEC,
    YOTO_API_BASE,
    YOTO_LABS_API_BASE,
    YOTO_TIMEOUT_SEC,
)
from gridcard.core.http import send, send_json


class YotoApi:
    """Bearer-token wrapper. One instance per request; holds no other state."""

    def __init__(
        self,
        session: requests.Session,
        access_token: str,
        *,
        api_base: str = YOTO_API_BASE,
        labs_base: str = YOTO_LABS_API_BASE,
        timeout: float = YOTO_TIMEOUT_SEC,
    ) -> None:
        self.session = session
        self.access_token = access_token
        self.api_base = api_base.rstrip("/")
        self.labs_base = labs_base.rstrip("/")
        self.timeout = timeout

    def _url(self, path: str, labs: bool) -> str:
        return f"{self.labs_base if labs else self.api_base}{path}"

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.access_token}", "Accept": "application/json"}
        if extra:
            headers.update(extra)
        return headers

    def get_json(self, path: str, *, params: Optional[Dict[str, Any]] = None, labs: bool = False) -> Any:
        return send_json(
            self.session,
            "GET",
            self._url(path, labs),
            timeout=self.timeout,
            params=params,
            headers=self._headers(),
        )

    def post_json(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        params: Optional[Dict[str, Any]] = None,
        labs: bool = False,
    ) -> Any:
        return send_json(
            self.session,
            "POST",
            self._url(path, labs),
            timeout=self.timeout,
            params=params,
            json=payload,
            headers=self._headers({"Content-Type": "application/json"}),
        )

    def post_bytes(
        self,
        path: str,
        data: bytes,
        content_type: str,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return send_json(
            self.session,
            "POST",
            self._url(path, False),
            timeout=self.timeout,
            params=params,
            data=data,
            headers=self._headers({"Content-Type": content_type}),
        )

    def put_presigned(self, upload_url: str, data: bytes, content_type: str) -> None:
        """PUT raw bytes to a pre-signed storage URL (no bearer token)."""
        send(
            self.session,
            "PUT",
            upload_url,
            timeout=AUDIO_UPLOAD_TIMEOUT_SEC,
            data=data,
            headers={"Content-Type": content_type},
        )
