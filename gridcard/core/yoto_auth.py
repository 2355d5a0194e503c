"""Yoto OAuth2 (authorization-code flow): authorize URL, code exchange, token refresh."""
import logging
import time
import urllib.parse
from typing import Any, Dict, Optional

import requests

from gridcard.config import (
    YOTO_AUDIENCE,
    YOTO_AUTH_BASE,
    YOTO_CLIENT_ID,
    YOTO_CLIENT_SECRET,
    YOTO_SCOPES,
    YOTO_TIMEOUT_SEC,
)
from gridcard.core.errors import AuthRequired, UpstreamError
from gridcard.core.http import send_json
from gridcard.core.store import (
    MYO_CARD_ID_KEY,
    TOKENS_KEY,
    TTS_CARD_ID_KEY,
    KeyValueStore,
)

logger = logging.getLogger(__name__)

# Refresh this many seconds before the access token actually expires
_EXPIRY_MARGIN_SEC = 60


def build_authorize_url(redirect_uri: str, client_id: Optional[str] = None) -> str:
    """Return the Yoto login URL the browser is redirected to."""
    params = {
        "audience": YOTO_AUDIENCE,
        "scope": YOTO_SCOPES,
        "response_type": "code",
        "client_id": client_id or YOTO_CLIENT_ID,
        "redirect_uri": redirect_uri,
    }
    return f"{YOTO_AUTH_BASE}/authorize?{urllib.parse.urlencode(params)}"


def _token_request(session: requests.Session, data: Dict[str, str]) -> Dict[str, Any]:
    return send_json(
        session,
        "POST",
        f"{YOTO_AUTH_BASE}/oauth/token",
        timeout=YOTO_TIMEOUT_SEC,
        data=data,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )


def exchange_code(session: requests.Session, code: str, redirect_uri: str) -> Dict[str, Any]:
    """Exchange an authorization code for access/refresh tokens."""
    return _token_request(
        session,
        {
            "grant_type": "authorization_code",
            "client_id": YOTO_CLIENT_ID,
            "client_secret": YOTO_CLIENT_SECRET,
            "code": code,
            "redirect_uri": redirect_uri,
        },
    )


def refresh_tokens(session: requests.Session, refresh_token: str) -> Dict[str, Any]:
    return _token_request(
        session,
        {
            "grant_type": "refresh_token",
            "client_id": YOTO_CLIENT_ID,
            "client_secret": YOTO_CLIENT_SECRET,
            "refresh_token": refresh_token,
        },
    )


def save_tokens(store: KeyValueStore, token_response: Dict[str, Any], now: Optional[float] = None) -> None:
    """Persist the token response. A refresh response may omit refresh_token; keep the old one."""
    now = time.time() if now is None else now
    previous = store.get(TOKENS_KEY) or {}
    expires_in = token_response.get("expires_in")
    store.set(
        TOKENS_KEY,
        {
            "accessToken": token_response["access_token"],
            "refreshToken": token_response.get("refresh_token") or previous.get("refreshToken"),
            "expiresAt": now + float(expires_in) if expires_in else None,
        },
    )


def get_access_token(store: KeyValueStore) -> Optional[str]:
    """Return the stored access token, or None if the user never connected."""
    tokens = store.get(TOKENS_KEY)
    if not tokens or not tokens.get("accessToken"):
        return None
    return tokens["accessToken"]


def require_access_token(
    store: KeyValueStore,
    session: requests.Session,
    now: Optional[float] = None,
) -> str:
    """Return a usable access token, refreshing it first if it is about to expire.

    Raises AuthRequired when nothing is stored. A failed refresh falls through to
    the stale token; the upstream 401 then asks the user to reconnect.
    """
    tokens = store.get(TOKENS_KEY) or {}
    access_token = tokens.get("accessToken")
    if not access_token:
        raise AuthRequired()
    now = time.time() if now is None else now
    expires_at = tokens.get("expiresAt")
    refresh_token = tokens.get("refreshToken")
    if expires_at is None or not refresh_token or now < expires_at - _EXPIRY_MARGIN_SEC:
        return access_token
    try:
        save_tokens(store, refresh_tokens(session, refresh_token), now=now)
    except UpstreamError as e:
        logger.warning("Token refresh failed: %s", e)
        return access_token
    logger.info("Refreshed Yoto access token")
    return store.get(TOKENS_KEY)["accessToken"]


def clear_session(store: KeyValueStore) -> None:
    """Forget tokens and stored card ids (logout)."""
    for key in (TOKENS_KEY, TTS_CARD_ID_KEY, MYO_CARD_ID_KEY):
        store.delete(key)
