"""Yoto OAuth: login redirect, callback, status, and logout."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, RedirectResponse

from gridcard.api.responses import error_response
from gridcard.api.state import AppState, get_state
from gridcard.config import GRIDCARD_WEB_ORIGIN, YOTO_CLIENT_ID, YOTO_REDIRECT_URI
from gridcard.core.errors import GridcardError
from gridcard.core.yoto_auth import (
    build_authorize_url,
    clear_session,
    exchange_code,
    get_access_token,
    save_tokens,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _home(query: str = "") -> str:
    base = f"{GRIDCARD_WEB_ORIGIN.rstrip('/')}/" if GRIDCARD_WEB_ORIGIN else "/"
    return f"{base}?{query}" if query else base


@router.get("/login")
def login():
    """Redirect the browser to the Yoto login page."""
    if not YOTO_CLIENT_ID:
        return error_response(500, "YOTO_CLIENT_ID not set")
    return RedirectResponse(url=build_authorize_url(YOTO_REDIRECT_URI), status_code=302)


@router.get("/callback")
def callback(code: str | None = None, state: AppState = Depends(get_state)):
    """Exchange the authorization code for tokens, store them, then go back to the web app."""
    if not code:
        return PlainTextResponse("Missing authorization code", status_code=400)
    try:
        tokens = exchange_code(state.session, code, YOTO_REDIRECT_URI)
        save_tokens(state.store, tokens)
    except (GridcardError, KeyError) as e:
        logger.error("Auth callback error: %s", e)
        return RedirectResponse(url=_home("error=auth_failed"), status_code=302)
    return RedirectResponse(url=_home(), status_code=302)


@router.get("/status")
def status(state: AppState = Depends(get_state)):
    """Whether a Yoto token is stored."""
    return {"success": True, "authenticated": get_access_token(state.store) is not None}


@router.api_route("/logout", methods=["GET", "POST"])
def logout(state: AppState = Depends(get_state)):
    """Forget tokens and remembered card ids."""
    clear_session(state.store)
    return {"success": True, "message": "Logged out successfully"}
