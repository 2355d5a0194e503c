"""JSON envelope ({success, error, needsAuth}) and exception handlers for the error taxonomy."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gridcard.core.errors import (
    AuthRequired,
    GridcardError,
    InvalidContent,
    TranscodeTimeout,
    UpstreamAuthError,
)

logger = logging.getLogger(__name__)

RECONNECT_MESSAGE = "Authentication failed. Please reconnect with Yoto."


def error_response(status_code: int, message: str, needs_auth: bool = False) -> JSONResponse:
    content = {"success": False, "error": message}
    if needs_auth:
        content["needsAuth"] = True
    return JSONResponse(content, status_code=status_code)


async def _auth_required(request: Request, exc: AuthRequired) -> JSONResponse:
    return error_response(401, str(exc), needs_auth=True)


async def _upstream_auth(request: Request, exc: UpstreamAuthError) -> JSONResponse:
    logger.warning("Upstream rejected token on %s: %s", request.url.path, exc)
    return error_response(401, RECONNECT_MESSAGE, needs_auth=True)


async def _transcode_timeout(request: Request, exc: TranscodeTimeout) -> JSONResponse:
    logger.error("%s: %s", request.url.path, exc)
    return error_response(500, str(exc))


async def _invalid_content(request: Request, exc: InvalidContent) -> JSONResponse:
    return error_response(400, str(exc))


async def _gridcard_error(request: Request, exc: GridcardError) -> JSONResponse:
    logger.error("%s failed: %s", request.url.path, exc)
    return error_response(500, str(exc) or "Upstream request failed")


async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return error_response(400, f"Invalid request: {details}")


async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return error_response(500, str(exc) or exc.__class__.__name__)


def register_exception_handlers(app: FastAPI) -> None:
    # Starlette picks the handler of the closest class in the MRO
    app.add_exception_handler(AuthRequired, _auth_required)
    app.add_exception_handler(UpstreamAuthError, _upstream_auth)
    app.add_exception_handler(TranscodeTimeout, _transcode_timeout)
    app.add_exception_handler(InvalidContent, _invalid_content)
    app.add_exception_handler(GridcardError, _gridcard_error)
    app.add_exception_handler(RequestValidationError, _bad_request)
    # Exception goes to ServerErrorMiddleware, which still re-raises after responding
    app.add_exception_handler(Exception, _unexpected)
