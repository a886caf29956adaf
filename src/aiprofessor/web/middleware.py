"""Request gate that restricts the production API to the desktop client."""

import secrets
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.responses import Response

from aiprofessor.config import Config
from aiprofessor.web.error_handlers import create_json_error_response

PRODUCTION_PROFILE = "prod"
APP_TOKEN_HEADER = "X-App-Token"
DESKTOP_ORIGIN_SCHEMES = ("app://", "file://")
PUBLIC_PATH_PREFIXES = ("/health",)


def is_desktop_client(request: Request, electron_token: str) -> bool:
    """Whether the request carries the shared app token or comes from a packaged desktop origin."""
    app_token = request.headers.get(APP_TOKEN_HEADER)
    if electron_token and app_token is not None and secrets.compare_digest(app_token.encode(), electron_token.encode()):
        return True
    origin = request.headers.get("origin", "")
    return origin.startswith(DESKTOP_ORIGIN_SCHEMES)


def register_desktop_client_gate(app: FastAPI, config: Config) -> None:
    """Reject non-desktop requests with 403 when running under the production profile.

    Other profiles leave the API open for browsers, curl and tests.
    """
    if config.profile != PRODUCTION_PROFILE:
        return

    @app.middleware("http")
    async def desktop_client_gate(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        if request.url.path.startswith(PUBLIC_PATH_PREFIXES) or is_desktop_client(request, config.electron_token):
            return await call_next(request)
        return create_json_error_response(request, 403, "Access denied: only the desktop app is allowed")
