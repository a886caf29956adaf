from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from aiprofessor.app import App
from aiprofessor.core.modules.session.models import AuthToken
from aiprofessor.errors import AuthenticationError
from aiprofessor.utils import client_ip

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> AuthToken:
    """Get the bearer token from the Authorization header without validating it."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError
    return AuthToken(credentials.credentials)


async def get_auth_token(
    app: Annotated[App, Depends(get_app)],
    auth_token: Annotated[AuthToken, Depends(get_bearer_token)],
) -> AuthToken:
    """Get the bearer token and require it to belong to a live session."""
    if not await app.is_auth_token_valid(auth_token):
        raise AuthenticationError("Invalid or expired session")
    return auth_token


async def get_client_ip(request: Request) -> str:
    return client_ip(
        request.headers.get("x-forwarded-for"),
        request.headers.get("x-real-ip"),
        request.client.host if request.client else None,
    )


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AuthTokenDep = Annotated[AuthToken, Depends(get_auth_token)]
BearerTokenDep = Annotated[AuthToken, Depends(get_bearer_token)]
ClientIpDep = Annotated[str, Depends(get_client_ip)]
