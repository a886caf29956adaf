from fastapi import APIRouter
from pydantic import Field

from aiprofessor.web.deps import AppDep, AuthTokenDep, BearerTokenDep, ClientIpDep
from aiprofessor.web.openapi import ApiModel, ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(ApiModel):
    """Authentication request."""

    username: str = Field(..., min_length=1, description="Username for authentication")
    password: str = Field(..., min_length=1, description="Password for authentication")
    mac_address: str = Field(..., min_length=1, description="Client-generated device identifier")


class LoginResponse(ApiModel):
    """Authentication response."""

    token: str = Field(..., description="Bearer token for subsequent requests")
    user_id: int = Field(..., description="Authenticated user id")
    username: str = Field(..., description="Authenticated username")


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description=(
        "Authenticate with username, password and device identifier to receive a bearer token. "
        "When the user already holds the maximum number of sessions, the login is only admitted "
        "from an IP address or device that already has a live session."
    ),
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        400: {"model": ErrorResponse, "description": "Malformed request"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        409: {"model": ErrorResponse, "description": "Concurrent session limit reached"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, ip_address: ClientIpDep) -> LoginResponse:
    """Authenticate user and create session."""
    result = await app.login(login_data.username, login_data.password, ip_address, login_data.mac_address)
    return LoginResponse(token=result.token, user_id=result.user_id, username=result.username)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the session of the presented token. Succeeds even if the session is already gone.",
    operation_id="logout",
    responses={
        200: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Authorization header missing"},
    },
)
async def logout(app: AppDep, auth_token: BearerTokenDep) -> None:
    await app.logout(auth_token)


@router.delete(
    "/auth/sessions/oldest",
    summary="Evict oldest session",
    description="Delete the current user's oldest session, freeing a slot for a login from another device.",
    operation_id="evictOldestSession",
    status_code=204,
    responses={
        204: {"description": "Oldest session deleted (or none existed)"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def evict_oldest_session(app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.evict_oldest_session(auth_token)
