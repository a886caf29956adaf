from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from redis.asyncio import Redis

from aiprofessor.config import Config
from aiprofessor.core.core import Service
from aiprofessor.core.modules.session.models import AuthToken, LoginResult, Session
from aiprofessor.core.modules.session.store import SessionStore
from aiprofessor.core.modules.session.token import TokenIssuer
from aiprofessor.errors import AuthenticationError, InvalidCredentialsError, MaxSessionsExceededError

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Login admission policy, token validation and session revocation."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]], redis: Redis) -> None:
        super().__init__(config, database, redis)
        self.store = SessionStore(redis, config.session_ttl_seconds)
        self.tokens = TokenIssuer(config.jwt_secret, config.jwt_expiration_seconds)
        self.max_concurrent_sessions = config.max_concurrent_sessions

    async def login(self, username: str, password: str, ip_address: str, mac_address: str) -> LoginResult:
        """Authenticate and admit a new session under the concurrent-session policy.

        When the user is at the limit, a login is still admitted if any live session
        shares its IP or device id; the older session is left to expire or be evicted.
        The check is read-then-write without a lock, so two racing logins may both pass.
        """
        user = await self.core.services.user.verify_credentials(username, password)
        if user is None:
            logger.info("login_rejected", reason="invalid_credentials")
            raise InvalidCredentialsError

        current_sessions = await self.store.find_by_user_id(user.id)
        if len(current_sessions) >= self.max_concurrent_sessions:
            same_ip_count = await self.store.count_by_user_and_ip(user.id, ip_address)
            same_device_count = await self.store.count_by_user_and_device(user.id, mac_address)
            if same_ip_count == 0 and same_device_count == 0:
                logger.info("login_rejected", reason="max_sessions", user_id=user.id, sessions=len(current_sessions))
                raise MaxSessionsExceededError(self.max_concurrent_sessions)
            logger.info(
                "login_override",
                user_id=user.id,
                same_ip=same_ip_count,
                same_device=same_device_count,
            )

        token = self.tokens.issue(user.id, user.username)
        await self.store.save(Session(user_id=user.id, token=token, ip_address=ip_address, mac_address=mac_address))
        logger.info("login_admitted", user_id=user.id, sessions=len(current_sessions) + 1)
        return LoginResult(token=token, user_id=user.id, username=user.username)

    async def validate_token(self, token: str) -> int | None:
        """Return the user id for a valid token bound to a live session, otherwise None. Never raises."""
        claims = self.tokens.verify(token)
        if claims is None:
            return None
        session = await self.store.find_by_token(token)
        if session is None or session.user_id != claims.user_id:
            return None
        return claims.user_id

    async def ensure_authenticated(self, auth_token: AuthToken) -> int:
        """Return the authenticated user id or raise AuthenticationError."""
        user_id = await self.validate_token(auth_token)
        if user_id is None:
            raise AuthenticationError("Invalid or expired session")
        return user_id

    async def logout(self, auth_token: AuthToken) -> None:
        """Delete the session for this token. Idempotent."""
        await self.store.delete_by_token(auth_token)

    async def evict_oldest(self, user_id: int) -> Session | None:
        """Delete the user's oldest session, returning it if one existed."""
        evicted = await self.store.delete_oldest_for_user(user_id)
        if evicted is not None:
            logger.info("session_evicted", user_id=user_id, created_at=evicted.created_at.isoformat())
        return evicted
