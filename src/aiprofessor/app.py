from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from aiprofessor.config import Config
from aiprofessor.core.core import Core
from aiprofessor.core.modules.artifact.storage import artifact_url
from aiprofessor.core.modules.document.models import DocumentResult
from aiprofessor.core.modules.history.models import DocumentHistory, ProcessingType
from aiprofessor.core.modules.session.models import AuthToken, LoginResult
from aiprofessor.core.pagination import PageResult


class App:
    """Facade for all application operations, authenticates before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        """Check if authentication token is valid."""
        return await self._core.services.session.validate_token(auth_token) is not None

    async def login(self, username: str, password: str, ip_address: str, mac_address: str) -> LoginResult:
        """Authenticate user and admit a session under the concurrent-session policy."""
        return await self._core.services.session.login(username, password, ip_address, mac_address)

    async def logout(self, auth_token: AuthToken) -> None:
        """Invalidate the session for this token. Idempotent, also for unknown or expired tokens."""
        await self._core.services.session.logout(auth_token)

    async def evict_oldest_session(self, auth_token: AuthToken) -> None:
        """Delete the current user's oldest session."""
        user_id = await self._core.services.session.ensure_authenticated(auth_token)
        await self._core.services.session.evict_oldest(user_id)

    async def process_document(
        self,
        auth_token: AuthToken,
        processing_type: ProcessingType,
        pdf_base64: str,
        user_prompt: str | None = None,
        important_parts: list[str] | None = None,
    ) -> DocumentResult:
        """Generate a summary or exam-question PDF from an uploaded PDF."""
        user_id = await self._core.services.session.ensure_authenticated(auth_token)
        return await self._core.services.document.process(
            user_id=user_id,
            pdf_base64=pdf_base64,
            user_prompt=user_prompt,
            processing_type=processing_type,
            important_parts=important_parts,
        )

    async def get_history(
        self, auth_token: AuthToken, processing_type: ProcessingType | None = None, page: int = 0, size: int = 20
    ) -> PageResult[DocumentHistory]:
        """Get the current user's processing history, newest first."""
        user_id = await self._core.services.session.ensure_authenticated(auth_token)
        return await self._core.services.history.get_history(user_id, processing_type, page, size)

    def get_artifact_url(self, file_path: str) -> str:
        """Public download URL for a stored input or output PDF."""
        return artifact_url(self._core.config.base_url, file_path)
