from typing import Any

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase
from redis.asyncio import Redis

from aiprofessor.config import Config
from aiprofessor.core.core import Service
from aiprofessor.core.modules.counter.models import CounterType
from aiprofessor.core.modules.user.models import User
from aiprofessor.errors import ValidationError

logger = structlog.get_logger(__name__)

SEED_USERNAME = "testuser"
SEED_PASSWORD = "test1234"  # noqa: S105
SEED_EMAIL = "test@example.com"


class UserService(Service):
    """Credential store: users with bcrypt password hashes."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]], redis: Redis) -> None:
        super().__init__(config, database, redis)
        self._collection = database.get_collection("users")

    async def find_by_username(self, username: str) -> User | None:
        doc = await self._collection.find_one({"username": username})
        return User.model_validate(doc) if doc else None

    async def has_username(self, username: str) -> bool:
        return await self._collection.count_documents({"username": username}, limit=1) > 0

    async def verify_credentials(self, username: str, password: str) -> User | None:
        """Return the user when the password matches its stored hash, otherwise None."""
        user = await self.find_by_username(username)
        if user is None:
            return None
        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            return None
        return user

    async def create_user(self, username: str, password: str, email: str | None = None) -> User:
        """Create user with hashed password."""
        if await self.has_username(username):
            raise ValidationError(f"User '{username}' already exists")

        user_id = await self.core.services.counter.get_next_sequence(CounterType.USER)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        user = User(id=user_id, username=username, password_hash=password_hash, email=email)
        await self._collection.insert_one(user.to_mongo())
        return user

    async def ensure_seed_user_exists(self) -> None:
        """Create the development test user if not exists."""
        if await self.has_username(SEED_USERNAME):
            logger.info("seed_user_exists", username=SEED_USERNAME)
            return
        user = await self.create_user(SEED_USERNAME, SEED_PASSWORD, SEED_EMAIL)
        logger.info("seed_user_created", username=user.username, user_id=user.id)

    async def on_start(self) -> None:
        """Create indexes and, in development, the seed user."""
        await self._collection.create_index([("username", 1)], unique=True)
        if self.config.seed_user_enabled:
            await self.ensure_seed_user_exists()
