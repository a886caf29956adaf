from aiprofessor.core.db import MongoModel


class User(MongoModel):
    """User domain model with credentials."""

    username: str
    password_hash: str  # bcrypt hash
    email: str | None = None
