"""Signed, time-limited bearer tokens (HS256 JWT)."""

import secrets
from datetime import UTC, datetime, timedelta

import jwt

from aiprofessor.core.modules.session.models import AuthToken, TokenClaims
from aiprofessor.utils import now

ALGORITHM = "HS256"


class TokenIssuer:
    """Mints and verifies bearer tokens carrying user id and username claims.

    Verification is purely cryptographic; revocation is enforced by the session store.
    """

    def __init__(self, secret: str, expiration_seconds: int) -> None:
        self._secret = secret
        self._expiration = timedelta(seconds=expiration_seconds)

    def issue(self, user_id: int, username: str) -> AuthToken:
        issued_at = now()
        payload = {
            "sub": str(user_id),
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self._expiration,
            "jti": secrets.token_urlsafe(16),  # two logins within one second must not share a token
        }
        return AuthToken(jwt.encode(payload, self._secret, algorithm=ALGORITHM))

    def verify(self, token: str) -> TokenClaims | None:
        """Return claims for a well-signed, unexpired token, otherwise None."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp", "iat"]},
            )
            return TokenClaims(
                user_id=int(payload["sub"]),
                username=payload["username"],
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        except (jwt.InvalidTokenError, KeyError, ValueError):
            return None
