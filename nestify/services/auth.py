"""
Password hashing (bcrypt) and access/refresh tokens (PyJWT).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from nestify.config import AuthConfig
from nestify.error_handling import AuthenticationError
from nestify.models import TokenPair

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"
# bcrypt only reads the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class TokenService:
    """Hash passwords and issue or verify signed tokens"""

    def __init__(self, config: Optional[AuthConfig] = None):
        self.config = config or AuthConfig()

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.config.bcrypt_rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False

    def _encode(self, user_id: str, token_type: str, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {"sub": user_id, "type": token_type, "iat": now, "exp": now + lifetime}
        return jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)

    def issue_pair(self, user_id: str) -> TokenPair:
        return TokenPair(
            access_token=self._encode(user_id, ACCESS, timedelta(minutes=self.config.access_expiry_minutes)),
            refresh_token=self._encode(user_id, REFRESH, timedelta(days=self.config.refresh_expiry_days)),
        )

    def decode(self, token: str, expected_type: str = ACCESS) -> str:
        """
        Verify a token and return the user id it was issued for.

        Raises AuthenticationError for expired, malformed or wrong-type tokens.
        """
        try:
            payload = jwt.decode(token, self.config.jwt_secret, algorithms=[self.config.jwt_algorithm])
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token expired", code="AUTH_TOKEN_EXPIRED") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Invalid token", code="AUTH_TOKEN_INVALID") from e

        if payload.get("type") != expected_type or not payload.get("sub"):
            raise AuthenticationError("Invalid token", code="AUTH_TOKEN_INVALID")
        return payload["sub"]
