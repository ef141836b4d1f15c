"""
Bearer credential verification.

Tokens are issued elsewhere (the auth service); here they are only checked:
HMAC signature, expiry, and a ``sub`` claim holding the user's UUID.
"""

import logging
import uuid

import jwt

from vibecode.errors import InvalidCredential

logger = logging.getLogger(__name__)


class JWTIdentityVerifier:
    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self.secret = secret
        self.algorithms = [algorithm]

    def verify(self, credential: str) -> uuid.UUID:
        try:
            claims = jwt.decode(
                credential,
                self.secret,
                algorithms=self.algorithms,
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as exc:
            # Never log the token itself
            logger.info("Rejected bearer token: %s", exc.__class__.__name__)
            raise InvalidCredential("invalid or expired token") from exc

        try:
            return uuid.UUID(str(claims["sub"]))
        except ValueError as exc:
            raise InvalidCredential("token subject is not a user id") from exc
