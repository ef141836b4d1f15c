"""
FastAPI dependency resolving the caller's identity.

Flow:
  1. Extract the Bearer token from the Authorization header
  2. Verify it with the configured JWTIdentityVerifier
  3. Return the user id from the token subject

Every failure surfaces as InvalidCredential, which the app maps to 401.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header

from vibecode.auth.verifier import JWTIdentityVerifier
from vibecode.config import settings
from vibecode.errors import InvalidCredential


def get_identity_verifier() -> JWTIdentityVerifier:
    return JWTIdentityVerifier(settings.jwt_secret, settings.jwt_algorithm)


async def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    verifier: JWTIdentityVerifier = Depends(get_identity_verifier),
) -> uuid.UUID:
    if not authorization:
        raise InvalidCredential("missing bearer token")

    parts = authorization.split(" ", maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise InvalidCredential("missing bearer token")

    return verifier.verify(parts[1])


CurrentUser = Annotated[uuid.UUID, Depends(get_current_user)]
