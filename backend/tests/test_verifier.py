import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from vibecode.auth.verifier import JWTIdentityVerifier
from vibecode.errors import InvalidCredential

SECRET = "test-secret"


@pytest.fixture
def verifier():
    return JWTIdentityVerifier(SECRET)


def encode(claims, secret=SECRET):
    return jwt.encode(claims, secret, algorithm="HS256")


def in_one_hour():
    return datetime.now(timezone.utc) + timedelta(hours=1)


def test_valid_token(verifier):
    user_id = uuid.uuid4()
    assert verifier.verify(encode({"sub": str(user_id), "exp": in_one_hour()})) == user_id


@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        encode({"sub": str(uuid.uuid4()), "exp": in_one_hour()}, secret="other-secret"),
        encode({"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) - timedelta(minutes=5)}),
        encode({"exp": in_one_hour()}),
        encode({"sub": str(uuid.uuid4())}),
        encode({"sub": "alice", "exp": in_one_hour()}),
    ],
    ids=["garbage", "wrong-secret", "expired", "no-subject", "no-expiry", "subject-not-uuid"],
)
def test_rejected_tokens(verifier, token):
    with pytest.raises(InvalidCredential):
        verifier.verify(token)
