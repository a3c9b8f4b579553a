from datetime import timedelta

import jwt
import pytest

from quickserve.core.errors import AuthenticationError
from quickserve.core.security import (
    create_access_token,
    decode_access_token,
    extract_bearer_token,
    hash_password,
    verify_password,
)


# =============================================================================
# Password hashing and tokens
# =============================================================================

def test_hash_password_is_salted_and_verifiable():
    first = hash_password("secret1")
    second = hash_password("secret1")

    assert first != second
    assert first.startswith("$2")
    assert verify_password("secret1", first)
    assert not verify_password("secret2", first)


def test_verify_password_rejects_non_bcrypt_hash():
    assert verify_password("secret1", "plain-text") is False


def test_token_round_trip_returns_subject():
    token = create_access_token("abc123")
    assert decode_access_token(token) == "abc123"


def test_expired_token_is_reported_as_expired():
    token = create_access_token("abc123", expires_delta=timedelta(seconds=-5))

    with pytest.raises(AuthenticationError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.message == "Token expired"


def test_token_signed_with_other_secret_is_invalid():
    forged = jwt.encode({"sub": "abc123", "exp": 9999999999}, "other-secret", algorithm="HS256")

    with pytest.raises(AuthenticationError) as exc_info:
        decode_access_token(forged)
    assert exc_info.value.message == "Invalid token"


def test_token_without_subject_is_invalid():
    token = jwt.encode({"exp": 9999999999}, "test-secret", algorithm="HS256")

    with pytest.raises(AuthenticationError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.message == "Invalid token"


@pytest.mark.parametrize("header,expected", [
    (None, None),
    ("", None),
    ("Bearer abc", "abc"),
    ("bearer   abc ", "abc"),
    ("Bearer ", None),
    ("Token abc", None),
])
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


# =============================================================================
# Guard behaviour on a protected route
# =============================================================================

def test_missing_token_is_rejected(client):
    response = client.get("/api/users/me")

    assert response.status_code == 401
    assert response.json()["message"] == "Authorization token required"


def test_non_bearer_header_is_treated_as_missing(client, alice):
    headers, _ = alice
    token = headers["Authorization"].split()[1]

    response = client.get("/api/users/me", headers={"Authorization": f"Token {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Authorization token required"


def test_garbage_token_is_invalid(client):
    response = client.get("/api/orders", headers={"Authorization": "Bearer not.a.jwt"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_expired_token_is_rejected(client, alice):
    _, user = alice
    token = create_access_token(user["id"], expires_delta=timedelta(minutes=-1))

    response = client.get("/api/orders", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"


def test_token_for_unknown_user_is_rejected(client):
    token = create_access_token("0" * 32)

    response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "User not found"


def test_valid_token_reaches_the_route(client, alice):
    headers, user = alice

    response = client.get("/api/users/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["id"] == user["id"]
