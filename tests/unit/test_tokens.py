from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import JWTError, jwt

from app.features.authentication.services import AuthService
from app.security.tokens import JWTSettings, create_access_token, user_id_from_token

SETTINGS = JWTSettings(secret="unit-secret", issuer="tubely")


def test_round_trip_user_id():
    user_id = uuid.uuid4()
    token = create_access_token(user_id=user_id, settings=SETTINGS)
    assert user_id_from_token(token, SETTINGS) == user_id


def test_wrong_secret_is_rejected():
    token = create_access_token(user_id=uuid.uuid4(), settings=SETTINGS)
    with pytest.raises(JWTError):
        user_id_from_token(token, JWTSettings(secret="other", issuer="tubely"))


def test_wrong_issuer_is_rejected():
    token = create_access_token(user_id=uuid.uuid4(), settings=JWTSettings(secret="unit-secret", issuer="someone"))
    with pytest.raises(JWTError):
        user_id_from_token(token, SETTINGS)


def test_non_access_token_is_rejected():
    token = jwt.encode({"iss": "tubely", "sub": str(uuid.uuid4()), "typ": "refresh"}, "unit-secret", algorithm="HS256")
    with pytest.raises(JWTError):
        user_id_from_token(token, SETTINGS)


def test_non_uuid_subject_is_rejected():
    token = jwt.encode({"iss": "tubely", "sub": "42", "typ": "access"}, "unit-secret", algorithm="HS256")
    with pytest.raises(JWTError):
        user_id_from_token(token, SETTINGS)


def test_auth_service_maps_errors_to_401():
    expired = create_access_token(user_id=uuid.uuid4(), settings=SETTINGS, ttl=timedelta(seconds=-30))

    with pytest.raises(HTTPException) as exc:
        AuthService(jwt_settings=SETTINGS).get_current_user_id(access_token=expired)
    assert exc.value.status_code == 401
