import jwt
import pytest

from socialsearch.core.config import settings
from socialsearch.core.errors import AuthenticationError
from socialsearch.services.auth import _decode_token, _parse_user_id, create_access_token


def test_parse_user_id_from_sub() -> None:
    assert _parse_user_id({"sub": "123", "email": "u@example.com"}) == 123


def test_parse_user_id_prefers_user_id_claim() -> None:
    assert _parse_user_id({"user_id": 9, "sub": "123"}) == 9


def test_parse_user_id_required() -> None:
    with pytest.raises(AuthenticationError):
        _parse_user_id({"email": "u@example.com"})
    with pytest.raises(AuthenticationError):
        _parse_user_id({"sub": "not-a-number"})


def test_token_round_trip() -> None:
    payload = _decode_token(create_access_token(42))
    assert _parse_user_id(payload) == 42


def test_expired_or_forged_token_rejected() -> None:
    with pytest.raises(AuthenticationError):
        _decode_token(create_access_token(1, expires_minutes=-10))
    forged = jwt.encode({"sub": "1"}, "other-secret", algorithm=settings.jwt_algorithm)
    with pytest.raises(AuthenticationError):
        _decode_token(forged)
