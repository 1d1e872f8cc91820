from datetime import timedelta

import pytest

from academy.utils.security import (
    ACCESS,
    REFRESH,
    ExpiredSignatureError,
    InvalidTokenError,
    create_token,
    decode_token,
    hash_password,
    is_password_hash,
    verify_password,
)

SECRET = "unit-test-secret-0123456789abcdef"


def test_hash_and_verify():
    hashed = hash_password("MithiChArch@123", rounds=4)
    assert hashed != "MithiChArch@123"
    assert is_password_hash(hashed)
    assert verify_password("MithiChArch@123", hashed)
    assert not verify_password("mithicharch@123", hashed)


def test_default_cost_is_ten():
    assert hash_password("MithiChArch@123").startswith("$2b$10$")


def test_verify_rejects_malformed_hash():
    assert not verify_password("anything", "")
    assert not verify_password("anything", "plain-text-password")
    assert not is_password_hash("plain-text-password")


def test_token_round_trip():
    token = create_token("mpandit", ACCESS, SECRET, timedelta(minutes=15))
    payload = decode_token(token, ACCESS, SECRET)
    assert payload["username"] == "mpandit"
    assert payload["type"] == "access"


def test_token_type_is_checked():
    token = create_token("mpandit", REFRESH, SECRET, timedelta(days=7))
    with pytest.raises(InvalidTokenError):
        decode_token(token, ACCESS, SECRET)


def test_expired_token():
    token = create_token("mpandit", ACCESS, SECRET, timedelta(seconds=-5))
    with pytest.raises(ExpiredSignatureError):
        decode_token(token, ACCESS, SECRET)


def test_wrong_secret():
    token = create_token("mpandit", ACCESS, SECRET, timedelta(minutes=15))
    with pytest.raises(InvalidTokenError):
        decode_token(token, ACCESS, "another-secret-0123456789abcdefgh")
