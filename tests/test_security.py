"""
Unit tests for password hashing, session tokens and log sanitizing.
"""
from datetime import timedelta

import pytest

from talentdesk.core.logging_config import sanitize_log_data
from talentdesk.core.security import create_access_token, decode_access_token, hash_password, verify_password


def test_hash_and_verify():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_verify_rejects_plaintext_column():
    assert not verify_password("secret123", "secret123")
    assert not verify_password("secret123", None)


def test_hash_empty_password():
    with pytest.raises(ValueError):
        hash_password("")


def test_long_passwords_truncated_consistently():
    password = "é" * 50  # 100 bytes

    assert verify_password(password, hash_password(password))


def test_token_roundtrip():
    token = create_access_token({"sub": "user-123"})

    assert decode_access_token(token) == "user-123"


def test_expired_token():
    token = create_access_token({"sub": "user-123"}, expires_delta=timedelta(seconds=-1))

    assert decode_access_token(token) is None


def test_garbage_token():
    assert decode_access_token("abc.def.ghi") is None


def test_sanitize_log_data():
    sanitized = sanitize_log_data({"email": "a@b.c", "password": "hunter22", "resume": "QUJD" * 10})

    assert sanitized["email"] == "a@b.c"
    assert sanitized["password"] == "***REDACTED***"
    assert sanitized["resume"] == "<40 chars>"
