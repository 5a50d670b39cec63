"""Tests for session tokens and profile validation."""

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from sport_weather.auth.session import (
    ALGORITHM,
    create_session_token,
    verify_session_token,
)
from sport_weather.auth.validation import (
    username_from_email,
    validate_sports,
    validate_username,
)
from sport_weather.config import get_settings

USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")


class TestSessionTokens:
    """Tests for signed session tokens."""

    def test_round_trip(self):
        token = create_session_token(USER_ID, "Runner@Example.com")

        session = verify_session_token(token)

        assert session is not None
        assert session.user_id == USER_ID
        assert session.email == "runner@example.com"
        assert session.subject_id == str(USER_ID)
        assert not session.is_expired

    def test_expired_token_rejected(self):
        token = create_session_token(USER_ID, "a@example.com", expires_delta=timedelta(seconds=-1))
        assert verify_session_token(token) is None

    def test_tampered_token_rejected(self):
        token = create_session_token(USER_ID, "a@example.com")
        assert verify_session_token(token[:-2] + "xx") is None

    def test_wrong_type_rejected(self):
        token = jwt.encode(
            {"sub": str(USER_ID), "email": "a@example.com", "iat": 0, "exp": 2**31, "type": "refresh"},
            get_settings().secret_key,
            algorithm=ALGORITHM,
        )
        assert verify_session_token(token) is None

    def test_missing_email_rejected(self):
        token = jwt.encode(
            {"sub": str(USER_ID), "iat": 0, "exp": 2**31, "type": "session"},
            get_settings().secret_key,
            algorithm=ALGORITHM,
        )
        assert verify_session_token(token) is None

    def test_garbage_rejected(self):
        assert verify_session_token("not-a-token") is None


class TestValidation:
    """Tests for profile input validation."""

    def test_username_normalized(self):
        assert validate_username("  Trail_Runner ") == "trail_runner"

    @pytest.mark.parametrize("username", ["ab", "has space", "-leading", "x" * 51])
    def test_bad_username(self, username):
        with pytest.raises(ValueError):
            validate_username(username)

    def test_sports_deduplicated(self):
        assert validate_sports(["Running", "tennis", "running"]) == ["running", "tennis"]

    def test_unknown_sport(self):
        with pytest.raises(ValueError, match="Unknown sport"):
            validate_sports(["curling"])

    def test_username_from_email(self):
        username = username_from_email("Ana.Lopez+x@example.com", str(USER_ID))
        assert username == "ana.lopezx-000000"
        assert validate_username(username) == username
