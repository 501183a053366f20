"""
Tests for signed intent-scoped tokens.

Tests:
- Issue / verify
- Distinct failure kinds
- Clock-driven expiry
"""

from datetime import timedelta

import pytest
from jose import jwt

from clientflow.exceptions import InvalidToken, TokenExpired, WrongTokenIntent
from clientflow.security_utils import (
    INTENT_REGISTRATION,
    INTENT_SESSION,
    TokenIssuer,
    check_password_strength,
    hash_password,
    verify_password,
)


class TestIssueAndVerify:
    """Tests for the happy path."""

    def test_claims_round_trip(self, issuer, clock):
        """Verified claims carry subject, intent and both timestamps."""
        issued = issuer.issue("ada@example.com", INTENT_REGISTRATION, timedelta(days=7))
        claims = issuer.verify(issued.token, INTENT_REGISTRATION)

        assert claims["sub"] == "ada@example.com"
        assert claims["intent"] == INTENT_REGISTRATION
        assert claims["jti"] == issued.jti
        assert claims["issued_at"] == clock.now
        assert claims["expires_at"] == clock.now + timedelta(days=7)

    def test_each_token_has_unique_id(self, issuer):
        """Two tokens for the same subject never share a jti."""
        first = issuer.issue("ada@example.com", INTENT_REGISTRATION, timedelta(days=7))
        second = issuer.issue("ada@example.com", INTENT_REGISTRATION, timedelta(days=7))
        assert first.jti != second.jti
        assert first.token != second.token

    def test_extra_claims_included(self, issuer):
        issued = issuer.issue("id-1", INTENT_SESSION, timedelta(hours=1), extra={"role": "admin"})
        assert issuer.verify(issued.token, INTENT_SESSION)["role"] == "admin"


class TestVerificationFailures:
    """Tests that each failure surfaces as its own error."""

    def test_garbage_is_invalid(self, issuer):
        with pytest.raises(InvalidToken):
            issuer.verify("not-a-token", INTENT_REGISTRATION)

    def test_empty_is_invalid(self, issuer):
        with pytest.raises(InvalidToken):
            issuer.verify("", INTENT_REGISTRATION)

    def test_foreign_signature_is_invalid(self, issuer, clock):
        """A token signed with another key is rejected as invalid, not expired."""
        other = TokenIssuer(secret_key="some-other-key", clock=clock)
        issued = other.issue("ada@example.com", INTENT_REGISTRATION, timedelta(days=7))
        with pytest.raises(InvalidToken):
            issuer.verify(issued.token, INTENT_REGISTRATION)

    def test_missing_claims_is_invalid(self, issuer):
        token = jwt.encode({"sub": "ada@example.com"}, "test-signing-key", algorithm="HS256")
        with pytest.raises(InvalidToken):
            issuer.verify(token, INTENT_REGISTRATION)

    def test_expired(self, issuer, clock):
        """Expiry follows the injected clock and keeps the claims."""
        issued = issuer.issue("ada@example.com", INTENT_REGISTRATION, timedelta(days=7))
        clock.advance(days=7)

        with pytest.raises(TokenExpired) as exc_info:
            issuer.verify(issued.token, INTENT_REGISTRATION)
        assert exc_info.value.claims["jti"] == issued.jti
        assert exc_info.value.code == "TOKEN_EXPIRED"

    def test_still_valid_one_second_before_expiry(self, issuer, clock):
        issued = issuer.issue("ada@example.com", INTENT_REGISTRATION, timedelta(days=7))
        clock.advance(days=7, seconds=-1)
        assert issuer.verify(issued.token, INTENT_REGISTRATION)["sub"] == "ada@example.com"

    def test_wrong_intent(self, issuer):
        """A session token cannot be used as a registration link."""
        issued = issuer.issue("id-1", INTENT_SESSION, timedelta(hours=1))
        with pytest.raises(WrongTokenIntent):
            issuer.verify(issued.token, INTENT_REGISTRATION)


class TestPasswords:
    """Tests for password hashing and strength rules."""

    def test_hash_and_verify(self):
        hashed = hash_password("Sup3rSecret!")
        assert hashed != "Sup3rSecret!"
        assert verify_password("Sup3rSecret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_verify_against_garbage_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    @pytest.mark.parametrize("password", ["short1A", "abcdefgh", "password"])
    def test_weak_passwords(self, password):
        assert not check_password_strength(password)["is_valid"]

    def test_strong_password(self):
        result = check_password_strength("Sup3rSecret!")
        assert result["is_valid"]
        assert result["feedback"] == []
