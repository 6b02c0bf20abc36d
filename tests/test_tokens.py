"""Unit tests for auth/tokens.py -- TokenCodec issue / verify.

Covers:
- access and refresh tokens round-trip to the identity claims
- wrong secret, tampering, garbage and empty input verify to None (no raise)
- expiry is enforced from the issuance-time ttl
- type separation: refresh tokens are not access tokens and vice versa
- unknown roles and missing claims are rejected
- tokens minted back to back are distinct (jti)
"""

import time

import pytest
from jose import jwt

from auth.models import Account, Role
from auth.tokens import ACCESS, REFRESH, TokenCodec

SECRET = "unit-test-secret-0123456789abcdef0123456789"


@pytest.fixture
def codec():
    return TokenCodec(SECRET, access_ttl=900, refresh_ttl=7 * 24 * 3600)


@pytest.fixture
def account():
    return Account(id=42, email="a@x.com", name="A", password_hash="x", role=Role.MODERATOR)


class TestIssueVerify:
    def test_access_token_round_trip(self, codec, account):
        claims = codec.verify(codec.issue_access(account), expected_type=ACCESS)
        assert claims is not None
        assert claims.account_id == 42
        assert claims.name == "A"
        assert claims.role is Role.MODERATOR
        assert claims.token_type == ACCESS
        assert claims.expires_at - claims.issued_at == 900

    def test_refresh_token_uses_refresh_ttl(self, codec, account):
        claims = codec.verify(codec.issue_refresh(account), expected_type=REFRESH)
        assert claims is not None
        assert claims.expires_at - claims.issued_at == 7 * 24 * 3600

    def test_generic_issue_with_custom_ttl(self, codec):
        token = codec.issue({"user_id": 1, "name": "n", "role": "USER", "type": ACCESS}, ttl=5)
        claims = codec.verify(token)
        assert claims is not None
        assert claims.expires_at - claims.issued_at == 5

    def test_back_to_back_tokens_are_distinct(self, codec, account):
        assert codec.issue_refresh(account) != codec.issue_refresh(account)
        assert codec.issue_access(account) != codec.issue_access(account)


class TestRejection:
    def test_wrong_secret(self, codec, account):
        other = TokenCodec("another-secret-0123456789abcdef0123456789")
        assert other.verify(codec.issue_access(account)) is None

    def test_tampered_payload(self, codec, account):
        header, payload, signature = codec.issue_access(account).split(".")
        forged = jwt.encode({"user_id": 42, "name": "A", "role": "ADMIN", "type": ACCESS}, "guess", algorithm="HS256")
        assert codec.verify(".".join([header, forged.split(".")[1], signature])) is None

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", None])
    def test_malformed_returns_none(self, codec, garbage):
        assert codec.verify(garbage) is None

    def test_expired(self, account):
        issued_long_ago = TokenCodec(SECRET, access_ttl=60, clock=lambda: time.time() - 3600)
        token = issued_long_ago.issue_access(account)
        assert TokenCodec(SECRET).verify(token) is None

    def test_type_mismatch(self, codec, account):
        assert codec.verify(codec.issue_refresh(account), expected_type=ACCESS) is None
        assert codec.verify(codec.issue_access(account), expected_type=REFRESH) is None

    def test_unknown_role_rejected(self, codec):
        token = codec.issue({"user_id": 1, "name": "n", "role": "SUPERUSER", "type": ACCESS}, ttl=60)
        assert codec.verify(token) is None

    def test_missing_claims_rejected(self, codec):
        token = codec.issue({"name": "n", "role": "USER", "type": ACCESS}, ttl=60)
        assert codec.verify(token) is None

    def test_non_integer_account_id_rejected(self, codec):
        token = codec.issue({"user_id": "42", "name": "n", "role": "USER", "type": ACCESS}, ttl=60)
        assert codec.verify(token) is None


class TestPredicates:
    def test_is_still_valid(self, codec, account):
        assert codec.is_still_valid(codec.issue_refresh(account)) is True
        assert codec.is_still_valid(None) is False
        assert codec.is_still_valid("junk") is False
        # Default expectation is a refresh token.
        assert codec.is_still_valid(codec.issue_access(account)) is False

    def test_fingerprint_does_not_leak_token(self, codec, account):
        token = codec.issue_refresh(account)
        fp = codec.fingerprint(token)
        assert len(fp) == 12
        assert fp not in token
        assert codec.fingerprint(None) == "-"
