"""Unit tests for auth/store.py -- AccountStore persistence and the refresh slot.

Covers:
- create / get_by_email / get_by_id round trip, default role USER
- UNIQUE(email) raises IntegrityError
- conditional_set_refresh_token: NULL match, value match, stale mismatch, missing id
- set_refresh_token / clear_refresh_token
- set_role and ping
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Role
from auth.store import AccountStore


@pytest.fixture
def store():
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def account(store):
    return store.create_account("a@x.com", "hash", "A")


class TestAccounts:
    def test_create_assigns_id_and_defaults(self, account):
        assert account.id is not None
        assert account.role is Role.USER
        assert account.current_refresh_token is None
        assert account.created_at

    def test_lookup_by_email_and_id(self, store, account):
        by_email = store.get_by_email("a@x.com")
        by_id = store.get_by_id(account.id)
        assert by_email == by_id
        assert by_email.name == "A"
        assert by_email.password_hash == "hash"

    def test_missing_lookups_return_none(self, store):
        assert store.get_by_email("nobody@x.com") is None
        assert store.get_by_id(999) is None

    def test_duplicate_email_raises_integrity_error(self, store, account):
        with pytest.raises(IntegrityError):
            store.create_account("a@x.com", "hash2", "A2")
        assert store.count_accounts() == 1

    def test_set_role(self, store, account):
        assert store.set_role(account.id, Role.ADMIN)
        assert store.get_by_id(account.id).role is Role.ADMIN
        assert not store.set_role(999, Role.ADMIN)

    def test_ping(self, store):
        assert store.ping() is True


class TestRefreshSlot:
    def test_cas_from_null(self, store, account):
        assert store.conditional_set_refresh_token(account.id, None, "r0")
        assert store.get_by_id(account.id).current_refresh_token == "r0"

    def test_cas_requires_current_value(self, store, account):
        store.conditional_set_refresh_token(account.id, None, "r0")
        assert store.conditional_set_refresh_token(account.id, "r0", "r1")
        # r0 was superseded: a second swap from r0 must lose.
        assert not store.conditional_set_refresh_token(account.id, "r0", "r2")
        assert store.get_by_id(account.id).current_refresh_token == "r1"

    def test_cas_null_expectation_fails_when_slot_is_set(self, store, account):
        store.conditional_set_refresh_token(account.id, None, "r0")
        assert not store.conditional_set_refresh_token(account.id, None, "r1")

    def test_cas_missing_account(self, store):
        assert not store.conditional_set_refresh_token(999, None, "r0")

    def test_set_and_clear(self, store, account):
        assert store.set_refresh_token(account.id, "r9")
        assert store.get_by_id(account.id).current_refresh_token == "r9"
        assert store.clear_refresh_token(account.id)
        assert store.get_by_id(account.id).current_refresh_token is None

    def test_clear_missing_account(self, store):
        assert not store.clear_refresh_token(999)
