"""
auth/sessions.py -- Registration, login, refresh-token rotation and logout.

SessionManager owns the invariant "at most one valid refresh token per
account". The invariant lives in the account row's refresh slot:

  login   -- reuse the stored refresh token while it is still valid,
             otherwise mint a new one; write it to the slot.
  rotate  -- accept a refresh token only if it verifies AND equals the slot,
             then swap in a brand-new token with an atomic compare-and-set.
  logout  -- clear the slot.

A superseded token stays cryptographically valid until it expires, but the
equality check against the slot rejects it forever.

Failures are raised as auth.errors kinds. Client-visible messages are generic;
the specific reason is logged here.

Every public method does blocking work (bcrypt, SQL). Call from plain `def`
endpoints so FastAPI runs them on its thread pool.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.context import AuthContext
from auth.errors import Conflict, InvalidCredentials, InvalidOrExpiredToken, NotFound
from auth.models import Account, LoginResult, Role, TokenPair
from auth.passwords import equalize_timing, hash_password, verify_password
from auth.tokens import REFRESH

logger = logging.getLogger("sessionguard.auth")


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively: trim and lower-case before storage or lookup."""
    return email.strip().lower()


class SessionManager:
    def __init__(self, context: AuthContext) -> None:
        self._store = context.store
        self._codec = context.codec

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, name: str) -> Account:
        """Create a USER account. Raises Conflict if the email is taken."""
        email = normalize_email(email)
        if self._store.get_by_email(email) is not None:
            logger.info("Registration rejected: email already registered")
            raise Conflict()

        try:
            account = self._store.create_account(email, hash_password(password), name, role=Role.USER)
        except IntegrityError as exc:
            # A concurrent registration won the UNIQUE(email) race.
            logger.info("Registration rejected: concurrent duplicate email")
            raise Conflict() from exc

        logger.info("Account %s registered", account.id)
        return account

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> LoginResult:
        """Verify credentials and return the account with an access/refresh pair.

        Unknown email and wrong password both raise InvalidCredentials; bcrypt
        runs in both cases so timing does not reveal which one happened.
        """
        account = self._store.get_by_email(normalize_email(email))
        if account is None:
            equalize_timing(password)
            logger.info("Login failed: unknown email")
            raise InvalidCredentials()
        if not verify_password(password, account.password_hash):
            logger.info("Login failed for account %s: wrong password", account.id)
            raise InvalidCredentials()

        access_token = self._codec.issue_access(account)

        previous = account.current_refresh_token
        if self._codec.is_still_valid(previous, expected_type=REFRESH):
            refresh_token = previous
        else:
            refresh_token = self._codec.issue_refresh(account)

        if not self._store.conditional_set_refresh_token(account.id, previous, refresh_token):
            # The slot moved under us (concurrent rotate/login/logout). Writing
            # `previous` back could resurrect a superseded token, so mint fresh.
            logger.warning("Refresh slot for account %s changed during login; minting a new token", account.id)
            refresh_token = self._codec.issue_refresh(account)
            self._store.set_refresh_token(account.id, refresh_token)

        account.current_refresh_token = refresh_token
        logger.info(
            "Account %s logged in (refresh %s, %s)",
            account.id,
            self._codec.fingerprint(refresh_token),
            "reused" if refresh_token == previous else "new",
        )
        return LoginResult(account=account, access_token=access_token, refresh_token=refresh_token)

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    def rotate(self, presented: str | None) -> TokenPair:
        """Exchange the current refresh token for a brand-new access/refresh pair.

        Raises InvalidOrExpiredToken if the token does not verify, its account
        is gone, it is not the token in the slot (superseded / logged out), or
        a concurrent rotation replaced it first.
        """
        fingerprint = self._codec.fingerprint(presented)
        claims = self._codec.verify(presented, expected_type=REFRESH)
        if claims is None:
            logger.info("Refresh rejected: invalid or expired token %s", fingerprint)
            raise InvalidOrExpiredToken()

        account = self._store.get_by_id(claims.account_id)
        if account is None:
            logger.warning("Refresh rejected: token %s names missing account %s", fingerprint, claims.account_id)
            raise InvalidOrExpiredToken()

        if account.current_refresh_token != presented:
            logger.warning("Refresh rejected for account %s: token %s is not current (replay)", account.id, fingerprint)
            raise InvalidOrExpiredToken()

        access_token = self._codec.issue_access(account)
        refresh_token = self._codec.issue_refresh(account)
        if not self._store.conditional_set_refresh_token(account.id, presented, refresh_token):
            logger.warning("Refresh rejected for account %s: token %s lost a rotation race", account.id, fingerprint)
            raise InvalidOrExpiredToken()

        logger.info(
            "Account %s rotated refresh %s -> %s",
            account.id,
            fingerprint,
            self._codec.fingerprint(refresh_token),
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    # ------------------------------------------------------------------
    # Logout
    # ------------------------------------------------------------------

    def logout(self, account_id: int) -> None:
        """Clear the account's refresh slot. Raises NotFound if the account is gone."""
        if not self._store.clear_refresh_token(account_id):
            logger.warning("Logout for missing account %s", account_id)
            raise NotFound()
        logger.info("Account %s logged out", account_id)
