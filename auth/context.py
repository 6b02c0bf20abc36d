"""
auth/context.py -- The explicit dependency bundle for the auth layer.

AuthContext holds the signing secret (inside a TokenCodec) and the persistence
handle (an AccountStore). It is built once by the application lifespan and
passed into SessionManager and AuthorizationGate constructors. Nothing in
auth/ reaches for a module-level secret or a global connection.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass

from auth.store import AccountStore
from auth.tokens import TokenCodec


@dataclass
class AuthContext:
    codec: TokenCodec
    store: AccountStore

    @classmethod
    def create(
        cls,
        secret_key: str,
        db_url: str,
        access_ttl: int = 15 * 60,
        refresh_ttl: int = 7 * 24 * 3600,
    ) -> AuthContext:
        return cls(
            codec=TokenCodec(secret_key, access_ttl=access_ttl, refresh_ttl=refresh_ttl),
            store=AccountStore(db_url),
        )

    def close(self) -> None:
        self.store.close()
