"""
auth/passwords.py -- Password hashing and credential verification.

bcrypt is used directly rather than through passlib: passlib's wrap-bug
detection builds a password longer than 72 bytes, which bcrypt 4.x rejects.

verify_password() is the only place a plaintext password is compared with a
stored credential. The comparison happens inside bcrypt.checkpw, which is
constant-time with respect to the hash contents.

All functions here are CPU-bound. Call them from plain `def` endpoints (run on
the FastAPI worker thread pool), never directly on the event loop.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes of input. The API layer rejects
# longer passwords (api/models.py) so nothing is silently truncated.
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password with a fresh salt."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash or an over-long password is a mismatch, not an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. equalize_timing() runs bcrypt against it when
# the email is unknown so response time does not reveal account existence.
_DUMMY_HASH: str = hash_password("sessionguard_timing_dummy")


def equalize_timing(plain: str) -> None:
    verify_password(plain, _DUMMY_HASH)
