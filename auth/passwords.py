"""
auth/passwords.py -- Salted PBKDF2 password hashing and constant-time checks.

Security design decisions:
  Hashing: PBKDF2-HMAC-SHA512, 50,000 iterations, 64-byte output. The
       parameters are module constants, not settings. Changing any of them
       makes every stored hash unverifiable, so they are part of the stored
       data format.

  Salt: 16 bytes from the OS CSPRNG, generated once per user at signup and
       stored next to the hash.

  Comparison: hmac.compare_digest over the two 64-byte digests. A stored
       value of the wrong length is a mismatch, and the check still runs a
       full-length comparison over the candidate so the time taken does not
       depend on the stored value.

  Failures: errors from the hashing primitive propagate to the caller. They
       are never reported as "wrong password".

Layer rule: stdlib only.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

HASH_ALGORITHM = "sha512"
HASH_ITERATIONS = 50_000
HASH_LENGTH = 64
SALT_LENGTH = 16


def generate_salt() -> bytes:
    """Return SALT_LENGTH cryptographically random bytes."""
    return secrets.token_bytes(SALT_LENGTH)


def hash_password(password: str, salt: bytes) -> bytes:
    """Derive the PBKDF2 hash of password with salt.

    Deterministic for identical inputs. CPU-bound by design: this is the
    dominant cost of signup and login and must not be cached.
    """
    return hashlib.pbkdf2_hmac(
        HASH_ALGORITHM,
        password.encode("utf-8"),
        salt,
        HASH_ITERATIONS,
        dklen=HASH_LENGTH,
    )


def hashes_match(candidate: bytes, stored: bytes) -> bool:
    """Compare two hashes in constant time. Unequal lengths never match."""
    if len(candidate) != len(stored):
        hmac.compare_digest(candidate, candidate)
        return False
    return hmac.compare_digest(candidate, stored)


def verify_password(password: str, salt: bytes, stored: bytes) -> bool:
    """Return True if password hashes to stored under salt."""
    return hashes_match(hash_password(password, salt), stored)
