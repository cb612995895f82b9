"""bcrypt helpers for hashing and verifying account secrets."""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 10
# bcrypt only consumes the first 72 bytes of its input.
MAX_SECRET_BYTES = 72


def secret_too_long(secret: str) -> bool:
    """Return ``True`` when the UTF-8 encoded secret exceeds bcrypt's input limit."""
    return len(secret.encode("utf-8")) > MAX_SECRET_BYTES


def hash_secret(secret: str) -> str:
    """Return a salted bcrypt hash of ``secret`` at the fixed work factor.

    Parameters
    ----------
    secret:
        Plaintext secret chosen by the user. Must fit in :data:`MAX_SECRET_BYTES`.

    Returns
    -------
    str
        The ``$2b$`` modular-crypt encoded hash, safe to persist.
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(secret.encode("utf-8"), salt).decode("ascii")


def verify_secret(secret: str, secret_hash: str) -> bool:
    """Return ``True`` when ``secret`` matches the stored bcrypt hash."""
    if secret_too_long(secret):
        return False
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), secret_hash.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        # malformed stored hash
        return False
