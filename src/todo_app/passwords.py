from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes; newer releases reject longer input
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of ``password`` suitable for storage."""
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


# PUBLIC_INTERFACE
def verify_password(supplied: str, stored: str) -> bool:
    """
    Check ``supplied`` against a stored hash in constant time.

    A malformed stored value counts as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(_encode(supplied), stored.encode("utf-8"))
    except ValueError:
        return False
