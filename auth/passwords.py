"""
auth/passwords.py -- bcrypt hashing (direct usage, no passlib wrapper).

Kept apart from auth/tokens.py because it needs no signing keys: the operator
CLI hashes admin passwords without loading the token settings.

Layer rule: stdlib and bcrypt only.
"""

import bcrypt


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    The API layer caps passwords at 72 UTF-8 bytes, bcrypt's input limit.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
