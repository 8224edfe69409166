"""
Password hashing for the identity backends.

bcrypt only uses the first 72 bytes of a password; longer passwords are
truncated explicitly so hashing never raises.
"""

import bcrypt


DEFAULT_ROUNDS = 12


def _to_bcrypt_secret(password: str) -> bytes:
    secret = password.encode("utf-8")
    if len(secret) > 72:
        secret = secret[:72]
    return secret


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a bcrypt hash as a UTF-8 string (stored as a sheet cell)."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_to_bcrypt_secret(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    if not password_hash:
        return False
    return bcrypt.checkpw(_to_bcrypt_secret(password), password_hash.encode("utf-8"))
