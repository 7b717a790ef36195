"""Password hashing with bcrypt."""

import bcrypt

MAX_PASSWORD_BYTES = 72

# Checked against when no user matches, so failed logins take the same time
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt()).decode("utf-8")


def get_password_hash(password: str) -> str:
    """Hash a plain text password with a fresh salt."""
    salt = bcrypt.gensalt()
    hashed_password = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed_password.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain text password against a bcrypt hash."""
    pwd_bytes = plain_password.encode("utf-8")
    # bcrypt only accepts 72 bytes, longer passwords can never have been stored
    if len(pwd_bytes) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(pwd_bytes, hashed_password.encode("utf-8"))


def verify_password_or_dummy(plain_password: str, hashed_password: str = None) -> bool:
    """Verify a password, burning a dummy check when there is no stored hash."""
    if hashed_password is None:
        verify_password(plain_password, _DUMMY_HASH)
        return False
    return verify_password(plain_password, hashed_password)
