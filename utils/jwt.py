import jwt
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

SECRET_KEY = os.getenv("JWT_SECRET")
ALGORITHM = "HS256"
EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 7)))

if not SECRET_KEY:
    raise ValueError("JWT_SECRET environment variable is not set")


def create_jwt(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session token for a user

    Args:
        user_id: ID of the user the token authenticates
        expires_delta: Token lifetime, defaults to JWT_EXPIRES_MINUTES

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + (expires_delta or timedelta(minutes=EXPIRES_MINUTES)),
        # Keeps tokens issued within the same second distinct
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify JWT token and return payload

    Args:
        token: JWT token string

    Returns:
        Decoded payload if valid and unexpired, None otherwise
    """
    try:
        return jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError:
        return None
