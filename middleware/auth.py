from fastapi import Depends, Request, HTTPException, status
from sqlmodel import Session, select
from database import get_session
from models import AuthToken, User
from utils.jwt import verify_jwt
from utils.logger import setup_logger

logger = setup_logger("middleware.auth")


def _unauthorized() -> HTTPException:
    # Same response for every failure so callers cannot tell the causes apart
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Please authenticate.",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def verify_jwt_middleware(
    request: Request,
    session: Session = Depends(get_session)
) -> User:
    """
    Verify the bearer token in the Authorization header against the
    user's active sessions

    Args:
        request: FastAPI request object
        session: Database session

    Returns:
        The authenticated user, also attached to request.state with the token

    Raises:
        HTTPException: If the token is missing, invalid, expired or revoked
    """
    auth_header = request.headers.get("Authorization")

    if not auth_header:
        logger.warning(f"{request.method} {request.url.path}: missing Authorization header")
        raise _unauthorized()

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning(f"{request.method} {request.url.path}: malformed Authorization header")
        raise _unauthorized()

    token = parts[1]
    payload = verify_jwt(token)

    if not payload:
        logger.warning(f"{request.method} {request.url.path}: invalid or expired token")
        raise _unauthorized()

    active = session.exec(
        select(AuthToken).where(
            AuthToken.user_id == payload.get("sub"),
            AuthToken.token == token,
        )
    ).first()

    if not active or not active.user:
        logger.warning(f"{request.method} {request.url.path}: token not in active set")
        raise _unauthorized()

    # Attach user info to request state
    request.state.user = active.user
    request.state.token = token
    return active.user
