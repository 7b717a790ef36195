from fastapi import (
    APIRouter, BackgroundTasks, Depends, File, HTTPException, Request, Response, UploadFile, status
)
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session, select
from typing import List
from database import get_session
from models import AuthToken, User, utcnow
from schemas import AuthResponse, MessageResponse, UserCreate, UserLogin, UserResponse, UserUpdate
from middleware.auth import verify_jwt_middleware
from utils.images import InvalidImageError, MAX_AVATAR_BYTES, check_avatar_upload, normalize_avatar
from utils.jwt import create_jwt
from utils.logger import setup_logger
from utils.notifications import send_cancellation_email, send_welcome_email
from utils.security import get_password_hash, verify_password_or_dummy

router = APIRouter()

logger = setup_logger("routes.users")


def issue_token(session: Session, user: User) -> str:
    """Sign a new session token and add it to the user's active set"""
    token = create_jwt(user.id)
    session.add(AuthToken(user_id=user.id, token=token))
    session.commit()
    session.refresh(user)
    return token


def ensure_email_available(session: Session, email: str) -> None:
    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already registered"
        )


@router.post("/users", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session)
) -> AuthResponse:
    """
    Register a new user and start a session

    Args:
        user_data: Registration data
        background_tasks: Queue for the welcome email
        session: Database session

    Returns:
        The new user and a session token
    """
    ensure_email_available(session, user_data.email)

    user = User(
        name=user_data.name,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        age=user_data.age
    )
    session.add(user)
    token = issue_token(session, user)

    logger.info(f"Registered user {user.id}")
    background_tasks.add_task(send_welcome_email, user.email, user.name)

    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/users/login", response_model=AuthResponse)
async def login_user(
    credentials: UserLogin,
    session: Session = Depends(get_session)
) -> AuthResponse:
    """
    Authenticate with email and password

    Args:
        credentials: Login data
        session: Database session

    Returns:
        The user and a newly issued session token
    """
    email = credentials.email.strip().lower()
    user = session.exec(select(User).where(User.email == email)).first()

    # One error for unknown email and wrong password
    if not verify_password_or_dummy(credentials.password, user.hashed_password if user else None):
        logger.info("Rejected login attempt")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to login"
        )

    token = issue_token(session, user)
    logger.info(f"User {user.id} logged in")

    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/users/logout", response_model=MessageResponse)
async def logout_user(
    request: Request,
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> MessageResponse:
    """Revoke the token used for this request"""
    tokens = session.exec(
        select(AuthToken).where(
            AuthToken.user_id == user.id,
            AuthToken.token == request.state.token,
        )
    ).all()
    for token in tokens:
        session.delete(token)
    session.commit()

    logger.info(f"User {user.id} logged out")
    return MessageResponse(message="Logged out")


@router.post("/users/logoutAll", response_model=MessageResponse)
async def logout_all(
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> MessageResponse:
    """Revoke every session of the authenticated user"""
    user.tokens.clear()
    session.add(user)
    session.commit()

    logger.info(f"User {user.id} logged out of all sessions")
    return MessageResponse(message="Logged out of all sessions")


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> List[User]:
    """List every registered user"""
    return session.exec(select(User)).all()


@router.get("/users/me", response_model=UserResponse)
async def read_profile(user: User = Depends(verify_jwt_middleware)) -> User:
    """Get the authenticated user's profile"""
    return user


@router.patch("/users/me", response_model=UserResponse)
async def update_profile(
    user_data: UserUpdate,
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> User:
    """
    Update the authenticated user's profile

    Args:
        user_data: Fields to change, only name, age, email and password
        user: Authenticated user
        session: Database session

    Returns:
        Updated user
    """
    updates = user_data.model_dump(exclude_unset=True)

    if "email" in updates and updates["email"] != user.email:
        ensure_email_available(session, updates["email"])

    if "password" in updates:
        user.hashed_password = get_password_hash(updates.pop("password"))

    for field, value in updates.items():
        setattr(user, field, value)

    user.updated_at = utcnow()

    session.add(user)
    session.commit()
    session.refresh(user)

    return user


@router.delete("/users/me", response_model=UserResponse)
async def delete_account(
    background_tasks: BackgroundTasks,
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> UserResponse:
    """
    Delete the authenticated user together with their tasks and sessions

    Args:
        background_tasks: Queue for the cancellation email
        user: Authenticated user
        session: Database session

    Returns:
        The deleted user
    """
    deleted = UserResponse.model_validate(user)

    session.delete(user)
    session.commit()

    logger.info(f"Deleted user {deleted.id}")
    background_tasks.add_task(send_cancellation_email, deleted.email, deleted.name)

    return deleted


@router.post("/users/me/avatar", response_model=MessageResponse)
async def upload_avatar(
    avatar: UploadFile = File(...),
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> MessageResponse:
    """
    Store a profile picture as a 250x250 PNG

    Args:
        avatar: Uploaded jpg, jpeg or png file of at most 1 MiB
        user: Authenticated user
        session: Database session

    Returns:
        Confirmation message
    """
    # One byte past the limit is enough to know the file is too large
    data = await avatar.read(MAX_AVATAR_BYTES + 1)

    try:
        check_avatar_upload(avatar.filename, len(data))
        user.avatar = await run_in_threadpool(normalize_avatar, data)
    except InvalidImageError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    user.updated_at = utcnow()
    session.add(user)
    session.commit()

    logger.info(f"User {user.id} uploaded an avatar")
    return MessageResponse(message="Avatar uploaded")


@router.delete("/users/me/avatar", response_model=UserResponse)
async def delete_avatar(
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> User:
    """Remove the authenticated user's profile picture"""
    user.avatar = None
    user.updated_at = utcnow()

    session.add(user)
    session.commit()
    session.refresh(user)

    return user


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> User:
    """Get a user by ID"""
    found = session.get(User, user_id)

    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return found


@router.get("/users/{user_id}/avatar")
async def get_avatar(
    user_id: str,
    session: Session = Depends(get_session)
) -> Response:
    """Serve a user's profile picture; no authentication required"""
    user = session.get(User, user_id)

    if not user or not user.avatar:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Avatar not found"
        )

    return Response(content=user.avatar, media_type="image/png")
