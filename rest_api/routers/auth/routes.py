"""
Authentication router.
Handles account registration and login.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.repositories import get_user_repository
from shared.config.constants import UserStatus
from shared.config.logging import audit_auth_event, rest_api_logger as logger, mask_username
from shared.infrastructure.db import get_db, safe_commit
from shared.security.password import hash_password, verify_password
from shared.security.rate_limit import limiter, LOGIN_LIMIT
from shared.utils.avatars import generate_avatar_url
from shared.utils.exceptions import AuthenticationError, DatabaseError, DuplicateEntityError
from shared.utils.schemas import AuthResponse, LoginRequest, RegisterRequest, UserInfo


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    """
    Create an account.

    The password is stored as a bcrypt hash and the avatar URL is generated
    from the username. Usernames are unique (409 on conflict).
    """
    repo = get_user_repository(db)

    if repo.find_by_username(body.username) is not None:
        raise DuplicateEntityError("User", body.username)

    try:
        user = repo.create(
            username=body.username,
            password_hash=hash_password(body.password),
            avatar=generate_avatar_url(body.username),
            email=body.email,
        )
        safe_commit(db)
    except IntegrityError:
        # Lost a race against a concurrent registration of the same name
        raise DuplicateEntityError("User", body.username)
    except SQLAlchemyError as e:
        raise DatabaseError("register", error=type(e).__name__)

    logger.info("User registered", user_id=user.id, username=mask_username(user.username))
    audit_auth_event("REGISTER", user_id=user.id, username=user.username)

    return AuthResponse(message="User registered", user=UserInfo.model_validate(user))


@router.post("/login", response_model=AuthResponse)
@limiter.limit(LOGIN_LIMIT)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    """
    Verify credentials and mark the account online.

    Unknown usernames and wrong passwords get the same 401 so callers
    cannot find out which accounts exist.
    """
    client_ip = request.client.host if request.client else None
    repo = get_user_repository(db)
    user = repo.find_by_username(body.username)

    if user is None:
        audit_auth_event(
            "LOGIN", username=body.username, success=False,
            reason="unknown_user", ip_address=client_ip,
        )
        raise AuthenticationError(username=mask_username(body.username))

    if not verify_password(body.password, user.password):
        audit_auth_event(
            "LOGIN", user_id=user.id, username=user.username, success=False,
            reason="bad_password", ip_address=client_ip,
        )
        raise AuthenticationError(user_id=user.id)

    repo.set_status(user.id, UserStatus.ONLINE)
    safe_commit(db)

    audit_auth_event("LOGIN", user_id=user.id, username=user.username, ip_address=client_ip)

    return AuthResponse(message="Login successful", user=UserInfo.model_validate(user))
