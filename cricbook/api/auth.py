"""
Authentication API routes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cricbook.database import get_db
from cricbook.models.user import User
from cricbook.auth.principal import Principal
from cricbook.auth.utils import (
    create_access_token,
    create_refresh_token,
    verify_token,
    get_current_principal,
)
from cricbook.engine.social_engine import SocialEngine
from cricbook.api.schemas import (
    RegisterRequest, LoginRequest, AuthResponse, RefreshRequest, TokenResponse,
    UserResponse, UsernameAvailability,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(user: User) -> AuthResponse:
    return AuthResponse(
        access_token=create_access_token(user.id, user.role.value),
        refresh_token=create_refresh_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create a regular user account and sign it in.
    """
    user = SocialEngine(db).register(
        name=request.name,
        username=request.username,
        password=request.password,
        confirm_password=request.confirm_password,
    )
    return _issue_tokens(user)


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Sign in as a regular user. Admin accounts are refused here.
    """
    user = SocialEngine(db).authenticate(request.username, request.password, admin=False)
    return _issue_tokens(user)


@router.post("/admin/login", response_model=AuthResponse)
def admin_login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Sign in as an admin. Regular accounts are refused here.
    """
    user = SocialEngine(db).authenticate(request.username, request.password, admin=True)
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    request: RefreshRequest,
    db: Session = Depends(get_db),
):
    """
    Refresh an access token using a valid refresh token.
    """
    user_id = verify_token(request.refresh_token, "refresh")

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    # Verify user still exists
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return TokenResponse(access_token=create_access_token(user.id, user.role.value))


@router.get("/me", response_model=UserResponse)
def get_me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Get the current authenticated user's info.
    """
    return UserResponse.model_validate(SocialEngine(db).get_user(principal.user_id))


@router.get("/username/{username}", response_model=UsernameAvailability)
def check_username(username: str, db: Session = Depends(get_db)):
    return UsernameAvailability(username=username, available=SocialEngine(db).username_available(username))


@router.post("/logout")
def logout(principal: Principal = Depends(get_current_principal)):
    """
    Logout endpoint.
    JWT tokens are stateless, so this is mainly for client-side cleanup.
    """
    return {"message": "Logged out successfully"}
