"""
Authentication endpoints for registration, login and the current profile
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.schemas.user import RegisterRequest, LoginRequest, UserResponse, TokenResponse
from app.services.user_service import UserService
from app.auth.auth_handler import AuthContext, get_current_user
from app.utils.error_handler import AppError, AuthError, DatabaseError
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/register", response_model=TokenResponse, status_code=201)
@limiter.limit("5/minute")  # Strict limit to prevent spam registrations
async def register(
    request: Request,
    user_data: RegisterRequest,
    db: Session = Depends(get_db)
):
    """Register a new user account and return a token"""
    try:
        user_service = UserService(db)
        return await user_service.register(user_data)

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Registration failed: {e}")
        raise DatabaseError("Failed to create user account", e)

@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")  # Prevent brute force attacks
async def login(
    request: Request,
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """Authenticate user and return access token"""
    try:
        user_service = UserService(db)
        return await user_service.login(login_data)

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise DatabaseError("Login failed", e)

@router.get("/me", response_model=UserResponse)
@limiter.limit("30/minute")
async def get_current_user_info(
    request: Request,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get current user information"""
    user_service = UserService(db)
    user = await user_service.get_user_by_id(current_user.user_id)

    if not user:
        raise AuthError("User no longer exists")

    return UserResponse.model_validate(user)
