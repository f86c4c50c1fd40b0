"""
User service for registration and login
Handles all user-related business logic
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Optional
import logging

from app.models.user import User
from app.schemas.user import RegisterRequest, LoginRequest, TokenResponse, UserResponse
from app.auth.auth_handler import AuthHandler
from app.utils.error_handler import AuthError, ConflictError, DatabaseError, ValidationError

logger = logging.getLogger(__name__)

class UserService:
    """Service for user account operations"""

    def __init__(self, db: Session):
        self.db = db
        self.auth_handler = AuthHandler()

    def _issue_token(self, user: User) -> TokenResponse:
        token = self.auth_handler.create_access_token(user.id, user.email)
        return TokenResponse(token=token, user=UserResponse.model_validate(user))

    async def register(self, user_data: RegisterRequest) -> TokenResponse:
        """Create a new user account and sign them in"""
        if not user_data.email or not user_data.password or not user_data.name:
            raise ValidationError("Email, password, and name are required")

        existing_user = await self.get_user_by_email(user_data.email)
        if existing_user:
            raise ConflictError("User already exists")

        db_user = User(
            email=user_data.email,
            password=self.auth_handler.get_password_hash(user_data.password),
            name=user_data.name,
        )

        try:
            self.db.add(db_user)
            self.db.commit()
            self.db.refresh(db_user)
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            self.db.rollback()
            raise ConflictError("User already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create user: {e}")
            raise DatabaseError(f"Failed to create user account: {str(e)}", e)

        logger.info(f"Created new user: {db_user.email} (id={db_user.id})")
        return self._issue_token(db_user)

    async def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user credentials and issue a fresh token"""
        if not login_data.email or not login_data.password:
            raise ValidationError("Email and password are required")

        user = await self.get_user_by_email(login_data.email)
        if not user:
            logger.warning(f"Login attempt with non-existent user: {login_data.email}")
            raise AuthError("Invalid credentials")

        if not self.auth_handler.verify_password(login_data.password, user.password):
            logger.warning(f"Failed login attempt for user: {user.email}")
            raise AuthError("Invalid credentials")

        logger.info(f"Successful login for user: {user.email}")
        return self._issue_token(user)

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        return self.db.query(User).filter(User.email == email).first()
