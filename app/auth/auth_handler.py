"""
Authentication handler: password hashing, JWT issuance and the bearer-token dependency
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from passlib.context import CryptContext
from jose import JWTError, jwt
import os

from app.utils.error_handler import AuthError

# Security configuration
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
security = HTTPBearer(auto_error=False)

@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, resolved from a verified token"""
    user_id: int
    email: Optional[str] = None

class AuthHandler:
    """Handles authentication"""

    def __init__(self):
        self.pwd_context = pwd_context

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return self.pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        """Hash a password"""
        return self.pwd_context.hash(password)

    def create_access_token(self, user_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed token carrying the userId and email claims"""
        expire = datetime.utcnow() + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
        to_encode = {
            "sub": str(user_id),
            "userId": user_id,
            "email": email,
            "exp": expire,
        }
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> dict:
        """Verify and decode a JWT token"""
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            raise AuthError("Invalid or expired token")

auth_handler = AuthHandler()

def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> AuthContext:
    """Dependency resolving the bearer token into an AuthContext"""
    if credentials is None or not credentials.credentials:
        raise AuthError("Access token required")

    payload = auth_handler.verify_token(credentials.credentials)

    user_id = payload.get("userId")
    if not isinstance(user_id, int):
        raise AuthError("Invalid or expired token")

    return AuthContext(user_id=user_id, email=payload.get("email"))
