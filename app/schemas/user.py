"""
Pydantic schemas for authentication operations
"""

from pydantic import BaseModel, Field
from typing import Optional

class RegisterRequest(BaseModel):
    """Schema for registering a new user; presence is checked by the service"""
    email: Optional[str] = Field(None, max_length=255, description="Email address, used as the login")
    password: Optional[str] = Field(None, max_length=128, description="Plain text password")
    name: Optional[str] = Field(None, max_length=255, description="Display name")

class LoginRequest(BaseModel):
    """Schema for user login"""
    email: Optional[str] = Field(None, description="Email address")
    password: Optional[str] = Field(None, description="Password")

class UserResponse(BaseModel):
    """Public user profile (excludes the password hash)"""
    id: int
    email: str
    name: str

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    token: str
    user: UserResponse
