"""
Authentication Schemas

Request/response models for bootstrap, registration, login, refresh
and the password-reset flow.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from safestart.models.user import UserRole
from safestart.schemas.common import PHONE_PATTERN
from safestart.schemas.company import CompanyResponse
from safestart.schemas.user import UserResponse


class BootstrapAdminRequest(BaseModel):
    """Creates the first company and its admin. Allowed once per deployment."""
    company_name: str = Field(..., min_length=2, max_length=255)
    company_address: Optional[str] = Field(None, max_length=500)
    company_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    company_email: Optional[EmailStr] = None
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)

    class Config:
        json_schema_extra = {
            "example": {
                "company_name": "Acme Logistics",
                "full_name": "Alice Admin",
                "email": "alice@acme.com",
                "password": "securepassword123",
            }
        }


class RegisterRequest(BaseModel):
    """Admin-only: add a user to the admin's own company."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    role: UserRole = UserRole.DRIVER
    # Must match the admin's company when supplied
    company_id: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=100)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class AuthResponse(TokenPair):
    """Token pair plus the authenticated user (and company on bootstrap)."""
    user: UserResponse
    company: Optional[CompanyResponse] = None
