"""
Authentication Endpoints

Bootstrap, registration, login, refresh and password reset.
Everything here except /register is reachable without a token, and all
of it shares the stricter auth rate-limit bucket.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.schemas.auth import (
    AuthResponse,
    BootstrapAdminRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPair,
)
from safestart.schemas.common import ApiResponse, MessageResponse
from safestart.schemas.company import CompanyResponse
from safestart.schemas.user import UserResponse
from safestart.services import auth as auth_service
from safestart.api.deps import client_ip, require_admin

router = APIRouter(prefix="/auth", tags=["authentication"])

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent."


@router.post("/bootstrap-admin", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
async def bootstrap_admin(
    payload: BootstrapAdminRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Create the first company and its admin account.

    Only succeeds while no admin exists anywhere; afterwards it is 409.
    """
    user, company, tokens = auth_service.bootstrap_admin(
        db, payload, background_tasks,
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    return ApiResponse(
        message="Company and admin created successfully",
        data=AuthResponse(
            **tokens.model_dump(),
            user=UserResponse.model_validate(user),
            company=CompanyResponse.model_validate(company),
        ),
    )


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin adds a user to their own company."""
    user = auth_service.register_user(db, actor, payload, background_tasks)
    return ApiResponse(message="User registered successfully", data=UserResponse.model_validate(user))


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(
    credentials: LoginRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    user, tokens = auth_service.authenticate(
        db,
        credentials.email,
        credentials.password,
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    return ApiResponse(
        message="Login successful",
        data=AuthResponse(**tokens.model_dump(), user=UserResponse.model_validate(user)),
    )


@router.post("/refresh", response_model=ApiResponse[TokenPair])
async def refresh_token(
    payload: RefreshRequest,
    db: Session = Depends(get_db)
):
    """Exchange a refresh token for a new access/refresh pair."""
    tokens = auth_service.refresh(db, payload.refresh_token)
    return ApiResponse(data=tokens)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    # Same response whether or not the account exists
    auth_service.request_password_reset(db, payload.email, background_tasks, ip_address=client_ip(request))
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db)
):
    auth_service.reset_password(db, payload.token, payload.password)
    return MessageResponse(message="Password has been reset successfully")
