"""Authentication endpoints: signup, login."""

from fastapi import APIRouter, Depends, status

from leave_portal.core.dependencies import get_account_service
from leave_portal.schemas.auth import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
)
from leave_portal.services.accounts import AccountService

router = APIRouter(tags=["auth"])


# ── POST /signup ──────────────────────────────────────────────────────────────


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, accounts: AccountService = Depends(get_account_service)):
    """Register a new staff member."""
    user = await accounts.signup(
        full_name=body.full_name,
        email=body.email,
        password=body.password,
        phone_number=body.phone_number,
    )
    return SignupResponse(
        message=f"Registration successful for {user.full_name}",
        user_id=user.id,
        email=user.email,
    )


# ── POST /login ───────────────────────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    user = await accounts.authenticate(body.email, body.password)
    return LoginResponse(message="login successful", user=user.full_name)
