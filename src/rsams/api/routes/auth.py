"""Authentication routes.

This module handles HTTP endpoints for registration, login, the current
account's profile and password changes. Logout is client-side only: the
client discards its token.
"""

import logging

from fastapi import APIRouter, status

from rsams.core.dependencies import AccountManagerDep, AuthenticatorDep, CurrentAccountDep
from rsams.core.exceptions import ApiError
from rsams.core.results import ErrorKind
from rsams.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    Role,
    UpdateProfileRequest,
)
from rsams.utils.converters import model_to_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register")
def register(req: RegisterRequest, authenticator: AuthenticatorDep) -> dict:
    """Register a new student or teacher account.

    Args:
        req: Registration request with email, password, role and profile fields.
        authenticator: Injected Authenticator instance.

    Returns:
        Envelope with the created user and an access token.

    Raises:
        ApiError: DUPLICATE_EMAIL, DUPLICATE_STUDENT_ID or VALIDATION_ERROR.
    """
    result = authenticator.register(
        email=req.email,
        password=req.password,
        role=req.role,
        profile=req.profile_fields(),
    )
    if not result.ok:
        raise ApiError.from_failure(result.failure)

    return {
        "success": True,
        "message": "User registered successfully",
        "data": result.value.model_dump(mode="json"),
    }


@router.post("/login", summary="Login")
def login(req: LoginRequest, authenticator: AuthenticatorDep) -> dict:
    """Login with email and password.

    Args:
        req: Login request with email and password.
        authenticator: Injected Authenticator instance.

    Returns:
        Envelope with the user and an access token.

    Raises:
        ApiError: INVALID_CREDENTIALS, ACCOUNT_LOCKED or ACCOUNT_DEACTIVATED.
    """
    result = authenticator.login(req.email, req.password)
    if not result.ok:
        raise ApiError.from_failure(result.failure)

    return {
        "success": True,
        "message": "Login successful",
        "data": result.value.model_dump(mode="json"),
    }


@router.get("/profile", summary="Current account")
def get_profile(current_account: CurrentAccountDep) -> dict:
    return {
        "success": True,
        "data": {"user": current_account.model_dump(mode="json")},
    }


@router.put("/profile", summary="Update own profile")
def update_profile(
    req: UpdateProfileRequest,
    current_account: CurrentAccountDep,
    accounts: AccountManagerDep,
) -> dict:
    """Update name, phone and address of the current account's profile.

    Raises:
        ApiError: VALIDATION_ERROR for administrators, who have no profile.
    """
    if current_account.role == Role.ADMIN:
        raise ApiError(
            ErrorKind.VALIDATION_ERROR, "Administrator accounts have no profile to update"
        )

    model = accounts.update_profile(
        current_account.id, name=req.name, phone=req.phone, address=req.address
    )
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": {"user": model_to_account(model).model_dump(mode="json")},
    }


@router.put("/change-password", summary="Change password")
def change_password(
    req: ChangePasswordRequest,
    current_account: CurrentAccountDep,
    authenticator: AuthenticatorDep,
) -> dict:
    """Change the current account's password.

    Raises:
        ApiError: WEAK_PASSWORD or INVALID_CREDENTIALS.
    """
    result = authenticator.change_password(
        current_account.id, req.current_password, req.new_password
    )
    if not result.ok:
        raise ApiError.from_failure(result.failure)

    logger.info("Password changed for account %s", current_account.id)
    return {"success": True, "message": "Password changed successfully"}
