"""Account administration routes (ADMIN role only)."""

import logging
from typing import Optional

from fastapi import APIRouter, Query, status

from rsams.core.dependencies import AccountManagerDep, AdminAccountDep, AuthenticatorDep
from rsams.core.exceptions import AccountNotFoundError, ApiError
from rsams.core.results import ErrorKind
from rsams.schemas.user import (
    AccountListPayload,
    AdminCreateUserRequest,
    AdminUpdateUserRequest,
    Pagination,
    Role,
)
from rsams.utils.converters import model_to_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def _not_found(account_id: str) -> ApiError:
    return ApiError(ErrorKind.NOT_FOUND, f"User '{account_id}' not found")


@router.get("/users", summary="List users")
def list_users(
    admin: AdminAccountDep,
    accounts: AccountManagerDep,
    role: Optional[Role] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> dict:
    models, total, pages = accounts.list_accounts(
        role=role, search=search, page=page, limit=limit
    )
    payload = AccountListPayload(
        users=[model_to_account(m) for m in models],
        pagination=Pagination(page=page, limit=limit, total=total, pages=pages),
    )
    return {"success": True, "data": payload.model_dump(mode="json")}


@router.post("/users", status_code=status.HTTP_201_CREATED, summary="Create user")
def create_user(
    req: AdminCreateUserRequest,
    admin: AdminAccountDep,
    authenticator: AuthenticatorDep,
) -> dict:
    """Create an account of any role. No token is issued.

    Raises:
        ApiError: DUPLICATE_EMAIL, DUPLICATE_STUDENT_ID or VALIDATION_ERROR.
    """
    result = authenticator.create_account(
        email=req.email,
        password=req.password,
        role=req.role,
        profile=req.profile_fields(),
    )
    if not result.ok:
        raise ApiError.from_failure(result.failure)

    logger.info("Admin %s created account %s", admin.id, result.value.id)
    return {
        "success": True,
        "message": "User created successfully",
        "data": {"user": result.value.model_dump(mode="json")},
    }


@router.put("/users/{account_id}", summary="Update user")
def update_user(
    account_id: str,
    req: AdminUpdateUserRequest,
    admin: AdminAccountDep,
    accounts: AccountManagerDep,
) -> dict:
    try:
        model = accounts.update_account(
            account_id,
            name=req.name,
            phone=req.phone,
            address=req.address,
            is_active=req.is_active,
        )
    except AccountNotFoundError:
        raise _not_found(account_id)

    return {
        "success": True,
        "message": "User updated successfully",
        "data": {"user": model_to_account(model).model_dump(mode="json")},
    }


@router.delete("/users/{account_id}", summary="Deactivate user")
def deactivate_user(
    account_id: str,
    admin: AdminAccountDep,
    accounts: AccountManagerDep,
) -> dict:
    """Soft delete: the account stays but can no longer log in or use tokens."""
    try:
        accounts.deactivate_account(account_id)
    except AccountNotFoundError:
        raise _not_found(account_id)

    logger.info("Admin %s deactivated account %s", admin.id, account_id)
    return {"success": True, "message": "User deactivated successfully"}


@router.post("/users/{account_id}/unlock", summary="Unlock user")
def unlock_user(
    account_id: str,
    admin: AdminAccountDep,
    accounts: AccountManagerDep,
) -> dict:
    try:
        model = accounts.unlock_account(account_id)
    except AccountNotFoundError:
        raise _not_found(account_id)

    logger.info("Admin %s unlocked account %s", admin.id, account_id)
    return {
        "success": True,
        "message": "User unlocked successfully",
        "data": {"user": model_to_account(model).model_dump(mode="json")},
    }
