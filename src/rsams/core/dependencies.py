"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes.
Every request gets its own AccountManager and Authenticator bound to a
request-scoped DB session; only the immutable settings are shared.
"""

from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from rsams import config
from rsams.core.database import get_db
from rsams.core.exceptions import ApiError
from rsams.core.results import ErrorKind
from rsams.schemas.user import Account, Role
from rsams.utils.account_manager import AccountManager
from rsams.utils.authenticator import Authenticator
from rsams.utils.password_hasher import PasswordHasher
from rsams.utils.token_issuer import TokenIssuer

# HTTP Bearer token security; missing credentials are reported by get_current_account
security = HTTPBearer(auto_error=False)


def get_auth_settings() -> config.AuthSettings:
    """Get authentication settings.

    Returns:
        AuthSettings built from configuration.
    """
    return config.load_auth_settings()


AuthSettingsDep = Annotated[config.AuthSettings, Depends(get_auth_settings)]


def get_password_hasher(settings: AuthSettingsDep) -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_rounds)


def get_token_issuer(settings: AuthSettingsDep) -> TokenIssuer:
    return TokenIssuer(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        ttl=settings.token_ttl,
    )


def get_account_manager(db: Session = Depends(get_db)) -> AccountManager:
    """Get AccountManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        AccountManager instance.
    """
    return AccountManager(db)


AccountManagerDep = Annotated[AccountManager, Depends(get_account_manager)]


def get_authenticator(
    accounts: AccountManagerDep,
    settings: AuthSettingsDep,
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> Authenticator:
    """Get Authenticator wired to the request's collaborators.

    Args:
        accounts: Request-scoped AccountManager.
        settings: Authentication settings.
        hasher: Password hasher.
        tokens: Token issuer.

    Returns:
        Authenticator instance.
    """
    return Authenticator(accounts, hasher, tokens, settings)


AuthenticatorDep = Annotated[Authenticator, Depends(get_authenticator)]


def get_current_account(
    authenticator: AuthenticatorDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Account:
    """Get the account behind the bearer token.

    Raises:
        ApiError: UNAUTHORIZED if the token is missing or invalid, or the
            account no longer exists or is deactivated.
    """
    if credentials is None:
        raise ApiError(ErrorKind.UNAUTHORIZED, "Access token required")
    result = authenticator.authenticate(credentials.credentials)
    if not result.ok:
        raise ApiError.from_failure(result.failure)
    return result.value


CurrentAccountDep = Annotated[Account, Depends(get_current_account)]


def require_role(*allowed_roles: Role):
    """Dependency factory for role-based access control.

    Args:
        allowed_roles: Roles allowed to call the route.

    Returns:
        Dependency function returning the current account.
    """

    def role_checker(account: CurrentAccountDep) -> Account:
        if account.role not in allowed_roles:
            raise ApiError(
                ErrorKind.FORBIDDEN,
                "Insufficient permissions. Required role: "
                + ", ".join(role.value for role in allowed_roles),
            )
        return account

    return role_checker


AdminAccountDep = Annotated[Account, Depends(require_role(Role.ADMIN))]
