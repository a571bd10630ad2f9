"""Authentication orchestration.

The Authenticator implements registration, login with lockout, token
verification and password changes on top of three collaborators: the
account manager (credential store), the password hasher and the token
issuer. Expected outcomes are returned as ``Result`` values; unexpected
persistence, hashing or token faults are raised as ``InternalError``.

Login check order matters for what a caller can learn without the password:
an unknown email and a wrong password fail identically, an active lock is
reported before the password is checked, and deactivation is only revealed
once the correct password has been supplied.
"""

import logging
from functools import lru_cache
from datetime import datetime
from typing import Callable, Optional

import pytz
from sqlalchemy.exc import SQLAlchemyError

from rsams.config import AuthSettings
from rsams.core.exceptions import (
    AccountNotFoundError,
    DuplicateEmailError,
    DuplicateStudentIdError,
    InternalError,
)
from rsams.core.results import ErrorKind, Result
from rsams.schemas.user import Account, AuthPayload, ProfileFields, Role
from rsams.utils.account_manager import AccountManager
from rsams.utils.converters import as_utc, model_to_account
from rsams.utils.password_hasher import PasswordHasher
from rsams.utils.token_issuer import TokenIssuer
from rsams.utils.validators import check_password_length, normalize_email

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
ACCOUNT_LOCKED_MESSAGE = "Account is temporarily locked due to too many failed login attempts"


def _utcnow() -> datetime:
    return datetime.now(pytz.utc)


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    """Hash compared against for unknown emails, computed once per cost factor."""
    return PasswordHasher(rounds=rounds).hash("not-a-real-password")


class Authenticator:
    """Registration, login, lockout and token verification."""

    def __init__(
        self,
        accounts: AccountManager,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        settings: AuthSettings,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize Authenticator.

        Args:
            accounts: Credential store.
            hasher: Password hasher.
            tokens: Token issuer.
            settings: Lockout and password policy parameters.
            clock: Returns the current UTC time.
        """
        self.accounts = accounts
        self.hasher = hasher
        self.tokens = tokens
        self.settings = settings
        self.clock = clock

    def _burn_password_check(self, password: str) -> None:
        # Unknown emails pay for exactly one hash comparison, like known ones
        self.hasher.verify(password, _dummy_hash(self.hasher.rounds))

    # --- Registration ---

    def create_account(
        self,
        email: str,
        password: str,
        role: Role,
        profile: Optional[ProfileFields] = None,
    ) -> Result[Account]:
        """Create an account of any role together with its profile.

        Used directly by administrators; self-service registration goes
        through ``register``.

        Returns:
            Result holding the new Account, or a DUPLICATE_EMAIL,
            DUPLICATE_STUDENT_ID or VALIDATION_ERROR failure.

        Raises:
            InternalError: On unexpected persistence or hashing faults.
        """
        profile = profile or ProfileFields()
        email = normalize_email(email)
        problem = check_password_length(password, self.settings.min_password_length)
        if problem:
            return Result.fail(ErrorKind.VALIDATION_ERROR, problem)
        if role in (Role.STUDENT, Role.TEACHER) and not (profile.name or "").strip():
            return Result.fail(ErrorKind.VALIDATION_ERROR, "Name is required")

        try:
            # Fast path only: the unique constraints decide at commit time
            if self.accounts.email_exists(email):
                return Result.fail(
                    ErrorKind.DUPLICATE_EMAIL, "User with this email already exists"
                )
            if (
                role == Role.STUDENT
                and profile.student_id
                and self.accounts.student_id_exists(profile.student_id)
            ):
                return Result.fail(
                    ErrorKind.DUPLICATE_STUDENT_ID, "Student ID already exists"
                )

            password_hash = self.hasher.hash(password)
            model = self.accounts.create_account_with_profile(
                email=email,
                password_hash=password_hash,
                role=role,
                profile=profile,
            )
        except DuplicateEmailError:
            return Result.fail(
                ErrorKind.DUPLICATE_EMAIL, "User with this email already exists"
            )
        except DuplicateStudentIdError:
            return Result.fail(ErrorKind.DUPLICATE_STUDENT_ID, "Student ID already exists")
        except (SQLAlchemyError, ValueError) as e:
            raise InternalError("Account creation failed") from e

        return Result.success(model_to_account(model))

    def register(
        self,
        email: str,
        password: str,
        role: Role,
        profile: Optional[ProfileFields] = None,
    ) -> Result[AuthPayload]:
        """Self-service registration for students and teachers.

        Args:
            email: Email address, normalized before use.
            password: Plain text password.
            role: STUDENT or TEACHER.
            profile: Name plus optional student_id, phone and address.

        Returns:
            Result holding the Account and a fresh token.

        Raises:
            InternalError: On unexpected persistence, hashing or token faults.
        """
        if role not in (Role.STUDENT, Role.TEACHER):
            return Result.fail(
                ErrorKind.VALIDATION_ERROR, "Role must be either STUDENT or TEACHER"
            )

        created = self.create_account(email, password, role, profile)
        if not created.ok:
            return Result(failure=created.failure)

        account = created.value
        token = self._issue_token(account)
        return Result.success(AuthPayload(user=account, token=token))

    # --- Login ---

    def login(self, email: str, password: str) -> Result[AuthPayload]:
        """Verify credentials, apply lockout bookkeeping and issue a token.

        Returns:
            Result holding the Account and a fresh token, or an
            INVALID_CREDENTIALS, ACCOUNT_LOCKED or ACCOUNT_DEACTIVATED failure.

        Raises:
            InternalError: On unexpected persistence, hashing or token faults.
        """
        try:
            return self._login(normalize_email(email), password)
        except SQLAlchemyError as e:
            raise InternalError("Login failed") from e

    def _login(self, email: str, password: str) -> Result[AuthPayload]:
        model = self.accounts.find_account_by_email(email)
        if model is None:
            self._burn_password_check(password)
            logger.info("Login attempt for unknown email")
            return Result.fail(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        account_id = model.id
        now = self.clock()
        locked_until = as_utc(model.locked_until)
        if locked_until is not None and locked_until > now:
            logger.warning("Login attempt on locked account %s", account_id)
            return Result.fail(ErrorKind.ACCOUNT_LOCKED, ACCOUNT_LOCKED_MESSAGE)

        if not self.hasher.verify(password, model.password_hash):
            count = self.accounts.record_failed_login(
                account_id,
                max_attempts=self.settings.max_login_attempts,
                lock_until=now + self.settings.lock_duration,
                now=now,
            )
            if count is not None and count >= self.settings.max_login_attempts:
                logger.warning(
                    "Account %s locked after %d failed login attempts", account_id, count
                )
            else:
                logger.info("Failed login for account %s (count=%s)", account_id, count)
            return Result.fail(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        if not model.is_active:
            logger.info("Login attempt on deactivated account %s", account_id)
            return Result.fail(ErrorKind.ACCOUNT_DEACTIVATED, "Account is deactivated")

        if not self.accounts.record_successful_login(account_id, now):
            # Locked by a concurrent failure after the read above
            logger.warning("Login attempt on locked account %s", account_id)
            return Result.fail(ErrorKind.ACCOUNT_LOCKED, ACCOUNT_LOCKED_MESSAGE)

        account = model_to_account(self.accounts.get_account(account_id))
        token = self._issue_token(account)
        logger.info("Successful login for account %s", account_id)
        return Result.success(AuthPayload(user=account, token=token))

    # --- Token verification ---

    def authenticate(self, token: str) -> Result[Account]:
        """Resolve a bearer token to the current state of its account.

        The account is re-read on every call, so deactivation takes effect
        on the next request without revoking the token.

        Returns:
            Result holding the Account, or an UNAUTHORIZED failure.

        Raises:
            InternalError: On unexpected persistence faults.
        """
        claims = self.tokens.verify(token) if token else None
        if claims is None:
            return Result.fail(ErrorKind.UNAUTHORIZED, "Invalid or expired token")

        try:
            model = self.accounts.find_account_by_id(claims.subject_id)
        except SQLAlchemyError as e:
            raise InternalError("Token verification failed") from e

        if model is None or not model.is_active:
            return Result.fail(ErrorKind.UNAUTHORIZED, "Invalid or expired token")
        return Result.success(model_to_account(model))

    # --- Password change ---

    def change_password(
        self, account_id: str, current_password: str, new_password: str
    ) -> Result[None]:
        """Replace the password of an account.

        Lockout counters are not touched.

        Returns:
            Successful empty Result, or a WEAK_PASSWORD or
            INVALID_CREDENTIALS failure.

        Raises:
            InternalError: On unexpected persistence or hashing faults.
        """
        problem = check_password_length(new_password, self.settings.min_password_length)
        if problem:
            return Result.fail(ErrorKind.WEAK_PASSWORD, f"New {problem[0].lower()}{problem[1:]}")

        try:
            model = self.accounts.find_account_by_id(account_id)
            if model is None or not self.hasher.verify(current_password, model.password_hash):
                return Result.fail(
                    ErrorKind.INVALID_CREDENTIALS, "Current password is incorrect"
                )
            self.accounts.update_password(account_id, self.hasher.hash(new_password))
        except (SQLAlchemyError, AccountNotFoundError) as e:
            raise InternalError("Password change failed") from e

        return Result.success()

    def _issue_token(self, account: Account) -> str:
        try:
            return self.tokens.issue(account.id, account.role.value)
        except Exception as e:
            raise InternalError("Token issuance failed") from e
