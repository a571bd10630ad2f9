"""Account management utilities.

This module provides the credential store: account persistence, the atomic
lockout counter updates used during login, and account administration.
"""

import logging
import math
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

import pytz
from sqlalchemy import DateTime, case, func, literal, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rsams.core.exceptions import (
    AccountNotFoundError,
    DuplicateEmailError,
    DuplicateStudentIdError,
)
from rsams.models.account import AccountModel
from rsams.models.student_profile import StudentProfileModel
from rsams.models.teacher_profile import TeacherProfileModel
from rsams.schemas.user import ProfileFields, Role
from rsams.utils.validators import normalize_email

logger = logging.getLogger(__name__)


def generate_student_id(account_id: str, now: Optional[datetime] = None) -> str:
    """Derive a student identifier from the creation time and the account id.

    The millisecond timestamp keeps identifiers ordered by creation; the
    account id suffix separates accounts created in the same millisecond.
    """
    now = now or datetime.now(pytz.utc)
    return f"ST{int(now.timestamp() * 1000)}{account_id.replace('-', '')[:6].upper()}"


def _lock_inactive(now: datetime):
    return or_(AccountModel.locked_until.is_(None), AccountModel.locked_until <= now)


def _like_pattern(search: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards escaped."""
    escaped = (
        search.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return f"%{escaped}%"


class AccountManager:
    """Manages account persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize AccountManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    # --- Lookups ---

    def find_account_by_email(self, email: str) -> Optional[AccountModel]:
        """Get an account by email (normalized before lookup).

        Args:
            email: Email address to look up.

        Returns:
            AccountModel if found, None otherwise.
        """
        return (
            self.db.query(AccountModel)
            .filter(AccountModel.email == normalize_email(email))
            .first()
        )

    def find_account_by_id(self, account_id: str) -> Optional[AccountModel]:
        return self.db.query(AccountModel).filter(AccountModel.id == account_id).first()

    def get_account(self, account_id: str) -> AccountModel:
        """Get an account by id.

        Raises:
            AccountNotFoundError: If no account has this id.
        """
        model = self.find_account_by_id(account_id)
        if model is None:
            raise AccountNotFoundError(account_id)
        return model

    def email_exists(self, email: str) -> bool:
        return self.find_account_by_email(email) is not None

    def student_id_exists(self, student_id: str) -> bool:
        return (
            self.db.query(StudentProfileModel.id)
            .filter(StudentProfileModel.student_id == student_id)
            .first()
            is not None
        )

    # --- Creation ---

    def create_account_with_profile(
        self,
        email: str,
        password_hash: str,
        role: Role,
        profile: Optional[ProfileFields] = None,
    ) -> AccountModel:
        """Create an account and its role-specific profile in one transaction.

        Args:
            email: Email address (normalized before storing).
            password_hash: Output of the password hasher.
            role: Account role. STUDENT and TEACHER accounts get a profile.
            profile: Profile attributes. A missing student_id is generated.

        Returns:
            Created AccountModel.

        Raises:
            DuplicateEmailError: If the email is already registered.
            DuplicateStudentIdError: If the student identifier is already in use.
        """
        now = datetime.now(pytz.utc)
        profile = profile or ProfileFields()
        email = normalize_email(email)
        account = AccountModel(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            role=Role(role).value,
            is_active=True,
            failed_login_count=0,
            locked_until=None,
            last_login_at=None,
            created_at=now,
            updated_at=now,
        )

        student_id = None
        if role == Role.STUDENT:
            student_id = profile.student_id or generate_student_id(account.id, now)
            account.student_profile = StudentProfileModel(
                name=profile.name,
                student_id=student_id,
                phone=profile.phone,
                address=profile.address,
            )
        elif role == Role.TEACHER:
            account.teacher_profile = TeacherProfileModel(
                name=profile.name,
                phone=profile.phone,
                address=profile.address,
            )

        # The unique constraints are authoritative: two concurrent requests can
        # both pass a pre-check, only one insert survives the commit.
        try:
            self.db.add(account)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            message = str(e.orig).lower()
            if "student_id" in message:
                raise DuplicateStudentIdError(student_id) from e
            if "email" in message:
                raise DuplicateEmailError(email) from e
            raise

        self.db.refresh(account)
        logger.info("Created %s account: %s", account.role, account.id)
        return account

    # --- Login bookkeeping ---

    def record_failed_login(
        self,
        account_id: str,
        max_attempts: int,
        lock_until: datetime,
        now: datetime,
    ) -> Optional[int]:
        """Count a failed password check, locking the account at the threshold.

        Read and write happen in a single UPDATE, so concurrent failures for
        the same account cannot under-count. The update is skipped while a
        lock is active.

        Args:
            account_id: Account that failed the password check.
            max_attempts: Count at which the account becomes locked.
            lock_until: Lock expiry applied when the threshold is reached.
            now: Current time.

        Returns:
            The new failed login count, or None if no row was updated. On
            dialects without UPDATE ... RETURNING the count is read back after
            the commit and may already include concurrent failures.
        """
        new_count = AccountModel.failed_login_count + 1
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .where(_lock_inactive(now))
            # locked_until is assigned first: MySQL evaluates SET left to right
            .ordered_values(
                (
                    AccountModel.locked_until,
                    case(
                        (new_count >= max_attempts, literal(lock_until, DateTime(timezone=True))),
                        else_=AccountModel.locked_until,
                    ),
                ),
                (AccountModel.failed_login_count, new_count),
                (AccountModel.updated_at, now),
            )
            .execution_options(synchronize_session=False)
        )

        if self.db.get_bind().dialect.update_returning:
            count = self.db.execute(
                stmt.returning(AccountModel.failed_login_count)
            ).scalar_one_or_none()
            self.db.commit()
            return count

        result = self.db.execute(stmt)
        self.db.commit()
        if result.rowcount == 0:
            return None
        return (
            self.db.query(AccountModel.failed_login_count)
            .filter(AccountModel.id == account_id)
            .scalar()
        )

    def record_successful_login(self, account_id: str, now: datetime) -> bool:
        """Reset the failure counter, clear any lock and stamp last_login_at.

        The update only applies while no lock is active, so a lock set by a
        concurrent failure after the caller's read is not wiped.

        Returns:
            True if the login was recorded, False if the account is locked.
        """
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .where(_lock_inactive(now))
            .values(
                failed_login_count=0,
                locked_until=None,
                last_login_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount > 0

    def update_password(self, account_id: str, password_hash: str) -> None:
        """Store a new password hash. Lockout state is left untouched.

        Raises:
            AccountNotFoundError: If no account has this id.
        """
        model = self.get_account(account_id)
        model.password_hash = password_hash
        model.updated_at = datetime.now(pytz.utc)
        self.db.commit()
        logger.info("Updated password for account: %s", account_id)

    # --- Administration ---

    def list_accounts(
        self,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[AccountModel], int, int]:
        """List accounts with optional filters, newest first.

        Args:
            role: Optional role filter.
            search: Case-insensitive match against email or profile name.
            page: 1-based page number.
            limit: Page size.

        Returns:
            Tuple of (accounts on the page, total matches, number of pages).
        """
        query = (
            self.db.query(AccountModel)
            .outerjoin(StudentProfileModel, StudentProfileModel.account_id == AccountModel.id)
            .outerjoin(TeacherProfileModel, TeacherProfileModel.account_id == AccountModel.id)
        )
        if role:
            query = query.filter(AccountModel.role == Role(role).value)
        if search:
            pattern = _like_pattern(search)
            query = query.filter(
                or_(
                    func.lower(AccountModel.email).like(pattern, escape="\\"),
                    func.lower(StudentProfileModel.name).like(pattern, escape="\\"),
                    func.lower(TeacherProfileModel.name).like(pattern, escape="\\"),
                )
            )

        total = query.count()
        accounts = (
            query.order_by(AccountModel.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        pages = math.ceil(total / limit) if limit else 0
        return accounts, total, pages

    def update_profile(
        self,
        account_id: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> AccountModel:
        """Update the role-specific profile of an account.

        Only the given (non-None) fields change. Accounts without a profile
        are returned unchanged.

        Raises:
            AccountNotFoundError: If no account has this id.
        """
        model = self.get_account(account_id)
        profile = model.student_profile or model.teacher_profile
        if profile is not None:
            if name is not None:
                profile.name = name
            if phone is not None:
                profile.phone = phone
            if address is not None:
                profile.address = address
            model.updated_at = datetime.now(pytz.utc)
            self.db.commit()
            self.db.refresh(model)
        return model

    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> AccountModel:
        """Update profile fields and the active flag of an account.

        Raises:
            AccountNotFoundError: If no account has this id.
        """
        model = self.update_profile(account_id, name=name, phone=phone, address=address)
        if is_active is not None and model.is_active != is_active:
            model.is_active = is_active
            model.updated_at = datetime.now(pytz.utc)
            self.db.commit()
            self.db.refresh(model)
            logger.info("Account %s is_active set to %s", account_id, is_active)
        return model

    def deactivate_account(self, account_id: str) -> AccountModel:
        """Soft delete an account.

        Raises:
            AccountNotFoundError: If no account has this id.
        """
        return self.update_account(account_id, is_active=False)

    def unlock_account(self, account_id: str) -> AccountModel:
        """Clear a lockout and its failure counter.

        Raises:
            AccountNotFoundError: If no account has this id.
        """
        model = self.get_account(account_id)
        model.failed_login_count = 0
        model.locked_until = None
        model.updated_at = datetime.now(pytz.utc)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Unlocked account: %s", account_id)
        return model
