"""Account database model.

This module defines the Account database model using SQLAlchemy. An account
is the authentication identity: credentials, role and lockout state.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from .base import Base


class AccountModel(Base):
    """Account database model."""

    __tablename__ = "accounts"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # lower-cased
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)  # 'STUDENT', 'TEACHER' or 'ADMIN'
    is_active = Column(Boolean, nullable=False, default=True)
    failed_login_count = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    student_profile = relationship(
        "StudentProfileModel",
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
    )
    teacher_profile = relationship(
        "TeacherProfileModel",
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
    )
