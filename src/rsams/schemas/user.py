"""Account schema definitions.

This module defines the public Account representation, its role-specific
profiles and the request bodies accepted by the auth and admin routes.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator

from rsams.utils.validators import check_password_complexity, normalize_email


class Role(str, Enum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"


class StudentProfile(BaseModel):
    kind: Literal["student"] = "student"
    name: str
    student_id: str
    phone: Optional[str] = None
    address: Optional[str] = None


class TeacherProfile(BaseModel):
    kind: Literal["teacher"] = "teacher"
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None


Profile = Annotated[Union[StudentProfile, TeacherProfile], Field(discriminator="kind")]


class Account(BaseModel):
    """Account as exposed outside the credential store.

    Never carries the password hash or the lockout counters.
    """

    id: str
    email: str
    role: Role
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    profile: Optional[Profile] = Field(
        default=None,
        description="StudentProfile for STUDENT, TeacherProfile for TEACHER, none for ADMIN.",
    )


class AuthPayload(BaseModel):
    user: Account
    token: str


class ProfileFields(BaseModel):
    """Role-specific attributes supplied at account creation."""

    name: Optional[str] = None
    student_id: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


# --- Requests ---


class _EmailPasswordRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email_field(cls, value: str) -> str:
        return normalize_email(value)


class LoginRequest(_EmailPasswordRequest):
    password: str = Field(min_length=1)


class _CreateAccountRequest(_EmailPasswordRequest):
    role: Role
    name: str
    student_id: Optional[str] = Field(default=None, min_length=3, max_length=20)
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        problem = check_password_complexity(value)
        if problem:
            raise ValueError(problem)
        return value

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if not 2 <= len(value) <= 100:
            raise ValueError("Name must be between 2 and 100 characters")
        return value

    def profile_fields(self) -> ProfileFields:
        return ProfileFields(
            name=self.name,
            student_id=self.student_id,
            phone=self.phone,
            address=self.address,
        )


class RegisterRequest(_CreateAccountRequest):
    @field_validator("role")
    @classmethod
    def check_role(cls, value: Role) -> Role:
        if value == Role.ADMIN:
            raise ValueError("Role must be either STUDENT or TEACHER")
        return value


class AdminCreateUserRequest(_CreateAccountRequest):
    pass


class ChangePasswordRequest(BaseModel):
    # Policy on new_password is enforced by the authenticator (WEAK_PASSWORD)
    current_password: str
    new_password: str


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone: Optional[str] = None
    address: Optional[str] = None


class AdminUpdateUserRequest(UpdateProfileRequest):
    is_active: Optional[bool] = None


# --- Responses ---


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class AccountListPayload(BaseModel):
    users: List[Account]
    pagination: Pagination


class ApiResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
