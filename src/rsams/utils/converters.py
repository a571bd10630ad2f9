"""Conversions between ORM models and public schemas."""

from datetime import datetime
from typing import Optional

import pytz

from rsams.models.account import AccountModel
from rsams.schemas.user import Account, Role, StudentProfile, TeacherProfile


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def model_to_account(model: AccountModel) -> Account:
    profile = None
    if model.role == Role.STUDENT.value and model.student_profile is not None:
        sp = model.student_profile
        profile = StudentProfile(
            name=sp.name, student_id=sp.student_id, phone=sp.phone, address=sp.address
        )
    elif model.role == Role.TEACHER.value and model.teacher_profile is not None:
        tp = model.teacher_profile
        profile = TeacherProfile(name=tp.name, phone=tp.phone, address=tp.address)

    return Account(
        id=model.id,
        email=model.email,
        role=Role(model.role),
        is_active=model.is_active,
        last_login_at=as_utc(model.last_login_at),
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
        profile=profile,
    )
