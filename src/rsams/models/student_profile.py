from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import Base


class StudentProfileModel(Base):
    __tablename__ = "student_profiles"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(
        String,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    name = Column(String, nullable=False)
    student_id = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)

    account = relationship("AccountModel", back_populates="student_profile")
