import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Boolean, Column, DateTime, Enum, Index, String, Text
)
from sqlalchemy.orm import relationship

from .base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = 'user'
    __table_args__ = (
        Index('user_role_key', 'role'),
        Index('user_is_active_key', 'is_active'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    created_at = Column(DateTime(True), nullable=False, default=_now)
    updated_at = Column(DateTime(True), nullable=False, default=_now, onupdate=_now)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(320), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(Enum('student', 'instructor', 'admin', name='user_role'), nullable=False, default='student')
    bio = Column(Text, default='')
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(True))

    # Relationships
    enrollments = relationship("Enrollment", back_populates="user", uselist=True, lazy="select", cascade="all, delete-orphan")
    courses = relationship("Course", back_populates="instructor_user", foreign_keys="Course.instructor_id", uselist=True, lazy="select")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def enrolled_courses_count(self) -> int:
        return len(self.enrollments)

    @property
    def completed_courses_count(self) -> int:
        return len([e for e in self.enrollments if e.status == 'completed'])
