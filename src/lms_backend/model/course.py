from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey,
    Index, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship

from .base import Base
from .auth import _now, _uuid


class Course(Base):
    __tablename__ = 'course'
    __table_args__ = (
        CheckConstraint('enrolled_students >= 0', name='ck_course_enrolled_students'),
        CheckConstraint('duration >= 1', name='ck_course_duration'),
        Index('course_instructor_id_key', 'instructor_id'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    created_at = Column(DateTime(True), nullable=False, default=_now)
    updated_at = Column(DateTime(True), nullable=False, default=_now, onupdate=_now)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    instructor = Column(String(255), nullable=False)
    instructor_id = Column(ForeignKey('user.id', ondelete='SET NULL'))
    duration = Column(Integer, nullable=False)
    enrolled_students = Column(Integer, nullable=False, default=0)
    status = Column(Enum('active', 'inactive', 'completed', name='course_status'), nullable=False, default='active')

    # Relationships
    instructor_user = relationship('User', back_populates='courses', foreign_keys=[instructor_id])
    lessons = relationship("Lesson", back_populates="course", order_by="Lesson.order", uselist=True, lazy="select", cascade="all, delete-orphan")
    all_materials = relationship("Material", back_populates="course", uselist=True, lazy="select", cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", back_populates="course", uselist=True, lazy="select", cascade="all, delete-orphan")

    @property
    def materials(self) -> list:
        """Materials attached to the course itself, not to one of its lessons"""
        return [m for m in self.all_materials if m.lesson_id is None]

    @property
    def lesson_count(self) -> int:
        return len(self.lessons)

    @property
    def total_lesson_duration(self) -> int:
        return sum(lesson.duration for lesson in self.lessons)


class Lesson(Base):
    __tablename__ = 'lesson'
    __table_args__ = (
        CheckConstraint('duration >= 1', name='ck_lesson_duration'),
        Index('lesson_course_id_key', 'course_id'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    created_at = Column(DateTime(True), nullable=False, default=_now)
    updated_at = Column(DateTime(True), nullable=False, default=_now, onupdate=_now)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    content = Column(Text, nullable=False)
    order = Column(Integer, nullable=False, default=0)
    duration = Column(Integer, nullable=False)
    video_url = Column(String(2048))
    is_published = Column(Boolean, nullable=False, default=False)

    # Relationships
    course = relationship('Course', back_populates='lessons')
    materials = relationship("Material", back_populates="lesson", uselist=True, lazy="select", cascade="all, delete-orphan")


class Material(Base):
    __tablename__ = 'material'
    __table_args__ = (
        Index('material_course_id_key', 'course_id'),
        Index('material_lesson_id_key', 'lesson_id'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    uploaded_at = Column(DateTime(True), nullable=False, default=_now)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    lesson_id = Column(ForeignKey('lesson.id', ondelete='CASCADE', onupdate='RESTRICT'))
    name = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    locator = Column(String(1024), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    mime_type = Column(String(255), nullable=False)

    # Relationships
    course = relationship('Course', back_populates='all_materials')
    lesson = relationship('Lesson', back_populates='materials')


class Enrollment(Base):
    __tablename__ = 'enrollment'
    __table_args__ = (
        UniqueConstraint('user_id', 'course_id', name='enrollment_user_id_course_id_key'),
        CheckConstraint('progress >= 0 AND progress <= 100', name='ck_enrollment_progress'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    enrolled_at = Column(DateTime(True), nullable=False, default=_now)
    progress = Column(Integer, nullable=False, default=0)
    status = Column(Enum('enrolled', 'in-progress', 'completed', 'dropped', name='enrollment_status'), nullable=False, default='enrolled')

    # Relationships
    user = relationship('User', back_populates='enrollments')
    course = relationship('Course', back_populates='enrollments')
