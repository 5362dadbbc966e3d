from .base import Base, metadata
from .auth import User
from .course import Course, Lesson, Material, Enrollment

# Import all models to ensure relationships are properly set up
from . import auth, course

__all__ = [
    'Base',
    'metadata',
    # Auth models
    'User',
    # Course models
    'Course',
    'Lesson',
    'Material',
    'Enrollment',
]
