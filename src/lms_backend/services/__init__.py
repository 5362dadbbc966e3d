"""
Service layer for the course hierarchy, enrollments and the blob store.
"""

from .storage_service import StorageService, get_storage_service
from .hierarchy import CourseHierarchy
from .enrollment import EnrollmentLedger

__all__ = ["StorageService", "get_storage_service", "CourseHierarchy", "EnrollmentLedger"]
