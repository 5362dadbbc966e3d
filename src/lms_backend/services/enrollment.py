import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..api.exceptions import BadRequestException, ConflictException, NotFoundException
from ..interface.enrollments import EnrollmentStatus
from ..model.auth import User
from ..model.course import Course, Enrollment

logger = logging.getLogger(__name__)

PROGRESS_MIN = 0
PROGRESS_MAX = 100


class EnrollmentLedger:
    """Enrollment records per (user, course) and the course counter.

    The record and `course.enrolled_students` are written in the same
    session; the caller commits both together or rolls both back.
    """

    def __init__(self, db: Session):
        self.db = db

    def find(self, user: User, course: Course) -> Optional[Enrollment]:
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == user.id, Enrollment.course_id == course.id)
            .first()
        )

    def require(self, user: User, course: Course) -> Enrollment:
        enrollment = self.find(user, course)
        if enrollment is None:
            raise NotFoundException(detail="User is not enrolled in this course")
        return enrollment

    def enroll(self, user: User, course: Course) -> Enrollment:
        if self.find(user, course) is not None:
            raise ConflictException(detail="User is already enrolled in this course")

        enrollment = Enrollment(
            user=user,
            course=course,
            progress=PROGRESS_MIN,
            status=EnrollmentStatus.ENROLLED.value,
            enrolled_at=datetime.now(timezone.utc)
        )
        self.db.add(enrollment)

        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictException(detail="User is already enrolled in this course")

        self._shift_counter(course, +1)
        logger.info(f"Enrolled user {user.id} in course {course.id}")
        return enrollment

    def unenroll(self, user: User, course: Course) -> None:
        enrollment = self.require(user, course)

        if enrollment in user.enrollments:
            user.enrollments.remove(enrollment)
        if enrollment in course.enrollments:
            course.enrollments.remove(enrollment)
        self.db.delete(enrollment)
        self.db.flush()

        self._shift_counter(course, -1)
        logger.info(f"Unenrolled user {user.id} from course {course.id}")

    def update_progress(self, user: User, course: Course, progress: Optional[int] = None, status: Optional[EnrollmentStatus] = None) -> Enrollment:
        enrollment = self.require(user, course)

        if progress is not None and not (PROGRESS_MIN <= progress <= PROGRESS_MAX):
            raise BadRequestException(detail=f"Progress must be between {PROGRESS_MIN} and {PROGRESS_MAX}")

        if progress is not None:
            enrollment.progress = progress
        if status is not None:
            enrollment.status = EnrollmentStatus(status).value

        self.db.flush()
        return enrollment

    def enrollments_for(self, user: User) -> List[Enrollment]:
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.user_id == user.id)
            .order_by(Enrollment.enrolled_at.desc())
            .all()
        )

    def _shift_counter(self, course: Course, delta: int) -> None:
        if delta >= 0:
            value = Course.enrolled_students + delta
        else:
            # floor at zero
            value = case(
                (Course.enrolled_students + delta < 0, 0),
                else_=Course.enrolled_students + delta
            )
        self.db.execute(
            update(Course)
            .where(Course.id == course.id)
            .values(enrolled_students=value)
            .execution_options(synchronize_session="fetch")
        )
