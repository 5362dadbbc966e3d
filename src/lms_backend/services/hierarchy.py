import logging
from typing import Optional, Union

from sqlalchemy.orm import Session

from ..api.exceptions import NotFoundException, ServiceUnavailableException
from ..interface.lessons import LessonCreate, LessonUpdate
from ..interface.materials import MaterialInfo
from ..model.course import Course, Lesson, Material
from .storage_service import StorageService

logger = logging.getLogger(__name__)

MaterialTarget = Union[Course, Lesson]


class CourseHierarchy:
    """Containment and ordering of Course -> Lesson -> Material.

    Lessons are numbered by append position and never renumbered, so
    deleting a lesson leaves a gap in the order values. Material bytes live
    in the blob store; removing a material always drops its descriptor, even
    when the blob delete fails.
    """

    def __init__(self, db: Session, storage: Optional[StorageService] = None):
        self.db = db
        self.storage = storage

    def get_lesson(self, course: Course, lesson_id: str) -> Lesson:
        lesson = next((l for l in course.lessons if str(l.id) == str(lesson_id)), None)
        if lesson is None:
            raise NotFoundException(detail="Lesson not found")
        return lesson

    def get_material(self, target: MaterialTarget, material_id: str) -> Material:
        material = next((m for m in target.materials if str(m.id) == str(material_id)), None)
        if material is None:
            raise NotFoundException(detail="Material not found")
        return material

    def append_lesson(self, course: Course, draft: LessonCreate) -> Lesson:
        lesson = Lesson(**draft.model_dump())
        lesson.order = len(course.lessons) + 1
        course.lessons.append(lesson)
        self.db.flush()
        logger.info(f"Appended lesson {lesson.id} to course {course.id} at position {lesson.order}")
        return lesson

    def update_lesson(self, course: Course, lesson_id: str, changes: LessonUpdate) -> Lesson:
        lesson = self.get_lesson(course, lesson_id)
        for key, value in changes.model_dump(exclude_unset=True).items():
            setattr(lesson, key, value)
        return lesson

    async def remove_lesson(self, course: Course, lesson_id: str) -> Lesson:
        lesson = self.get_lesson(course, lesson_id)

        for material in list(lesson.materials):
            await self._discard_material(course, material)

        course.lessons.remove(lesson)
        self.db.delete(lesson)
        self.db.flush()
        logger.info(f"Removed lesson {lesson.id} from course {course.id}")
        return lesson

    def attach_material(self, target: MaterialTarget, info: MaterialInfo) -> Material:
        if isinstance(target, Lesson):
            course = target.course
            material = Material(**info.model_dump(), course_id=course.id)
            target.materials.append(material)
        else:
            course = target
            material = Material(**info.model_dump(), lesson_id=None)
        course.all_materials.append(material)
        self.db.flush()
        logger.info(f"Attached material {material.id} ({info.name}) to {type(target).__name__.lower()} {target.id}")
        return material

    async def remove_material(self, target: MaterialTarget, material_id: str) -> Material:
        material = self.get_material(target, material_id)
        course = target.course if isinstance(target, Lesson) else target
        await self._discard_material(course, material)
        self.db.flush()
        return material

    async def remove_course(self, course: Course) -> None:
        for material in list(course.all_materials):
            await self._delete_blob(material)
        self.db.delete(course)
        self.db.flush()
        logger.info(f"Removed course {course.id}")

    async def _discard_material(self, course: Course, material: Material) -> None:
        await self._delete_blob(material)
        if material.lesson is not None and material in material.lesson.materials:
            material.lesson.materials.remove(material)
        if material in course.all_materials:
            course.all_materials.remove(material)
        self.db.delete(material)

    async def _delete_blob(self, material: Material) -> None:
        # best-effort: the descriptor goes away even if the blob stays behind
        if self.storage is None:
            logger.warning(f"No storage configured, leaving blob {material.locator}")
            return
        try:
            await self.storage.delete(material.locator)
        except ServiceUnavailableException as e:
            logger.warning(f"Could not delete blob {material.locator} of material {material.id}: {e.detail}")
