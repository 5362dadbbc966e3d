"""
Authorization guard for the course hierarchy.

Every route resolves its target first (a missing course, lesson or material
is a 404 and never reaches the guard), then asks `authorize` whether the
principal may perform the action. The decision is a plain value; `require`
turns a denial into the matching HTTP exception.
"""

from enum import Enum
from typing import Literal, Optional, Union
from pydantic import BaseModel

from lms_backend.api.exceptions import ForbiddenException, UnauthorizedException
from lms_backend.permissions.principal import AUTHOR_ROLES, Principal


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(str, Enum):
    COURSE = "course"
    LESSON = "lesson"
    MATERIAL = "material"
    USER = "user"
    USERS = "users"


class CourseOwnership(BaseModel):
    id: str
    instructor_id: Optional[str] = None

    @classmethod
    def of(cls, course) -> "CourseOwnership":
        instructor_id = course.instructor_id
        return cls(id=str(course.id), instructor_id=str(instructor_id) if instructor_id is not None else None)


class ResourceRef(BaseModel):
    kind: ResourceKind
    course: Optional[CourseOwnership] = None
    user_id: Optional[str] = None

    @classmethod
    def course_of(cls, course) -> "ResourceRef":
        return cls(kind=ResourceKind.COURSE, course=CourseOwnership.of(course))

    @classmethod
    def lesson_of(cls, course) -> "ResourceRef":
        return cls(kind=ResourceKind.LESSON, course=CourseOwnership.of(course))

    @classmethod
    def material_of(cls, course) -> "ResourceRef":
        return cls(kind=ResourceKind.MATERIAL, course=CourseOwnership.of(course))

    @classmethod
    def account(cls, user_id: str) -> "ResourceRef":
        return cls(kind=ResourceKind.USER, user_id=str(user_id))


class Allow(BaseModel):
    allowed: Literal[True] = True


class Deny(BaseModel):
    allowed: Literal[False] = False
    reason: str


Decision = Union[Allow, Deny]

AUTHENTICATION_REQUIRED = "authentication required"
INSUFFICIENT_PERMISSIONS = "insufficient permissions"
NOT_RESOURCE_OWNER = "not resource owner"
NOT_ENROLLED = "not enrolled"
NOT_ACCOUNT_OWNER = "not account owner"

_HIERARCHY_KINDS = (ResourceKind.COURSE, ResourceKind.LESSON, ResourceKind.MATERIAL)
_CHILD_KINDS = (ResourceKind.LESSON, ResourceKind.MATERIAL)


def requires_authentication(action: Action, resource: ResourceRef) -> bool:
    """Only the public course catalogue can be read anonymously"""
    return not (action == Action.READ and resource.kind == ResourceKind.COURSE)


def authorize(principal: Optional[Principal], action: Action, resource: ResourceRef) -> Decision:
    """Decide whether `principal` may perform `action` on `resource`.

    Rules are evaluated in order and the first match wins:

    1. anonymous callers are denied anything but reading courses
    2. writes on courses, lessons and materials need an instructor or admin
    3. writes need ownership of the course (lesson and material creation
       included), admins bypass ownership
    4. reading lessons and materials needs ownership, an active enrollment
       or admin
    5. accounts are managed by their owner or an admin; the user directory
       is admin only
    """
    if principal is None or not principal.is_authenticated:
        if requires_authentication(action, resource):
            return Deny(reason=AUTHENTICATION_REQUIRED)
        return Allow()

    if resource.kind in _HIERARCHY_KINDS:

        if action != Action.READ and not principal.has_role(*AUTHOR_ROLES):
            return Deny(reason=INSUFFICIENT_PERMISSIONS)

        course = resource.course

        if action in (Action.UPDATE, Action.DELETE) or (action == Action.CREATE and resource.kind in _CHILD_KINDS):
            if course is None:
                return Deny(reason=NOT_RESOURCE_OWNER)
            if not principal.is_admin and not principal.owns(course.instructor_id):
                return Deny(reason=NOT_RESOURCE_OWNER)

        if action == Action.READ and resource.kind in _CHILD_KINDS:
            if course is None:
                return Deny(reason=NOT_ENROLLED)
            if not (principal.is_admin or principal.owns(course.instructor_id) or principal.is_enrolled(course.id)):
                return Deny(reason=NOT_ENROLLED)

        return Allow()

    if resource.kind == ResourceKind.USERS:
        if not principal.is_admin:
            return Deny(reason=INSUFFICIENT_PERMISSIONS)
        return Allow()

    if resource.kind == ResourceKind.USER:
        if principal.is_admin or principal.user_id == resource.user_id:
            return Allow()
        return Deny(reason=NOT_ACCOUNT_OWNER)

    return Allow()


def require(principal: Optional[Principal], action: Action, resource: ResourceRef) -> None:
    """Raise the HTTP exception matching a denial, do nothing on allow"""
    decision = authorize(principal, action, resource)

    if isinstance(decision, Allow):
        return

    if decision.reason == AUTHENTICATION_REQUIRED:
        raise UnauthorizedException(detail="Authentication required")

    raise ForbiddenException(detail=_DENIAL_MESSAGES.get(decision.reason, decision.reason))


_DENIAL_MESSAGES = {
    INSUFFICIENT_PERMISSIONS: "Insufficient permissions",
    NOT_RESOURCE_OWNER: "You can only modify courses you created",
    NOT_ENROLLED: "You must be enrolled in this course to access it",
    NOT_ACCOUNT_OWNER: "You can only manage your own account",
}
