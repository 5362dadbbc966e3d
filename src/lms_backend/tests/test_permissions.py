import pytest

from lms_backend.api.exceptions import ForbiddenException, UnauthorizedException
from lms_backend.permissions.core import (
    AUTHENTICATION_REQUIRED,
    INSUFFICIENT_PERMISSIONS,
    NOT_ACCOUNT_OWNER,
    NOT_ENROLLED,
    NOT_RESOURCE_OWNER,
    Action,
    Allow,
    CourseOwnership,
    Deny,
    ResourceKind,
    ResourceRef,
    authorize,
    require,
)
from lms_backend.permissions.principal import Principal

COURSE_ID = "course-1"
OWNER_ID = "instructor-1"


def course_ref(kind: ResourceKind = ResourceKind.COURSE) -> ResourceRef:
    return ResourceRef(kind=kind, course=CourseOwnership(id=COURSE_ID, instructor_id=OWNER_ID))


@pytest.fixture
def anonymous():
    return Principal.anonymous()


@pytest.fixture
def student():
    return Principal(user_id="student-1", role="student")


@pytest.fixture
def enrolled_student():
    return Principal(user_id="student-2", role="student", enrolled_course_ids={COURSE_ID})


@pytest.fixture
def owner():
    return Principal(user_id=OWNER_ID, role="instructor")


@pytest.fixture
def other_instructor():
    return Principal(user_id="instructor-2", role="instructor")


@pytest.fixture
def admin():
    return Principal(user_id="admin-1", role="admin")


class TestPrincipal:

    def test_admin_role_sets_flag(self, admin):
        assert admin.is_admin is True

    def test_anonymous_is_not_authenticated(self, anonymous):
        assert not anonymous.is_authenticated
        assert anonymous.user_id is None

    def test_anonymous_user_id_or_throw(self, anonymous):
        with pytest.raises(UnauthorizedException):
            anonymous.get_user_id_or_throw()

    def test_owns_requires_matching_instructor(self, owner):
        assert owner.owns(OWNER_ID)
        assert not owner.owns("someone-else")
        assert not owner.owns(None)


class TestAnonymous:

    def test_can_read_courses(self, anonymous):
        assert isinstance(authorize(anonymous, Action.READ, course_ref()), Allow)

    def test_none_principal_is_anonymous(self):
        assert isinstance(authorize(None, Action.READ, course_ref()), Allow)
        assert authorize(None, Action.CREATE, course_ref()) == Deny(reason=AUTHENTICATION_REQUIRED)

    @pytest.mark.parametrize("kind", [ResourceKind.LESSON, ResourceKind.MATERIAL])
    def test_cannot_read_course_content(self, anonymous, kind):
        decision = authorize(anonymous, Action.READ, course_ref(kind))
        assert decision == Deny(reason=AUTHENTICATION_REQUIRED)

    @pytest.mark.parametrize("action", [Action.CREATE, Action.UPDATE, Action.DELETE])
    def test_cannot_write(self, anonymous, action):
        assert authorize(anonymous, action, course_ref()) == Deny(reason=AUTHENTICATION_REQUIRED)

    def test_cannot_read_accounts(self, anonymous):
        assert authorize(anonymous, Action.READ, ResourceRef.account("student-1")) == Deny(reason=AUTHENTICATION_REQUIRED)


class TestWrites:

    @pytest.mark.parametrize("action", [Action.CREATE, Action.UPDATE, Action.DELETE])
    @pytest.mark.parametrize("kind", [ResourceKind.COURSE, ResourceKind.LESSON, ResourceKind.MATERIAL])
    def test_student_needs_author_role(self, enrolled_student, action, kind):
        assert authorize(enrolled_student, action, course_ref(kind)) == Deny(reason=INSUFFICIENT_PERMISSIONS)

    def test_instructor_creates_course_without_ownership(self, other_instructor):
        decision = authorize(other_instructor, Action.CREATE, ResourceRef(kind=ResourceKind.COURSE))
        assert isinstance(decision, Allow)

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_non_owner_instructor_denied(self, other_instructor, action):
        assert authorize(other_instructor, action, course_ref()) == Deny(reason=NOT_RESOURCE_OWNER)

    @pytest.mark.parametrize("kind", [ResourceKind.LESSON, ResourceKind.MATERIAL])
    def test_non_owner_cannot_add_content(self, other_instructor, kind):
        assert authorize(other_instructor, Action.CREATE, course_ref(kind)) == Deny(reason=NOT_RESOURCE_OWNER)

    @pytest.mark.parametrize("action", [Action.CREATE, Action.UPDATE, Action.DELETE])
    @pytest.mark.parametrize("kind", [ResourceKind.LESSON, ResourceKind.MATERIAL])
    def test_owner_allowed(self, owner, action, kind):
        assert isinstance(authorize(owner, action, course_ref(kind)), Allow)

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_admin_bypasses_ownership(self, admin, action):
        assert isinstance(authorize(admin, action, course_ref()), Allow)

    def test_ownerless_course_is_admin_only(self, owner, admin):
        ref = ResourceRef(kind=ResourceKind.COURSE, course=CourseOwnership(id=COURSE_ID, instructor_id=None))
        assert authorize(owner, Action.UPDATE, ref) == Deny(reason=NOT_RESOURCE_OWNER)
        assert isinstance(authorize(admin, Action.UPDATE, ref), Allow)


class TestContentReads:

    @pytest.mark.parametrize("kind", [ResourceKind.LESSON, ResourceKind.MATERIAL])
    def test_unenrolled_student_denied(self, student, kind):
        assert authorize(student, Action.READ, course_ref(kind)) == Deny(reason=NOT_ENROLLED)

    @pytest.mark.parametrize("kind", [ResourceKind.LESSON, ResourceKind.MATERIAL])
    def test_enrolled_student_allowed(self, enrolled_student, kind):
        assert isinstance(authorize(enrolled_student, Action.READ, course_ref(kind)), Allow)

    def test_owner_and_admin_allowed(self, owner, admin):
        assert isinstance(authorize(owner, Action.READ, course_ref(ResourceKind.LESSON)), Allow)
        assert isinstance(authorize(admin, Action.READ, course_ref(ResourceKind.LESSON)), Allow)

    def test_other_instructor_needs_enrollment(self, other_instructor):
        assert authorize(other_instructor, Action.READ, course_ref(ResourceKind.LESSON)) == Deny(reason=NOT_ENROLLED)

    def test_everyone_reads_courses(self, student):
        assert isinstance(authorize(student, Action.READ, course_ref()), Allow)


class TestAccounts:

    def test_self_allowed(self, student):
        assert isinstance(authorize(student, Action.UPDATE, ResourceRef.account("student-1")), Allow)

    def test_other_account_denied(self, student):
        assert authorize(student, Action.UPDATE, ResourceRef.account("student-9")) == Deny(reason=NOT_ACCOUNT_OWNER)

    def test_admin_manages_any_account(self, admin):
        assert isinstance(authorize(admin, Action.DELETE, ResourceRef.account("student-9")), Allow)

    def test_directory_is_admin_only(self, owner, admin):
        directory = ResourceRef(kind=ResourceKind.USERS)
        assert authorize(owner, Action.READ, directory) == Deny(reason=INSUFFICIENT_PERMISSIONS)
        assert isinstance(authorize(admin, Action.READ, directory), Allow)


class TestRequire:

    def test_allow_returns_none(self, owner):
        assert require(owner, Action.UPDATE, course_ref()) is None

    def test_anonymous_raises_unauthorized(self, anonymous):
        with pytest.raises(UnauthorizedException) as exc_info:
            require(anonymous, Action.READ, course_ref(ResourceKind.LESSON))
        assert exc_info.value.status_code == 401

    def test_denial_raises_forbidden(self, other_instructor):
        with pytest.raises(ForbiddenException) as exc_info:
            require(other_instructor, Action.DELETE, course_ref())
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "You can only modify courses you created"

    def test_not_enrolled_message(self, student):
        with pytest.raises(ForbiddenException) as exc_info:
            require(student, Action.READ, course_ref(ResourceKind.MATERIAL))
        assert exc_info.value.detail == "You must be enrolled in this course to access it"
