import pytest

from lms_backend.model import Course, Enrollment, User
from lms_backend.services.credentials import verify_password

REGISTRATION = {
    "first_name": "Grace",
    "last_name": "Hopper",
    "email": "Grace.Hopper@Example.com",
    "password": "cobol1959",
}


@pytest.fixture
def student(make_user):
    return make_user("student")


@pytest.fixture
def other_student(make_user):
    return make_user("student")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def course(make_user, make_course):
    return make_course(make_user("instructor"))


class TestRegistration:

    def test_register_student(self, client, db):
        response = client.post("/users/register", json=REGISTRATION)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "grace.hopper@example.com"
        assert data["role"] == "student"
        assert data["full_name"] == "Grace Hopper"
        assert "password" not in data

        user = db.query(User).filter(User.email == "grace.hopper@example.com").one()
        assert user.password != REGISTRATION["password"]
        assert verify_password(REGISTRATION["password"], user.password)

    def test_register_instructor(self, client):
        response = client.post("/users/register", json={**REGISTRATION, "role": "instructor"})

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "instructor"

    def test_duplicate_email(self, client):
        client.post("/users/register", json=REGISTRATION)
        response = client.post("/users/register", json={**REGISTRATION, "email": "grace.hopper@example.com"})

        assert response.status_code == 400
        assert response.json()["message"] == "User with this email already exists"

    @pytest.mark.parametrize("changes", [
        {"role": "admin"},
        {"password": "short"},
        {"email": "not-an-email"},
        {"first_name": ""},
    ])
    def test_rejected_registrations(self, client, changes):
        response = client.post("/users/register", json={**REGISTRATION, **changes})

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestAuthentication:

    def test_login_stamps_last_login(self, client, db, student):
        response = client.post("/users/login", json={"email": student.email, "password": "secret123"})

        assert response.status_code == 200
        assert response.json()["data"]["id"] == student.id
        db.refresh(student)
        assert student.last_login is not None

    def test_login_wrong_password(self, client, student):
        response = client.post("/users/login", json={"email": student.email, "password": "wrong-password"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_me(self, client, auth, student):
        response = client.get("/users/me", headers=auth(student))

        assert response.status_code == 200
        assert response.json()["data"]["email"] == student.email

    def test_me_requires_credentials(self, client):
        assert client.get("/users/me").status_code == 401

    def test_bad_basic_credentials(self, client, auth, student):
        response = client.get("/users/me", headers=auth(student, "wrong-password"))

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Basic"

    def test_malformed_authorization_header(self, client):
        response = client.get("/users/me", headers={"Authorization": "Bearer token"})

        assert response.status_code == 401


class TestUserDirectory:

    def test_admin_lists_users(self, client, auth, admin, student, other_student):
        response = client.get("/users", params={"role": "student", "limit": 1}, headers=auth(admin))

        assert response.status_code == 200
        assert response.headers["x-total-count"] == "2"
        assert response.json()["count"] == 2
        assert len(response.json()["data"]) == 1

    def test_search(self, client, auth, admin, make_user):
        make_user("student", first_name="Alan", last_name="Turing")

        response = client.get("/users", params={"search": "turing"}, headers=auth(admin))

        assert [u["last_name"] for u in response.json()["data"]] == ["Turing"]

    def test_student_cannot_list(self, client, auth, student):
        response = client.get("/users", headers=auth(student))

        assert response.status_code == 403

    def test_cannot_read_other_account(self, client, auth, student, other_student):
        response = client.get(f"/users/{other_student.id}", headers=auth(student))

        assert response.status_code == 403
        assert response.json()["message"] == "You can only manage your own account"

    def test_missing_user(self, client, auth, admin):
        assert client.get("/users/missing", headers=auth(admin)).status_code == 404


class TestProfileUpdates:

    def test_update_own_profile(self, client, auth, student):
        response = client.put(f"/users/{student.id}", json={"bio": "Hello", "first_name": "Linus"}, headers=auth(student))

        assert response.status_code == 200
        assert response.json()["data"]["bio"] == "Hello"
        assert response.json()["data"]["first_name"] == "Linus"

    def test_password_field_is_rejected(self, client, auth, student):
        response = client.put(f"/users/{student.id}", json={"password": "newpassword"}, headers=auth(student))

        assert response.status_code == 400
        assert response.json()["message"] == "Use /change-password route to update password"

    def test_student_cannot_change_role(self, client, auth, student):
        response = client.put(f"/users/{student.id}", json={"role": "admin"}, headers=auth(student))

        assert response.status_code == 403

    def test_admin_changes_role(self, client, auth, admin, student):
        response = client.put(f"/users/{student.id}", json={"role": "instructor"}, headers=auth(admin))

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "instructor"

    @pytest.mark.parametrize("changes", [
        {"first_name": None},
        {"last_name": None},
        {"email": None},
        {"role": None},
        {"is_active": None},
        {"first_name": ""},
    ])
    def test_malformed_update_is_rejected(self, client, auth, admin, student, changes):
        response = client.put(f"/users/{student.id}", json=changes, headers=auth(admin))

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "constraint" not in response.text.lower()

        data = client.get(f"/users/{student.id}", headers=auth(admin)).json()["data"]
        assert data["first_name"] == "Student"
        assert data["email"] == student.email
        assert data["role"] == "student"
        assert data["is_active"] is True

    def test_email_must_stay_unique(self, client, auth, student, other_student):
        response = client.put(f"/users/{student.id}", json={"email": other_student.email}, headers=auth(student))

        assert response.status_code == 400

    def test_change_password(self, client, auth, student):
        wrong = client.put(
            f"/users/{student.id}/change-password",
            json={"current_password": "not-it", "new_password": "better-secret"},
            headers=auth(student)
        )
        assert wrong.status_code == 400
        assert wrong.json()["message"] == "Current password is incorrect"

        changed = client.put(
            f"/users/{student.id}/change-password",
            json={"current_password": "secret123", "new_password": "better-secret"},
            headers=auth(student)
        )
        assert changed.status_code == 200

        assert client.get("/users/me", headers=auth(student)).status_code == 401
        assert client.get("/users/me", headers=auth(student, "better-secret")).status_code == 200

    def test_deactivate_blocks_authentication(self, client, auth, student):
        response = client.delete(f"/users/{student.id}", headers=auth(student))

        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False

        denied = client.get("/users/me", headers=auth(student))
        assert denied.status_code == 401
        assert denied.json()["message"] == "Account is deactivated"

    def test_permanent_delete_is_admin_only(self, client, auth, student):
        response = client.delete(f"/users/{student.id}/permanent", headers=auth(student))

        assert response.status_code == 403

    def test_permanent_delete_keeps_counters(self, client, auth, db, admin, student, course):
        client.post(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))
        course_id, student_id = course.id, student.id

        response = client.delete(f"/users/{student_id}/permanent", headers=auth(admin))

        assert response.status_code == 200
        assert db.query(User).filter(User.id == student_id).first() is None
        assert db.query(Enrollment).count() == 0
        assert db.query(Course).filter(Course.id == course_id).one().enrolled_students == 0


class TestEnrollmentRoutes:

    def test_enroll(self, client, auth, db, student, course):
        response = client.post(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["progress"] == 0
        assert data["status"] == "enrolled"
        assert data["course"]["id"] == course.id

        db.refresh(course)
        assert course.enrolled_students == 1

    def test_duplicate_enroll(self, client, auth, db, student, course):
        client.post(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))
        response = client.post(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))

        assert response.status_code == 400
        assert response.json()["message"] == "User is already enrolled in this course"
        db.refresh(course)
        assert course.enrolled_students == 1

    def test_cannot_enroll_someone_else(self, client, auth, student, other_student, course):
        response = client.post(f"/users/{other_student.id}/enroll/{course.id}", headers=auth(student))

        assert response.status_code == 403

    def test_admin_enrolls_student(self, client, auth, admin, student, course):
        response = client.post(f"/users/{student.id}/enroll/{course.id}", headers=auth(admin))

        assert response.status_code == 201

    def test_enroll_unknown_course(self, client, auth, student):
        response = client.post(f"/users/{student.id}/enroll/missing", headers=auth(student))

        assert response.status_code == 404

    def test_unenroll(self, client, auth, db, student, course):
        client.post(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))

        response = client.delete(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))

        assert response.status_code == 200
        db.refresh(course)
        assert course.enrolled_students == 0

    def test_unenroll_when_not_enrolled(self, client, auth, student, course):
        response = client.delete(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))

        assert response.status_code == 404
        assert response.json()["message"] == "User is not enrolled in this course"

    def test_progress(self, client, auth, student, course):
        client.post(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))
        path = f"/users/{student.id}/courses/{course.id}/progress"

        rejected = client.put(path, json={"progress": 150}, headers=auth(student))
        assert rejected.status_code == 400
        assert rejected.json()["message"] == "Progress must be between 0 and 100"

        updated = client.put(path, json={"progress": 60, "status": "in-progress"}, headers=auth(student))
        assert updated.status_code == 200
        assert updated.json()["data"]["progress"] == 60
        assert updated.json()["data"]["status"] == "in-progress"

    def test_list_enrolled_courses(self, client, auth, student, course):
        client.post(f"/users/{student.id}/enroll/{course.id}", headers=auth(student))

        response = client.get(f"/users/{student.id}/courses", headers=auth(student))

        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["course"]["name"] == course.name
