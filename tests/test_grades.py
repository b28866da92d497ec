import pytest
from fastapi.testclient import TestClient

from gradevault.core.settings import Settings
from gradevault.main import create_app
from gradevault.models.enrollment import Enrollment
from gradevault.models.grade import Grade
from gradevault.models.student import Student


@pytest.fixture
def app(tmp_path):
    application = create_app(Settings(database_url=f"sqlite:///{tmp_path / 'grades.db'}", secret_key="test-secret"))
    yield application
    application.state.engine.dispose()


def register_and_login(client: TestClient, email: str, role: str = "Teacher", first: str = "Grace", last: str = "Hopper") -> str:
    client.post(
        "/api/auth/register",
        json={
            "email": email,
            "firstName": first,
            "lastName": last,
            "password": "Secret123!",
            "confirmPassword": "Secret123!",
            "role": role,
        },
    )
    return client.post("/api/auth/login", json={"email": email, "password": "Secret123!"}).json()["token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def setup(app):
    client = TestClient(app)
    teacher = register_and_login(client, "teacher@example.com")
    student = register_and_login(client, "sam@example.com", role="Student", first="Samuel", last="Okafor")
    with app.state.session_factory() as db:
        student_id = db.query(Student).filter(Student.email == "sam@example.com").first().id
    class_id = client.post("/api/classes", json={"name": "Physics"}, headers=auth(teacher)).json()["id"]
    client.post(f"/api/classes/{class_id}/students/{student_id}", headers=auth(teacher))
    return {"client": client, "teacher": teacher, "student": student, "student_id": student_id, "class_id": class_id}


def post_grade(setup, value: int, student_id: int | None = None, class_id: int | None = None):
    return setup["client"].post(
        "/api/grades",
        json={
            "studentId": student_id or setup["student_id"],
            "classId": class_id or setup["class_id"],
            "value": value,
        },
        headers=auth(setup["teacher"]),
    )


def test_create_grade(setup):
    resp = post_grade(setup, 8)
    assert resp.status_code == 201
    data = resp.json()
    assert data["value"] == 8
    assert data["studentId"] == setup["student_id"]
    assert data["studentName"] == "Samuel Okafor"
    assert data["classId"] == setup["class_id"]
    assert data["className"] == "Physics"
    assert data["dateAssigned"]


@pytest.mark.parametrize("value", [0, 11, -3])
def test_create_grade_out_of_range_is_rejected(app, setup, value):
    resp = post_grade(setup, value)
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_grade_value"
    with app.state.session_factory() as db:
        assert db.query(Grade).count() == 0


@pytest.mark.parametrize("value", [1, 10])
def test_create_grade_accepts_range_bounds(setup, value):
    assert post_grade(setup, value).status_code == 201


def test_create_grade_for_unenrolled_student(setup):
    client = setup["client"]
    register_and_login(client, "late@example.com", role="Student", first="Laura", last="Perez")
    available = client.get(f"/api/classes/{setup['class_id']}/available-students", headers=auth(setup["teacher"])).json()
    resp = post_grade(setup, 7, student_id=available[0]["id"])
    assert resp.status_code == 400
    assert resp.json()["error"] == "student_not_enrolled"


def test_create_grade_for_unknown_student(setup):
    resp = post_grade(setup, 7, student_id=4242)
    assert resp.status_code == 400
    assert resp.json()["error"] == "unknown_student"


def test_create_grade_in_foreign_class(setup):
    client = setup["client"]
    other = register_and_login(client, "other@example.com", first="Katherine", last="Johnson")
    resp = client.post(
        "/api/grades",
        json={"studentId": setup["student_id"], "classId": setup["class_id"], "value": 5},
        headers=auth(other),
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found_or_forbidden"


def test_grade_round_trip(setup):
    client, teacher = setup["client"], setup["teacher"]
    created = post_grade(setup, 7).json()
    grade_id = created["id"]
    assert client.get(f"/api/grades/{grade_id}", headers=auth(teacher)).json()["value"] == 7

    resp = client.put(f"/api/grades/{grade_id}", json={"value": 9}, headers=auth(teacher))
    assert resp.status_code == 200

    fetched = client.get(f"/api/grades/{grade_id}", headers=auth(teacher)).json()
    assert fetched["value"] == 9
    assert fetched["id"] == grade_id
    assert fetched["studentId"] == created["studentId"]
    assert fetched["classId"] == created["classId"]
    assert fetched["dateAssigned"] == created["dateAssigned"]


def test_update_grade_out_of_range(setup):
    client, teacher = setup["client"], setup["teacher"]
    grade_id = post_grade(setup, 7).json()["id"]
    resp = client.put(f"/api/grades/{grade_id}", json={"value": 12}, headers=auth(teacher))
    assert resp.status_code == 400
    assert client.get(f"/api/grades/{grade_id}", headers=auth(teacher)).json()["value"] == 7


def test_update_and_delete_by_other_teacher_forbidden(setup):
    client = setup["client"]
    grade_id = post_grade(setup, 7).json()["id"]
    other = register_and_login(client, "other@example.com", first="Katherine", last="Johnson")

    assert client.put(f"/api/grades/{grade_id}", json={"value": 1}, headers=auth(other)).status_code == 403
    assert client.delete(f"/api/grades/{grade_id}", headers=auth(other)).status_code == 403
    assert client.get(f"/api/grades/{grade_id}", headers=auth(setup["teacher"])).json()["value"] == 7


def test_missing_grade_returns_404(setup):
    client, teacher = setup["client"], setup["teacher"]
    assert client.put("/api/grades/999", json={"value": 5}, headers=auth(teacher)).status_code == 404
    assert client.delete("/api/grades/999", headers=auth(teacher)).status_code == 404


def test_delete_grade(setup):
    client, teacher = setup["client"], setup["teacher"]
    grade_id = post_grade(setup, 4).json()["id"]
    assert client.delete(f"/api/grades/{grade_id}", headers=auth(teacher)).status_code == 204
    assert client.get(f"/api/grades/{grade_id}", headers=auth(teacher)).status_code == 404


def test_student_lists_own_grades(setup):
    client = setup["client"]
    post_grade(setup, 6)
    post_grade(setup, 9)

    mine = client.get("/api/grades/my-grades", headers=auth(setup["student"])).json()
    assert sorted(g["value"] for g in mine) == [6, 9]
    assert all(g["studentId"] == setup["student_id"] for g in mine)

    in_class = client.get(f"/api/grades/class/{setup['class_id']}", headers=auth(setup["student"])).json()
    assert len(in_class) == 2


def test_student_cannot_see_other_students_grades(setup):
    client = setup["client"]
    grade_id = post_grade(setup, 6).json()["id"]
    nosy = register_and_login(client, "nosy@example.com", role="Student", first="Norman", last="Bates")

    assert client.get(f"/api/grades/class/{setup['class_id']}", headers=auth(nosy)).status_code == 403
    assert client.get(f"/api/grades/{grade_id}", headers=auth(nosy)).status_code == 404
    assert client.get("/api/grades/my-grades", headers=auth(nosy)).json() == []


def test_student_only_sees_own_grades_in_shared_class(app, setup):
    client, teacher = setup["client"], setup["teacher"]
    classmate = register_and_login(client, "mate@example.com", role="Student", first="Marta", last="Silva")
    with app.state.session_factory() as db:
        mate_id = db.query(Student).filter(Student.email == "mate@example.com").first().id
    client.post(f"/api/classes/{setup['class_id']}/students/{mate_id}", headers=auth(teacher))
    post_grade(setup, 5)
    post_grade(setup, 10, student_id=mate_id)

    grades = client.get(f"/api/grades/class/{setup['class_id']}", headers=auth(classmate)).json()
    assert [g["value"] for g in grades] == [10]
    assert len(client.get(f"/api/grades/class/{setup['class_id']}", headers=auth(teacher)).json()) == 2


def test_students_cannot_modify_grades(setup):
    client = setup["client"]
    grade_id = post_grade(setup, 6).json()["id"]
    student = auth(setup["student"])
    assert client.put(f"/api/grades/{grade_id}", json={"value": 10}, headers=student).status_code == 403
    assert client.delete(f"/api/grades/{grade_id}", headers=student).status_code == 403


def test_deleting_class_cascades_to_enrollments_and_grades(app, setup):
    client, teacher, class_id = setup["client"], setup["teacher"], setup["class_id"]
    grade_id = post_grade(setup, 8).json()["id"]

    assert client.delete(f"/api/classes/{class_id}", headers=auth(teacher)).status_code == 204

    assert client.get(f"/api/grades/{grade_id}", headers=auth(teacher)).status_code == 404
    assert client.get(f"/api/classes/{class_id}/students", headers=auth(teacher)).status_code == 404
    with app.state.session_factory() as db:
        assert db.query(Enrollment).filter(Enrollment.class_id == class_id).count() == 0
        assert db.query(Grade).filter(Grade.class_id == class_id).count() == 0
        assert db.get(Student, setup["student_id"]) is not None


def test_oversized_ids_fail_validation(setup):
    client, teacher = setup["client"], setup["teacher"]
    resp = post_grade(setup, 7, student_id=10**20)
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"
    assert post_grade(setup, 7, class_id=10**20).status_code == 400
    assert client.get("/api/grades/100000000000000000000", headers=auth(teacher)).status_code == 400
    assert client.get("/api/grades/class/100000000000000000000", headers=auth(teacher)).status_code == 400
