import asyncio

import pytest
from fastapi.testclient import TestClient

from gradevault.core.errors import ValidationError
from gradevault.core.settings import Settings
from gradevault.main import create_app
from gradevault.models.grade import Grade
from gradevault.models.student import Student
from gradevault.services import bulk_import
from gradevault.services.bulk_import import parse_grade_rows


@pytest.fixture
def app(tmp_path):
    application = create_app(Settings(database_url=f"sqlite:///{tmp_path / 'bulk.db'}", secret_key="test-secret"))
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
    class_id = client.post("/api/classes", json={"name": "History"}, headers=auth(teacher)).json()["id"]
    ids = []
    for email, first in (("one@example.com", "Olivia"), ("two@example.com", "Thomas")):
        register_and_login(client, email, role="Student", first=first, last="Carter")
        with app.state.session_factory() as db:
            student_id = db.query(Student).filter(Student.email == email).first().id
        client.post(f"/api/classes/{class_id}/students/{student_id}", headers=auth(teacher))
        ids.append(student_id)
    return {"client": client, "teacher": teacher, "class_id": class_id, "ids": ids}


def upload(setup, content: str, token: str | None = None, class_id: int | None = None):
    return setup["client"].post(
        "/api/grades/bulk-upload",
        files={"file": ("grades.csv", content.encode("utf-8"), "text/csv")},
        data={"classId": str(class_id or setup["class_id"])},
        headers=auth(token or setup["teacher"]),
    )


def grade_count(app) -> int:
    with app.state.session_factory() as db:
        return db.query(Grade).count()


def test_bulk_upload_imports_all_rows(app, setup):
    first, second = setup["ids"]
    resp = upload(setup, f"StudentId,Value\n{first},8\n{second},6\n{first},10\n")
    assert resp.status_code == 200
    assert resp.json() == {"importedCount": 3}
    assert grade_count(app) == 3

    grades = setup["client"].get(f"/api/grades/class/{setup['class_id']}", headers=auth(setup["teacher"])).json()
    assert sorted(g["value"] for g in grades) == [6, 8, 10]


def test_one_bad_row_rejects_whole_file(app, setup):
    first, second = setup["ids"]
    resp = upload(setup, f"StudentId,Value\n{first},8\n{second},11\n")
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "bulk_import_rejected"
    assert body["errors"] == ["Row 3: Value 11 must be between 1 and 10."]
    assert grade_count(app) == 0

    corrected = upload(setup, f"StudentId,Value\n{first},8\n{second},10\n")
    assert corrected.status_code == 200
    assert corrected.json()["importedCount"] == 2
    assert grade_count(app) == 2


def test_all_row_errors_are_reported(app, setup):
    first, _ = setup["ids"]
    register_and_login(setup["client"], "loner@example.com", role="Student", first="Lonnie", last="Walsh")
    with app.state.session_factory() as db:
        loner = db.query(Student).filter(Student.email == "loner@example.com").first().id

    resp = upload(setup, f"StudentId,Value\n9999,5\n{loner},5\n{first},0\nabc,4\n")
    assert resp.status_code == 400
    assert resp.json()["errors"] == [
        "Row 2: Student 9999 does not exist.",
        f"Row 3: Student {loner} is not enrolled in this class.",
        "Row 4: Value 0 must be between 1 and 10.",
        "Row 5: StudentId 'abc' is not a whole number.",
    ]
    assert grade_count(app) == 0


def test_header_variants_are_accepted(setup):
    first, second = setup["ids"]
    resp = upload(setup, f"student_id, value\n{first}, 7\n{second}, 9\n")
    assert resp.status_code == 200
    assert resp.json()["importedCount"] == 2


def test_empty_file_is_rejected(setup):
    resp = upload(setup, "")
    assert resp.status_code == 400
    assert resp.json()["error"] == "empty_payload"


def test_header_only_file_is_rejected(setup):
    resp = upload(setup, "StudentId,Value\n")
    assert resp.status_code == 400
    assert resp.json()["error"] == "empty_payload"


def test_missing_columns_are_rejected(setup):
    resp = upload(setup, "Student,Score\n1,5\n")
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


def test_upload_to_foreign_class_returns_404(app, setup):
    other = register_and_login(setup["client"], "other@example.com", first="Katherine", last="Johnson")
    first, _ = setup["ids"]
    resp = upload(setup, f"StudentId,Value\n{first},5\n", token=other)
    assert resp.status_code == 404
    assert grade_count(app) == 0


def test_students_cannot_bulk_upload(setup):
    student = setup["client"].post(
        "/api/auth/login", json={"email": "one@example.com", "password": "Secret123!"}
    ).json()["token"]
    resp = upload(setup, "StudentId,Value\n1,5\n", token=student)
    assert resp.status_code == 403


def test_parse_grade_rows_skips_blank_lines_and_counts_header():
    rows = parse_grade_rows(b"StudentId,Value\n4,7\n,\n5,x\n")
    assert [row.line for row in rows] == [2, 4]
    assert rows[0].student_id == 4 and rows[0].value == 7 and rows[0].errors == []
    assert rows[1].value is None
    assert rows[1].errors == ["Row 4: Value 'x' is not a whole number."]


def test_parse_grade_rows_requires_columns():
    with pytest.raises(ValidationError):
        parse_grade_rows(b"Name,Score\nAda,9\n")


def test_oversized_student_id_is_a_row_error(app, setup):
    first, _ = setup["ids"]
    resp = upload(setup, f"StudentId,Value\n{first},5\n100000000000000000000,5\n")
    assert resp.status_code == 400
    assert resp.json()["errors"] == ["Row 3: Student 100000000000000000000 does not exist."]
    assert grade_count(app) == 0


def test_oversized_class_id_fails_validation(setup):
    resp = upload(setup, "StudentId,Value\n1,5\n", class_id=10**20)
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


def test_import_runs_outside_the_event_loop(monkeypatch, setup):
    seen = {}
    real_import = bulk_import.import_grades

    def recording_import(*args, **kwargs):
        try:
            asyncio.get_running_loop()
            seen["on_loop"] = True
        except RuntimeError:
            seen["on_loop"] = False
        return real_import(*args, **kwargs)

    monkeypatch.setattr(bulk_import, "import_grades", recording_import)
    first, second = setup["ids"]
    resp = upload(setup, f"StudentId,Value\n{first},7\n{second},8\n")
    assert resp.status_code == 200
    assert seen == {"on_loop": False}
