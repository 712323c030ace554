import json
from datetime import datetime, timedelta, timezone
from io import BytesIO

from openpyxl import load_workbook

from syllabuser.core.config import settings
from syllabuser.core.database import SessionLocal
from syllabuser.models import Admin

API = "/api/v1"

QUESTIONS = [
    {"question": "Unit of force?", "options": ["Newton", "Joule", "Watt", "Pascal"], "answer": "Option A"},
    {"question": "Speed of light?", "options": ["3e8 m/s", "3e6 m/s", "1e8 m/s", "9e8 m/s"], "answer": "3e8 m/s"},
    {
        "question": "g on Earth?",
        "options": ["1.6", "9.8", "3.7", "24.8"],
        "answer": "B",
        "explanation": "Roughly 9.8 m/s^2 at sea level",
    },
]


def _register(client, name="Rahim Uddin", email="rahim@example.com", password="secret123", **extra):
    response = client.post(
        f"{API}/auth/register",
        json={"name": name, "email": email, "password": password, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()["access_token"]


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _user_id(client, token):
    return client.get(f"{API}/auth/me", headers=_auth(token)).json()["user"]["id"]


def _make_admin(client, token):
    user_id = _user_id(client, token)
    with SessionLocal() as session:
        session.add(Admin(id=user_id, user_id=user_id))
        session.commit()
    return user_id


def _exam_payload(course_id, questions=QUESTIONS, **overrides):
    now = datetime.now(timezone.utc)
    payload = {
        "title": "Physics Model Test 1",
        "course_id": course_id,
        "duration_minutes": 30,
        "start_time": (now - timedelta(minutes=5)).isoformat(),
        "end_time": (now + timedelta(hours=2)).isoformat(),
        "negative_mark": 0.25,
        "questions": questions,
    }
    payload.update(overrides)
    return payload


def _setup_exam(client):
    """Admin with a course and a three-question exam; student enrolled."""
    admin = _register(client, name="Admin User", email="admin@example.com")
    _make_admin(client, admin)
    student = _register(client)

    course = client.post(
        f"{API}/courses",
        json={"title": "HSC Physics", "price": "1500", "description": "Full physics syllabus"},
        headers=_auth(admin),
    ).json()
    exam = client.post(
        f"{API}/exams",
        json=_exam_payload(course["id"], questions=json.dumps(QUESTIONS)),
        headers=_auth(admin),
    ).json()["exam"]
    client.post(f"{API}/students/me/enrollments", json={"course_id": course["id"]}, headers=_auth(student))
    return admin, student, course, exam


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_creates_profile_and_signs_in(client):
    token = _register(client, roll="1021", institution="Dhaka College")

    response = client.get(f"{API}/auth/me", headers=_auth(token))

    assert response.status_code == 200
    body = response.json()
    assert body["is_admin"] is False
    assert body["profile"]["id"] == body["user"]["id"]
    assert body["profile"]["roll"] == "1021"
    assert body["profile"]["enrolled_courses"] == []


def test_duplicate_registration_conflicts(client):
    _register(client)
    response = client.post(
        f"{API}/auth/register",
        json={"name": "Someone Else", "email": "RAHIM@example.com", "password": "secret123"},
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_login_with_email_and_phone(client):
    _register(client)
    _register(
        client,
        name="Phone User",
        email=f"user_8801712345678@{settings.PHONE_LOGIN_DOMAIN}",
        phone="8801712345678",
    )

    by_email = client.post(f"{API}/auth/login", json={"email": "rahim@example.com", "password": "secret123"})
    by_phone = client.post(f"{API}/auth/login", json={"identifier": "+8801712345678", "password": "secret123"})
    wrong = client.post(f"{API}/auth/login", json={"email": "rahim@example.com", "password": "wrong-pass"})

    assert by_email.status_code == 200
    assert by_phone.status_code == 200
    assert wrong.status_code == 401
    assert wrong.json()["error"]["code"] == "AUTH_FAILED"


def test_logout_revokes_token(client):
    token = _register(client)

    assert client.post(f"{API}/auth/logout", headers=_auth(token)).status_code == 200
    response = client.get(f"{API}/auth/me", headers=_auth(token))

    assert response.status_code == 401


def test_logout_all_revokes_every_session(client):
    first = _register(client)
    second = client.post(
        f"{API}/auth/login", json={"email": "rahim@example.com", "password": "secret123"}
    ).json()["access_token"]

    client.post(f"{API}/auth/logout", params={"scope": "all"}, headers=_auth(first))

    assert client.get(f"{API}/auth/me", headers=_auth(second)).status_code == 401


def test_change_password(client):
    token = _register(client)
    response = client.post(
        f"{API}/auth/change-password",
        json={"current_password": "secret123", "new_password": "better-secret"},
        headers=_auth(token),
    )
    assert response.status_code == 200

    login = client.post(f"{API}/auth/login", json={"email": "rahim@example.com", "password": "better-secret"})
    assert login.status_code == 200


def test_protected_routes_require_auth_and_admin(client):
    token = _register(client)

    assert client.get(f"{API}/auth/me").status_code == 422
    assert client.get(f"{API}/auth/me", headers={"Authorization": "Token x"}).status_code == 401
    forbidden = client.post(
        f"{API}/courses",
        json={"title": "Nope", "price": "0", "description": "x"},
        headers=_auth(token),
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "PERMISSION_DENIED"


def test_catalogue_and_enrollment(client):
    admin = _register(client, name="Admin User", email="admin@example.com")
    _make_admin(client, admin)
    student = _register(client)

    category = client.post(
        f"{API}/courses/categories", json={"name": "HSC 26", "slug": "hsc-26"}, headers=_auth(admin)
    ).json()
    course = client.post(
        f"{API}/courses",
        json={
            "title": "HSC Chemistry",
            "price": "1200",
            "description": "Organic and inorganic",
            "features": ["Live class", "Model tests"],
            "category_id": category["id"],
        },
        headers=_auth(admin),
    ).json()

    catalogue = client.get(f"{API}/courses", params={"category_id": category["id"]}).json()
    first = client.post(f"{API}/students/me/enrollments", json={"course_id": course["id"]}, headers=_auth(student))
    again = client.post(f"{API}/students/me/enrollments", json={"course_id": course["id"]}, headers=_auth(student))
    mine = client.get(f"{API}/students/me/courses", headers=_auth(student)).json()
    students = client.get(f"{API}/students", params={"search": "rahim"}, headers=_auth(admin)).json()

    assert [c["id"] for c in catalogue] == [course["id"]]
    assert first.json()["enrolled_courses"] == [course["id"]]
    assert again.json()["enrolled_courses"] == [course["id"]]
    assert [c["title"] for c in mine] == ["HSC Chemistry"]
    assert [s["email"] for s in students] == ["rahim@example.com"]


def test_malformed_question_batch_writes_nothing(client):
    admin = _register(client, name="Admin User", email="admin@example.com")
    _make_admin(client, admin)
    course = client.post(
        f"{API}/courses",
        json={"title": "HSC Physics", "price": "1500", "description": "Physics"},
        headers=_auth(admin),
    ).json()
    bad = QUESTIONS[:2] + [{"question": "Broken", "options": ["a", "b", "c", "d"], "answer": "Option Z"}]

    response = client.post(f"{API}/exams", json=_exam_payload(course["id"], questions=bad), headers=_auth(admin))
    exams = client.get(f"{API}/exams/admin", headers=_auth(admin)).json()

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "MALFORMED_INPUT"
    assert error["details"]["errors"][0]["index"] == 2
    assert exams == []


def test_exam_window_must_be_ordered(client):
    admin = _register(client, name="Admin User", email="admin@example.com")
    _make_admin(client, admin)
    now = datetime.now(timezone.utc)

    response = client.post(
        f"{API}/exams",
        json=_exam_payload(
            "any-course",
            start_time=now.isoformat(),
            end_time=(now - timedelta(hours=1)).isoformat(),
        ),
        headers=_auth(admin),
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_exam_authoring_and_paper(client):
    admin, student, course, exam = _setup_exam(client)

    questions = client.get(f"{API}/exams/{exam['id']}/questions", headers=_auth(admin)).json()
    paper = client.get(f"{API}/exams/{exam['id']}/paper", headers=_auth(admin)).json()
    solutions = client.get(
        f"{API}/exams/{exam['id']}/paper", params={"mode": "solutions"}, headers=_auth(admin)
    ).json()
    student_list = client.get(f"{API}/exams", headers=_auth(student)).json()

    assert exam["total_questions"] == 3
    assert exam["course_name"] == "HSC Physics"
    assert [q["correct_option"] for q in questions] == [1, 1, 2]
    assert [q["text"] for q in questions] == [q["question"] for q in QUESTIONS]
    assert all(q["correct_option"] is None for q in paper["questions"])
    assert [q["correct_option"] for q in solutions["questions"]] == [1, 1, 2]
    assert solutions["questions"][2]["explanation"] == "Roughly 9.8 m/s^2 at sea level"
    assert [e["id"] for e in student_list] == [exam["id"]]


def test_delete_exam_removes_questions(client):
    admin, _, _, exam = _setup_exam(client)

    response = client.delete(f"{API}/exams/{exam['id']}", headers=_auth(admin))

    assert response.status_code == 200
    assert client.get(f"{API}/exams/{exam['id']}", headers=_auth(admin)).status_code == 404


def test_unenrolled_student_cannot_start_exam(client):
    _, _, _, exam = _setup_exam(client)
    outsider = _register(client, name="Outsider", email="outsider@example.com")

    response = client.post(f"{API}/exam-sessions", json={"exam_id": exam["id"]}, headers=_auth(outsider))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ACCESS_DENIED"


def test_missing_exam_is_unavailable(client):
    student = _register(client)
    response = client.post(f"{API}/exam-sessions", json={"exam_id": "missing"}, headers=_auth(student))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "EXAM_UNAVAILABLE"


def test_take_exam_submit_and_review(client):
    admin, student, _, exam = _setup_exam(client)

    started = client.post(f"{API}/exam-sessions", json={"exam_id": exam["id"]}, headers=_auth(student))
    assert started.status_code == 201
    state = started.json()
    session_id = state["session_id"]
    assert state["status"] == "ACTIVE"
    assert state["total_questions"] == 3
    assert 0 < state["remaining_seconds"] <= 30 * 60
    assert "correct_option" not in state["current_question"]

    first_id = state["current_question"]["id"]
    client.put(
        f"{API}/exam-sessions/{session_id}/answers",
        json={"question_id": first_id, "option_index": 1},
        headers=_auth(student),
    )
    state = client.post(f"{API}/exam-sessions/{session_id}/next", headers=_auth(student)).json()
    state = client.put(
        f"{API}/exam-sessions/{session_id}/answers",
        json={"question_id": state["current_question"]["id"], "option_index": 4},
        headers=_auth(student),
    ).json()
    assert state["answered_count"] == 2

    blocked = client.post(
        f"{API}/exam-sessions/{session_id}/integrity-events",
        json={"type": "keydown", "key": "c", "ctrl_key": True},
        headers=_auth(student),
    ).json()
    assert blocked == {"suppress": True, "blocked_count": 1}

    submitted = client.post(f"{API}/exam-sessions/{session_id}/submit", headers=_auth(student)).json()
    repeat = client.post(f"{API}/exam-sessions/{session_id}/submit", headers=_auth(student)).json()

    assert submitted["accepted"] is True
    assert submitted["state"]["status"] == "FINISHED"
    assert submitted["state"]["redirect_to"] == "/dashboard/results"
    assert repeat["accepted"] is False

    results = client.get(f"{API}/results/me", headers=_auth(student)).json()
    assert len(results) == 1
    result = results[0]
    assert (result["correct_answers"], result["wrong_answers"], result["unanswered"]) == (1, 1, 1)
    assert result["net_mark"] == 0.75
    assert result["student_name"] == "Rahim Uddin"

    review = client.get(f"{API}/results/{result['id']}", headers=_auth(student)).json()
    assert [q["selected_option"] for q in review["questions"]] == [1, 4, None]
    assert [q["is_correct"] for q in review["questions"]] == [True, False, False]

    ranked = client.get(f"{API}/results", params={"exam_id": exam["id"]}, headers=_auth(admin)).json()
    assert [r["id"] for r in ranked] == [result["id"]]

    export = client.get(f"{API}/results/export", params={"exam_id": exam["id"]}, headers=_auth(admin))
    assert export.status_code == 200
    assert "attachment" in export.headers["content-disposition"]
    sheet = load_workbook(BytesIO(export.content)).active
    values = [cell.value for row in sheet.iter_rows() for cell in row]
    assert "Rahim Uddin" in values


def test_final_submit_requires_last_question(client):
    _, student, _, exam = _setup_exam(client)
    session_id = client.post(
        f"{API}/exam-sessions", json={"exam_id": exam["id"]}, headers=_auth(student)
    ).json()["session_id"]

    early = client.post(
        f"{API}/exam-sessions/{session_id}/submit", json={"trigger": "FINAL_SUBMIT"}, headers=_auth(student)
    )
    assert early.status_code == 409
    assert early.json()["error"]["code"] == "SESSION_STATE"

    state = client.put(
        f"{API}/exam-sessions/{session_id}/cursor", json={"index": 2}, headers=_auth(student)
    ).json()
    assert state["at_last_question"] is True
    out_of_range = client.put(
        f"{API}/exam-sessions/{session_id}/cursor", json={"index": 3}, headers=_auth(student)
    )
    assert out_of_range.status_code == 422
    final = client.post(
        f"{API}/exam-sessions/{session_id}/submit", json={"trigger": "FINAL_SUBMIT"}, headers=_auth(student)
    )
    assert final.json()["accepted"] is True


def test_final_submit_after_submit_is_ignored(client):
    _, student, _, exam = _setup_exam(client)
    session_id = client.post(
        f"{API}/exam-sessions", json={"exam_id": exam["id"]}, headers=_auth(student)
    ).json()["session_id"]

    submitted = client.post(f"{API}/exam-sessions/{session_id}/submit", headers=_auth(student)).json()
    duplicate = client.post(
        f"{API}/exam-sessions/{session_id}/submit", json={"trigger": "FINAL_SUBMIT"}, headers=_auth(student)
    )

    assert submitted["state"]["submitted_via"] == "SUBMIT"
    assert duplicate.status_code == 200
    assert duplicate.json()["accepted"] is False
    assert duplicate.json()["state"]["current_index"] == 0
    assert len(client.get(f"{API}/results/me", headers=_auth(student)).json()) == 1


def test_openapi_lists_served_schemas_only(client):
    schemas = client.get(f"{API}/openapi.json").json()["components"]["schemas"]

    assert "MessageResponse" in schemas
    assert "ExamSessionState" in schemas
    assert not {"SuccessResponse", "ErrorResponse", "ErrorDetail"} & set(schemas)


def test_sessions_and_results_are_private(client):
    _, student, _, exam = _setup_exam(client)
    other = _register(client, name="Karim Ahmed", email="karim@example.com")
    session_id = client.post(
        f"{API}/exam-sessions", json={"exam_id": exam["id"]}, headers=_auth(student)
    ).json()["session_id"]

    assert client.get(f"{API}/exam-sessions/{session_id}", headers=_auth(other)).status_code == 404

    client.post(f"{API}/exam-sessions/{session_id}/submit", headers=_auth(student))
    result_id = client.get(f"{API}/results/me", headers=_auth(student)).json()[0]["id"]

    assert client.get(f"{API}/results/{result_id}", headers=_auth(other)).status_code == 404
    assert client.get(f"{API}/results", headers=_auth(student)).status_code == 403


def test_leaving_the_exam_closes_the_session(client):
    _, student, _, exam = _setup_exam(client)
    session_id = client.post(
        f"{API}/exam-sessions", json={"exam_id": exam["id"]}, headers=_auth(student)
    ).json()["session_id"]

    assert client.delete(f"{API}/exam-sessions/{session_id}", headers=_auth(student)).status_code == 200
    assert client.get(f"{API}/results/me", headers=_auth(student)).json() == []


def test_routines(client):
    admin = _register(client, name="Admin User", email="admin@example.com")
    _make_admin(client, admin)
    student = _register(client)
    course = client.post(
        f"{API}/courses",
        json={"title": "HSC Biology", "price": "900", "description": "Biology"},
        headers=_auth(admin),
    ).json()

    created = client.post(
        f"{API}/routines",
        json={"course_id": course["id"], "date": "Sunday", "topic": "Cell division", "time": "8 PM"},
        headers=_auth(admin),
    )
    assert created.status_code == 201
    routine = created.json()
    assert routine["course_name"] == "HSC Biology"

    updated = client.patch(f"{API}/routines/{routine['id']}", json={"topic": "Genetics"}, headers=_auth(admin))
    listed = client.get(f"{API}/routines", params={"course_id": course["id"]}, headers=_auth(student)).json()

    assert updated.json()["topic"] == "Genetics"
    assert [r["topic"] for r in listed] == ["Genetics"]
    assert client.delete(f"{API}/routines/{routine['id']}", headers=_auth(student)).status_code == 403
