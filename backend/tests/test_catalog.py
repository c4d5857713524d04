import uuid

from elearning.models import Course, CourseType, UserRole


def test_employee_cannot_author_courses(client, learner):
    _, headers = learner
    r = client.post("/courses", json={"title": "Hygiene basics", "type": "hygiene"}, headers=headers)
    assert r.status_code == 403
    assert r.json()["error_code"] == "forbidden"


def test_course_create_validates_payload(client, admin):
    _, headers = admin
    r = client.post("/courses", json={"title": "No type"}, headers=headers)
    assert r.status_code == 400
    body = r.json()
    assert body["error_code"] == "validation_error"
    assert any(e["field"] == "type" for e in body["errors"])


def test_admin_updates_own_course_only(client, make_course, make_user):
    course = make_course()
    _, foreign = make_user(role=UserRole.admin, company_id=uuid.uuid4())

    r = client.put(f"/courses/{course.id}", json={"title": "Renamed"}, headers=foreign)
    assert r.status_code == 403


def test_admin_update_course(client, make_course, admin):
    course = make_course()
    r = client.put(f"/courses/{course.id}", json={"title": "Renamed", "level": "advanced"}, headers=admin[1])
    assert r.status_code == 200
    assert r.json()["title"] == "Renamed"
    assert r.json()["level"] == "advanced"


def test_lesson_order_is_unique_per_course(client, make_course, admin):
    course = make_course(lessons=2)
    r = client.post(
        f"/courses/{course.id}/lessons",
        json={"title": "Duplicate", "order": 1},
        headers=admin[1],
    )
    assert r.status_code == 409
    assert r.json()["error_code"] == "lesson_order_taken"


def test_lessons_are_listed_in_order(client, make_course, admin, learner):
    course = make_course(lessons=0, with_quiz=False)
    for order in (3, 1, 2):
        client.post(
            f"/courses/{course.id}/lessons",
            json={"title": f"Lesson {order}", "order": order},
            headers=admin[1],
        )

    _, headers = learner
    client.post(f"/courses/{course.id}/enroll", headers=headers)
    r = client.get(f"/courses/{course.id}/lessons", headers=headers)
    assert r.status_code == 200
    assert [x["order"] for x in r.json()] == [1, 2, 3]


def test_catalog_reads_require_enrollment(client, make_course, learner):
    course = make_course()
    _, headers = learner

    assert client.get(f"/courses/{course.id}", headers=headers).status_code == 403
    assert client.get(f"/lessons/{course.lesson_ids[0]}", headers=headers).status_code == 403

    client.post(f"/courses/{course.id}/enroll", headers=headers)
    r = client.get(f"/courses/{course.id}", headers=headers)
    assert r.status_code == 200
    assert len(r.json()["lessons"]) == 2
    assert len(r.json()["quizzes"]) == 1


def test_learner_course_list(client, make_course, learner, make_user):
    published = make_course()
    draft = make_course(published=False)
    _, headers = learner
    client.post(f"/courses/{published.id}/enroll", headers=headers)

    r = client.get("/courses", headers=headers)
    assert r.status_code == 200
    by_id = {c["id"]: c for c in r.json()}
    assert by_id[published.id]["enrolled"] is True
    assert draft.id not in by_id

    _, outsider = make_user(company_id=uuid.uuid4())
    ids = {c["id"] for c in client.get("/courses", headers=outsider).json()}
    assert published.id not in ids


def test_learner_list_keeps_enrolled_courses_and_shared_catalog(client, db, make_course, learner, admin):
    course = make_course()
    _, headers = learner
    assert client.post(f"/courses/{course.id}/enroll", headers=headers).status_code == 201
    r = client.put(f"/courses/{course.id}", json={"is_published": False}, headers=admin[1])
    assert r.status_code == 200

    shared = Course(company_id=None, title="Cold chain basics", type=CourseType.hygiene, is_published=True)
    hidden = Course(company_id=None, title="Unreleased module", type=CourseType.hygiene, is_published=False)
    db.add_all([shared, hidden])
    db.commit()

    by_id = {c["id"]: c for c in client.get("/courses", headers=headers).json()}
    assert by_id[course.id]["enrolled"] is True
    assert by_id[str(shared.id)]["enrolled"] is False
    assert str(hidden.id) not in by_id


def test_quiz_lesson_must_belong_to_course(client, make_course, admin):
    course = make_course()
    other = make_course()
    r = client.post(
        f"/courses/{course.id}/quizzes",
        json={"title": "Lesson check", "lesson_id": other.lesson_ids[0]},
        headers=admin[1],
    )
    assert r.status_code == 400


def test_lesson_detail_includes_lesson_quiz(client, make_course, admin):
    course = make_course()
    lesson_id = course.lesson_ids[0]
    r = client.post(
        f"/courses/{course.id}/quizzes",
        json={"title": "Lesson check", "lesson_id": lesson_id},
        headers=admin[1],
    )
    assert r.status_code == 201

    r = client.get(f"/lessons/{lesson_id}", headers=admin[1])
    assert r.status_code == 200
    assert r.json()["quiz"]["lesson_id"] == lesson_id


def test_add_option_to_question(client, make_course, admin, learner):
    course = make_course(questions=(1,))
    question_id = course.questions[0]["id"]

    r = client.post(
        f"/questions/{question_id}/options",
        json={"text": "maybe", "is_correct": False, "order": 2},
        headers=admin[1],
    )
    assert r.status_code == 201
    assert r.json()["question_id"] == question_id

    r = client.post(f"/questions/{question_id}/options", json={"text": "x"}, headers=learner[1])
    assert r.status_code == 403
