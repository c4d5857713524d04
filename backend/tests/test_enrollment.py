import uuid

from sqlalchemy import func, select

from elearning.models import LearningEvent, LearningEventType, UserCourse, UserRole
from elearning.services.enrollment import EnrollmentService


def test_enroll_sets_first_lesson_and_zero_progress(client, make_course, learner):
    course = make_course(lessons=3)
    user, headers = learner

    r = client.post(f"/courses/{course.id}/enroll", headers=headers)
    assert r.status_code == 201
    data = r.json()
    assert data["user_id"] == str(user.id)
    assert data["course_id"] == course.id
    assert data["progress"] == 0
    assert data["current_lesson_id"] == course.lesson_ids[0]
    assert data["completed_at"] is None


def test_enroll_in_course_without_lessons(client, make_course, learner):
    course = make_course(lessons=0, with_quiz=False)
    _, headers = learner

    r = client.post(f"/courses/{course.id}/enroll", headers=headers)
    assert r.status_code == 201
    assert r.json()["current_lesson_id"] is None


def test_duplicate_enroll_conflicts_and_keeps_single_row(client, db, make_course, learner):
    course = make_course()
    user, headers = learner

    first = client.post(f"/courses/{course.id}/enroll", headers=headers)
    assert first.status_code == 201

    second = client.post(f"/courses/{course.id}/enroll", headers=headers)
    assert second.status_code == 409
    body = second.json()
    assert body["ok"] is False
    assert body["error_code"] == "already_enrolled"
    assert body["enrollment"]["id"] == first.json()["id"]

    count = db.scalar(
        select(func.count())
        .select_from(UserCourse)
        .where(UserCourse.user_id == user.id, UserCourse.course_id == uuid.UUID(course.id))
    )
    assert count == 1



def test_concurrent_enroll_resolves_to_conflict(client, db, make_course, learner, monkeypatch):
    course = make_course()
    user, headers = learner
    first = client.post(f"/courses/{course.id}/enroll", headers=headers)
    assert first.status_code == 201

    # The pre-insert lookup misses once, as when a parallel request commits in between.
    real_existing = EnrollmentService._existing
    calls = []

    def _existing(self, course_id):
        calls.append(course_id)
        if len(calls) == 1:
            return None
        return real_existing(self, course_id)

    monkeypatch.setattr(EnrollmentService, "_existing", _existing)

    r = client.post(f"/courses/{course.id}/enroll", headers=headers)
    assert r.status_code == 409
    body = r.json()
    assert body["error_code"] == "already_enrolled"
    assert body["enrollment"]["id"] == first.json()["id"]

    count = db.scalar(
        select(func.count())
        .select_from(UserCourse)
        .where(UserCourse.user_id == user.id, UserCourse.course_id == uuid.UUID(course.id))
    )
    assert count == 1
    assert len(calls) == 2


def test_enroll_writes_learning_event(client, db, make_course, learner):
    course = make_course()
    user, headers = learner

    assert client.post(f"/courses/{course.id}/enroll", headers=headers).status_code == 201

    event = db.scalar(
        select(LearningEvent).where(
            LearningEvent.user_id == user.id,
            LearningEvent.type == LearningEventType.course_enrolled,
        )
    )
    assert event is not None
    assert str(event.ref_id) == course.id


def test_enroll_unknown_course_is_404(client, learner):
    _, headers = learner
    r = client.post(f"/courses/{uuid.uuid4()}/enroll", headers=headers)
    assert r.status_code == 404
    assert r.json()["error_code"] == "not_found"


def test_enroll_with_malformed_id_is_400(client, learner):
    _, headers = learner
    r = client.post("/courses/not-a-uuid/enroll", headers=headers)
    assert r.status_code == 400
    assert r.json()["error_code"] == "validation_error"


def test_enroll_requires_authentication(client, make_course):
    course = make_course()
    r = client.post(f"/courses/{course.id}/enroll")
    assert r.status_code == 401
    assert r.json()["error_code"] == "unauthorized"


def test_cannot_enroll_in_unpublished_course(client, make_course, learner):
    course = make_course(published=False)
    _, headers = learner
    r = client.post(f"/courses/{course.id}/enroll", headers=headers)
    assert r.status_code == 403


def test_cannot_enroll_in_other_company_course(client, make_course, make_user):
    course = make_course()
    _, headers = make_user(company_id=uuid.uuid4())
    r = client.post(f"/courses/{course.id}/enroll", headers=headers)
    assert r.status_code == 403


def test_my_enrollments_lists_course_info(client, make_course, learner):
    course = make_course()
    _, headers = learner
    client.post(f"/courses/{course.id}/enroll", headers=headers)

    r = client.get("/user-courses", headers=headers)
    assert r.status_code == 200
    items = r.json()
    assert [x["course_id"] for x in items] == [course.id]
    assert items[0]["course_title"] == course.course["title"]
    assert items[0]["course_type"] == "haccp"


def test_enrollment_visible_to_owner_and_admin_only(client, make_course, learner, admin, make_user, company_id):
    course = make_course()
    _, headers = learner
    uc_id = client.post(f"/courses/{course.id}/enroll", headers=headers).json()["id"]

    assert client.get(f"/user-courses/{uc_id}", headers=headers).status_code == 200
    assert client.get(f"/user-courses/{uc_id}", headers=admin[1]).status_code == 200

    _, other_headers = make_user(company_id=company_id)
    assert client.get(f"/user-courses/{uc_id}", headers=other_headers).status_code == 403


def test_course_enrollments_are_admin_only(client, make_course, learner, admin):
    course = make_course()
    _, headers = learner
    client.post(f"/courses/{course.id}/enroll", headers=headers)

    assert client.get(f"/courses/{course.id}/enrollments", headers=headers).status_code == 403

    r = client.get(f"/courses/{course.id}/enrollments", headers=admin[1])
    assert r.status_code == 200
    assert len(r.json()) == 1


def test_foreign_admin_cannot_list_enrollments(client, make_course, make_user):
    course = make_course()
    _, headers = make_user(role=UserRole.admin, company_id=uuid.uuid4())
    assert client.get(f"/courses/{course.id}/enrollments", headers=headers).status_code == 403


def test_advance_lesson_rejects_lesson_of_other_course(client, make_course, learner):
    course = make_course()
    other = make_course()
    _, headers = learner
    uc_id = client.post(f"/courses/{course.id}/enroll", headers=headers).json()["id"]

    r = client.put(
        f"/user-courses/{uc_id}/progress",
        json={"current_lesson_id": other.lesson_ids[0]},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "current_lesson_id"


def test_only_owner_can_advance(client, make_course, learner, admin):
    course = make_course()
    _, headers = learner
    uc_id = client.post(f"/courses/{course.id}/enroll", headers=headers).json()["id"]

    r = client.put(
        f"/user-courses/{uc_id}/progress",
        json={"current_lesson_id": course.lesson_ids[1]},
        headers=admin[1],
    )
    assert r.status_code == 403
