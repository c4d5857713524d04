import sys
import time
import uuid
from functools import lru_cache
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from elearning.core.security import create_access_token, hash_password
from elearning.db.base import Base
from elearning.db import session as session_module
from elearning.main import create_app

# Import models so that they are registered in Base.metadata before create_all.
from elearning.models import User, UserRole  # noqa: F401


class _MemoryRedis:
    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}

    def ping(self):
        return True

    def _now(self) -> float:
        return time.time()

    def _get_entry(self, key: str):
        v = self._data.get(key)
        if not v:
            return None
        value, exp = v
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            return None
        return value, exp

    def get(self, key: str):
        entry = self._get_entry(key)
        return entry[0] if entry else None

    def incr(self, key: str):
        cur = self.get(key)
        n = int(cur or 0) + 1
        _, exp = self._data.get(key, ("", None))
        self._data[key] = (str(n), exp)
        return n

    def expire(self, key: str, seconds: int):
        entry = self._get_entry(key)
        if not entry:
            return False
        value, _ = entry
        self._data[key] = (value, self._now() + int(seconds))
        return True

    def ttl(self, key: str):
        entry = self._get_entry(key)
        if not entry:
            return -2
        _, exp = entry
        if exp is None:
            return -1
        return max(0, int(exp - self._now()))


# Configure test DB (SQLite in-memory) at import time so everything importing
# elearning.db.session.SessionLocal gets the patched version.
_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
Base.metadata.create_all(bind=_engine)
session_module.engine = _engine
session_module.SessionLocal = session_module.sessionmaker(autocommit=False, autoflush=False, bind=_engine)


# Stub Redis at import time (rate limiting + readiness probe).
_mem_redis = _MemoryRedis()
import elearning.core.redis_client as redis_client_module

redis_client_module.get_redis = lambda: _mem_redis

import elearning.core.rate_limit as rate_limit_module
rate_limit_module.get_redis = lambda: _mem_redis

import elearning.routers.health as health_router_module
health_router_module.get_redis = lambda: _mem_redis


PASSWORD = "testpass123"


@lru_cache(maxsize=1)
def _password_hash() -> str:
    return hash_password(PASSWORD)


@pytest.fixture(scope="session")
def client():
    app = create_app()

    # Ensure app dependencies use our session factory.
    def _get_db_override():
        db = session_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = _get_db_override
    return TestClient(app)


@pytest.fixture()
def db():
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def company_id():
    return uuid.uuid4()


@pytest.fixture()
def make_user(db):
    """Create a user directly and return ``(user, auth_headers)``."""

    def _make(*, role: UserRole = UserRole.employee, company_id=None, name: str | None = None):
        user = User(
            name=name or f"user_{uuid.uuid4().hex[:8]}",
            position=None,
            role=role,
            company_id=company_id,
            password_hash=_password_hash(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        token = create_access_token(user_id=str(user.id), role=user.role.value)
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def admin(make_user, company_id):
    return make_user(role=UserRole.admin, company_id=company_id)


@pytest.fixture()
def learner(make_user, company_id):
    return make_user(company_id=company_id)


@pytest.fixture()
def make_course(client, admin):
    """Author a course through the API as the company admin.

    Every question gets one correct and one wrong option. ``questions`` lists
    the points of each question of the single course-level quiz.
    """
    _, headers = admin

    def _make(
        *,
        lessons: int = 2,
        questions=(1, 1, 1),
        with_quiz: bool = True,
        published: bool = True,
        required_score: int = 70,
        passing_score: int | None = None,
    ):
        r = client.post(
            "/courses",
            json={
                "title": f"Course {uuid.uuid4().hex[:6]}",
                "type": "haccp",
                "is_published": published,
                "required_score": required_score,
            },
            headers=headers,
        )
        assert r.status_code == 201, r.text
        course = r.json()

        lesson_ids = []
        for i in range(lessons):
            r = client.post(
                f"/courses/{course['id']}/lessons",
                json={"title": f"Lesson {i + 1}", "content": "text", "order": i + 1},
                headers=headers,
            )
            assert r.status_code == 201, r.text
            lesson_ids.append(r.json()["id"])

        quiz = None
        created_questions = []
        if with_quiz:
            body = {"title": "Final exam"}
            if passing_score is not None:
                body["passing_score"] = passing_score
            r = client.post(f"/courses/{course['id']}/quizzes", json=body, headers=headers)
            assert r.status_code == 201, r.text
            quiz = r.json()

            for n, points in enumerate(questions):
                r = client.post(
                    f"/quizzes/{quiz['id']}/questions",
                    json={
                        "text": f"Question {n + 1}",
                        "points": points,
                        "order": n,
                        "options": [
                            {"text": "right", "is_correct": True, "order": 0},
                            {"text": "wrong", "is_correct": False, "order": 1},
                        ],
                    },
                    headers=headers,
                )
                assert r.status_code == 201, r.text
                created_questions.append(r.json())

        return SimpleNamespace(
            id=course["id"],
            course=course,
            lesson_ids=lesson_ids,
            quiz=quiz,
            questions=created_questions,
        )

    return _make


def option_for(question: dict, *, correct: bool) -> str:
    return next(o["id"] for o in question["options"] if bool(o["is_correct"]) == correct)


@pytest.fixture()
def take_quiz(client):
    """Start an attempt, answer each question right or wrong, and complete it."""

    def _take(headers, course, pattern):
        r = client.post(f"/quizzes/{course.quiz['id']}/attempts", headers=headers)
        assert r.status_code == 201, r.text
        attempt_id = r.json()["id"]

        for question, correct in zip(course.questions, pattern):
            r = client.post(
                f"/attempts/{attempt_id}/answers",
                json={"question_id": question["id"], "option_id": option_for(question, correct=correct)},
                headers=headers,
            )
            assert r.status_code == 201, r.text

        r = client.post(f"/attempts/{attempt_id}/complete", headers=headers)
        assert r.status_code == 200, r.text
        return r.json()

    return _take


@pytest.fixture()
def pick_option():
    return option_for
