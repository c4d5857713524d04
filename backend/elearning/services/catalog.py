from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from elearning.core.access import AccessPolicy
from elearning.core.errors import Conflict, ValidationError
from elearning.models.course import Course, Lesson
from elearning.models.enrollment import UserCourse
from elearning.models.quiz import Option, Question, Quiz
from elearning.schemas.course import (
    CourseCreateRequest,
    CourseUpdateRequest,
    LessonCreateRequest,
    LessonUpdateRequest,
)
from elearning.schemas.quiz import OptionCreateRequest, QuestionCreateRequest, QuizCreateRequest
from elearning.services.lookups import get_or_404, parse_uuid


logger = logging.getLogger("elearning.catalog")


def _str(value) -> str | None:
    return str(value) if value is not None else None


def course_view(c: Course, *, enrolled: bool | None = None) -> dict[str, Any]:
    return {
        "id": str(c.id),
        "company_id": _str(c.company_id),
        "title": c.title,
        "description": c.description,
        "type": c.type.value,
        "level": c.level.value,
        "duration": int(c.duration or 0),
        "is_published": bool(c.is_published),
        "required_score": int(c.required_score),
        "created_at": c.created_at,
        "enrolled": enrolled,
    }


def lesson_view(lesson: Lesson) -> dict[str, Any]:
    return {
        "id": str(lesson.id),
        "course_id": str(lesson.course_id),
        "title": lesson.title,
        "content": lesson.content or "",
        "video_url": lesson.video_url,
        "order": int(lesson.order),
        "duration": int(lesson.duration or 0),
    }


def quiz_view(q: Quiz) -> dict[str, Any]:
    return {
        "id": str(q.id),
        "course_id": str(q.course_id),
        "lesson_id": _str(q.lesson_id),
        "title": q.title or "",
        "description": q.description,
        "passing_score": q.passing_score,
        "time_limit": q.time_limit,
        "randomize_questions": bool(q.randomize_questions),
    }


def option_view(o: Option, *, reveal: bool) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": str(o.id),
        "question_id": str(o.question_id),
        "text": o.text,
        "order": int(o.order or 0),
    }
    if reveal:
        data["is_correct"] = bool(o.is_correct)
    return data


def question_view(q: Question, options: list[Option], *, reveal: bool) -> dict[str, Any]:
    return {
        "id": str(q.id),
        "quiz_id": str(q.quiz_id),
        "text": q.text,
        "type": q.type.value,
        "points": int(q.points if q.points is not None else 1),
        "order": int(q.order or 0),
        "options": [option_view(o, reveal=reveal) for o in options],
    }


class CatalogService:
    """Admin authoring and learner reads over courses, lessons and quizzes."""

    def __init__(self, db: Session, policy: AccessPolicy):
        self.db = db
        self.policy = policy

    # Loaders

    def get_course(self, course_id) -> Course:
        return get_or_404(self.db, Course, course_id, what="course")

    def get_lesson(self, lesson_id) -> Lesson:
        return get_or_404(self.db, Lesson, lesson_id, what="lesson")

    def get_quiz(self, quiz_id) -> Quiz:
        return get_or_404(self.db, Quiz, quiz_id, what="quiz")

    def get_question(self, question_id) -> Question:
        return get_or_404(self.db, Question, question_id, what="question")

    def ordered_lessons(self, course_id: uuid.UUID) -> list[Lesson]:
        return list(self.db.scalars(select(Lesson).where(Lesson.course_id == course_id).order_by(Lesson.order)))

    def course_quizzes(self, course_id: uuid.UUID) -> list[Quiz]:
        return list(self.db.scalars(select(Quiz).where(Quiz.course_id == course_id).order_by(Quiz.title, Quiz.id)))

    def questions_with_options(self, quiz_id: uuid.UUID) -> list[tuple[Question, list[Option]]]:
        questions = list(
            self.db.scalars(select(Question).where(Question.quiz_id == quiz_id).order_by(Question.order, Question.id))
        )
        if not questions:
            return []
        options = self.db.scalars(
            select(Option)
            .where(Option.question_id.in_([q.id for q in questions]))
            .order_by(Option.order, Option.id)
        ).all()
        by_question: dict[uuid.UUID, list[Option]] = {}
        for o in options:
            by_question.setdefault(o.question_id, []).append(o)
        return [(q, by_question.get(q.id, [])) for q in questions]

    # Courses

    def list_courses(self) -> list[dict[str, Any]]:
        user = self.policy.user
        if self.policy.is_admin:
            rows = self.db.scalars(
                select(Course).where(Course.company_id == user.company_id).order_by(Course.title)
            ).all()
            return [course_view(c) for c in rows]

        enrolled = select(UserCourse.course_id).where(UserCourse.user_id == user.id)
        enrolled_ids = set(self.db.scalars(enrolled))
        visible = and_(
            Course.is_published.is_(True),
            or_(Course.company_id.is_(None), Course.company_id == user.company_id),
        )
        rows = self.db.scalars(
            select(Course).where(or_(Course.id.in_(enrolled), visible)).order_by(Course.title)
        ).all()
        return [course_view(c, enrolled=c.id in enrolled_ids) for c in rows]

    def course_detail(self, course_id) -> dict[str, Any]:
        course = self.get_course(course_id)
        self.policy.require_course_reader(course)
        return {
            "course": course_view(course),
            "lessons": [lesson_view(x) for x in self.ordered_lessons(course.id)],
            "quizzes": [quiz_view(q) for q in self.course_quizzes(course.id)],
        }

    def create_course(self, body: CourseCreateRequest) -> Course:
        user = self.policy.user
        self.policy.require_admin_of(user.company_id)
        course = Course(
            company_id=user.company_id,
            title=body.title.strip(),
            description=body.description,
            type=body.type,
            level=body.level,
            duration=body.duration,
            is_published=body.is_published,
            required_score=body.required_score,
            created_by=user.id,
        )
        self.db.add(course)
        self.db.commit()
        self.db.refresh(course)
        logger.info("course created id=%s company_id=%s", course.id, course.company_id)
        return course

    def update_course(self, course_id, body: CourseUpdateRequest) -> Course:
        course = self.get_course(course_id)
        self.policy.require_admin_of(course.company_id, "no permission to modify this course")
        for field, value in body.model_dump(exclude_unset=True).items():
            if value is None and field not in {"description"}:
                continue
            setattr(course, field, value)
        course.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(course)
        return course

    # Lessons

    def list_lessons(self, course_id) -> list[Lesson]:
        course = self.get_course(course_id)
        self.policy.require_course_reader(course)
        return self.ordered_lessons(course.id)

    def lesson_detail(self, lesson_id) -> dict[str, Any]:
        lesson = self.get_lesson(lesson_id)
        course = self.get_course(lesson.course_id)
        self.policy.require_course_reader(course, "no access to this lesson")
        quiz = self.db.scalar(select(Quiz).where(Quiz.lesson_id == lesson.id).limit(1))
        return {"lesson": lesson_view(lesson), "quiz": quiz_view(quiz) if quiz is not None else None}

    def _flush_lesson(self, lesson: Lesson) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise Conflict(f"lesson order {lesson.order} already used in this course", error_code="lesson_order_taken") from e

    def _order_taken(self, course_id: uuid.UUID, order: int, *, exclude: uuid.UUID | None = None) -> bool:
        stmt = select(Lesson.id).where(Lesson.course_id == course_id, Lesson.order == order)
        if exclude is not None:
            stmt = stmt.where(Lesson.id != exclude)
        return self.db.scalar(stmt.limit(1)) is not None

    def create_lesson(self, course_id, body: LessonCreateRequest) -> Lesson:
        course = self.get_course(course_id)
        self.policy.require_admin_of(course.company_id, "no permission to modify this course")
        if self._order_taken(course.id, body.order):
            raise Conflict(f"lesson order {body.order} already used in this course", error_code="lesson_order_taken")

        lesson = Lesson(
            course_id=course.id,
            title=body.title.strip(),
            content=body.content,
            video_url=body.video_url,
            order=body.order,
            duration=body.duration,
        )
        self.db.add(lesson)
        self._flush_lesson(lesson)
        self.db.commit()
        self.db.refresh(lesson)
        return lesson

    def update_lesson(self, lesson_id, body: LessonUpdateRequest) -> Lesson:
        lesson = self.get_lesson(lesson_id)
        course = self.get_course(lesson.course_id)
        self.policy.require_admin_of(course.company_id, "no permission to modify this lesson")

        changes = body.model_dump(exclude_unset=True)
        new_order = changes.get("order")
        if new_order is not None and self._order_taken(course.id, new_order, exclude=lesson.id):
            raise Conflict(f"lesson order {new_order} already used in this course", error_code="lesson_order_taken")

        for field, value in changes.items():
            if value is None and field not in {"video_url"}:
                continue
            setattr(lesson, field, value)
        self._flush_lesson(lesson)
        self.db.commit()
        self.db.refresh(lesson)
        return lesson

    # Quizzes

    def list_quizzes(self, course_id) -> list[Quiz]:
        course = self.get_course(course_id)
        self.policy.require_course_reader(course)
        return self.course_quizzes(course.id)

    def create_quiz(self, course_id, body: QuizCreateRequest) -> Quiz:
        course = self.get_course(course_id)
        self.policy.require_admin_of(course.company_id, "no permission to modify this course")

        lesson_id = None
        if body.lesson_id:
            lesson = self.db.get(Lesson, parse_uuid(body.lesson_id, field="lesson_id"))
            if lesson is None or lesson.course_id != course.id:
                raise ValidationError("lesson does not belong to this course", field="lesson_id")
            lesson_id = lesson.id

        quiz = Quiz(
            course_id=course.id,
            lesson_id=lesson_id,
            title=body.title,
            description=body.description,
            passing_score=body.passing_score,
            time_limit=body.time_limit,
            randomize_questions=body.randomize_questions,
        )
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)
        return quiz

    def quiz_detail(self, quiz_id) -> dict[str, Any]:
        quiz = self.get_quiz(quiz_id)
        course = self.get_course(quiz.course_id)
        self.policy.require_course_reader(course, "no access to this quiz")

        reveal = self.policy.administers(course.company_id)
        items = self.questions_with_options(quiz.id)
        if quiz.randomize_questions and not reveal:
            random.shuffle(items)

        return {
            "quiz": quiz_view(quiz),
            "questions": [question_view(q, opts, reveal=reveal) for q, opts in items],
        }

    def _require_quiz_admin(self, quiz: Quiz) -> None:
        course = self.get_course(quiz.course_id)
        self.policy.require_admin_of(course.company_id, "no permission to modify this quiz")

    def create_question(self, quiz_id, body: QuestionCreateRequest) -> dict[str, Any]:
        quiz = self.get_quiz(quiz_id)
        self._require_quiz_admin(quiz)

        question = Question(quiz_id=quiz.id, text=body.text, type=body.type, points=body.points, order=body.order)
        self.db.add(question)
        self.db.flush()

        options = [self._new_option(question, o) for o in body.options]
        self.db.commit()
        self.db.refresh(question)
        return question_view(question, options, reveal=True)

    def _new_option(self, question: Question, body: OptionCreateRequest) -> Option:
        option = Option(question_id=question.id, text=body.text, is_correct=body.is_correct, order=body.order)
        self.db.add(option)
        return option

    def create_option(self, question_id, body: OptionCreateRequest) -> dict[str, Any]:
        question = self.get_question(question_id)
        quiz = self.get_quiz(question.quiz_id)
        self._require_quiz_admin(quiz)

        option = self._new_option(question, body)
        self.db.commit()
        self.db.refresh(option)
        return option_view(option, reveal=True)
