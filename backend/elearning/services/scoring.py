"""Pure scoring and progress arithmetic.

Kept free of the ORM session so the rules can be exercised directly.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass


def percent(part: int, whole: int) -> int:
    """Integer percentage rounded half up. A zero or negative ``whole`` yields 0."""
    if whole <= 0:
        return 0
    return (200 * int(part) + int(whole)) // (2 * int(whole))


@dataclass(frozen=True)
class AttemptScore:
    earned_points: int
    total_points: int
    correct_answers: int
    total_questions: int

    @property
    def score(self) -> int:
        return percent(self.earned_points, self.total_points)


def score_attempt(questions: Iterable, answers: Iterable) -> AttemptScore:
    """Points-weighted score of an attempt.

    ``questions`` need ``id`` and ``points``; ``answers`` need ``question_id``
    and ``is_correct``. Unanswered questions count towards the total only.
    """
    by_question = {a.question_id: a for a in answers}

    earned = 0
    total = 0
    correct = 0
    count = 0
    for q in questions:
        count += 1
        points = int(q.points) if q.points is not None else 1
        total += points
        answer = by_question.get(q.id)
        if answer is not None and bool(answer.is_correct):
            correct += 1
            earned += points

    return AttemptScore(earned_points=earned, total_points=total, correct_answers=correct, total_questions=count)


def passing_threshold(*, quiz_passing_score: int | None, course_required_score: int | None, default: int = 70) -> int:
    if quiz_passing_score is not None:
        return int(quiz_passing_score)
    if course_required_score is not None:
        return int(course_required_score)
    return int(default)


def lessons_viewed(ordered_lesson_ids: Sequence[uuid.UUID], current_lesson_id: uuid.UUID | None) -> int:
    """Lessons up to and including the current one count as viewed."""
    if current_lesson_id is None:
        return 0
    try:
        return list(ordered_lesson_ids).index(current_lesson_id) + 1
    except ValueError:
        return 0


def compute_progress(*, lessons_viewed: int, passed_quizzes: int, total_lessons: int, total_quizzes: int) -> int:
    total_items = int(total_lessons) + int(total_quizzes)
    if total_items <= 0:
        return 0
    completed_items = int(lessons_viewed) + int(passed_quizzes)
    return max(0, min(100, percent(completed_items, total_items)))
