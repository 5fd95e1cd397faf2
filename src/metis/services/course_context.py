"""Resolution of the course a discussion post belongs to.

A post is attached to a lecture, an exercise or directly to a course. The
attachment is modelled as a small tagged union so the precedence rule lives in
exactly one place:

1. lecture  -> the lecture's course
2. exercise -> the exercise's course, via its exam when it is an exam exercise
3. course   -> the explicit course reference

An explicit course that disagrees with the lecture or exercise is stale and
ignored. Nothing here raises; callers decide what an unresolved course means.
"""

from __future__ import annotations

from dataclasses import dataclass

from metis.models import AnswerPost, Course, CourseWideContext, Exercise, Lecture, Post

__all__ = [
    "CourseScope",
    "ExerciseScope",
    "LectureScope",
    "PostScope",
    "post_scope",
    "resolve_answer_course",
    "resolve_course",
]


@dataclass(frozen=True)
class LectureScope:
    """Post attached to a lecture."""

    lecture: Lecture

    @property
    def course(self) -> Course | None:
        return self.lecture.course


@dataclass(frozen=True)
class ExerciseScope:
    """Post attached to an exercise."""

    exercise: Exercise

    @property
    def course(self) -> Course | None:
        return self.exercise.course_via_exercise_group_or_course_member()


@dataclass(frozen=True)
class CourseScope:
    """Post attached directly to a course, optionally with a topic."""

    explicit_course: Course
    topic: CourseWideContext | None = None

    @property
    def course(self) -> Course | None:
        return self.explicit_course


PostScope = LectureScope | ExerciseScope | CourseScope


def post_scope(post: Post) -> PostScope | None:
    """Return the highest-priority attachment of ``post``, if any."""
    if post.lecture is not None:
        return LectureScope(post.lecture)
    if post.exercise is not None:
        return ExerciseScope(post.exercise)
    if post.course is not None:
        return CourseScope(post.course, post.course_wide_context)
    return None


def resolve_course(post: Post | None) -> Course | None:
    """Return the course owning ``post`` or ``None`` when it is orphaned."""
    if post is None:
        return None
    scope = post_scope(post)
    if scope is None:
        return None
    return scope.course


def resolve_answer_course(answer: AnswerPost) -> Course | None:
    """Return the course of the post ``answer`` replies to."""
    return resolve_course(answer.post)
