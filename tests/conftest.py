# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from metis.core.roles import Role  # noqa: E402
from metis.core.security import create_access_token  # noqa: E402
from metis.db.session import Base  # noqa: E402
from metis.db.session import get_db as app_get_session  # noqa: E402
from metis.main import app as fastapi_app  # noqa: E402
from metis.models import (  # noqa: E402
    AnswerPost,
    Course,
    CourseMember,
    CourseWideContext,
    Exam,
    Exercise,
    ExerciseGroup,
    Lecture,
    Post,
    User,
)

TEST_DB_URL = "sqlite://"

SAMPLE_SOLUTION = "print('the answer')"
GRADING_INSTRUCTIONS = "Full points for printing the answer."


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


# Courses and teaching content -------------------------------------------------


def _add(db_session: Session, entity):
    db_session.add(entity)
    db_session.flush()
    db_session.refresh(entity)
    return entity


@pytest.fixture()
def course(db_session: Session) -> Course:
    """Course with discussions enabled."""
    return _add(db_session, Course(title="Introduction to Programming", short_name="intro", posts_enabled=True))


@pytest.fixture()
def other_course(db_session: Session) -> Course:
    """Second course, used for mismatching path identifiers."""
    return _add(db_session, Course(title="Databases", short_name="db", posts_enabled=True))


@pytest.fixture()
def lecture(db_session: Session, course: Course) -> Lecture:
    return _add(db_session, Lecture(title="Week 1: Variables", course=course))


@pytest.fixture()
def exercise(db_session: Session, course: Course) -> Exercise:
    return _add(
        db_session,
        Exercise(
            title="Hello World",
            problem_statement="Print the answer.",
            sample_solution=SAMPLE_SOLUTION,
            grading_instructions=GRADING_INSTRUCTIONS,
            course=course,
        ),
    )


@pytest.fixture()
def exam_exercise(db_session: Session, course: Course) -> Exercise:
    """Exercise reachable only through exercise group and exam."""
    exam = _add(db_session, Exam(title="Final exam", course=course))
    group = _add(db_session, ExerciseGroup(title="Group 1", exam=exam))
    return _add(db_session, Exercise(title="Exam task", exercise_group=group))


# Users ------------------------------------------------------------------------


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory creating users, optionally enrolled with a role."""

    def _make_user(
        login: str,
        role: Role | None = None,
        course: Course | None = None,
        *,
        is_admin: bool = False,
    ) -> User:
        user = _add(db_session, User(login=login, display_name=login.title(), is_admin=is_admin))
        if role is not None and course is not None:
            _add(db_session, CourseMember(course_id=course.id, user_id=user.id, role=role))
        return user

    return _make_user


@pytest.fixture()
def student(make_user, course: Course) -> User:
    return make_user("student1", Role.STUDENT, course)


@pytest.fixture()
def other_student(make_user, course: Course) -> User:
    return make_user("student2", Role.STUDENT, course)


@pytest.fixture()
def tutor(make_user, course: Course) -> User:
    return make_user("tutor1", Role.TEACHING_ASSISTANT, course)


@pytest.fixture()
def editor(make_user, course: Course) -> User:
    return make_user("editor1", Role.EDITOR, course)


@pytest.fixture()
def instructor(make_user, course: Course) -> User:
    return make_user("instructor1", Role.INSTRUCTOR, course)


@pytest.fixture()
def admin(make_user) -> User:
    return make_user("admin", is_admin=True)


@pytest.fixture()
def outsider(make_user, other_course: Course) -> User:
    """Student of a different course only."""
    return make_user("outsider", Role.STUDENT, other_course)


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper producing bearer headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.login)}"}

    return _headers


# Postings ---------------------------------------------------------------------


@pytest.fixture()
def exercise_post(db_session: Session, exercise: Exercise, student: User) -> Post:
    return _add(
        db_session,
        Post(title="Stuck on hello world", content="How do I print?", exercise=exercise, author=student),
    )


@pytest.fixture()
def lecture_post(db_session: Session, lecture: Lecture, student: User) -> Post:
    return _add(
        db_session,
        Post(title="Slides", content="Where are the slides?", lecture=lecture, author=student),
    )


@pytest.fixture()
def course_post(db_session: Session, course: Course, student: User) -> Post:
    return _add(
        db_session,
        Post(
            title="Exam date",
            content="When is the exam?",
            course=course,
            course_wide_context=CourseWideContext.ORGANIZATION,
            author=student,
        ),
    )


@pytest.fixture()
def make_answer(db_session: Session) -> Callable[..., AnswerPost]:
    """Return a factory persisting answer posts directly."""

    def _make_answer(post: Post, author: User, content: str = "Use print().", approved: bool = False) -> AnswerPost:
        return _add(db_session, AnswerPost(post=post, author=author, content=content, tutor_approved=approved))

    return _make_answer
