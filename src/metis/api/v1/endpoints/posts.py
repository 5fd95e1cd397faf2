"""Post endpoints for the Metis API."""

from typing import Annotated

from fastapi import APIRouter, Body, Response, status

from metis.api.v1.dependencies import CurrentUserDep, SessionDep, raise_http_error
from metis.api.v1.headers import (
    entity_creation_alert,
    entity_deletion_alert,
    entity_update_alert,
)
from metis.schemas.post import PostCreate, PostResponse, PostUpdate
from metis.services.errors import MetisError
from metis.services.posts import ENTITY_NAME, PostService

router = APIRouter(prefix="/courses/{course_id}", tags=["posts"])


@router.post("/posts",
          response_model=PostResponse,
          status_code=status.HTTP_201_CREATED)
async def create_post(
    course_id: int,
    post_data: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    response: Response,
) -> PostResponse:
    """Create a post for a lecture, an exercise or the whole course.

    Raises:
        HTTPException: 400 on inconsistent data or disabled discussions,
                       403 if not a member of the course, 404 for unknown ids
    """
    try:
        result = PostService(db).create_post(course_id, post_data, current_user)
    except MetisError as exc:
        raise_http_error(exc)

    response.headers["Location"] = f"/api/v1/courses/{course_id}/posts/{result.id}"
    response.headers.update(entity_creation_alert(ENTITY_NAME, str(result.id)))
    return result


@router.put("/posts", response_model=PostResponse)
async def update_post(
    course_id: int,
    post_data: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
    response: Response,
) -> PostResponse:
    """Update title, content, tags and visibility of a post."""
    try:
        result = PostService(db).update_post(course_id, post_data, current_user)
    except MetisError as exc:
        raise_http_error(exc)

    response.headers.update(entity_update_alert(ENTITY_NAME, str(result.id)))
    return result


@router.put("/posts/{post_id}/votes", response_model=PostResponse)
async def update_post_votes(
    course_id: int,
    post_id: int,
    vote_change: Annotated[int, Body()],
    current_user: CurrentUserDep,
    db: SessionDep,
    response: Response,
) -> PostResponse:
    """Change the vote count of a post by a small amount."""
    try:
        result = PostService(db).update_votes(course_id, post_id, vote_change, current_user)
    except MetisError as exc:
        raise_http_error(exc)

    response.headers.update(entity_update_alert(ENTITY_NAME, str(post_id)))
    return result


@router.get("/posts", response_model=list[PostResponse])
async def list_course_posts(
    course_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[PostResponse]:
    """List every post of the course, newest first."""
    try:
        return PostService(db).list_course_posts(course_id, current_user)
    except MetisError as exc:
        raise_http_error(exc)


@router.get("/posts/tags", response_model=list[str])
async def list_course_post_tags(
    course_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[str]:
    """List the distinct tags used by posts of the course."""
    try:
        return PostService(db).list_course_tags(course_id, current_user)
    except MetisError as exc:
        raise_http_error(exc)


@router.get("/lectures/{lecture_id}/posts", response_model=list[PostResponse])
async def list_lecture_posts(
    course_id: int,
    lecture_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[PostResponse]:
    """List the posts of a lecture."""
    try:
        return PostService(db).list_lecture_posts(course_id, lecture_id, current_user)
    except MetisError as exc:
        raise_http_error(exc)


@router.get("/exercises/{exercise_id}/posts", response_model=list[PostResponse])
async def list_exercise_posts(
    course_id: int,
    exercise_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[PostResponse]:
    """List the posts of an exercise."""
    try:
        return PostService(db).list_exercise_posts(course_id, exercise_id, current_user)
    except MetisError as exc:
        raise_http_error(exc)


@router.delete("/posts/{post_id}", status_code=status.HTTP_200_OK)
async def delete_post(
    course_id: int,
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Delete a post including its answers."""
    try:
        PostService(db).delete_post(course_id, post_id, current_user)
    except MetisError as exc:
        raise_http_error(exc)

    return Response(
        status_code=status.HTTP_200_OK,
        headers=entity_deletion_alert(ENTITY_NAME, str(post_id)),
    )
