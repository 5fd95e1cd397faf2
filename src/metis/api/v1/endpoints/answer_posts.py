"""Answer post (reply) endpoints for the Metis API."""

from fastapi import APIRouter, Response, status

from metis.api.v1.dependencies import CurrentUserDep, SessionDep, raise_http_error
from metis.api.v1.headers import (
    entity_creation_alert,
    entity_deletion_alert,
    entity_update_alert,
)
from metis.schemas.post import AnswerPostCreate, AnswerPostResponse, AnswerPostUpdate
from metis.services.answer_posts import ENTITY_NAME, AnswerPostService
from metis.services.errors import MetisError

router = APIRouter(prefix="/courses/{course_id}/answer-posts", tags=["answer-posts"])


@router.post("",
          response_model=AnswerPostResponse,
          status_code=status.HTTP_201_CREATED)
async def create_answer_post(
    course_id: int,
    answer_data: AnswerPostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    response: Response,
) -> AnswerPostResponse:
    """Create a new answer post.

    Args:
        course_id: Course the answer post belongs to
        answer_data: Answer post to create; must not have an id
        current_user: Authenticated user, who becomes the author
        db: Database session

    Returns:
        Created answer post

    Raises:
        HTTPException: 400 on inconsistent data or disabled discussions,
                       403 if not a member of the course, 404 for unknown ids
    """
    try:
        result = AnswerPostService(db).create_answer_post(course_id, answer_data, current_user)
    except MetisError as exc:
        raise_http_error(exc)

    response.headers["Location"] = f"/api/v1/courses/{course_id}/answer-posts/{result.id}"
    response.headers.update(entity_creation_alert(ENTITY_NAME, str(result.id)))
    return result


@router.put("", response_model=AnswerPostResponse)
async def update_answer_post(
    course_id: int,
    answer_data: AnswerPostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
    response: Response,
) -> AnswerPostResponse:
    """Update an existing answer post.

    Only the content is taken from the body; the approval flag is honoured
    for instructors only.

    Raises:
        HTTPException: 400 on missing id or course mismatch, 403 if neither
                       author nor staff, 404 for unknown ids
    """
    try:
        result = AnswerPostService(db).update_answer_post(course_id, answer_data, current_user)
    except MetisError as exc:
        raise_http_error(exc)

    response.headers.update(entity_update_alert(ENTITY_NAME, str(result.id)))
    return result


@router.delete("/{answer_post_id}", status_code=status.HTTP_200_OK)
async def delete_answer_post(
    course_id: int,
    answer_post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Delete an answer post.

    Raises:
        HTTPException: 400 on course mismatch, 403 if neither author nor
                       staff, 404 for unknown ids
    """
    try:
        AnswerPostService(db).delete_answer_post(course_id, answer_post_id, current_user)
    except MetisError as exc:
        raise_http_error(exc)

    return Response(
        status_code=status.HTTP_200_OK,
        headers=entity_deletion_alert(ENTITY_NAME, str(answer_post_id)),
    )
