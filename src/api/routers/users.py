"""Endpoints about the signed-in user."""

from __future__ import annotations

from fastapi import APIRouter

from api.deps import CurrentUserId, ForumServiceDep  # noqa: TC001
from api.models import UserResponse

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/me")
async def current_user(user_id: CurrentUserId, forum: ForumServiceDep) -> UserResponse:
    """Return the signed-in user without the password hash."""
    return UserResponse(user=forum.get_user(user_id))


@router.get("/answers")
async def my_answers(user_id: CurrentUserId, forum: ForumServiceDep) -> dict[str, list[dict]]:
    """Return the architectures the signed-in user submitted as answers.

    Returns
    -------
    dict[str, list[dict]]
        ``{"answers": [{"_id", "questionId", "questionTitle", "submittedAt", "architectureName"}]}``

    """
    answers = forum.answers_for_user(user_id)
    return {"answers": [answer.model_dump(mode="json", by_alias=True) for answer in answers]}
