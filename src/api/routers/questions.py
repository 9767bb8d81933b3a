"""Forum question endpoints."""

import logging
import time
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, File, Form, Request, UploadFile, status

from api.deps import CurrentUserId, ForumServiceDep, SettingsDep
from api.middleware import POST_RATE_LIMIT, limiter
from api.models import QuestionCreatedResponse, QuestionListResponse, QuestionResponse
from core.exceptions import DomainValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["questions"])


async def save_upload(upload: UploadFile, upload_dir: str) -> str:
    """Save an uploaded file as ``<millis>-<original name>`` and return the stored name."""
    original = Path(upload.filename or "upload").name
    stored_name = f"{int(time.time() * 1000)}-{original}"
    target_dir = Path(upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / stored_name).write_bytes(await upload.read())
    logger.info("Saved upload %s (%s)", stored_name, upload.content_type)
    return stored_name


@router.post("/questions", status_code=status.HTTP_201_CREATED)
@limiter.limit(POST_RATE_LIMIT)
async def post_question(
    request: Request,
    user_id: CurrentUserId,
    forum: ForumServiceDep,
    settings: SettingsDep,
    qtitle: Annotated[str | None, Form()] = None,
    qdes: Annotated[str | None, Form()] = None,
    qimg: Annotated[UploadFile | None, File()] = None,
) -> QuestionCreatedResponse:
    """Post a question with an illustrating image (multipart form)."""
    if not qtitle or not qdes or qimg is None or not qimg.filename:
        msg = "Title, description and image are required"
        raise DomainValidationError(msg)

    stored_name = await save_upload(qimg, settings.upload_dir)
    question = forum.create_question(user_id, qtitle, qdes, stored_name)
    return QuestionCreatedResponse(message="Question posted successfully", question=question)


@router.get("/questions")
async def list_questions(forum: ForumServiceDep) -> QuestionListResponse:
    """Return every question, newest first."""
    return QuestionListResponse(questions=forum.list_questions())


@router.get("/questions/my")
async def my_questions(user_id: CurrentUserId, forum: ForumServiceDep) -> QuestionListResponse:
    """Return the questions posted by the signed-in user."""
    return QuestionListResponse(questions=forum.questions_by_user(user_id))


@router.get("/questions/{question_id}")
async def get_question(question_id: str, user_id: CurrentUserId, forum: ForumServiceDep) -> QuestionResponse:
    return QuestionResponse(question=forum.get_question(question_id))
