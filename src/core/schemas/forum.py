"""Pydantic models for forum users and questions."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 needed at runtime by pydantic

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.schemas.diagram import utc_now


class ForumDocument(BaseModel):
    """Base for forum documents, exposed with ``_id`` and camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(alias="_id")
    created_at: datetime = Field(default_factory=utc_now)


class User(ForumDocument):
    """A registered user as stored, including the password hash."""

    name: str | None = None
    email: str
    hashed_password: str


class UserPublic(ForumDocument):
    """A user as returned by the API (never carries the password)."""

    name: str | None = None
    email: str


class Question(ForumDocument):
    """A posted system design question.

    Attributes
    ----------
    uid : str
        ID of the user who posted the question.
    qtitle : str
        Question title.
    qdes : str
        Question description.
    qimg : str
        File name of the uploaded image under the uploads directory.

    """

    uid: str
    qtitle: str
    qdes: str
    qimg: str


class QuestionAuthor(BaseModel):
    """Author summary embedded in listed questions."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str | None = None
    email: str


class QuestionPublic(ForumDocument):
    """A question with its author populated.

    ``uid`` is ``None`` when the author account no longer exists.
    """

    uid: QuestionAuthor | None = None
    qtitle: str
    qdes: str
    qimg: str


class Answer(BaseModel):
    """A submitted architecture presented as the user's answer to a question."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    question_id: str | None = Field(default=None, alias="questionId")
    question_title: str = Field(alias="questionTitle")
    submitted_at: datetime = Field(alias="submittedAt")
    architecture_name: str = Field(alias="architectureName")
