"""Forum users, questions and the answers users submitted to them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.exceptions import AuthenticationError, DomainValidationError, DuplicateError, NotFoundError
from core.schemas.diagram import Architecture
from core.schemas.forum import Answer, Question, QuestionAuthor, QuestionPublic, User, UserPublic
from core.security import DUMMY_HASH, get_password_hash, verify_password
from core.services import ARCHITECTURES, new_id

if TYPE_CHECKING:
    from storage.base import DocumentStorage

logger = logging.getLogger(__name__)

USERS = "users"
QUESTIONS = "questions"


class ForumService:
    """Sign users up and in, and manage the questions they post."""

    def __init__(self, storage: DocumentStorage) -> None:
        self.storage = storage

    # -- users ---------------------------------------------------------------

    def find_user_by_email(self, email: str) -> User | None:
        """Return the user registered with ``email`` (case-insensitive)."""
        matches = [
            doc for doc in self.storage.list(USERS) if str(doc.get("email", "")).lower() == email.strip().lower()
        ]
        return User.model_validate(matches[0]) if matches else None

    def signup(self, name: str | None, email: str | None, password: str | None) -> UserPublic:
        """Register a user.

        Raises
        ------
        DomainValidationError
            If the email or password is missing.
        DuplicateError
            If the email is already registered.

        """
        if not email or not email.strip() or not password:
            msg = "Email and password are required"
            raise DomainValidationError(msg)
        if self.find_user_by_email(email) is not None:
            msg = "User already exists"
            raise DuplicateError(msg)

        user = User(
            id=new_id(),
            name=name.strip() if name else None,
            email=email.strip(),
            hashed_password=get_password_hash(password),
        )
        self.storage.put(USERS, user.id, user.model_dump(mode="json", by_alias=True))
        logger.info("Registered user id=%s", user.id)
        return UserPublic.model_validate(user.model_dump(by_alias=True))

    def authenticate(self, email: str | None, password: str | None) -> User:
        """Return the user matching the credentials.

        Raises
        ------
        DomainValidationError
            If the email or password is missing.
        AuthenticationError
            If the credentials do not match a user.

        """
        if not email or not password:
            msg = "Email and password are required"
            raise DomainValidationError(msg)

        user = self.find_user_by_email(email)
        if user is None:
            verify_password(password, DUMMY_HASH)
            msg = "Invalid email or password"
            raise AuthenticationError(msg)

        verified, updated_hash = verify_password(password, user.hashed_password)
        if not verified:
            msg = "Invalid email or password"
            raise AuthenticationError(msg)
        if updated_hash:
            user.hashed_password = updated_hash
            self.storage.put(USERS, user.id, user.model_dump(mode="json", by_alias=True))
        return user

    def get_user(self, user_id: str) -> UserPublic:
        """Return a user without the password hash."""
        document = self.storage.get(USERS, user_id)
        if document is None:
            msg = "User not found"
            raise NotFoundError(msg)
        return UserPublic.model_validate(document)

    # -- questions -----------------------------------------------------------

    def create_question(self, user_id: str, qtitle: str | None, qdes: str | None, qimg: str | None) -> Question:
        """Store a question whose image was already saved as ``qimg``."""
        if not qtitle or not qdes or not qimg:
            msg = "Title, description and image are required"
            raise DomainValidationError(msg)
        question = Question(id=new_id(), uid=user_id, qtitle=qtitle, qdes=qdes, qimg=qimg)
        self.storage.put(QUESTIONS, question.id, question.model_dump(mode="json", by_alias=True))
        logger.info("User %s posted question id=%s", user_id, question.id)
        return question

    def _populate(self, question: Question) -> QuestionPublic:
        author = self.storage.get(USERS, question.uid)
        return QuestionPublic(
            id=question.id,
            created_at=question.created_at,
            uid=QuestionAuthor.model_validate(author) if author else None,
            qtitle=question.qtitle,
            qdes=question.qdes,
            qimg=question.qimg,
        )

    def _questions(self) -> list[Question]:
        questions = [Question.model_validate(doc) for doc in self.storage.list(QUESTIONS)]
        return sorted(questions, key=lambda q: q.created_at, reverse=True)

    def list_questions(self) -> list[QuestionPublic]:
        """Return every question, newest first, with its author populated."""
        return [self._populate(q) for q in self._questions()]

    def questions_by_user(self, user_id: str) -> list[QuestionPublic]:
        """Return the questions a user posted, newest first."""
        return [self._populate(q) for q in self._questions() if q.uid == user_id]

    def get_question(self, question_id: str) -> QuestionPublic:
        """Return one question with its author populated."""
        document = self.storage.get(QUESTIONS, question_id)
        if document is None:
            msg = "Question not found"
            raise NotFoundError(msg)
        return self._populate(Question.model_validate(document))

    # -- answers -------------------------------------------------------------

    def question_title(self, question_id: str | None) -> str:
        """Return a question's title, or ``"Question <id>"`` when unknown."""
        document = self.storage.get(QUESTIONS, question_id) if question_id else None
        if document is None:
            return f"Question {question_id}"
        return str(document.get("qtitle") or f"Question {question_id}")

    def answers_for_user(self, user_id: str) -> list[Answer]:
        """Return the architectures a user submitted, presented as answers."""
        architectures: list[Architecture] = [
            Architecture.model_validate(doc) for doc in self.storage.list(ARCHITECTURES)
        ]
        answers = [
            Answer(
                id=arch.id,
                question_id=arch.question_id,
                question_title=self.question_title(arch.question_id),
                submitted_at=arch.updated_at or arch.created_at,
                architecture_name=arch.name,
            )
            for arch in architectures
            if arch.submitted and arch.user_id == user_id
        ]
        return sorted(answers, key=lambda a: a.submitted_at, reverse=True)
