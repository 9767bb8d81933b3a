"""Exceptions raised by the design board domain layer."""

from __future__ import annotations


class DesignBoardError(Exception):
    """Base class for every domain error."""


class NotFoundError(DesignBoardError):
    """A referenced user, question, component, link or architecture does not exist."""


class DomainValidationError(DesignBoardError):
    """Input was rejected by a domain rule (missing field, unknown subtype, ...)."""


class DuplicateError(DomainValidationError):
    """A unique value (such as a user's email) is already taken."""


class AuthenticationError(DesignBoardError):
    """Credentials or token could not be verified."""


class InvalidConnectionError(DomainValidationError):
    """A link between two components is not allowed by the connection rules."""


class AIUnavailableError(DesignBoardError):
    """No AI evaluation backend is configured."""


class AIEvaluationError(DesignBoardError):
    """The AI evaluation backend failed or returned an unusable answer."""
