"""Sign-up and sign-in endpoints."""

import logging
from datetime import timedelta

from fastapi import APIRouter, HTTPException, Request, status

from api.deps import ForumServiceDep, SettingsDep
from api.middleware import AUTH_RATE_LIMIT, limiter
from api.models import SignedInUser, SigninRequest, SigninResponse, SignupRequest, SignupResponse
from core.exceptions import AuthenticationError
from core.security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT)
async def signup(request: Request, body: SignupRequest, forum: ForumServiceDep) -> SignupResponse:
    """Register a new user.

    Returns 400 when the email or password is missing or the email is taken.
    """
    user = forum.signup(body.name, body.email, body.password)
    return SignupResponse(message="User created successfully", user=user)


@router.post("/signin")
@limiter.limit(AUTH_RATE_LIMIT)
async def signin(request: Request, body: SigninRequest, forum: ForumServiceDep, settings: SettingsDep) -> SigninResponse:
    """Exchange credentials for a bearer token valid for ``jwt_expire_days``."""
    try:
        user = forum.authenticate(body.email, body.password)
    except AuthenticationError as exc:
        logger.info("Failed sign-in for %s", body.email)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    token = create_access_token(
        user.id,
        settings.jwt_secret,
        timedelta(days=settings.jwt_expire_days),
        settings.jwt_algorithm,
    )
    logger.info("User %s signed in", user.id)
    return SigninResponse(
        message="Login successful",
        token=token,
        user=SignedInUser(id=user.id, name=user.name, email=user.email),
    )
