"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.config import Settings, get_settings
from core.exceptions import AuthenticationError
from core.forum import ForumService
from core.security import decode_access_token
from core.services import ArchitectureService, ComponentService, LinkService
from storage.base import DocumentStorage  # noqa: TC001
from storage.factory import get_storage

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

SettingsDep = Annotated[Settings, Depends(get_settings)]
StorageDep = Annotated[DocumentStorage, Depends(get_storage)]


def get_component_service(storage: StorageDep) -> ComponentService:
    return ComponentService(storage)


ComponentServiceDep = Annotated[ComponentService, Depends(get_component_service)]


def get_link_service(storage: StorageDep, components: ComponentServiceDep) -> LinkService:
    return LinkService(storage, components)


LinkServiceDep = Annotated[LinkService, Depends(get_link_service)]


def get_architecture_service(
    storage: StorageDep,
    components: ComponentServiceDep,
    links: LinkServiceDep,
) -> ArchitectureService:
    return ArchitectureService(storage, components, links)


ArchitectureServiceDep = Annotated[ArchitectureService, Depends(get_architecture_service)]


def get_forum_service(storage: StorageDep) -> ForumService:
    return ForumService(storage)


ForumServiceDep = Annotated[ForumService, Depends(get_forum_service)]


def get_current_user_id(
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Return the user ID carried by the bearer token.

    Raises
    ------
    HTTPException
        401 when the header is missing or the token cannot be verified.

    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not logged in")
    try:
        return decode_access_token(credentials.credentials, settings.jwt_secret, settings.jwt_algorithm)
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
