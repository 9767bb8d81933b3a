"""Fixtures for tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from api.config import Settings, get_settings
from api.main import app as fastapi_app
from api.middleware import limiter
from core.catalog import ComponentType, LinkType, Parameter
from core.heuristics import default_heuristics_for_link, heuristics_for
from core.schemas.diagram import Architecture, Component, HeuristicProfile, Link
from core.services import ArchitectureService, ComponentService, LinkService
from storage.factory import get_storage
from storage.memory import MemoryStorage

if TYPE_CHECKING:
    from pathlib import Path

    from fastapi import FastAPI

MakeComponentFunc = Callable[..., Component]
MakeLinkFunc = Callable[..., Link]

TEST_SECRET = "test-secret"  # noqa: S105


@pytest.fixture
def storage() -> MemoryStorage:
    """Provide an empty in-memory document store."""
    return MemoryStorage()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Provide settings isolated from the environment's storage and uploads."""
    return Settings(
        jwt_secret=TEST_SECRET,
        use_local_storage=False,
        local_storage_path=str(tmp_path / "store"),
        upload_dir=str(tmp_path / "uploads"),
        claude_api_key="",
        ai_evaluator_url="",
    )


@pytest.fixture
def component_service(storage: MemoryStorage) -> ComponentService:
    return ComponentService(storage)


@pytest.fixture
def link_service(storage: MemoryStorage, component_service: ComponentService) -> LinkService:
    return LinkService(storage, component_service)


@pytest.fixture
def architecture_service(
    storage: MemoryStorage,
    component_service: ComponentService,
    link_service: LinkService,
) -> ArchitectureService:
    return ArchitectureService(storage, component_service, link_service)


@pytest.fixture
def app(storage: MemoryStorage, settings: Settings) -> Iterator[FastAPI]:
    """Provide the FastAPI app wired to the test storage and settings, without rate limits."""
    fastapi_app.dependency_overrides[get_storage] = lambda: storage
    fastapi_app.dependency_overrides[get_settings] = lambda: settings
    limiter.enabled = False
    yield fastapi_app
    limiter.enabled = True
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Provide a test client for the API."""
    return TestClient(app)


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    """Sign up and sign in a user, returning its bearer header."""
    client.post("/signup", json={"name": "Ada", "email": "ada@example.com", "password": "s3cret"})
    response = client.post("/signin", json={"email": "ada@example.com", "password": "s3cret"})
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def make_component() -> MakeComponentFunc:
    """Build components without storage; heuristics follow the type and subtype."""

    def _make(
        component_id: str,
        component_type: ComponentType,
        name: str | None = None,
        subtype: str | None = None,
        scores: dict[Parameter, float] | None = None,
    ) -> Component:
        heuristics = HeuristicProfile(scores=scores) if scores is not None else heuristics_for(component_type, subtype)
        return Component(
            id=component_id,
            name=name or component_id,
            type=component_type,
            heuristics=heuristics,
            properties={"subtype": subtype} if subtype else {},
        )

    return _make


@pytest.fixture
def make_link() -> MakeLinkFunc:
    """Build links without storage."""

    def _make(link_id: str, source_id: str, target_id: str, link_type: LinkType) -> Link:
        return Link(
            id=link_id,
            source_id=source_id,
            target_id=target_id,
            type=link_type,
            heuristics=default_heuristics_for_link(link_type),
        )

    return _make


@pytest.fixture
def web_architecture(make_component: MakeComponentFunc, make_link: MakeLinkFunc) -> Architecture:
    """A small valid web stack: client -> load balancer -> API -> cache and database."""
    components = [
        make_component("client", ComponentType.CLIENT, "Browser"),
        make_component("lb", ComponentType.LOAD_BALANCER, "Edge LB", "L7"),
        make_component("api", ComponentType.API_SERVICE, "Orders API", "REST"),
        make_component("cache", ComponentType.CACHE, "Session Cache", "REDIS"),
        make_component("db", ComponentType.DATABASE, "Orders DB", "POSTGRESQL"),
    ]
    links = [
        make_link("l1", "client", "lb", LinkType.HTTP_REQUEST),
        make_link("l2", "lb", "api", LinkType.LOAD_BALANCE),
        make_link("l3", "api", "cache", LinkType.CACHE_LOOKUP),
        make_link("l4", "api", "db", LinkType.DATABASE_QUERY),
    ]
    return Architecture(id="web", name="Web Stack", components=components, links=links)
