"""Async HTTP client for the architecture service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from core.catalog import ComponentType, LinkType
from core.schemas.diagram import Architecture, CanvasPosition, Component, HeuristicProfile, Link

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class APIClientError(Exception):
    """The architecture service answered with a non-2xx status.

    Attributes
    ----------
    status_code : int
        HTTP status of the response.
    message : str
        The ``error`` field of the response body, or the reason phrase.

    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ArchitectureClient:
    """Thin async wrapper over the ``/api`` endpoints used by the editor.

    Parameters
    ----------
    base_url : str
        Root URL of the service, e.g. ``"http://localhost:8080"``.
    token : str | None
        Optional bearer token sent with every request.
    transport : httpx.AsyncBaseTransport | None
        Custom transport, e.g. ``httpx.ASGITransport(app=app)`` for in-process use.
    timeout : float
        Request timeout in seconds.

    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/api",
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self) -> ArchitectureClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        response = await self._client.request(method, path, json=json)
        if response.is_success:
            return response.json() if response.content else None

        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            message = str(body["error"])
        logger.warning("%s %s failed with %d: %s", method, path, response.status_code, message)
        raise APIClientError(response.status_code, message)

    # -- components ----------------------------------------------------------

    async def create_component(
        self,
        component_type: ComponentType,
        name: str,
        properties: dict[str, Any] | None = None,
        position: CanvasPosition | None = None,
    ) -> Component:
        payload: dict[str, Any] = {"type": component_type.value, "name": name, "properties": properties or {}}
        if position is not None:
            payload["position"] = position.model_dump()
        return Component.model_validate(await self._request("POST", "/components", payload))

    async def get_component(self, component_id: str) -> Component:
        return Component.model_validate(await self._request("GET", f"/components/{component_id}"))

    async def delete_component(self, component_id: str) -> None:
        await self._request("DELETE", f"/components/{component_id}")

    async def component_types(self) -> list[ComponentType]:
        return [ComponentType(t) for t in await self._request("GET", "/components/types")]

    async def subtypes(self, component_type: ComponentType) -> list[str]:
        data = await self._request("GET", f"/components/subtypes/{component_type.value}")
        return list(data["subtypes"])

    async def subtype_heuristics(self, component_type: ComponentType, subtype: str) -> HeuristicProfile:
        data = await self._request("GET", f"/components/heuristics/{component_type.value}/{subtype}")
        return HeuristicProfile.model_validate(data)

    # -- links ---------------------------------------------------------------

    @staticmethod
    def _link_payload(source_id: str, target_id: str, link_type: LinkType | None = None) -> dict[str, str]:
        payload = {"sourceId": source_id, "targetId": target_id}
        if link_type is not None:
            payload["linkType"] = link_type.value
        return payload

    async def create_link(self, source_id: str, target_id: str, link_type: LinkType) -> Link:
        data = await self._request("POST", "/links", self._link_payload(source_id, target_id, link_type))
        return Link.model_validate(data)

    async def validate_link(self, source_id: str, target_id: str, link_type: LinkType) -> dict[str, Any]:
        return await self._request("POST", "/links/validate", self._link_payload(source_id, target_id, link_type))

    async def suggest_link_types(self, source_id: str, target_id: str) -> list[LinkType]:
        data = await self._request("POST", "/links/suggest", self._link_payload(source_id, target_id))
        return [LinkType(t) for t in data.get("validLinkTypes", [])]

    async def delete_link(self, link_id: str) -> None:
        await self._request("DELETE", f"/links/{link_id}")

    async def link_types(self) -> list[LinkType]:
        return [LinkType(t) for t in await self._request("GET", "/links/types")]

    # -- architectures -------------------------------------------------------

    async def create_architecture(self, name: str) -> Architecture:
        return Architecture.model_validate(await self._request("POST", "/architecture", {"name": name}))

    async def get_architecture(self, architecture_id: str) -> Architecture:
        return Architecture.model_validate(await self._request("GET", f"/architecture/{architecture_id}"))

    async def update_architecture(self, architecture_id: str, name: str) -> Architecture:
        data = await self._request("PUT", f"/architecture/{architecture_id}", {"name": name})
        return Architecture.model_validate(data)

    async def add_component(self, architecture_id: str, component_id: str) -> Architecture:
        data = await self._request(
            "POST", f"/architecture/{architecture_id}/components", {"componentId": component_id}
        )
        return Architecture.model_validate(data)

    async def add_link(self, architecture_id: str, link_id: str) -> Architecture:
        data = await self._request("POST", f"/architecture/{architecture_id}/links", {"linkId": link_id})
        return Architecture.model_validate(data)

    async def copy_architecture(self, architecture_id: str, name: str | None = None) -> Architecture:
        payload = {"name": name} if name else {}
        return Architecture.model_validate(await self._request("POST", f"/architecture/{architecture_id}/copy", payload))

    async def evaluate(self, architecture_id: str) -> dict[str, Any]:
        return await self._request("POST", "/architecture/evaluate", {"architectureId": architecture_id})

    async def ai_evaluate(self, architecture_id: str, question: str) -> dict[str, Any]:
        return await self._request("POST", f"/architecture/{architecture_id}/ai-evaluate", {"question": question})

    async def validate(self, architecture_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/architecture/{architecture_id}/validate")

    async def submit(self, architecture_id: str, user_id: str, question_id: str) -> Architecture:
        data = await self._request(
            "POST", f"/architecture/{architecture_id}/submit", {"userId": user_id, "questionId": question_id}
        )
        return Architecture.model_validate(data)
