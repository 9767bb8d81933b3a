"""Connection rule engine.

A link is allowed when the (source type, target type, link type) triple
appears in :data:`CONNECTION_RULES`. The same table drives link type
suggestions for a pair of components and whole-architecture validation.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, NamedTuple

from pydantic import Field

from core.catalog import ComponentType, LinkType
from core.schemas.diagram import CamelModel

if TYPE_CHECKING:
    from core.schemas.diagram import Architecture, Component

logger = logging.getLogger(__name__)

C = ComponentType
L = LinkType


class ConnectionRule(NamedTuple):
    """One allowed connection pattern."""

    source_type: ComponentType
    target_type: ComponentType
    link_type: LinkType
    description: str

    def to_dict(self) -> dict[str, str]:
        """Return the camelCase JSON form of the rule."""
        return {
            "sourceType": self.source_type.value,
            "targetType": self.target_type.value,
            "linkType": self.link_type.value,
            "description": self.description,
        }


CONNECTION_RULES: tuple[ConnectionRule, ...] = (
    ConnectionRule(C.CLIENT, C.LOAD_BALANCER, L.HTTP_REQUEST, "Clients reach the system through a load balancer"),
    ConnectionRule(C.CLIENT, C.LOAD_BALANCER, L.WEBSOCKET, "Long-lived client sessions via a load balancer"),
    ConnectionRule(C.CLIENT, C.API_SERVICE, L.HTTP_REQUEST, "Clients call an API directly"),
    ConnectionRule(C.CLIENT, C.API_SERVICE, L.GRPC_CALL, "Native clients call an API over gRPC"),
    ConnectionRule(C.CLIENT, C.API_SERVICE, L.WEBSOCKET, "Real-time client connections"),
    ConnectionRule(C.CLIENT, C.CACHE, L.HTTP_REQUEST, "Clients fetch static content from a CDN"),
    ConnectionRule(C.CLIENT, C.STORAGE, L.FILE_TRANSFER, "Clients upload or download files directly"),
    ConnectionRule(C.LOAD_BALANCER, C.API_SERVICE, L.LOAD_BALANCE, "Load balancer distributes traffic to services"),
    ConnectionRule(C.LOAD_BALANCER, C.API_SERVICE, L.HTTP_REQUEST, "Load balancer proxies HTTP requests"),
    ConnectionRule(C.LOAD_BALANCER, C.LOAD_BALANCER, L.LOAD_BALANCE, "Tiered load balancing"),
    ConnectionRule(C.API_SERVICE, C.API_SERVICE, L.HTTP_REQUEST, "Service-to-service HTTP call"),
    ConnectionRule(C.API_SERVICE, C.API_SERVICE, L.GRPC_CALL, "Service-to-service gRPC call"),
    ConnectionRule(C.API_SERVICE, C.LOAD_BALANCER, L.HTTP_REQUEST, "Service calls an internal load balancer"),
    ConnectionRule(C.API_SERVICE, C.DATABASE, L.DATABASE_QUERY, "Service reads and writes a database"),
    ConnectionRule(C.API_SERVICE, C.CACHE, L.CACHE_LOOKUP, "Service reads through a cache"),
    ConnectionRule(C.API_SERVICE, C.QUEUE, L.MESSAGE_PUBLISH, "Service publishes messages"),
    ConnectionRule(C.API_SERVICE, C.STORAGE, L.FILE_TRANSFER, "Service stores files or blobs"),
    ConnectionRule(C.API_SERVICE, C.EXTERNAL_SERVICE, L.HTTP_REQUEST, "Service calls a third-party API"),
    ConnectionRule(C.API_SERVICE, C.EXTERNAL_SERVICE, L.GRPC_CALL, "Service calls a third-party gRPC API"),
    ConnectionRule(C.API_SERVICE, C.STREAM_PROCESSOR, L.EVENT_STREAM, "Service emits events to a stream processor"),
    ConnectionRule(C.QUEUE, C.API_SERVICE, L.MESSAGE_CONSUME, "Worker service consumes messages"),
    ConnectionRule(C.QUEUE, C.STREAM_PROCESSOR, L.MESSAGE_CONSUME, "Stream processor consumes messages"),
    ConnectionRule(C.QUEUE, C.STREAM_PROCESSOR, L.EVENT_STREAM, "Stream processor reads an event log"),
    ConnectionRule(C.QUEUE, C.BATCH_PROCESSOR, L.MESSAGE_CONSUME, "Batch job drains a queue"),
    ConnectionRule(C.STREAM_PROCESSOR, C.DATABASE, L.DATABASE_QUERY, "Stream processor writes results"),
    ConnectionRule(C.STREAM_PROCESSOR, C.QUEUE, L.MESSAGE_PUBLISH, "Stream processor republishes derived events"),
    ConnectionRule(C.STREAM_PROCESSOR, C.CACHE, L.CACHE_LOOKUP, "Stream processor maintains a cache"),
    ConnectionRule(C.STREAM_PROCESSOR, C.STORAGE, L.FILE_TRANSFER, "Stream processor archives to storage"),
    ConnectionRule(C.BATCH_PROCESSOR, C.DATABASE, L.DATABASE_QUERY, "Batch job reads or writes a database"),
    ConnectionRule(C.BATCH_PROCESSOR, C.STORAGE, L.FILE_TRANSFER, "Batch job reads or writes files"),
    ConnectionRule(C.DATABASE, C.DATABASE, L.REPLICATION, "Database replica"),
    ConnectionRule(C.DATABASE, C.STREAM_PROCESSOR, L.EVENT_STREAM, "Change data capture"),
    ConnectionRule(C.CACHE, C.CACHE, L.REPLICATION, "Cache replica"),
    ConnectionRule(C.CACHE, C.DATABASE, L.DATABASE_QUERY, "Read-through cache loads from the database"),
    ConnectionRule(C.STORAGE, C.STORAGE, L.REPLICATION, "Cross-region storage replication"),
    ConnectionRule(C.EXTERNAL_SERVICE, C.API_SERVICE, L.HTTP_REQUEST, "Third-party webhook"),
    ConnectionRule(C.EXTERNAL_SERVICE, C.QUEUE, L.MESSAGE_PUBLISH, "Third-party events into a queue"),
)

_ALLOWED: frozenset[tuple[ComponentType, ComponentType, LinkType]] = frozenset(
    (rule.source_type, rule.target_type, rule.link_type) for rule in CONNECTION_RULES
)


class ArchitectureValidationResult(CamelModel):
    """Outcome of validating a whole architecture."""

    valid: bool
    violations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def all_rules() -> list[ConnectionRule]:
    """Return every connection rule in table order."""
    return list(CONNECTION_RULES)


def rules_for_link_type(link_type: LinkType) -> list[ConnectionRule]:
    """Return the rules that use ``link_type``."""
    return [rule for rule in CONNECTION_RULES if rule.link_type == link_type]


def validate_connection(source: Component, target: Component, link_type: LinkType) -> bool:
    """Return ``True`` if ``source`` may connect to ``target`` via ``link_type``.

    Self-links are never allowed, even where the type pair has a rule
    (``REPLICATION`` connects two distinct replicas).
    """
    if source.id == target.id:
        return False
    return (source.type, target.type, link_type) in _ALLOWED


def suggest_link_types(source: Component, target: Component) -> list[LinkType]:
    """Return the link types allowed between two components, in table order."""
    if source.id == target.id:
        return []
    suggestions: list[LinkType] = []
    for rule in CONNECTION_RULES:
        if rule.source_type == source.type and rule.target_type == target.type and rule.link_type not in suggestions:
            suggestions.append(rule.link_type)
    return suggestions


def validate_architecture(architecture: Architecture) -> ArchitectureValidationResult:
    """Check every link of an architecture against the rules.

    Parameters
    ----------
    architecture : Architecture
        The architecture to validate.

    Returns
    -------
    ArchitectureValidationResult
        ``valid`` is ``True`` iff no violations were found; warnings never
        make an architecture invalid.

    """
    violations: list[str] = []
    warnings: list[str] = []
    by_id = {component.id: component for component in architecture.components}

    if not architecture.components:
        warnings.append("Architecture is empty. Add components to build your system.")

    for link in architecture.links:
        source = by_id.get(link.source_id)
        target = by_id.get(link.target_id)
        if source is None or target is None:
            violations.append(f"Link {link.id} references a component that is not part of this architecture.")
            continue
        if source.id == target.id:
            violations.append(f"Link {link.id} connects {source.name} to itself.")
            continue
        if not validate_connection(source, target, link.type):
            violations.append(
                f"Invalid connection: {source.name} ({source.type.value}) -> "
                f"{target.name} ({target.type.value}) via {link.type.value}."
            )

    duplicates = Counter((link.source_id, link.target_id, link.type) for link in architecture.links)
    for (source_id, target_id, link_type), count in duplicates.items():
        if count > 1:
            source_name = by_id[source_id].name if source_id in by_id else source_id
            target_name = by_id[target_id].name if target_id in by_id else target_id
            warnings.append(f"Duplicate {link_type.value} link from {source_name} to {target_name} ({count}x).")

    if len(architecture.components) > 1:
        connected = {link.source_id for link in architecture.links} | {link.target_id for link in architecture.links}
        for component in architecture.components:
            if component.id not in connected:
                warnings.append(f"Component {component.name} ({component.type.value}) is not connected.")

    if architecture.components and not any(c.type == ComponentType.CLIENT for c in architecture.components):
        warnings.append("No CLIENT component. Consider modelling where traffic enters the system.")

    logger.debug(
        "Validated architecture %s: %d violations, %d warnings",
        architecture.id, len(violations), len(warnings),
    )
    return ArchitectureValidationResult(valid=not violations, violations=violations, warnings=warnings)
