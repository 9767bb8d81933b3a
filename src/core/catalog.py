"""Catalog of component types, subtypes, link types and scoring parameters."""

from __future__ import annotations

from enum import StrEnum

from core.exceptions import DomainValidationError

DEFAULT_SUBTYPE = "default"


class ComponentType(StrEnum):
    """Kinds of architecture components that can be placed on a diagram."""

    DATABASE = "DATABASE"
    CACHE = "CACHE"
    API_SERVICE = "API_SERVICE"
    QUEUE = "QUEUE"
    STORAGE = "STORAGE"
    LOAD_BALANCER = "LOAD_BALANCER"
    STREAM_PROCESSOR = "STREAM_PROCESSOR"
    BATCH_PROCESSOR = "BATCH_PROCESSOR"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    CLIENT = "CLIENT"


class LinkType(StrEnum):
    """Kinds of connections between two components."""

    HTTP_REQUEST = "HTTP_REQUEST"
    GRPC_CALL = "GRPC_CALL"
    WEBSOCKET = "WEBSOCKET"
    DATABASE_QUERY = "DATABASE_QUERY"
    CACHE_LOOKUP = "CACHE_LOOKUP"
    MESSAGE_PUBLISH = "MESSAGE_PUBLISH"
    MESSAGE_CONSUME = "MESSAGE_CONSUME"
    EVENT_STREAM = "EVENT_STREAM"
    FILE_TRANSFER = "FILE_TRANSFER"
    REPLICATION = "REPLICATION"
    LOAD_BALANCE = "LOAD_BALANCE"


class Parameter(StrEnum):
    """Quality attributes scored on a 0-10 scale (higher is better)."""

    LATENCY = "LATENCY"
    COST = "COST"
    AVAILABILITY = "AVAILABILITY"
    CONSISTENCY = "CONSISTENCY"
    SECURITY = "SECURITY"
    DURABILITY = "DURABILITY"
    SCALABILITY = "SCALABILITY"
    THROUGHPUT = "THROUGHPUT"
    MAINTAINABILITY = "MAINTAINABILITY"
    ENERGY_EFFICIENCY = "ENERGY_EFFICIENCY"


SUBTYPES: dict[ComponentType, tuple[str, ...]] = {
    ComponentType.DATABASE: ("POSTGRESQL", "MYSQL", "MONGODB", "CASSANDRA", "DYNAMODB"),
    ComponentType.CACHE: ("REDIS", "MEMCACHED", "CDN"),
    ComponentType.API_SERVICE: ("REST", "GRAPHQL", "GRPC"),
    ComponentType.QUEUE: ("KAFKA", "RABBITMQ", "SQS"),
    ComponentType.STORAGE: ("OBJECT_STORAGE", "BLOCK_STORAGE", "FILE_STORAGE"),
    ComponentType.LOAD_BALANCER: ("L4", "L7", "DNS"),
}

COMPONENTS_WITH_SUBTYPES: frozenset[ComponentType] = frozenset(SUBTYPES)


def subtypes_for(component_type: ComponentType) -> list[str]:
    """Return the selectable subtypes for a component type.

    Types without a subtype catalogue expose the single ``"default"`` subtype.
    """
    return list(SUBTYPES.get(component_type, (DEFAULT_SUBTYPE,)))


def normalize_subtype(component_type: ComponentType, subtype: str | None) -> str | None:
    """Return the canonical spelling of ``subtype`` for ``component_type``.

    Parameters
    ----------
    component_type : ComponentType
        The component type the subtype belongs to.
    subtype : str | None
        A subtype name in any case, or ``None``.

    Returns
    -------
    str | None
        The canonical subtype, or ``None`` when no subtype was given.

    Raises
    ------
    DomainValidationError
        If the subtype is not defined for the component type.

    """
    if subtype is None or not str(subtype).strip():
        return None
    candidate = str(subtype).strip()
    for known in subtypes_for(component_type):
        if known.lower() == candidate.lower():
            return known
    msg = f"Unknown subtype {candidate!r} for component type {component_type.value}"
    raise DomainValidationError(msg)
