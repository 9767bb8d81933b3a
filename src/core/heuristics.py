"""Default heuristic profiles for component types, subtypes and link types.

Scores are on a 0-10 scale where higher is always better; a high ``COST``
score means the option is cheap to run.
"""

from __future__ import annotations

from core.catalog import ComponentType, LinkType, Parameter, normalize_subtype
from core.schemas.diagram import HeuristicProfile

P = Parameter

MIN_SCORE = 0.0
MAX_SCORE = 10.0

COMPONENT_BASELINES: dict[ComponentType, dict[Parameter, float]] = {
    ComponentType.DATABASE: {
        P.LATENCY: 6.0, P.COST: 5.0, P.AVAILABILITY: 7.0, P.CONSISTENCY: 8.0, P.SECURITY: 7.0,
        P.DURABILITY: 9.0, P.SCALABILITY: 6.0, P.THROUGHPUT: 6.0, P.MAINTAINABILITY: 7.0,
        P.ENERGY_EFFICIENCY: 6.0,
    },
    ComponentType.CACHE: {
        P.LATENCY: 9.5, P.COST: 6.0, P.AVAILABILITY: 7.0, P.CONSISTENCY: 5.0, P.SECURITY: 6.0,
        P.DURABILITY: 3.0, P.SCALABILITY: 8.0, P.THROUGHPUT: 9.0, P.MAINTAINABILITY: 7.0,
        P.ENERGY_EFFICIENCY: 7.0,
    },
    ComponentType.API_SERVICE: {
        P.LATENCY: 7.0, P.COST: 7.0, P.AVAILABILITY: 7.5, P.CONSISTENCY: 7.0, P.SECURITY: 7.0,
        P.DURABILITY: 5.0, P.SCALABILITY: 8.0, P.THROUGHPUT: 7.0, P.MAINTAINABILITY: 8.0,
        P.ENERGY_EFFICIENCY: 7.0,
    },
    ComponentType.QUEUE: {
        P.LATENCY: 6.0, P.COST: 6.5, P.AVAILABILITY: 8.0, P.CONSISTENCY: 6.0, P.SECURITY: 7.0,
        P.DURABILITY: 8.0, P.SCALABILITY: 8.5, P.THROUGHPUT: 8.5, P.MAINTAINABILITY: 6.5,
        P.ENERGY_EFFICIENCY: 6.5,
    },
    ComponentType.STORAGE: {
        P.LATENCY: 5.0, P.COST: 8.0, P.AVAILABILITY: 8.5, P.CONSISTENCY: 7.0, P.SECURITY: 7.5,
        P.DURABILITY: 9.5, P.SCALABILITY: 9.0, P.THROUGHPUT: 7.0, P.MAINTAINABILITY: 8.0,
        P.ENERGY_EFFICIENCY: 7.5,
    },
    ComponentType.LOAD_BALANCER: {
        P.LATENCY: 8.0, P.COST: 6.5, P.AVAILABILITY: 9.0, P.CONSISTENCY: 7.0, P.SECURITY: 7.5,
        P.DURABILITY: 5.0, P.SCALABILITY: 9.0, P.THROUGHPUT: 9.0, P.MAINTAINABILITY: 7.5,
        P.ENERGY_EFFICIENCY: 7.0,
    },
    ComponentType.STREAM_PROCESSOR: {
        P.LATENCY: 7.5, P.COST: 5.0, P.AVAILABILITY: 7.0, P.CONSISTENCY: 6.0, P.SECURITY: 6.5,
        P.DURABILITY: 6.0, P.SCALABILITY: 8.5, P.THROUGHPUT: 9.0, P.MAINTAINABILITY: 5.5,
        P.ENERGY_EFFICIENCY: 5.5,
    },
    ComponentType.BATCH_PROCESSOR: {
        P.LATENCY: 3.0, P.COST: 7.5, P.AVAILABILITY: 6.5, P.CONSISTENCY: 8.0, P.SECURITY: 6.5,
        P.DURABILITY: 7.0, P.SCALABILITY: 8.0, P.THROUGHPUT: 9.0, P.MAINTAINABILITY: 6.5,
        P.ENERGY_EFFICIENCY: 7.5,
    },
    ComponentType.EXTERNAL_SERVICE: {
        P.LATENCY: 5.0, P.COST: 5.5, P.AVAILABILITY: 6.5, P.CONSISTENCY: 6.0, P.SECURITY: 5.5,
        P.DURABILITY: 5.0, P.SCALABILITY: 7.0, P.THROUGHPUT: 6.0, P.MAINTAINABILITY: 6.0,
        P.ENERGY_EFFICIENCY: 6.0,
    },
    ComponentType.CLIENT: {
        P.LATENCY: 7.0, P.COST: 9.0, P.AVAILABILITY: 7.0, P.CONSISTENCY: 6.0, P.SECURITY: 5.0,
        P.DURABILITY: 4.0, P.SCALABILITY: 9.0, P.THROUGHPUT: 6.0, P.MAINTAINABILITY: 7.0,
        P.ENERGY_EFFICIENCY: 8.0,
    },
}

# Deltas applied on top of the type baseline.
SUBTYPE_ADJUSTMENTS: dict[tuple[ComponentType, str], dict[Parameter, float]] = {
    (ComponentType.DATABASE, "POSTGRESQL"): {P.CONSISTENCY: 1.5, P.SCALABILITY: -0.5, P.MAINTAINABILITY: 1.0},
    (ComponentType.DATABASE, "MYSQL"): {P.CONSISTENCY: 1.0, P.COST: 1.0},
    (ComponentType.DATABASE, "MONGODB"): {P.SCALABILITY: 1.5, P.CONSISTENCY: -1.5, P.LATENCY: 0.5},
    (ComponentType.DATABASE, "CASSANDRA"): {
        P.SCALABILITY: 3.0, P.AVAILABILITY: 2.0, P.THROUGHPUT: 2.5, P.CONSISTENCY: -3.0, P.MAINTAINABILITY: -1.5,
    },
    (ComponentType.DATABASE, "DYNAMODB"): {
        P.SCALABILITY: 3.0, P.AVAILABILITY: 2.0, P.LATENCY: 1.5, P.COST: -1.5, P.MAINTAINABILITY: 1.5,
    },
    (ComponentType.CACHE, "REDIS"): {P.DURABILITY: 2.0, P.CONSISTENCY: 1.0},
    (ComponentType.CACHE, "MEMCACHED"): {P.LATENCY: 0.5, P.DURABILITY: -2.0, P.COST: 1.0},
    (ComponentType.CACHE, "CDN"): {P.SCALABILITY: 1.5, P.AVAILABILITY: 2.0, P.CONSISTENCY: -2.0, P.COST: -1.0},
    (ComponentType.API_SERVICE, "REST"): {P.MAINTAINABILITY: 1.0},
    (ComponentType.API_SERVICE, "GRAPHQL"): {P.LATENCY: -0.5, P.THROUGHPUT: 0.5, P.MAINTAINABILITY: -0.5},
    (ComponentType.API_SERVICE, "GRPC"): {P.LATENCY: 1.5, P.THROUGHPUT: 1.5, P.MAINTAINABILITY: -1.0},
    (ComponentType.QUEUE, "KAFKA"): {P.THROUGHPUT: 1.5, P.DURABILITY: 1.0, P.MAINTAINABILITY: -1.5, P.COST: -1.0},
    (ComponentType.QUEUE, "RABBITMQ"): {P.LATENCY: 1.0, P.THROUGHPUT: -1.0, P.CONSISTENCY: 1.0},
    (ComponentType.QUEUE, "SQS"): {P.MAINTAINABILITY: 2.0, P.AVAILABILITY: 1.0, P.LATENCY: -1.0},
    (ComponentType.STORAGE, "OBJECT_STORAGE"): {P.COST: 1.0, P.LATENCY: -1.0},
    (ComponentType.STORAGE, "BLOCK_STORAGE"): {P.LATENCY: 2.5, P.SCALABILITY: -2.0, P.COST: -1.5},
    (ComponentType.STORAGE, "FILE_STORAGE"): {P.LATENCY: 1.0, P.SCALABILITY: -1.0},
    (ComponentType.LOAD_BALANCER, "L4"): {P.LATENCY: 1.0, P.THROUGHPUT: 0.5, P.SECURITY: -1.0},
    (ComponentType.LOAD_BALANCER, "L7"): {P.SECURITY: 1.0, P.LATENCY: -0.5, P.MAINTAINABILITY: 0.5},
    (ComponentType.LOAD_BALANCER, "DNS"): {P.AVAILABILITY: 0.5, P.LATENCY: -1.0, P.CONSISTENCY: -1.5},
}

LINK_BASELINES: dict[LinkType, dict[Parameter, float]] = {
    LinkType.HTTP_REQUEST: {P.LATENCY: 6.5, P.THROUGHPUT: 6.5, P.SECURITY: 7.0, P.MAINTAINABILITY: 8.5},
    LinkType.GRPC_CALL: {P.LATENCY: 8.5, P.THROUGHPUT: 8.5, P.SECURITY: 7.5, P.MAINTAINABILITY: 6.5},
    LinkType.WEBSOCKET: {P.LATENCY: 9.0, P.THROUGHPUT: 7.0, P.SCALABILITY: 5.5, P.MAINTAINABILITY: 6.0},
    LinkType.DATABASE_QUERY: {P.LATENCY: 6.0, P.CONSISTENCY: 8.5, P.THROUGHPUT: 6.0},
    LinkType.CACHE_LOOKUP: {P.LATENCY: 9.5, P.THROUGHPUT: 9.0, P.CONSISTENCY: 5.0},
    LinkType.MESSAGE_PUBLISH: {P.LATENCY: 7.5, P.AVAILABILITY: 8.5, P.SCALABILITY: 8.5, P.CONSISTENCY: 5.5},
    LinkType.MESSAGE_CONSUME: {P.LATENCY: 6.0, P.AVAILABILITY: 8.0, P.SCALABILITY: 8.5, P.DURABILITY: 8.0},
    LinkType.EVENT_STREAM: {P.LATENCY: 8.0, P.THROUGHPUT: 9.0, P.SCALABILITY: 8.5, P.MAINTAINABILITY: 5.5},
    LinkType.FILE_TRANSFER: {P.LATENCY: 4.0, P.THROUGHPUT: 7.5, P.DURABILITY: 8.5, P.COST: 7.0},
    LinkType.REPLICATION: {P.AVAILABILITY: 9.0, P.DURABILITY: 9.5, P.CONSISTENCY: 6.5, P.COST: 4.5},
    LinkType.LOAD_BALANCE: {P.AVAILABILITY: 9.0, P.SCALABILITY: 9.0, P.LATENCY: 8.0},
}


def _clamp(value: float) -> float:
    return round(min(MAX_SCORE, max(MIN_SCORE, value)), 2)


def heuristics_for(component_type: ComponentType, subtype: str | None = None) -> HeuristicProfile:
    """Build the heuristic profile of a component type, refined by its subtype.

    Parameters
    ----------
    component_type : ComponentType
        The component type.
    subtype : str | None
        Optional subtype; unknown subtypes raise, ``None`` or ``"default"``
        leave the baseline untouched.

    Returns
    -------
    HeuristicProfile
        A fresh profile the caller may mutate freely.

    """
    scores = dict(COMPONENT_BASELINES[component_type])
    canonical = normalize_subtype(component_type, subtype)
    for parameter, delta in SUBTYPE_ADJUSTMENTS.get((component_type, canonical or ""), {}).items():
        scores[parameter] = scores.get(parameter, 5.0) + delta
    return HeuristicProfile(scores={parameter: _clamp(value) for parameter, value in scores.items()})


def default_heuristics_for_link(link_type: LinkType) -> HeuristicProfile:
    """Return a fresh copy of the baseline profile for a link type."""
    return HeuristicProfile(scores=dict(LINK_BASELINES[link_type]))
