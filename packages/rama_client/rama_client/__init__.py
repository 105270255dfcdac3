"""REST client for Rama clusters with redirect-aware routing."""

from __future__ import annotations

from .clients import DepotAppendBuilder, PStateQueryBuilder, RamaClient
from .config import ClientConfig, get_config
from .domain.exceptions import (
    BuilderConsumedError,
    InvalidSupervisorLocationsError,
    InvalidURLError,
    MaxRedirectsExceededError,
    MissingLocationHeaderError,
    MissingSupervisorLocationsHeaderError,
    RamaClientError,
    RedirectHeaderError,
    ResponseDecodeError,
    TransportError,
    UnexpectedStatusError,
)
from .domain.path import Path
from .domain.values import (
    encode_byte,
    encode_char,
    encode_float,
    encode_function,
    encode_keyword,
    encode_long,
    encode_ops_function,
    encode_short,
)
from .infrastructure.cache import TopologyCache, get_topology_cache
from .models import AckLevel, DepotAppendRequest

__version__ = "0.1.0"

__all__ = [
    "AckLevel",
    "BuilderConsumedError",
    "ClientConfig",
    "DepotAppendBuilder",
    "DepotAppendRequest",
    "InvalidSupervisorLocationsError",
    "InvalidURLError",
    "MaxRedirectsExceededError",
    "MissingLocationHeaderError",
    "MissingSupervisorLocationsHeaderError",
    "PStateQueryBuilder",
    "Path",
    "RamaClient",
    "RamaClientError",
    "RedirectHeaderError",
    "ResponseDecodeError",
    "TopologyCache",
    "TransportError",
    "UnexpectedStatusError",
    "encode_byte",
    "encode_char",
    "encode_float",
    "encode_function",
    "encode_keyword",
    "encode_long",
    "encode_ops_function",
    "encode_short",
    "get_config",
    "get_topology_cache",
]
