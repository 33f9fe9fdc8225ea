"""
Replica set bootstrap for the state database.

This package provides:
- ClusterDialer/ClusterSession protocols and the tagged config query result
- initiate_replica_set(), the exactly-once check-then-initiate
- A pymongo backend and an in-memory cluster for tests
"""

from .base import (
    ClusterDialer,
    ClusterSession,
    ConfigQueryResult,
    DialInfo,
    Found,
    NotFound,
    QueryFailed,
    ReplicaSetConfig,
    ReplicaSetMember,
    seed_config,
)
from .bootstrap import initiate_replica_set
from .memory import InMemoryCluster
from .mongo import MongoClusterDialer

__all__ = [
    # Protocol and types
    "ClusterDialer",
    "ClusterSession",
    "DialInfo",
    "ReplicaSetConfig",
    "ReplicaSetMember",
    "ConfigQueryResult",
    "Found",
    "NotFound",
    "QueryFailed",
    "seed_config",
    # Bootstrap
    "initiate_replica_set",
    # Implementations
    "MongoClusterDialer",
    "InMemoryCluster",
]
