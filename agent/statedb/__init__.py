"""
StateDB agent - convergence of a node's local state database.

Each controller node runs a mongod that stores the cluster's control-plane
state. This package drives that mongod into its desired state from any
starting point:

    ┌──────────────────┐   ┌──────────────────┐   ┌──────────────────┐
    │ remove legacy    │──▶│ preallocate      │──▶│ install + start  │
    │ service defs     │   │ journal (1st run)│   │ juju-db-v<N>     │
    └──────────────────┘   └──────────────────┘   └────────┬─────────┘
                                                           │
                                                           ▼
                                                  ┌──────────────────┐
                                                  │ initiate replica │
                                                  │ set (if absent)  │
                                                  └──────────────────┘

Invariants:
    - ensure_server() is idempotent; repeat it after any failure
    - The process supervisor and the database are injected, never global
    - Errors are StateDbError subclasses naming the failed operation

How to change safely:
    - Bump SCRIPT_VERSION whenever the service command line changes
    - Keep legacy names removable for as long as upgrades from them exist

Example:
    >>> from agent.statedb import (
    ...     MongoClusterDialer, StateDbSettings, UpstartSupervisor, ensure_server,
    ...     setup_logging,
    ... )
    >>> settings = StateDbSettings()
    >>> setup_logging(settings.log_level, settings.log_format)
    >>> settings.log_config()
    >>> ensure_server(
    ...     settings.ensure_request(),
    ...     UpstartSupervisor(settings.init_dir),
    ...     MongoClusterDialer(),
    ...     mongod_path=settings.mongod_path,
    ... )
"""

from ._version import __version__
from .config import StateDbSettings
from .ensure import EnsureServerRequest, ensure_server, remove_service
from .errors import (
    ClusterError,
    ClusterTimeoutError,
    ConnectError,
    InitiateError,
    InstallError,
    MigrationError,
    PreallocationError,
    QueryError,
    StartError,
    StateDbError,
    SupervisorError,
)
from .journal import make_journal_dirs
from .observability import setup_logging
from .replicaset import DialInfo, InMemoryCluster, MongoClusterDialer, initiate_replica_set
from .service import (
    SCRIPT_VERSION,
    InMemorySupervisor,
    ServiceDefinition,
    UpstartSupervisor,
    build_service_definition,
    remove_old_services,
    service_name,
)

__all__ = [
    "__version__",
    # Entry points
    "ensure_server",
    "remove_service",
    "EnsureServerRequest",
    "StateDbSettings",
    "setup_logging",
    # Components
    "make_journal_dirs",
    "build_service_definition",
    "service_name",
    "remove_old_services",
    "initiate_replica_set",
    "ServiceDefinition",
    "DialInfo",
    "SCRIPT_VERSION",
    # Backends
    "UpstartSupervisor",
    "InMemorySupervisor",
    "MongoClusterDialer",
    "InMemoryCluster",
    # Errors
    "StateDbError",
    "PreallocationError",
    "SupervisorError",
    "MigrationError",
    "InstallError",
    "StartError",
    "ClusterError",
    "ConnectError",
    "QueryError",
    "InitiateError",
    "ClusterTimeoutError",
]
