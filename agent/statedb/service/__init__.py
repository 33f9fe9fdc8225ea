"""
Process supervisor integration for the state database service.

This package provides:
- ServiceSupervisor protocol and ServiceDefinition (base)
- The mongod service definition and its versioned naming (definition)
- Removal of definitions left by older versions (migrate)
- Upstart and in-memory supervisor backends

Invariants:
    - At most one definition for the current script version is installed
    - No definition for an older version survives a convergence pass
"""

from .base import ServiceDefinition, ServiceSupervisor
from .definition import (
    DEFAULT_MONGOD_PATH,
    REPLICA_SET_NAME,
    SCRIPT_VERSION,
    SERVICE_BASE_NAME,
    build_service_definition,
    service_name,
)
from .memory import InMemorySupervisor
from .migrate import legacy_service_names, remove_old_services
from .upstart import UpstartSupervisor

__all__ = [
    # Protocol and types
    "ServiceSupervisor",
    "ServiceDefinition",
    # Definition
    "build_service_definition",
    "service_name",
    "SCRIPT_VERSION",
    "SERVICE_BASE_NAME",
    "REPLICA_SET_NAME",
    "DEFAULT_MONGOD_PATH",
    # Migration
    "legacy_service_names",
    "remove_old_services",
    # Implementations
    "UpstartSupervisor",
    "InMemorySupervisor",
]
