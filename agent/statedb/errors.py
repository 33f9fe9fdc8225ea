"""
Error types for the StateDB agent.

Every failure that aborts a convergence pass is raised as a subclass of
StateDbError:
- PreallocationError: journal directory or preallocation file failure
- SupervisorError: the process supervisor rejected an operation
- MigrationError: a legacy service definition could not be removed
- InstallError / StartError: the current service could not be installed/started
- ClusterError: the database cluster could not be dialed, queried or initiated

Invariants:
    - All errors inherit from StateDbError
    - Errors carry the operation and target needed to diagnose them
    - The original exception is always chained as __cause__
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class StateDbError(Exception):
    """Base exception for all StateDB agent errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "STATEDB_ERROR"
        self.details = details or {}


class PreallocationError(StateDbError):
    """Failed to create the journal directory or a preallocation file."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="PREALLOCATION_ERROR",
            details={"path": path},
        )
        self.path = path


class SupervisorError(StateDbError):
    """The process supervisor failed to perform an operation.

    Raised by ServiceSupervisor implementations when:
    - A service definition cannot be written or deleted
    - A start/stop command exits with an error
    - Install is requested for a service that already exists
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="SUPERVISOR_ERROR",
            details={"service": service, "operation": operation},
        )
        self.service = service
        self.operation = operation


class _ServiceError(StateDbError):
    code = "SERVICE_ERROR"

    def __init__(self, message: str, service: str) -> None:
        super().__init__(message, code=self.code, details={"service": service})
        self.service = service


class MigrationError(_ServiceError):
    """A legacy service definition could not be stopped or removed."""

    code = "MIGRATION_ERROR"


class InstallError(_ServiceError):
    """The current service definition could not be installed."""

    code = "INSTALL_ERROR"


class StartError(_ServiceError):
    """The installed service could not be started."""

    code = "START_ERROR"


class ClusterError(StateDbError):
    """Base error for database cluster operations.

    Attributes:
        address: The address being dialed or initiated
        operation: One of "dial", "query", "initiate"
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        operation: Optional[str] = None,
        code: str = "CLUSTER_ERROR",
    ) -> None:
        super().__init__(
            message,
            code=code,
            details={"address": address, "operation": operation},
        )
        self.address = address
        self.operation = operation


class ConnectError(ClusterError):
    """Could not open a session to the local database.

    The supervisor may report the service as running while mongod is not
    yet (or no longer) accepting connections.
    """

    def __init__(self, message: str, address: Optional[str] = None) -> None:
        super().__init__(message, address=address, operation="dial", code="CONNECT_ERROR")


class QueryError(ClusterError):
    """Reading the replica set configuration failed for a reason other than absence."""

    def __init__(self, message: str, address: Optional[str] = None) -> None:
        super().__init__(message, address=address, operation="query", code="QUERY_ERROR")


class InitiateError(ClusterError):
    """The cluster rejected or failed the replica set initiate.

    This includes losing a race against another node that initiated first.
    """

    def __init__(self, message: str, address: Optional[str] = None) -> None:
        super().__init__(
            message, address=address, operation="initiate", code="INITIATE_ERROR"
        )


class ClusterTimeoutError(ClusterError):
    """A dial, query or initiate did not complete within the configured timeout."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        super().__init__(message, address=address, operation=operation, code="TIMEOUT")
