"""
Convergence of the local state server.

ensure_server() brings this node's mongod to the desired state: the current
service definition installed and running, no definitions from older
versions left behind, and the replica set initiated. It is called on first
bootstrap, on every agent restart and after upgrades.

Invariants:
    - Steps run in a fixed order and stop at the first failure
    - Each step checks before acting, so a converged node only pays for a
      legacy-name scan and one config query
    - Journal preallocation runs only when the service is not installed
    - A failed pass can always be retried by calling ensure_server() again

How to change safely:
    - Changing the service command means bumping SCRIPT_VERSION
    - Never preallocate once a service has been installed; mongod may own
      the journal by then
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .errors import ClusterError, InstallError, StartError, SupervisorError
from .journal import make_journal_dirs
from .replicaset.base import ClusterDialer, DialInfo
from .replicaset.bootstrap import initiate_replica_set
from .service.base import ServiceSupervisor
from .service.definition import (
    DEFAULT_MONGOD_PATH,
    SCRIPT_VERSION,
    SERVICE_BASE_NAME,
    build_service_definition,
    service_name,
)
from .service.migrate import remove_old_services

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnsureServerRequest:
    """Everything needed to converge the local state server.

    Attributes:
        address: This node's address, advertised as the replica set seed
        data_dir: Agent data directory (holds server.pem and db/)
        port: mongod port
        dial_info: How to reach the local mongod
    """

    address: str
    data_dir: str
    port: int
    dial_info: DialInfo

    @property
    def db_dir(self) -> str:
        return os.path.join(self.data_dir, "db")


def ensure_server(
    request: EnsureServerRequest,
    supervisor: ServiceSupervisor,
    dialer: ClusterDialer,
    *,
    version: int = SCRIPT_VERSION,
    base_name: str = SERVICE_BASE_NAME,
    mongod_path: str = DEFAULT_MONGOD_PATH,
) -> None:
    """Ensure the mongod service is installed, running and replicated.

    Old service definitions are removed before the current one is
    installed.

    Args:
        request: Address, data directory, port and dial info
        supervisor: Process supervisor holding the service definitions
        dialer: Opens sessions to the local mongod
        version: Current script version
        base_name: Service base name
        mongod_path: mongod executable used in the command line

    Raises:
        MigrationError: If a legacy service cannot be removed
        PreallocationError: If the journal cannot be prepared
        InstallError: If the service definition cannot be installed
        StartError: If the service cannot be started
        ClusterError: If the replica set cannot be checked or initiated
    """
    logger.debug(
        "Ensuring mongo server is running. address: %s, dir: %s, port: %d",
        request.address,
        request.data_dir,
        request.port,
    )
    db_dir = request.db_dir
    name = service_name(version, base_name)

    remove_old_services(supervisor, version, base_name)

    definition = build_service_definition(
        name, request.data_dir, db_dir, request.port, mongod_path=mongod_path
    )

    if not supervisor.installed(name):
        make_journal_dirs(db_dir)

        logger.debug("mongod service command: %s", definition.cmd)
        try:
            supervisor.install(definition)
        except SupervisorError as e:
            raise InstallError(
                f"failed to install mongo service {name!r}: {e}", service=name
            ) from e

    if not supervisor.running(name):
        try:
            supervisor.start(name)
        except SupervisorError as e:
            raise StartError(f"failed to start {name!r} service: {e}", service=name) from e
        logger.info("Mongod service %r started.", name)

    try:
        initiate_replica_set(dialer, request.address, request.port, request.dial_info)
    except ClusterError as e:
        logger.debug("Error initiating replicaset: %s", e)
        raise


def remove_service(
    supervisor: ServiceSupervisor,
    *,
    version: int = SCRIPT_VERSION,
    base_name: str = SERVICE_BASE_NAME,
) -> None:
    """Stop and remove the current mongo service.

    Raises:
        SupervisorError: If the service cannot be stopped or removed
    """
    name = service_name(version, base_name)
    supervisor.stop_and_remove(name)
    logger.info("Removed mongo service %r", name)
