"""
Service definition for the mongod state server.

SCRIPT_VERSION tracks changes to the generated command line. Bump it
whenever build_service_definition() changes what it produces; the new name
causes the old definition to be removed and the new one installed on the
next convergence pass.
"""

from __future__ import annotations

import os
import shlex

from .base import ServiceDefinition

SERVICE_BASE_NAME = "juju-db"
SCRIPT_VERSION = 2

REPLICA_SET_NAME = "juju"
DEFAULT_MONGOD_PATH = "/usr/bin/mongod"

MAX_FILES = 65000
MAX_PROCS = 20000


def service_name(version: int, base_name: str = SERVICE_BASE_NAME) -> str:
    """Return the versioned service name, e.g. juju-db-v2."""
    return f"{base_name}-v{version}"


def build_service_definition(
    name: str,
    data_dir: str,
    db_dir: str,
    port: int,
    mongod_path: str = DEFAULT_MONGOD_PATH,
) -> ServiceDefinition:
    """Build the supervisor definition for the mongod state server.

    Assumes a server.pem key file exists in data_dir. No I/O is done here.

    Args:
        name: Service name to install under
        data_dir: Agent data directory holding server.pem
        db_dir: mongod dbpath
        port: Port mongod listens on
        mongod_path: mongod executable

    Returns:
        The service definition
    """
    key_file = os.path.join(data_dir, "server.pem")
    args = [
        shlex.quote(mongod_path),
        "--auth",
        "--dbpath=" + shlex.quote(db_dir),
        "--sslOnNormalPorts",
        "--sslPEMKeyFile", shlex.quote(key_file),
        "--sslPEMKeyPassword", "ignored",
        "--bind_ip", "0.0.0.0",
        "--port", str(port),
        "--noprealloc",
        "--syslog",
        "--smallfiles",
        "--replSet", REPLICA_SET_NAME,
    ]
    return ServiceDefinition(
        name=name,
        cmd=" ".join(args),
        description="juju state database",
        limits={
            "nofile": f"{MAX_FILES} {MAX_FILES}",
            "nproc": f"{MAX_PROCS} {MAX_PROCS}",
        },
    )
