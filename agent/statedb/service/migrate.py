"""
Removal of service definitions installed by older agent versions.

Before versioned names existed the service was installed as plain
"juju-db". Versioned names ("juju-db-v2", ...) started at version 2, so
for a current version N the candidates are the unversioned name plus
every version in [2, N).
"""

from __future__ import annotations

import logging

from ..errors import MigrationError, SupervisorError
from .base import ServiceSupervisor
from .definition import SERVICE_BASE_NAME, service_name

logger = logging.getLogger(__name__)

FIRST_VERSIONED_SCRIPT = 2


def legacy_service_names(
    current_version: int, base_name: str = SERVICE_BASE_NAME
) -> list[str]:
    """Return every service name an older version could have installed.

    The unversioned name comes first, then versioned names oldest first.
    """
    names = [base_name]
    names.extend(
        service_name(version, base_name)
        for version in range(FIRST_VERSIONED_SCRIPT, current_version)
    )
    return names


def remove_old_services(
    supervisor: ServiceSupervisor,
    current_version: int,
    base_name: str = SERVICE_BASE_NAME,
) -> None:
    """Stop and remove every legacy service definition.

    Names that are not installed are skipped by the supervisor, so this is
    safe to repeat after a partial failure.

    Raises:
        MigrationError: If the supervisor fails to stop or remove one of them
    """
    for name in legacy_service_names(current_version, base_name):
        try:
            supervisor.stop_and_remove(name)
        except SupervisorError as e:
            logger.error("failed to remove old mongo service %r: %s", name, e)
            raise MigrationError(
                f"failed to remove old mongo service {name!r}: {e}", service=name
            ) from e
