"""
In-memory process supervisor for testing.

This module provides a dict-backed ServiceSupervisor for:
- Unit tests of the migration and convergence logic
- Local development without Upstart

Invariants:
    - Behaves like UpstartSupervisor: install of an existing name fails,
      stop_and_remove of a missing name is a no-op
    - Every call is recorded in order
    - Thread-safe for concurrent access

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with ServiceSupervisor protocol
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..errors import SupervisorError
from .base import ServiceDefinition

logger = logging.getLogger(__name__)


class InMemorySupervisor:
    """In-memory implementation of ServiceSupervisor for testing.

    Attributes:
        services: Installed definitions by name
        calls: Ordered (operation, name) tuples for every mutating call

    Example:
        >>> supervisor = InMemorySupervisor(installed=["juju-db"])
        >>> supervisor.stop_and_remove("juju-db")
        >>> supervisor.installed("juju-db")
        False
    """

    def __init__(
        self,
        installed: Iterable[str] = (),
        running: Iterable[str] = (),
    ) -> None:
        """Initialize the supervisor.

        Args:
            installed: Names to treat as already installed (with empty definitions)
            running: Names to treat as already running (must also be installed)
        """
        self.services: Dict[str, ServiceDefinition] = {
            name: ServiceDefinition(name=name, cmd="") for name in installed
        }
        self._running: Set[str] = set(running) & set(self.services)
        self.calls: List[Tuple[str, str]] = []
        self._failures: Dict[Tuple[str, Optional[str]], Exception] = {}
        self._lock = threading.Lock()

    def installed(self, name: str) -> bool:
        with self._lock:
            return name in self.services

    def running(self, name: str) -> bool:
        with self._lock:
            return name in self._running

    def install(self, definition: ServiceDefinition) -> None:
        with self._lock:
            self._record("install", definition.name)
            if definition.name in self.services:
                raise SupervisorError(
                    f"service {definition.name!r} is already installed",
                    service=definition.name,
                    operation="install",
                )
            self.services[definition.name] = definition
        logger.debug("InMemorySupervisor installed %s", definition.name)

    def start(self, name: str) -> None:
        with self._lock:
            self._record("start", name)
            if name not in self.services:
                raise SupervisorError(
                    f"service {name!r} is not installed", service=name, operation="start"
                )
            self._running.add(name)

    def stop(self, name: str) -> None:
        with self._lock:
            self._record("stop", name)
            self._running.discard(name)

    def stop_and_remove(self, name: str) -> None:
        with self._lock:
            if name not in self.services:
                return
            self._record("stop_and_remove", name)
            self._running.discard(name)
            del self.services[name]

    def _record(self, operation: str, name: str) -> None:
        self.calls.append((operation, name))
        failure = self._failures.get((operation, name)) or self._failures.get((operation, None))
        if failure is not None:
            raise failure

    # Testing helpers

    def fail_on(
        self,
        operation: str,
        name: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> None:
        """Make an operation raise.

        Args:
            operation: install, start, stop or stop_and_remove
            name: Only fail for this service (None for any)
            error: Exception to raise (a SupervisorError by default)
        """
        self._failures[(operation, name)] = error or SupervisorError(
            f"injected {operation} failure", service=name, operation=operation
        )

    def clear_failures(self) -> None:
        """Remove all injected failures."""
        self._failures.clear()

    def calls_for(self, operation: str) -> List[str]:
        """Names passed to an operation, in call order."""
        return [name for op, name in self.calls if op == operation]

    @property
    def installed_names(self) -> Set[str]:
        with self._lock:
            return set(self.services)
