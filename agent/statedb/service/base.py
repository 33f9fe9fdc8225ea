"""
Base protocol and types for the process supervisor.

This module defines the ServiceSupervisor protocol that every supervisor
backend implements, along with the ServiceDefinition it installs.

Invariants:
    - ServiceDefinition is immutable and built fresh on every pass
    - stop_and_remove() of a service that does not exist is a no-op
    - install() of a service that already exists is an error; callers
      check installed() first
    - Every failure surfaces as SupervisorError

How to change safely:
    - Protocol changes require updating all implementations
    - Keep render_upstart() output stable; an installed conf is only
      rewritten when the script version (and so the name) changes
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Protocol, runtime_checkable


@dataclass(frozen=True)
class ServiceDefinition:
    """A named description of how the supervisor runs a program.

    Attributes:
        name: Versioned service name (e.g. juju-db-v2)
        cmd: Full command line, already shell-quoted
        description: Human readable description
        limits: Resource limits, mapping limit name to "<soft> <hard>"
    """

    name: str
    cmd: str
    description: str = ""
    limits: Dict[str, str] = field(default_factory=dict)

    def render_upstart(self) -> str:
        """Render the definition as an Upstart job file."""
        lines = [f'description "{self.description}"']
        lines.append("start on runlevel [2345]")
        lines.append("stop on runlevel [!2345]")
        lines.append("respawn")
        lines.append("normal exit 0")
        lines.append("")
        for key in sorted(self.limits):
            lines.append(f"limit {key} {self.limits[key]}")
        if self.limits:
            lines.append("")
        lines.append(f"exec {self.cmd}")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return f"ServiceDefinition(name={self.name})"


@runtime_checkable
class ServiceSupervisor(Protocol):
    """Protocol for process supervisor backends.

    Example:
        >>> supervisor = UpstartSupervisor()
        >>> if not supervisor.installed(definition.name):
        ...     supervisor.install(definition)
        >>> if not supervisor.running(definition.name):
        ...     supervisor.start(definition.name)
    """

    @abstractmethod
    def installed(self, name: str) -> bool:
        """Whether a definition with this name is installed."""
        ...

    @abstractmethod
    def running(self, name: str) -> bool:
        """Whether the named service is currently running."""
        ...

    @abstractmethod
    def install(self, definition: ServiceDefinition) -> None:
        """Install a service definition.

        Raises:
            SupervisorError: If writing the definition fails or it already exists
        """
        ...

    @abstractmethod
    def start(self, name: str) -> None:
        """Start an installed service.

        Raises:
            SupervisorError: If the service does not reach the running state
        """
        ...

    @abstractmethod
    def stop(self, name: str) -> None:
        """Stop the service if it is running.

        Raises:
            SupervisorError: If the service cannot be stopped
        """
        ...

    @abstractmethod
    def stop_and_remove(self, name: str) -> None:
        """Stop the service and delete its definition.

        Succeeds without doing anything if the service is not installed.

        Raises:
            SupervisorError: If stop or removal fails
        """
        ...
