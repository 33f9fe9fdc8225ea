"""
Upstart-backed process supervisor.

Service definitions are written as job files under /etc/init and driven
with the initctl front-ends (status/start/stop).

Invariants:
    - A service is installed iff <init_dir>/<name>.conf exists
    - A service is running iff `status <name>` reports start/running
    - stop_and_remove() of an uninstalled service does nothing
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from pathlib import Path
from typing import Sequence

from ..errors import SupervisorError
from .base import ServiceDefinition

logger = logging.getLogger(__name__)

DEFAULT_INIT_DIR = "/etc/init"

_RUNNING_RE = re.compile(r"^\S+ start/running, process \d+$", re.MULTILINE)


class UpstartSupervisor:
    """ServiceSupervisor implementation for Upstart.

    Attributes:
        init_dir: Directory holding job files
        timeout: Seconds to wait for each initctl command

    Example:
        >>> supervisor = UpstartSupervisor()
        >>> supervisor.running("juju-db-v2")
        True
    """

    def __init__(self, init_dir: str = DEFAULT_INIT_DIR, timeout: float = 30.0) -> None:
        self.init_dir = init_dir
        self.timeout = timeout

    def conf_path(self, name: str) -> Path:
        return Path(self.init_dir) / f"{name}.conf"

    def installed(self, name: str) -> bool:
        return self.conf_path(name).exists()

    def running(self, name: str) -> bool:
        try:
            result = self._run(["status", name], check=False)
        except SupervisorError:
            return False
        return result.returncode == 0 and bool(_RUNNING_RE.search(result.stdout))

    def install(self, definition: ServiceDefinition) -> None:
        path = self.conf_path(definition.name)
        if path.exists():
            raise SupervisorError(
                f"service {definition.name!r} is already installed",
                service=definition.name,
                operation="install",
            )
        try:
            path.write_text(definition.render_upstart())
            os.chmod(path, 0o644)
        except OSError as e:
            raise SupervisorError(
                f"cannot write {str(path)!r}: {e}",
                service=definition.name,
                operation="install",
            ) from e
        logger.debug("Installed upstart job %s", path)

    def start(self, name: str) -> None:
        if self.running(name):
            return
        self._run(["start", name], service=name, operation="start")

    def stop(self, name: str) -> None:
        if not self.running(name):
            return
        self._run(["stop", name], service=name, operation="stop")

    def stop_and_remove(self, name: str) -> None:
        if not self.installed(name):
            return
        self.stop(name)
        path = self.conf_path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise SupervisorError(
                f"cannot remove {str(path)!r}: {e}", service=name, operation="remove"
            ) from e
        logger.info("Removed upstart service %r", name)

    def _run(
        self,
        args: Sequence[str],
        check: bool = True,
        service: str | None = None,
        operation: str | None = None,
    ) -> subprocess.CompletedProcess[str]:
        try:
            result = subprocess.run(
                list(args),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SupervisorError(
                f"{' '.join(args)} failed: {e}", service=service, operation=operation
            ) from e
        if check and result.returncode != 0:
            output = (result.stderr or result.stdout).strip()
            raise SupervisorError(
                f"{' '.join(args)} failed with exit status {result.returncode}: {output}",
                service=service,
                operation=operation,
            )
        return result
