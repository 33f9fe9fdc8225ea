"""
Unit tests for the Upstart supervisor.

initctl is never executed; subprocess.run is replaced with a fake that
tracks which jobs are running.

Tests cover:
- Installed/running detection
- Install writes the job file
- Start/stop command handling
- stop_and_remove on present and missing jobs
"""

import subprocess
import tempfile

import pytest

from agent.statedb.errors import SupervisorError
from agent.statedb.service import upstart
from agent.statedb.service.base import ServiceDefinition
from agent.statedb.service.upstart import UpstartSupervisor


class FakeInitctl:
    """Stands in for status/start/stop."""

    def __init__(self):
        self.running = set()
        self.commands = []
        self.fail = set()

    def __call__(self, args, capture_output=True, text=True, timeout=None):
        self.commands.append(list(args))
        verb, name = args
        if verb in self.fail:
            return subprocess.CompletedProcess(args, 1, "", f"{verb}: Job failed")
        if verb == "status":
            if name in self.running:
                return subprocess.CompletedProcess(args, 0, f"{name} start/running, process 1234\n", "")
            return subprocess.CompletedProcess(args, 0, f"{name} stop/waiting\n", "")
        if verb == "start":
            self.running.add(name)
        elif verb == "stop":
            self.running.discard(name)
        return subprocess.CompletedProcess(args, 0, "", "")


class TestUpstartSupervisor:
    """Tests for UpstartSupervisor."""

    @pytest.fixture
    def init_dir(self):
        """Create temporary init directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    def initctl(self, monkeypatch):
        fake = FakeInitctl()
        monkeypatch.setattr(upstart.subprocess, "run", fake)
        return fake

    @pytest.fixture
    def supervisor(self, init_dir, initctl):
        return UpstartSupervisor(init_dir=init_dir)

    @pytest.fixture
    def definition(self):
        return ServiceDefinition(
            name="juju-db-v2",
            cmd="/usr/bin/mongod --port 37017",
            description="juju state database",
            limits={"nofile": "65000 65000"},
        )

    def test_install_writes_conf(self, supervisor, definition):
        assert not supervisor.installed("juju-db-v2")

        supervisor.install(definition)

        assert supervisor.installed("juju-db-v2")
        conf = supervisor.conf_path("juju-db-v2").read_text()
        assert conf == definition.render_upstart()

    def test_install_twice_fails(self, supervisor, definition):
        supervisor.install(definition)

        with pytest.raises(SupervisorError) as exc_info:
            supervisor.install(definition)

        assert exc_info.value.operation == "install"

    def test_running_parses_status(self, supervisor, initctl):
        assert not supervisor.running("juju-db-v2")

        initctl.running.add("juju-db-v2")

        assert supervisor.running("juju-db-v2")

    def test_running_false_when_status_fails(self, supervisor, initctl):
        initctl.fail.add("status")

        assert not supervisor.running("juju-db-v2")

    def test_start(self, supervisor, initctl, definition):
        supervisor.install(definition)

        supervisor.start("juju-db-v2")

        assert supervisor.running("juju-db-v2")
        assert ["start", "juju-db-v2"] in initctl.commands

    def test_start_already_running_is_noop(self, supervisor, initctl):
        initctl.running.add("juju-db-v2")

        supervisor.start("juju-db-v2")

        assert ["start", "juju-db-v2"] not in initctl.commands

    def test_start_failure(self, supervisor, initctl):
        initctl.fail.add("start")

        with pytest.raises(SupervisorError) as exc_info:
            supervisor.start("juju-db-v2")

        assert exc_info.value.service == "juju-db-v2"
        assert "Job failed" in str(exc_info.value)

    def test_stop_and_remove(self, supervisor, initctl, definition):
        supervisor.install(definition)
        initctl.running.add("juju-db-v2")

        supervisor.stop_and_remove("juju-db-v2")

        assert not supervisor.installed("juju-db-v2")
        assert ["stop", "juju-db-v2"] in initctl.commands

    def test_stop_and_remove_missing_is_noop(self, supervisor, initctl):
        supervisor.stop_and_remove("juju-db")

        assert initctl.commands == []

    def test_stop_failure_keeps_conf(self, supervisor, initctl, definition):
        """An unkillable process leaves the definition in place."""
        supervisor.install(definition)
        initctl.running.add("juju-db-v2")
        initctl.fail.add("stop")

        with pytest.raises(SupervisorError):
            supervisor.stop_and_remove("juju-db-v2")

        assert supervisor.installed("juju-db-v2")

    def test_missing_initctl(self, supervisor, monkeypatch):
        def missing(*args, **kwargs):
            raise FileNotFoundError("start")

        monkeypatch.setattr(upstart.subprocess, "run", missing)

        with pytest.raises(SupervisorError):
            supervisor.start("juju-db-v2")
