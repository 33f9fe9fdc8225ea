"""
Unit tests for the pymongo cluster backend.

No mongod is needed; MongoClient is replaced with a MagicMock.

Tests cover:
- DialInfo to client option translation
- Config query outcomes
- replSetInitiate document
- Timeout mapping
"""

from unittest import mock

import pytest
from pymongo.errors import NetworkTimeout, OperationFailure, ServerSelectionTimeoutError

from agent.statedb.errors import ClusterTimeoutError
from agent.statedb.replicaset import mongo
from agent.statedb.replicaset.base import DialInfo, Found, NotFound, QueryFailed
from agent.statedb.replicaset.bootstrap import initiate_replica_set
from agent.statedb.replicaset.mongo import MongoClusterDialer, MongoSession, client_options


class TestClientOptions:
    """Tests for client_options."""

    def test_defaults(self):
        options = client_options(DialInfo(addrs=["localhost:37017"], timeout=2.5))

        assert options["host"] == ["localhost:37017"]
        assert options["directConnection"] is True
        assert options["serverSelectionTimeoutMS"] == 2500
        assert options["connectTimeoutMS"] == 2500
        assert options["socketTimeoutMS"] == 2500
        assert options["tls"] is True
        assert "username" not in options

    def test_credentials(self):
        options = client_options(
            DialInfo(addrs=["localhost:37017"], username="admin", password="pw")
        )

        assert options["username"] == "admin"
        assert options["password"] == "pw"
        assert options["authSource"] == "admin"

    def test_tls_settings(self):
        options = client_options(
            DialInfo(
                addrs=["localhost:37017"],
                tls_ca_file="/var/lib/juju/ca.pem",
                tls_allow_invalid_certificates=True,
            )
        )

        assert options["tlsCAFile"] == "/var/lib/juju/ca.pem"
        assert options["tlsAllowInvalidCertificates"] is True

    def test_direct_dial_targets_first_address(self):
        """Several addresses with a direct dial only pass the first to pymongo."""
        options = client_options(
            DialInfo(addrs=["10.0.0.1:37017", "10.0.0.2:37017"], use_tls=False)
        )

        assert options["host"] == ["10.0.0.1:37017"]
        assert options["directConnection"] is True

    def test_discovery_dial_keeps_all_addresses(self):
        options = client_options(
            DialInfo(addrs=["10.0.0.1:37017", "10.0.0.2:37017"], direct=False)
        )

        assert options["host"] == ["10.0.0.1:37017", "10.0.0.2:37017"]
        assert options["directConnection"] is False

    def test_no_tls(self):
        options = client_options(DialInfo(addrs=["localhost:37017"], use_tls=False))

        assert options["tls"] is False
        assert "tlsAllowInvalidCertificates" not in options


class TestMongoSession:
    """Tests for MongoSession."""

    @pytest.fixture
    def client(self):
        return mock.MagicMock()

    @pytest.fixture
    def session(self, client):
        return MongoSession(client, "localhost:37017")

    def _replset(self, client):
        return client.local.__getitem__.return_value

    def test_not_found(self, client, session):
        self._replset(client).find_one.return_value = None

        assert session.current_config() == NotFound()
        client.local.__getitem__.assert_called_with("system.replset")

    def test_found(self, client, session):
        self._replset(client).find_one.return_value = {
            "_id": "juju",
            "version": 3,
            "members": [{"_id": 1, "host": "10.0.0.1:37017"}],
        }

        result = session.current_config()

        assert isinstance(result, Found)
        assert result.config.name == "juju"
        assert result.config.version == 3
        assert result.config.members[0].address == "10.0.0.1:37017"

    def test_query_failure(self, client, session):
        error = OperationFailure("not authorized on local")
        self._replset(client).find_one.side_effect = error

        result = session.current_config()

        assert result == QueryFailed(error)

    def test_query_timeout(self, client, session):
        self._replset(client).find_one.side_effect = NetworkTimeout("timed out")

        result = session.current_config()

        assert isinstance(result, QueryFailed)
        assert isinstance(result.cause, TimeoutError)

    def test_query_server_selection_timeout(self, client, session):
        """A node that stops answering after the dial is a timeout, not a query error."""
        self._replset(client).find_one.side_effect = ServerSelectionTimeoutError("no servers")

        result = session.current_config()

        assert isinstance(result, QueryFailed)
        assert isinstance(result.cause, TimeoutError)
        assert isinstance(result.cause.__cause__, ServerSelectionTimeoutError)

    def test_initiate_document(self, client, session):
        session.initiate("10.0.0.1:37017", "juju")

        client.admin.command.assert_called_once_with(
            "replSetInitiate",
            {"_id": "juju", "version": 1, "members": [{"_id": 1, "host": "10.0.0.1:37017"}]},
        )

    def test_initiate_failure_propagates(self, client, session):
        client.admin.command.side_effect = OperationFailure("already initialized")

        with pytest.raises(OperationFailure):
            session.initiate("10.0.0.1:37017", "juju")

    def test_initiate_timeout(self, client, session):
        client.admin.command.side_effect = NetworkTimeout("timed out")

        with pytest.raises(TimeoutError):
            session.initiate("10.0.0.1:37017", "juju")

    def test_initiate_server_selection_timeout(self, client, session):
        client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(TimeoutError):
            session.initiate("10.0.0.1:37017", "juju")

    def test_close(self, client, session):
        with session:
            pass

        client.close.assert_called_once_with()


class TestMongoClusterDialer:
    """Tests for MongoClusterDialer."""

    @pytest.fixture
    def client_cls(self, monkeypatch):
        cls = mock.MagicMock()
        monkeypatch.setattr(mongo, "MongoClient", cls)
        return cls

    def test_dial_pings(self, client_cls):
        session = MongoClusterDialer().dial(DialInfo(addrs=["localhost:37017"]))

        client_cls.return_value.admin.command.assert_called_once_with("ping")
        assert session.address == "localhost:37017"

    def test_dial_failure_closes_client(self, client_cls):
        client_cls.return_value.admin.command.side_effect = OperationFailure(
            "Authentication failed."
        )

        with pytest.raises(OperationFailure):
            MongoClusterDialer().dial(DialInfo(addrs=["localhost:37017"]))

        client_cls.return_value.close.assert_called_once_with()

    def test_dial_timeout(self, client_cls):
        client_cls.return_value.admin.command.side_effect = NetworkTimeout("timed out")

        with pytest.raises(TimeoutError):
            MongoClusterDialer().dial(DialInfo(addrs=["localhost:37017"]))

        client_cls.return_value.close.assert_called_once_with()

    def test_unreachable_node_is_dial_timeout(self, client_cls):
        """An unreachable node surfaces as a dial timeout from initiate_replica_set."""
        client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError(
            "127.0.0.1:1: connection refused"
        )

        with pytest.raises(ClusterTimeoutError) as exc_info:
            initiate_replica_set(
                MongoClusterDialer(), "127.0.0.1", 1, DialInfo(addrs=["127.0.0.1:1"])
            )

        assert exc_info.value.operation == "dial"
        client_cls.return_value.close.assert_called_once_with()
