"""
pymongo-backed cluster sessions.

The replica set does not exist yet when we bootstrap, so the node is
always dialed directly (directConnection=True) rather than through
replica set discovery.

Invariants:
    - dial() returns only after the node has answered a ping
    - The replica set config lives in local.system.replset; an empty
      collection means the set has never been initiated
    - Timeouts surface as TimeoutError, chained to the pymongo error
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from pymongo import MongoClient
from pymongo.errors import (
    ExecutionTimeout,
    NetworkTimeout,
    PyMongoError,
    ServerSelectionTimeoutError,
    WTimeoutError,
)

from .base import (
    ClusterSession,
    ConfigQueryResult,
    DialInfo,
    Found,
    NotFound,
    QueryFailed,
    ReplicaSetConfig,
    seed_config,
)

logger = logging.getLogger(__name__)

_TIMEOUT_ERRORS = (
    ServerSelectionTimeoutError,
    NetworkTimeout,
    ExecutionTimeout,
    WTimeoutError,
)


def client_options(info: DialInfo) -> Dict[str, Any]:
    """Translate DialInfo into MongoClient keyword arguments.

    pymongo refuses several hosts with directConnection, so a direct dial
    only targets the first address.
    """
    timeout_ms = int(info.timeout * 1000)
    options: Dict[str, Any] = {
        "host": [info.primary_addr] if info.direct else list(info.addrs),
        "directConnection": info.direct,
        "serverSelectionTimeoutMS": timeout_ms,
        "connectTimeoutMS": timeout_ms,
        "socketTimeoutMS": timeout_ms,
        "tls": info.use_tls,
    }
    if info.use_tls:
        options["tlsAllowInvalidCertificates"] = info.tls_allow_invalid_certificates
        if info.tls_ca_file:
            options["tlsCAFile"] = info.tls_ca_file
    if info.username:
        options["username"] = info.username
        options["password"] = info.password
        options["authSource"] = "admin"
    return options


class MongoSession(ClusterSession):
    """A session to a single mongod."""

    def __init__(self, client: MongoClient, address: str) -> None:
        self.client = client
        self.address = address

    def current_config(self) -> ConfigQueryResult:
        try:
            doc = self.client.local["system.replset"].find_one()
        except _TIMEOUT_ERRORS as e:
            return QueryFailed(_timeout(f"query replica set config on {self.address}", e))
        except PyMongoError as e:
            return QueryFailed(e)
        if doc is None:
            return NotFound()
        return Found(ReplicaSetConfig.from_document(doc))

    def initiate(self, address: str, name: str) -> None:
        config = seed_config(address, name).to_document()
        logger.debug("Running replSetInitiate on %s: %r", self.address, config)
        try:
            self.client.admin.command("replSetInitiate", config)
        except _TIMEOUT_ERRORS as e:
            raise _timeout(f"replSetInitiate on {self.address}", e) from e

    def close(self) -> None:
        self.client.close()


class MongoClusterDialer:
    """Dials mongod nodes with pymongo.

    Example:
        >>> dialer = MongoClusterDialer()
        >>> with dialer.dial(DialInfo(addrs=["localhost:37017"])) as session:
        ...     session.current_config()
    """

    def dial(self, info: DialInfo) -> MongoSession:
        client: MongoClient = MongoClient(**client_options(info))
        try:
            client.admin.command("ping")
        except _TIMEOUT_ERRORS as e:
            client.close()
            raise _timeout(f"dial {info.primary_addr}", e) from e
        except PyMongoError:
            client.close()
            raise
        logger.debug("Connected to mongo at %s", info.primary_addr)
        return MongoSession(client, info.primary_addr)


def _timeout(operation: str, err: Exception) -> TimeoutError:
    timeout = TimeoutError(f"{operation} timed out: {err}")
    timeout.__cause__ = err
    return timeout
