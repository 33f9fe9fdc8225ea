"""
In-memory database cluster for testing.

This module provides a fake cluster that several "nodes" can dial
concurrently, so the replica set bootstrap can be exercised without mongod:
- Unit tests of the check-then-initiate logic
- Race tests with multiple threads initiating the same set

Invariants:
    - Only the first initiate establishes the set; later ones fail the way
      mongod does ("already initialized")
    - All counters and state are guarded by one lock
    - Injected failures are raised from the operation they target

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with ClusterDialer/ClusterSession
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

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


class AlreadyInitializedError(Exception):
    """Raised by initiate when the set already exists."""


class InMemoryCluster:
    """Fake cluster implementing ClusterDialer.

    Attributes:
        config: The replica set config, None until initiated
        dials: DialInfo of every dial attempt
        queries: Number of current_config() calls
        initiates: (address, name) of every initiate attempt
        closed_sessions: Number of sessions closed

    Example:
        >>> cluster = InMemoryCluster()
        >>> with cluster.dial(DialInfo(addrs=["localhost:37017"])) as session:
        ...     session.initiate("10.0.0.1:37017", "juju")
        >>> cluster.config.members[0].address
        '10.0.0.1:37017'
    """

    def __init__(
        self,
        config: Optional[ReplicaSetConfig] = None,
        query_barrier: Optional[threading.Barrier] = None,
    ) -> None:
        """Initialize the cluster.

        Args:
            config: Existing replica set config (None for a fresh node)
            query_barrier: If set, every query waits on it before returning,
                forcing concurrent callers to all observe the same state
        """
        self.config = config
        self.query_barrier = query_barrier
        self.dials: List[DialInfo] = []
        self.queries = 0
        self.initiates: List[tuple[str, str]] = []
        self.closed_sessions = 0
        self.dial_error: Optional[BaseException] = None
        self.query_error: Optional[BaseException] = None
        self.initiate_error: Optional[BaseException] = None
        self._lock = threading.Lock()

    def dial(self, info: DialInfo) -> InMemorySession:
        with self._lock:
            self.dials.append(info)
            if self.dial_error is not None:
                raise self.dial_error
        return InMemorySession(self, info.primary_addr)

    # Called by sessions

    def _query(self) -> ConfigQueryResult:
        with self._lock:
            self.queries += 1
            if self.query_error is not None:
                result: ConfigQueryResult = QueryFailed(self.query_error)
            elif self.config is None:
                result = NotFound()
            else:
                result = Found(self.config)
        if self.query_barrier is not None:
            self.query_barrier.wait(timeout=5)
        return result

    def _initiate(self, address: str, name: str) -> None:
        with self._lock:
            self.initiates.append((address, name))
            if self.initiate_error is not None:
                raise self.initiate_error
            if self.config is not None:
                raise AlreadyInitializedError(
                    f"already initialized as {self.config.name!r}"
                )
            self.config = seed_config(address, name)
        logger.debug("InMemoryCluster initiated %s with seed %s", name, address)

    def _closed(self) -> None:
        with self._lock:
            self.closed_sessions += 1


class InMemorySession(ClusterSession):
    """A session on an InMemoryCluster."""

    def __init__(self, cluster: InMemoryCluster, address: str) -> None:
        self.cluster = cluster
        self.address = address
        self.closed = False

    def current_config(self) -> ConfigQueryResult:
        return self.cluster._query()

    def initiate(self, address: str, name: str) -> None:
        self.cluster._initiate(address, name)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.cluster._closed()
