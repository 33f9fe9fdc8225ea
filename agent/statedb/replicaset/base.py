"""
Base protocol and types for talking to the database cluster.

This module defines the ClusterDialer/ClusterSession protocols that every
cluster backend implements, the DialInfo used to reach a node, and the
tagged result of a replica set configuration query.

Invariants:
    - current_config() never raises; it returns Found, NotFound or QueryFailed
    - Backends raise TimeoutError (or wrap it as QueryFailed.cause) when an
      operation exceeds DialInfo.timeout, and any other exception for
      every other failure
    - Sessions are closed by the caller, typically via `with`

How to change safely:
    - Protocol changes require updating all implementations
    - New query outcomes must be added to ConfigQueryResult and handled in
      bootstrap.initiate_replica_set
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union, runtime_checkable


@dataclass(frozen=True)
class DialInfo:
    """Parameters for opening a session to the database.

    Attributes:
        addrs: Target addresses as host:port
        timeout: Seconds allowed for dial, query and initiate
        username: Admin username (None to connect unauthenticated)
        password: Admin password
        use_tls: Whether to connect over TLS
        tls_ca_file: CA certificate used to verify the server
        tls_allow_invalid_certificates: Skip server certificate verification
        direct: Connect to the node directly rather than discovering a set
    """

    addrs: List[str]
    timeout: float = 10.0
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    use_tls: bool = True
    tls_ca_file: Optional[str] = None
    tls_allow_invalid_certificates: bool = False
    direct: bool = True

    def __post_init__(self) -> None:
        if not self.addrs:
            raise ValueError("DialInfo requires at least one address")
        if self.timeout <= 0:
            raise ValueError(f"DialInfo timeout must be positive, got {self.timeout}")

    @property
    def primary_addr(self) -> str:
        return self.addrs[0]


@dataclass(frozen=True)
class ReplicaSetMember:
    """A member entry of a replica set configuration."""

    id: int
    address: str


@dataclass(frozen=True)
class ReplicaSetConfig:
    """A replica set configuration document.

    Attributes:
        name: Replica set name (_id)
        version: Configuration version
        members: Member list
    """

    name: str
    version: int
    members: List[ReplicaSetMember] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> ReplicaSetConfig:
        """Create from a system.replset / replSetGetConfig document."""
        return cls(
            name=doc["_id"],
            version=int(doc.get("version", 0)),
            members=[
                ReplicaSetMember(id=int(m["_id"]), address=m["host"])
                for m in doc.get("members", [])
            ],
        )

    def to_document(self) -> Dict[str, Any]:
        """Convert to the document shape accepted by replSetInitiate."""
        return {
            "_id": self.name,
            "version": self.version,
            "members": [{"_id": m.id, "host": m.address} for m in self.members],
        }


@dataclass(frozen=True)
class Found:
    """The replica set already exists."""

    config: ReplicaSetConfig


@dataclass(frozen=True)
class NotFound:
    """No replica set has been initiated on this node."""


@dataclass(frozen=True)
class QueryFailed:
    """The configuration could not be read.

    Attributes:
        cause: The underlying exception (TimeoutError for timeouts)
    """

    cause: BaseException


ConfigQueryResult = Union[Found, NotFound, QueryFailed]


def seed_config(address: str, name: str) -> ReplicaSetConfig:
    """Return the initial configuration naming address as sole member."""
    return ReplicaSetConfig(
        name=name,
        version=1,
        members=[ReplicaSetMember(id=1, address=address)],
    )


@runtime_checkable
class ClusterSession(Protocol):
    """An open session to a database node."""

    @abstractmethod
    def current_config(self) -> ConfigQueryResult:
        """Read the current replica set configuration."""
        ...

    @abstractmethod
    def initiate(self, address: str, name: str) -> None:
        """Initiate a replica set with address as its seed member.

        Raises:
            TimeoutError: If the command times out
            Exception: Backend specific error if the node rejects it
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the session."""
        ...

    def __enter__(self) -> ClusterSession:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


@runtime_checkable
class ClusterDialer(Protocol):
    """Opens sessions to a database node."""

    @abstractmethod
    def dial(self, info: DialInfo) -> ClusterSession:
        """Open a session.

        Raises:
            TimeoutError: If the node does not answer within info.timeout
            Exception: Backend specific error for any other failure
        """
        ...
