"""
Replica set bootstrap.

Every state server node runs this after mongod is started. Only a node
that finds no replica set config initiates one, naming itself as the seed
member. Anything other than "not found" is either already converged or a
local failure, so this collapses to a single check-then-act.

Invariants:
    - An existing config means nothing to do
    - Initiate is attempted at most once per call and never retried
    - Query failures never lead to an initiate

How to change safely:
    - Two nodes can both see NotFound and both initiate; the cluster lets
      one win and the loser gets InitiateError. Leader selection belongs to
      the caller, not here.
"""

from __future__ import annotations

import logging

from ..errors import ClusterTimeoutError, ConnectError, InitiateError, QueryError
from ..service.definition import REPLICA_SET_NAME
from .base import ClusterDialer, DialInfo, Found, NotFound, QueryFailed

logger = logging.getLogger(__name__)


def initiate_replica_set(
    dialer: ClusterDialer,
    address: str,
    port: int,
    info: DialInfo,
    name: str = REPLICA_SET_NAME,
) -> bool:
    """Initiate the replica set if it does not exist yet.

    Args:
        dialer: Opens the session to the local node
        address: This node's address, used for the seed member
        port: mongod port, used for the seed member
        info: How to reach the local node
        name: Replica set name

    Returns:
        True if this call initiated the set, False if it already existed

    Raises:
        ConnectError: If the node cannot be dialed
        QueryError: If the current config cannot be read
        InitiateError: If the initiate is rejected (including losing a race)
        ClusterTimeoutError: If any of the above timed out
    """
    logger.debug(
        "Initiating mongo replicaset with address %r, port %d, dial addrs %r",
        address,
        port,
        info.addrs,
    )
    target = info.primary_addr

    try:
        session = dialer.dial(info)
    except TimeoutError as e:
        raise ClusterTimeoutError(
            f"timed out dialing mongo at {target} to initiate replicaset: {e}",
            address=target,
            operation="dial",
        ) from e
    except Exception as e:
        raise ConnectError(
            f"can't dial mongo at {target} to initiate replicaset: {e}", address=target
        ) from e

    with session:
        result = session.current_config()

        if isinstance(result, Found):
            logger.debug(
                "Replicaset %r already initiated (version %d)",
                result.config.name,
                result.config.version,
            )
            return False

        if isinstance(result, QueryFailed):
            cause = result.cause
            if isinstance(cause, TimeoutError):
                raise ClusterTimeoutError(
                    f"timed out getting replicaset config from {target}: {cause}",
                    address=target,
                    operation="query",
                ) from cause
            raise QueryError(
                f"error getting replicaset config from {target}: {cause}", address=target
            ) from cause

        if not isinstance(result, NotFound):
            raise QueryError(
                f"unexpected replicaset config query result from {target}: {result!r}",
                address=target,
            )

        seed = f"{address}:{port}"
        try:
            session.initiate(seed, name)
        except TimeoutError as e:
            raise ClusterTimeoutError(
                f"timed out initiating replicaset {name!r} with seed {seed}: {e}",
                address=seed,
                operation="initiate",
            ) from e
        except Exception as e:
            raise InitiateError(
                f"error from mongo initiate of {name!r} with seed {seed}: {e}", address=seed
            ) from e

    logger.info("Initiated replicaset %r with seed member %s", name, seed)
    return True
