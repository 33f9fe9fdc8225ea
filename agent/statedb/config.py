"""
Configuration for the StateDB agent.

Uses pydantic-settings for environment variable loading. Every setting
is read from a STATEDB_-prefixed variable, e.g. STATEDB_PORT=37017.

Invariants:
    - All settings have defaults matching a standard state server install
    - The password is never logged
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

from .ensure import EnsureServerRequest
from .replicaset.base import DialInfo
from .service.definition import DEFAULT_MONGOD_PATH

logger = logging.getLogger(__name__)


class StateDbSettings(BaseSettings):
    """Agent configuration loaded from environment."""

    # Local node
    address: str = Field(default="127.0.0.1", description="Address advertised as replica set seed")
    data_dir: str = Field(default="/var/lib/juju", description="Agent data directory")
    port: int = Field(default=37017, gt=0, lt=65536, description="mongod port")
    mongod_path: str = Field(default=DEFAULT_MONGOD_PATH, description="mongod executable")
    init_dir: str = Field(default="/etc/init", description="Upstart job directory")

    # Dialing the local mongod
    dial_timeout: float = Field(default=10.0, gt=0, description="Dial/query/initiate timeout seconds")
    username: Optional[str] = Field(default=None, description="Admin username")
    password: Optional[SecretStr] = Field(default=None, description="Admin password")
    use_tls: bool = Field(default=True, description="Connect to mongod over TLS")
    tls_ca_file: Optional[str] = Field(default=None, description="CA certificate for mongod")
    tls_allow_invalid_certificates: bool = Field(
        default=True, description="Accept the self-signed server.pem certificate"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["text", "json"] = Field(default="text", description="Log format")

    model_config = {"env_prefix": "STATEDB_"}

    @property
    def local_addr(self) -> str:
        """The address used to dial the local mongod."""
        return f"localhost:{self.port}"

    def dial_info(self) -> DialInfo:
        return DialInfo(
            addrs=[self.local_addr],
            timeout=self.dial_timeout,
            username=self.username,
            password=self.password.get_secret_value() if self.password else None,
            use_tls=self.use_tls,
            tls_ca_file=self.tls_ca_file,
            tls_allow_invalid_certificates=self.tls_allow_invalid_certificates,
        )

    def ensure_request(self) -> EnsureServerRequest:
        return EnsureServerRequest(
            address=self.address,
            data_dir=self.data_dir,
            port=self.port,
            dial_info=self.dial_info(),
        )

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "StateDB agent configuration loaded",
            extra={
                "address": self.address,
                "data_dir": self.data_dir,
                "port": self.port,
                "mongod_path": self.mongod_path,
                "init_dir": self.init_dir,
                "dial_timeout": self.dial_timeout,
                "username": self.username,
                "use_tls": self.use_tls,
                "log_level": self.log_level,
            },
        )
