"""
config.py — process-wide settings, fixed at startup
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .transfer import DEFAULT_DOWNLOAD_SIZE

# ---------- DEFAULTS ----------
DEFAULT_ADDRESS = "127.0.0.1:8000"
LOG_FORMAT = "%(asctime)s [TRAFFIC] %(message)s"
# ------------------------------


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    log_file: Optional[str] = None
    default_size: int = DEFAULT_DOWNLOAD_SIZE
    request_timeout: Optional[float] = None
    cors: bool = True

    @property
    def address(self):
        return f"{self.host}:{self.port}"

    @classmethod
    def from_address(cls, address, **kwargs):
        """Build a config from a ``host:port`` string (``[::1]:8000`` for IPv6)."""
        host, sep, port = address.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid address {address!r}, expected host:port")
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        port = int(port)
        if port > 65535:
            raise ValueError(f"invalid port in address {address!r}")
        return cls(host=host or "0.0.0.0", port=port, **kwargs)


def configure_logging(config: ServerConfig, level=logging.INFO):
    """Send log lines to stderr, or append them to ``config.log_file``."""
    kwargs = {"level": level, "format": LOG_FORMAT, "force": True}
    if config.log_file:
        kwargs["filename"] = config.log_file
    logging.basicConfig(**kwargs)
