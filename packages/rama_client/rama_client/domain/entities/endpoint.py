"""Endpoint domain entity."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Endpoint:
    """A physical node able to serve a module.

    Attributes:
        host: Host name or IP address (IPv6 without brackets)
        port: TCP port
    """

    host: str
    port: int

    @classmethod
    def parse(cls, host_port: str) -> Endpoint:
        """Parse a ``"host:port"`` string as advertised by Supervisor-Locations.

        Args:
            host_port: The advertised location, e.g. ``"10.0.0.5:2000"`` or ``"[::1]:2000"``

        Returns:
            The parsed endpoint

        Raises:
            ValueError: If there is no port separator, the host is empty, or the
                port is not an integer in 0..65535
        """
        host, sep, port_text = host_port.strip().rpartition(":")
        if not sep:
            raise ValueError(f"'{host_port}' does not contain ':'")
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        if not host:
            raise ValueError(f"'{host_port}' has an empty host")
        port = int(port_text)
        if not 0 <= port <= 65535:
            raise ValueError(f"Port {port} out of range in '{host_port}'")
        return cls(host=host, port=port)

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"
