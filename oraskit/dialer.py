"""A dialer that redirects chosen host and port pairs to fixed addresses."""

from __future__ import annotations

import socket
from dataclasses import dataclass, field
from typing import Any, Callable

DialFunc = Callable[[str, str], Any]


def _default_dial(network: str, address: str) -> socket.socket:
    if network not in ("tcp", "tcp4", "tcp6"):
        raise ValueError(f"unsupported network: {network}")
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {address}")
    return socket.create_connection((host.strip("[]"), int(port)))


@dataclass
class Dialer:
    """Opens connections, rewriting addresses registered with :meth:`add`."""

    base_dial: DialFunc = _default_dial
    resolve: dict[str, str] = field(default_factory=dict)

    def add(self, host: str, port: int, ip: Any, ip_port: int) -> None:
        """Route connections to ``host:port`` to ``ip:ip_port`` instead."""
        self.resolve[f"{host}:{port}"] = f"{ip}:{ip_port}"

    def dial(self, network: str, address: str) -> Any:
        """Connect to the address, or to its registered replacement."""
        return self.base_dial(network, self.resolve.get(address, address))