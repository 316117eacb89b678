"""Registry of tunnel clients known to the server."""

import threading
from typing import Any, Hashable


class ClientManager:
    """Thread-safe map from a client address to the socket that reaches it."""

    def __init__(self) -> None:
        self._clients: dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def add_client(self, addr: Hashable, socket: Any) -> None:
        """Register ``addr``, replacing any socket already stored for it."""
        with self._lock:
            self._clients[addr] = socket

    def remove_client(self, addr: Hashable) -> None:
        """Forget ``addr``; unknown addresses are ignored."""
        with self._lock:
            self._clients.pop(addr, None)

    def get_clients(self) -> list[tuple[Hashable, Any]]:
        """Return a snapshot of all (address, socket) pairs."""
        with self._lock:
            return list(self._clients.items())