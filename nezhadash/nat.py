"""Cache of NAT traversal configurations keyed by domain."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass
class NAT:
    id: int = 0
    name: str = ""
    server_id: int = 0
    host: str = ""
    domain: str = ""


class NATCache:
    """Thread-safe lookup of NAT entries by their domain."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._by_domain: dict[str, NAT] = {}

    def update(self, nats: Iterable[NAT]) -> None:
        """Replace the whole cache with the given entries."""
        fresh = {nat.domain: nat for nat in nats}
        with self._lock:
            self._by_domain = fresh

    def get_by_domain(self, domain: str) -> NAT | None:
        with self._lock:
            return self._by_domain.get(domain)