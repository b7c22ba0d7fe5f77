"""In-memory registry of monitored servers and agent authentication."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any


@dataclass
class Host:
    ip: str = ""
    boot_time: int = 0
    country_code: str = ""
    platform: str = ""
    version: str = ""


@dataclass
class HostState:
    cpu: float = 0.0
    mem_used: int = 0
    net_in_transfer: int = 0
    net_out_transfer: int = 0
    uptime: int = 0


@dataclass(eq=False)
class Server:
    id: int
    name: str = ""
    tag: str = ""
    secret: str = ""
    display_index: int = 0
    hide_for_guest: bool = False
    enable_ddns: bool = False
    ddns_profiles: list[int] = field(default_factory=list)
    host: Host | None = None
    state: HostState | None = None
    last_active: datetime | None = None
    prev_transfer_in_snapshot: int = 0
    prev_transfer_out_snapshot: int = 0
    task_stream: Any = field(default=None, repr=False)
    task_close_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class AuthenticationError(PermissionError):
    """An agent could not be authenticated."""


def _sort_key(server: Server) -> tuple[int, int]:
    return -server.display_index, server.id


class ServerRegistry:
    """Servers by id, by secret and by tag, plus display-ordered lists."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.sorted_lock = threading.RLock()
        self.servers: dict[int, Server] = {}
        self.secret_to_id: dict[str, int] = {}
        self.tag_to_ids: dict[str, list[int]] = {}
        self.sorted_servers: list[Server] = []
        self.sorted_servers_for_guest: list[Server] = []

    def load(self, servers: Iterable[Server]) -> None:
        """Replace the registry contents with fresh copies of the given servers."""
        with self.lock:
            self.servers = {}
            self.secret_to_id = {}
            self.tag_to_ids = {}
            for server in servers:
                inner = replace(
                    server,
                    ddns_profiles=list(server.ddns_profiles),
                    host=Host(),
                    state=HostState(),
                    task_close_lock=threading.Lock(),
                )
                self.servers[inner.id] = inner
                self.secret_to_id[inner.secret] = inner.id
                self.tag_to_ids.setdefault(inner.tag, []).append(inner.id)
        self.resort()

    def resort(self) -> None:
        """Order servers by display index (highest first), then by id."""
        with self.lock, self.sorted_lock:
            ordered = sorted(self.servers.values(), key=_sort_key)
            self.sorted_servers = ordered
            self.sorted_servers_for_guest = [s for s in ordered if not s.hide_for_guest]

    def authenticate(self, metadata: Mapping[str, Sequence[str] | str] | None) -> int:
        """Return the id of the server whose secret is in the request metadata."""
        if metadata is None:
            raise AuthenticationError("failed to read metadata")
        values = metadata.get("client_secret")
        if isinstance(values, str):
            secret = values
        elif values:
            secret = values[0]
        else:
            secret = ""
        with self.lock:
            client_id = self.secret_to_id.get(secret)
            if client_id is None or client_id not in self.servers:
                raise AuthenticationError("client authentication failed")
            return client_id