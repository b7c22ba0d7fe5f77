"""Read-only views of the server registry for the public API."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from nezhadash.servers import Host, HostState, Server, ServerRegistry
from nezhadash.utils import split_ip_addr


@dataclass
class CommonServerInfo:
    id: int = 0
    name: str = ""
    tag: str = ""
    last_active: int = 0
    ipv4: str = ""
    ipv6: str = ""
    valid_ip: str = ""
    display_index: int = 0
    hide_for_guest: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tag": self.tag,
            "last_active": self.last_active,
            "ipv4": self.ipv4,
            "ipv6": self.ipv6,
            "valid_ip": self.valid_ip,
            "display_index": self.display_index,
            "hide_for_guest": self.hide_for_guest,
        }


@dataclass
class StatusResponse(CommonServerInfo):
    host: Host | None = None
    status: HostState | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["host"] = asdict(self.host) if self.host is not None else None
        data["status"] = asdict(self.status) if self.status is not None else None
        return data


@dataclass
class ServerStatusResponse:
    code: int = 0
    message: str = "success"
    result: list[StatusResponse] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "result": [item.to_dict() for item in self.result],
        }


@dataclass
class ServerInfoResponse:
    code: int = 0
    message: str = "success"
    result: list[CommonServerInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "result": [item.to_dict() for item in self.result],
        }


def _unix(server: Server) -> int:
    if server.last_active is None:
        return 0
    return int(server.last_active.timestamp())


def _info_fields(server: Server, ip: str, with_display: bool) -> dict[str, Any]:
    ipv4, ipv6, valid_ip = split_ip_addr(ip)
    fields: dict[str, Any] = {
        "id": server.id,
        "name": server.name,
        "tag": server.tag,
        "last_active": _unix(server),
        "ipv4": ipv4,
        "ipv6": ipv6,
        "valid_ip": valid_ip,
    }
    if with_display:
        fields["display_index"] = server.display_index
        fields["hide_for_guest"] = server.hide_for_guest
    return fields


class ServerAPI:
    """Builds status and list responses from a server registry."""

    def __init__(self, registry: ServerRegistry):
        self.registry = registry

    def get_status_by_id_list(self, id_list: Iterable[int]) -> ServerStatusResponse:
        """Status of the given servers; unknown ids are skipped."""
        response = ServerStatusResponse()
        with self.registry.lock:
            for server_id in id_list:
                server = self.registry.servers.get(server_id)
                if server is None:
                    continue
                ip = server.host.ip if server.host is not None else ""
                response.result.append(
                    StatusResponse(
                        **_info_fields(server, ip, with_display=False),
                        host=server.host,
                        status=server.state,
                    )
                )
        return response

    def get_status_by_tag(self, tag: str) -> ServerStatusResponse:
        with self.registry.lock:
            ids = list(self.registry.tag_to_ids.get(tag, []))
        return self.get_status_by_id_list(ids)

    def get_all_status(self) -> ServerStatusResponse:
        """Status of every server that has reported both host and state."""
        response = ServerStatusResponse()
        with self.registry.lock:
            for server in self.registry.servers.values():
                if server.host is None or server.state is None:
                    continue
                response.result.append(
                    StatusResponse(
                        **_info_fields(server, server.host.ip, with_display=True),
                        host=server.host,
                        status=server.state,
                    )
                )
        return response

    def get_list_by_tag(self, tag: str) -> ServerInfoResponse:
        response = ServerInfoResponse()
        with self.registry.lock:
            for server_id in self.registry.tag_to_ids.get(tag, []):
                server = self.registry.servers.get(server_id)
                if server is None or server.host is None:
                    continue
                response.result.append(
                    CommonServerInfo(**_info_fields(server, server.host.ip, with_display=False))
                )
        return response

    def get_all_list(self) -> ServerInfoResponse:
        response = ServerInfoResponse()
        with self.registry.lock:
            for server in self.registry.servers.values():
                if server.host is None:
                    continue
                response.result.append(
                    CommonServerInfo(**_info_fields(server, server.host.ip, with_display=False))
                )
        return response