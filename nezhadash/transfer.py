"""Hourly traffic accounting and IP masking for notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from nezhadash.servers import ServerRegistry
from nezhadash.utils import ip_desensitize, uint64_sub_int64


@dataclass
class Transfer:
    server_id: int
    in_: int = 0
    out: int = 0
    created_at: datetime | None = None


def record_transfer_hourly_usage(
    registry: ServerRegistry, now: datetime | None = None
) -> list[Transfer]:
    """Return the traffic used by each server since its last snapshot.

    Snapshots of servers with traffic are moved forward; the records are
    stamped with the start of the current hour.
    """
    if now is None:
        now = datetime.now()
    hour = now.replace(minute=0, second=0, microsecond=0)
    records: list[Transfer] = []
    with registry.lock:
        for server_id, server in registry.servers.items():
            state = server.state
            if state is None:
                continue
            record = Transfer(
                server_id=server_id,
                in_=uint64_sub_int64(state.net_in_transfer, server.prev_transfer_in_snapshot),
                out=uint64_sub_int64(state.net_out_transfer, server.prev_transfer_out_snapshot),
            )
            if record.in_ == 0 and record.out == 0:
                continue
            server.prev_transfer_in_snapshot = state.net_in_transfer
            server.prev_transfer_out_snapshot = state.net_out_transfer
            record.created_at = hour
            records.append(record)
    return records


def desensitize_for_notification(ip: str, plain: bool = False) -> str:
    """Return the IP as is when plain IPs are allowed, masked otherwise."""
    if plain:
        return ip
    return ip_desensitize(ip)