"""Dynamic DNS updates: zone discovery by SOA lookup and record pushing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

import dns.message
import dns.query
import dns.rdatatype

from nezhadash.utils import DNS_SERVERS

logger = logging.getLogger(__name__)

DNS_TIMEOUT = 10.0
DEFAULT_TTL = 60


@dataclass
class IPAddrs:
    ipv4_addr: str = ""
    ipv6_addr: str = ""


@dataclass
class Record:
    type: str
    name: str
    value: str
    ttl: int = DEFAULT_TTL


@dataclass
class DDNSProfile:
    domains: list[str] = field(default_factory=list)
    max_retries: int = 0
    enable_ipv4: bool = False
    enable_ipv6: bool = False
    access_id: str = ""
    access_secret: str = ""
    webhook_url: str = ""
    webhook_method: int = 0
    webhook_request_type: int = 0
    webhook_request_body: str = ""
    webhook_headers: str = ""


class SOANotFoundError(LookupError):
    """No SOA record was found for any suffix of the domain."""


class RecordSetter(Protocol):
    def set_records(self, zone: str, records: list[Record]) -> list[Record]: ...


class DummyProvider:
    """A record setter that accepts every record without doing anything."""

    def set_records(self, zone: str, records: list[Record]) -> list[Record]:
        return list(records)


def relative_name(fqdn: str, zone: str) -> str:
    """Return the part of fqdn in front of zone, ignoring trailing dots."""
    return fqdn.removesuffix(".").removesuffix(zone.removesuffix(".")).removesuffix(".")


def record_type_for(is_ipv4: bool) -> str:
    return "A" if is_ipv4 else "AAAA"


def _label_starts(name: str) -> list[int]:
    if name == ".":
        return []
    starts = [0]
    escaped = False
    for position, ch in enumerate(name):
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == "." and position + 1 < len(name):
            starts.append(position + 1)
    return starts


def split_domain_soa(domain: str) -> tuple[str, str]:
    """Find the zone of a domain via SOA queries; return (prefix, zone).

    Network errors from a server propagate immediately.
    """
    fqdn = domain + "."
    for start in _label_starts(fqdn):
        query = dns.message.make_query(fqdn[start:], dns.rdatatype.SOA)
        for host, port in DNS_SERVERS:
            response = dns.query.udp(query, host, timeout=DNS_TIMEOUT, port=port)
            if response.answer and response.answer[0].rdtype == dns.rdatatype.SOA:
                zone = response.answer[0].name.to_text()
                return relative_name(fqdn, zone), zone
    raise SOANotFoundError(f"SOA record not found for domain: {fqdn}")


class Provider:
    """Pushes the current addresses of a server to every domain of a profile."""

    def __init__(self, profile: DDNSProfile, ip_addrs: IPAddrs, setter: RecordSetter):
        self.profile = profile
        self.ip_addrs = ip_addrs
        self.setter = setter

    def update_domain(self) -> None:
        """Update each domain, retrying up to the profile's retry limit."""
        for domain in self.profile.domains:
            for attempt in range(1, self.profile.max_retries + 1):
                logger.info(
                    "updating DDNS for %s (%d/%d)", domain, attempt, self.profile.max_retries
                )
                try:
                    self._update(domain)
                except Exception as exc:
                    logger.warning("DDNS update for %s failed: %s", domain, exc)
                else:
                    logger.info("DDNS update for %s succeeded", domain)
                    break

    def _update(self, domain: str) -> None:
        prefix, zone = split_domain_soa(domain)
        # Both address families must succeed for the update to count.
        if self.profile.enable_ipv4:
            self._set(zone, prefix, record_type_for(True), self.ip_addrs.ipv4_addr)
        if self.profile.enable_ipv6:
            self._set(zone, prefix, record_type_for(False), self.ip_addrs.ipv6_addr)

    def _set(self, zone: str, prefix: str, record_type: str, value: str) -> None:
        self.setter.set_records(zone, [Record(type=record_type, name=prefix, value=value)])