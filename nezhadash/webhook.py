"""A DDNS record setter that calls a user-configured HTTP webhook."""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from nezhadash.ddns import DDNSProfile, Record
from nezhadash.http import new_session
from nezhadash.jsonpath import WrongTypeError, parse_string_map


class WebhookMethod(enum.IntEnum):
    GET = 1
    POST = 2
    PATCH = 3
    DELETE = 4
    PUT = 5


class RequestType(enum.IntEnum):
    JSON = 1
    FORM = 2


_PLACEHOLDERS = (
    "#ip#",
    "#domain#",
    "#type#",
    "#record#",
    "#access_id#",
    "#access_secret#",
    "\r",
)
_PLACEHOLDER_RE = re.compile("|".join(re.escape(item) for item in _PLACEHOLDERS))


def record_to_ip_type(record: str) -> str:
    if record == "A":
        return "ipv4"
    if record == "AAAA":
        return "ipv6"
    return ""


class WebhookProvider:
    """Sends one webhook request per record, filling in placeholders."""

    def __init__(self, profile: DDNSProfile, session: requests.Session | None = None):
        self.profile = profile
        self.session = session if session is not None else new_session(False)
        self.ip_addr = ""
        self.ip_type = ""
        self.record_type = ""
        self.domain = ""

    def set_records(self, zone: str, records: Iterable[Record]) -> list[Record]:
        records = list(records)
        for record in records:
            self.record_type = record.type
            self.ip_type = record_to_ip_type(record.type)
            self.ip_addr = record.value
            self.domain = f"{record.name}.{zone.removesuffix('.')}"
            try:
                request = self.prepare_request()
                self.session.send(request)
            except (ValueError, WrongTypeError, requests.RequestException) as exc:
                raise RuntimeError(
                    f"failed to update a domain: {self.domain}. Cause by: {exc}"
                ) from exc
        return records

    def prepare_request(self) -> requests.PreparedRequest:
        url = self.request_url()
        body = self.request_body()
        headers = parse_string_map(self.format_webhook_string(self.profile.webhook_headers)) or {}
        method = WebhookMethod(self.profile.webhook_method).name if self.profile.webhook_method in set(
            WebhookMethod
        ) else "GET"
        prepared = requests.Request(method, url, data=body.encode() if body else None).prepare()
        if self.profile.webhook_method != WebhookMethod.GET:
            if self.profile.webhook_request_type == RequestType.FORM:
                prepared.headers["Content-Type"] = "application/x-www-form-urlencoded"
            else:
                prepared.headers["Content-Type"] = "application/json"
        for key, value in headers.items():
            prepared.headers[key] = value
        return prepared

    def request_url(self) -> str:
        """Return the webhook URL with placeholders in its query filled in."""
        parts = urlsplit(self.profile.webhook_url.replace("#", "%23"))
        grouped: dict[str, list[str]] = {}
        for key, value in parse_qsl(parts.query, keep_blank_values=True):
            grouped.setdefault(key, []).append(self.format_webhook_string(value))
        query = urlencode([(key, value) for key in sorted(grouped) for value in grouped[key]])
        return urlunsplit(parts._replace(query=query))

    def request_body(self) -> str:
        method = self.profile.webhook_method
        if method in (WebhookMethod.GET, WebhookMethod.DELETE):
            return ""
        request_type = self.profile.webhook_request_type
        if request_type == RequestType.JSON:
            return self.format_webhook_string(self.profile.webhook_request_body)
        if request_type == RequestType.FORM:
            data = parse_string_map(self.profile.webhook_request_body) or {}
            return urlencode(
                sorted((key, self.format_webhook_string(value)) for key, value in data.items())
            )
        raise ValueError("request type not supported")

    def format_webhook_string(self, s: str) -> str:
        replacements = {
            "#ip#": self.ip_addr,
            "#domain#": self.domain,
            "#type#": self.ip_type,
            "#record#": self.record_type,
            "#access_id#": self.profile.access_id,
            "#access_secret#": self.profile.access_secret,
            "\r": "",
        }
        return _PLACEHOLDER_RE.sub(lambda match: replacements[match.group()], s.strip())