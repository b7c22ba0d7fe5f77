import pytest
import requests

from nezhadash.ddns import DDNSProfile, Record
from nezhadash.webhook import (
    RequestType,
    WebhookMethod,
    WebhookProvider,
    record_to_ip_type,
)

FORM = "application/x-www-form-urlencoded"
JSON = "application/json"


class FakeSession:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, request, **kwargs):
        self.sent.append(request)
        if self.error is not None:
            raise self.error
        return "ok"


def make_provider(profile, session=None):
    provider = WebhookProvider(profile, session or FakeSession())
    provider.ip_addr = "1.1.1.1"
    provider.domain = profile.domains[0]
    provider.ip_type = "ipv4"
    provider.record_type = "A"
    return provider


CASES = [
    (
        DDNSProfile(
            domains=["www.example.com"],
            max_retries=1,
            enable_ipv4=True,
            webhook_url="http://ddns.example.com/?ip=#ip#",
            webhook_method=WebhookMethod.GET,
            webhook_headers='{"ip":"#ip#","record":"#record#"}',
        ),
        "http://ddns.example.com/?ip=1.1.1.1",
        "",
        "",
        {"ip": "1.1.1.1", "record": "A"},
    ),
    (
        DDNSProfile(
            domains=["www.example.com"],
            max_retries=1,
            enable_ipv4=True,
            webhook_url="http://ddns.example.com/api",
            webhook_method=WebhookMethod.POST,
            webhook_request_type=RequestType.JSON,
            webhook_request_body='{"ip":"#ip#","record":"#record#"}',
        ),
        "http://ddns.example.com/api",
        '{"ip":"1.1.1.1","record":"A"}',
        JSON,
        {},
    ),
    (
        DDNSProfile(
            domains=["www.example.com"],
            max_retries=1,
            enable_ipv4=True,
            webhook_url="http://ddns.example.com/api",
            webhook_method=WebhookMethod.POST,
            webhook_request_type=RequestType.FORM,
            webhook_request_body='{"ip":"#ip#","record":"#record#"}',
        ),
        "http://ddns.example.com/api",
        "ip=1.1.1.1&record=A",
        FORM,
        {},
    ),
]


@pytest.mark.parametrize(("profile", "url", "body", "content_type", "headers"), CASES)
def test_webhook_request(profile, url, body, content_type, headers):
    provider = make_provider(profile)
    assert provider.request_url() == url
    assert provider.request_body() == body
    request = provider.prepare_request()
    assert request.url == url
    assert request.headers.get("Content-Type", "") == content_type
    for key, value in headers.items():
        assert request.headers.get(key) == value


def test_delete_has_empty_body():
    profile = DDNSProfile(
        domains=["www.example.com"],
        webhook_method=WebhookMethod.DELETE,
        webhook_request_type=RequestType.JSON,
        webhook_request_body='{"ip":"#ip#"}',
    )
    assert make_provider(profile).request_body() == ""


def test_unsupported_request_type():
    profile = DDNSProfile(domains=["www.example.com"], webhook_method=WebhookMethod.POST)
    with pytest.raises(ValueError):
        make_provider(profile).request_body()


def test_format_replaces_all_placeholders():
    profile = DDNSProfile(
        domains=["www.example.com"], access_id="placeholder", access_secret="secret"
    )
    provider = make_provider(profile)
    result = provider.format_webhook_string("  #ip#|#domain#|#type#|#record#|#access_id#|#access_secret#\r\n ")
    assert result == "1.1.1.1|www.example.com|ipv4|A|placeholder|secret"


def test_record_to_ip_type():
    assert record_to_ip_type("A") == "ipv4"
    assert record_to_ip_type("AAAA") == "ipv6"
    assert record_to_ip_type("CNAME") == ""


def test_set_records_sends_request():
    session = FakeSession()
    profile = DDNSProfile(
        domains=["www.example.com"],
        webhook_url="http://ddns.example.com/?ip=#ip#&domain=#domain#&type=#type#",
        webhook_method=WebhookMethod.GET,
    )
    provider = WebhookProvider(profile, session)
    records = [Record(type="AAAA", name="www", value="::1")]
    assert provider.set_records("example.com.", records) == records
    assert len(session.sent) == 1
    assert session.sent[0].url == (
        "http://ddns.example.com/?domain=www.example.com&ip=%3A%3A1&type=ipv6"
    )
    assert session.sent[0].method == "GET"


def test_set_records_wraps_errors():
    session = FakeSession(error=requests.ConnectionError("refused"))
    profile = DDNSProfile(
        domains=["www.example.com"],
        webhook_url="http://ddns.example.com/api",
        webhook_method=WebhookMethod.GET,
    )
    provider = WebhookProvider(profile, session)
    with pytest.raises(RuntimeError, match="www.example.com"):
        provider.set_records("example.com.", [Record(type="A", name="www", value="1.1.1.1")])