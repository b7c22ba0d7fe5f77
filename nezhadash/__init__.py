"""In-memory core of a server monitoring dashboard: registry, service sentinel, notifications, DDNS and stream relaying."""

__version__ = "0.1.0"

__all__ = [
    "api",
    "ddns",
    "http",
    "hybridfs",
    "jsonpath",
    "nat",
    "notification",
    "relay",
    "servers",
    "servicesentinel",
    "streams",
    "transfer",
    "utils",
    "webhook",
]