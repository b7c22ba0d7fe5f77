"""HTTP sessions with a default timeout and optional TLS verification."""

from __future__ import annotations

from typing import Any

import requests

DEFAULT_TIMEOUT = 600.0


class _TimeoutSession(requests.Session):
    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.timeout
        return super().send(request, **kwargs)


def new_session(skip_tls_verify: bool = False) -> requests.Session:
    """Return a session honouring proxy environment variables with a 10 minute timeout."""
    session = _TimeoutSession(DEFAULT_TIMEOUT)
    session.verify = not skip_tls_verify
    session.trust_env = True
    return session