"""Pairing and relaying of user and agent byte streams."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

_BUFFER_SIZE = 1024 * 1024


class ReadWriteCloser(Protocol):
    def read(self, size: int = -1) -> bytes: ...

    def write(self, data: bytes) -> int: ...

    def close(self) -> None: ...


class StreamNotFoundError(LookupError):
    """No stream is registered under the given id."""


class StreamTimeoutError(TimeoutError):
    """One or both sides did not connect in time."""


@dataclass
class _StreamContext:
    user_io: Any = None
    agent_io: Any = None
    user_ready: threading.Event = field(default_factory=threading.Event)
    agent_ready: threading.Event = field(default_factory=threading.Event)


def _pump(src: ReadWriteCloser, dst: ReadWriteCloser, errors: list[BaseException],
          done: threading.Event) -> None:
    try:
        while True:
            chunk = src.read(_BUFFER_SIZE)
            if not chunk:
                break
            dst.write(chunk)
    except Exception as exc:
        errors.append(exc)
    finally:
        done.set()


class StreamRelay:
    """Registry of pending streams that joins a user side with an agent side."""

    def __init__(self) -> None:
        self._streams: dict[str, _StreamContext] = {}
        self._lock = threading.RLock()

    def create_stream(self, stream_id: str) -> None:
        with self._lock:
            self._streams[stream_id] = _StreamContext()

    def get_stream(self, stream_id: str) -> _StreamContext:
        with self._lock:
            try:
                return self._streams[stream_id]
            except KeyError:
                raise StreamNotFoundError("stream not found") from None

    def close_stream(self, stream_id: str) -> None:
        """Close both sides of a stream and forget it; unknown ids are ignored."""
        with self._lock:
            context = self._streams.pop(stream_id, None)
            if context is None:
                return
            if context.user_io is not None:
                context.user_io.close()
            if context.agent_io is not None:
                context.agent_io.close()

    def user_connected(self, stream_id: str, user_io: ReadWriteCloser) -> None:
        context = self.get_stream(stream_id)
        if context.user_ready.is_set():
            raise RuntimeError("user already connected")
        context.user_io = user_io
        context.user_ready.set()

    def agent_connected(self, stream_id: str, agent_io: ReadWriteCloser) -> None:
        context = self.get_stream(stream_id)
        if context.agent_ready.is_set():
            raise RuntimeError("agent already connected")
        context.agent_io = agent_io
        context.agent_ready.set()

    def start_stream(self, stream_id: str, timeout: float) -> None:
        """Wait for both sides, then copy data both ways until one side ends.

        Raises StreamTimeoutError if a side is missing after ``timeout``
        seconds, and re-raises the first error hit while copying.
        """
        context = self.get_stream(stream_id)
        deadline = time.monotonic() + timeout
        context.user_ready.wait(timeout)
        context.agent_ready.wait(max(0.0, deadline - time.monotonic()))

        user_io, agent_io = context.user_io, context.agent_io
        if user_io is None and agent_io is None:
            raise StreamTimeoutError("timeout: no connection established")
        if user_io is None:
            raise StreamTimeoutError("timeout: user connection not established")
        if agent_io is None:
            raise StreamTimeoutError("timeout: agent connection not established")

        done = threading.Event()
        errors: list[BaseException] = []
        for src, dst in ((agent_io, user_io), (user_io, agent_io)):
            threading.Thread(target=_pump, args=(src, dst, errors, done), daemon=True).start()
        done.wait()
        if errors:
            raise errors[0]