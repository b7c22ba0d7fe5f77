"""Byte-stream adapters over message-oriented transports."""

from __future__ import annotations

import enum
import threading
from typing import Protocol


class MessageType(enum.IntEnum):
    """Frame types of a message-oriented connection."""

    TEXT = 1
    BINARY = 2
    CLOSE = 8
    PING = 9
    PONG = 10


class IOStream(Protocol):
    def recv(self) -> bytes: ...

    def send(self, data: bytes) -> None: ...


class MessageSocket(Protocol):
    def read_message(self) -> tuple[int, bytes]: ...

    def write_message(self, message_type: int, data: bytes) -> None: ...

    def close(self) -> None: ...


def _split(data: bytes, size: int) -> tuple[bytes, bytes]:
    data = bytes(data)
    if size < 0 or size >= len(data):
        return data, b""
    return data[:size], data[size:]


class IOStreamWrapper:
    """Presents a stream of data messages as a readable, writable byte stream.

    ``read`` returns ``b""`` once the underlying stream raises ``EOFError``.
    """

    def __init__(self, stream: IOStream):
        self._stream = stream
        self._pending = b""
        self._closed = threading.Event()
        self._close_lock = threading.Lock()

    def read(self, size: int = -1) -> bytes:
        """Return up to ``size`` bytes, keeping the rest of a message for later."""
        if self._pending:
            chunk, self._pending = _split(self._pending, size)
            return chunk
        while True:
            try:
                data = self._stream.recv()
            except EOFError:
                return b""
            if data:
                break
        chunk, self._pending = _split(data, size)
        return chunk

    def write(self, data: bytes) -> int:
        """Send the data as one message and return its length."""
        self._stream.send(bytes(data))
        return len(data)

    def close(self) -> None:
        """Mark the wrapper closed; calling it again has no effect."""
        with self._close_lock:
            self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until closed; return False if the timeout ran out first."""
        return self._closed.wait(timeout)


class MessageConn:
    """A byte stream over a message connection with serialised writes.

    Text messages are read as command input and get a leading zero byte.
    """

    def __init__(self, conn: MessageSocket):
        self._conn = conn
        self._write_lock = threading.Lock()
        self._pending = b""

    def write(self, data: bytes) -> int:
        """Send the data as one binary message and return its length."""
        with self._write_lock:
            self._conn.write_message(MessageType.BINARY, bytes(data))
        return len(data)

    def write_message(self, message_type: int, data: bytes) -> None:
        with self._write_lock:
            self._conn.write_message(message_type, bytes(data))

    def read(self, size: int = -1) -> bytes:
        """Return up to ``size`` bytes of the incoming message stream."""
        if self._pending:
            chunk, self._pending = _split(self._pending, size)
            return chunk
        while True:
            try:
                message_type, data = self._conn.read_message()
            except EOFError:
                return b""
            if message_type == MessageType.TEXT:
                data = b"\x00" + bytes(data)
            if data:
                break
        chunk, self._pending = _split(data, size)
        return chunk

    def close(self) -> None:
        self._conn.close()