import queue
import threading

import pytest

from nezhadash.relay import StreamNotFoundError, StreamRelay, StreamTimeoutError


class QueueIO:
    def __init__(self, chunks=()):
        self.incoming = queue.Queue()
        for chunk in chunks:
            self.incoming.put(chunk)
        self.written = bytearray()
        self.closed = False

    def read(self, size=-1):
        item = self.incoming.get()
        if isinstance(item, Exception):
            raise item
        return item

    def write(self, data):
        self.written += data
        return len(data)

    def close(self):
        self.closed = True
        self.incoming.put(b"")


def test_get_unknown_stream_raises():
    with pytest.raises(StreamNotFoundError):
        StreamRelay().get_stream("missing")


def test_connect_unknown_stream_raises():
    relay = StreamRelay()
    with pytest.raises(StreamNotFoundError):
        relay.user_connected("missing", QueueIO())
    with pytest.raises(StreamNotFoundError):
        relay.start_stream("missing", 0.01)


def test_connected_sides_are_recorded():
    relay = StreamRelay()
    relay.create_stream("s")
    user, agent = QueueIO(), QueueIO()
    relay.user_connected("s", user)
    relay.agent_connected("s", agent)
    context = relay.get_stream("s")
    assert context.user_io is user
    assert context.agent_io is agent


def test_double_connect_rejected():
    relay = StreamRelay()
    relay.create_stream("s")
    relay.user_connected("s", QueueIO())
    with pytest.raises(RuntimeError):
        relay.user_connected("s", QueueIO())


def test_close_stream_closes_both_and_forgets():
    relay = StreamRelay()
    relay.create_stream("s")
    user, agent = QueueIO(), QueueIO()
    relay.user_connected("s", user)
    relay.agent_connected("s", agent)
    relay.close_stream("s")
    assert user.closed and agent.closed
    with pytest.raises(StreamNotFoundError):
        relay.get_stream("s")


def test_timeout_without_connections():
    relay = StreamRelay()
    relay.create_stream("s")
    with pytest.raises(StreamTimeoutError, match="no connection established"):
        relay.start_stream("s", 0.05)


def test_timeout_without_agent():
    relay = StreamRelay()
    relay.create_stream("s")
    relay.user_connected("s", QueueIO())
    with pytest.raises(StreamTimeoutError, match="agent connection not established"):
        relay.start_stream("s", 0.05)


def test_timeout_without_user():
    relay = StreamRelay()
    relay.create_stream("s")
    relay.agent_connected("s", QueueIO())
    with pytest.raises(StreamTimeoutError, match="user connection not established"):
        relay.start_stream("s", 0.05)


def test_relays_agent_output_to_user():
    relay = StreamRelay()
    relay.create_stream("s")
    user = QueueIO()
    agent = QueueIO([b"hello", b" world", b""])
    relay.user_connected("s", user)
    relay.agent_connected("s", agent)
    relay.start_stream("s", 1)
    assert bytes(user.written) == b"hello world"
    relay.close_stream("s")


def test_relays_user_input_to_agent():
    relay = StreamRelay()
    relay.create_stream("s")
    user = QueueIO([b"ls\n", b""])
    agent = QueueIO()
    relay.user_connected("s", user)
    relay.agent_connected("s", agent)
    relay.start_stream("s", 1)
    assert bytes(agent.written) == b"ls\n"
    relay.close_stream("s")


def test_late_connection_is_waited_for():
    relay = StreamRelay()
    relay.create_stream("s")
    user = QueueIO()
    agent = QueueIO([b"data", b""])
    relay.user_connected("s", user)
    timer = threading.Timer(0.05, relay.agent_connected, args=("s", agent))
    timer.start()
    relay.start_stream("s", 2)
    timer.join()
    assert bytes(user.written) == b"data"
    relay.close_stream("s")


def test_copy_error_is_raised():
    relay = StreamRelay()
    relay.create_stream("s")
    relay.user_connected("s", QueueIO())
    relay.agent_connected("s", QueueIO([OSError("boom")]))
    with pytest.raises(OSError, match="boom"):
        relay.start_stream("s", 1)
    relay.close_stream("s")