import pytest

from nezhadash.servers import (
    AuthenticationError,
    Host,
    HostState,
    Server,
    ServerRegistry,
)


def make_registry():
    registry = ServerRegistry()
    registry.load(
        [
            Server(id=1, name="a", tag="eu", secret="secret", display_index=0),
            Server(id=2, name="b", tag="eu", secret="token", display_index=5, hide_for_guest=True),
            Server(id=3, name="c", tag="us", secret="placeholder", display_index=5),
        ]
    )
    return registry


def test_load_indexes_by_id_secret_and_tag():
    registry = make_registry()
    assert sorted(registry.servers) == [1, 2, 3]
    assert registry.secret_to_id["token"] == 2
    assert registry.tag_to_ids == {"eu": [1, 2], "us": [3]}


def test_load_gives_fresh_host_and_state_without_touching_input():
    original = Server(id=7, secret="secret", host=Host(ip="1.2.3.4"), state=HostState(cpu=50.0))
    registry = ServerRegistry()
    registry.load([original])
    loaded = registry.servers[7]
    assert loaded is not original
    assert loaded.host == Host()
    assert loaded.state == HostState()
    assert original.host.ip == "1.2.3.4"


def test_load_replaces_previous_contents():
    registry = make_registry()
    registry.load([Server(id=9, secret="secret")])
    assert list(registry.servers) == [9]
    assert registry.secret_to_id == {"secret": 9}


def test_sorted_by_display_index_then_id():
    registry = make_registry()
    assert [s.id for s in registry.sorted_servers] == [2, 3, 1]


def test_guest_list_excludes_hidden():
    registry = make_registry()
    assert [s.id for s in registry.sorted_servers_for_guest] == [3, 1]


def test_resort_after_change():
    registry = make_registry()
    registry.servers[1].display_index = 10
    registry.resort()
    assert registry.sorted_servers[0].id == 1


def test_authenticate_with_list_metadata():
    registry = make_registry()
    assert registry.authenticate({"client_secret": ["token"]}) == 2


def test_authenticate_with_plain_string():
    registry = make_registry()
    assert registry.authenticate({"client_secret": "placeholder"}) == 3


def test_authenticate_unknown_secret():
    registry = make_registry()
    with pytest.raises(AuthenticationError):
        registry.authenticate({"client_secret": ["password"]})


def test_authenticate_missing_metadata():
    with pytest.raises(AuthenticationError):
        make_registry().authenticate(None)


def test_authenticate_missing_key():
    with pytest.raises(AuthenticationError):
        make_registry().authenticate({})


def test_authenticate_removed_server():
    registry = make_registry()
    del registry.servers[2]
    with pytest.raises(AuthenticationError):
        registry.authenticate({"client_secret": ["token"]})