from nezhadash.nat import NAT, NATCache


def test_lookup_by_domain():
    cache = NATCache()
    entry = NAT(id=1, name="home", server_id=2, host="127.0.0.1:8080", domain="a.example.com")
    cache.update([entry, NAT(id=2, domain="b.example.com")])
    assert cache.get_by_domain("a.example.com") is entry
    assert cache.get_by_domain("b.example.com").id == 2


def test_unknown_domain_returns_none():
    cache = NATCache()
    cache.update([NAT(id=1, domain="a.example.com")])
    assert cache.get_by_domain("c.example.com") is None


def test_empty_cache_returns_none():
    assert NATCache().get_by_domain("a.example.com") is None


def test_update_replaces_previous_entries():
    cache = NATCache()
    cache.update([NAT(id=1, domain="a.example.com")])
    cache.update([NAT(id=2, domain="b.example.com")])
    assert cache.get_by_domain("a.example.com") is None
    assert cache.get_by_domain("b.example.com").id == 2


def test_later_entry_wins_for_duplicate_domain():
    cache = NATCache()
    cache.update([NAT(id=1, domain="a.example.com"), NAT(id=7, domain="a.example.com")])
    assert cache.get_by_domain("a.example.com").id == 7