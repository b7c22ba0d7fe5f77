import sys

import pytest

from nezhadash.utils import (
    generate_random_string,
    ip_desensitize,
    is_file_exists,
    is_windows,
    split_ip_addr,
    uint64_sub_int64,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (
            "103.80.236.249/d5ce:d811:cdb8:067a:a873:2076:9521:9d2d",
            "103.****.249/d5ce:d811:****:9521:9d2d",
        ),
        (
            "3.80.236.29/d5ce::cdb8:067a:a873:2076:9521:9d2d",
            "3.****.29/d5ce::****:9521:9d2d",
        ),
        (
            "3.80.236.29/d5ce::cdb8:067a:a873:2076::9d2d",
            "3.****.29/d5ce::****::9d2d",
        ),
        (
            "3.80.236.9/d5ce::cdb8:067a:a873:2076::9d2d",
            "3.****.9/d5ce::****::9d2d",
        ),
        (
            "3.80.236.9/d5ce::cdb8:067a:a873:2076::9d2d",
            "3.****.9/d5ce::****::9d2d",
        ),
    ],
)
def test_ip_desensitize(value, expected):
    assert ip_desensitize(value) == expected


def test_ip_desensitize_plain_ipv4():
    assert ip_desensitize("192.168.1.1") == "192.****.1"


def test_generate_random_string_unique_and_sized():
    seen = set()
    for _ in range(100):
        value = generate_random_string(32)
        assert len(value) == 32
        assert value.isalnum() and value.isascii()
        assert value not in seen
        seen.add(value)


def test_generate_random_string_rejects_negative():
    with pytest.raises(ValueError):
        generate_random_string(-1)


def test_generate_random_string_zero():
    assert generate_random_string(0) == ""


@pytest.mark.parametrize(
    ("bundle", "expected"),
    [
        ("1.2.3.4/::1", ("1.2.3.4", "::1", "1.2.3.4")),
        ("1.2.3.4", ("1.2.3.4", "", "1.2.3.4")),
        ("2400:3200::1", ("", "2400:3200::1", "2400:3200::1")),
        ("", ("", "", "")),
    ],
)
def test_split_ip_addr(bundle, expected):
    assert split_ip_addr(bundle) == expected


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        (10, 4, 6),
        (3, 5, 0),
        (10, -5, 15),
        (2**64 - 1, -1, 0),
        (7, 7, 0),
    ],
)
def test_uint64_sub_int64(a, b, expected):
    assert uint64_sub_int64(a, b) == expected


def test_is_file_exists(tmp_path):
    target = tmp_path / "present.txt"
    assert is_file_exists(target) is False
    target.write_text("x")
    assert is_file_exists(target) is True
    assert is_file_exists(tmp_path) is True


def test_is_windows_matches_platform():
    assert is_windows() == sys.platform.startswith("win")