"""Small JSON path lookups and flat string-map parsing."""

from __future__ import annotations

import json
import re
from typing import Any, NamedTuple


class PathNotFoundError(LookupError):
    """The requested path does not exist in the document."""


class WrongTypeError(ValueError):
    """The document does not have the expected JSON type."""


class _Component(NamedTuple):
    key: str
    pattern: re.Pattern[str] | None


class _RawNumber(str):
    """A JSON number kept as its original text."""


def _make_component(text: list[str], regex: list[str], wildcard: bool) -> _Component:
    key = "".join(text)
    pattern = re.compile("".join(regex), re.DOTALL) if wildcard else None
    return _Component(key, pattern)


def _split_path(path: str) -> list[_Component]:
    components: list[_Component] = []
    text: list[str] = []
    regex: list[str] = []
    wildcard = False
    escaped = False
    for ch in path:
        if escaped:
            text.append(ch)
            regex.append(re.escape(ch))
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == ".":
            components.append(_make_component(text, regex, wildcard))
            text, regex, wildcard = [], [], False
        elif ch == "*":
            wildcard = True
            text.append(ch)
            regex.append(".*")
        elif ch == "?":
            wildcard = True
            text.append(ch)
            regex.append(".")
        else:
            text.append(ch)
            regex.append(re.escape(ch))
    if escaped:
        text.append("\\")
        regex.append(re.escape("\\"))
    components.append(_make_component(text, regex, wildcard))
    return components


def _walk(value: Any, components: list[_Component]) -> tuple[bool, Any]:
    if not components:
        return True, value
    head, rest = components[0], components[1:]
    if isinstance(value, dict):
        if head.pattern is not None:
            for key, item in value.items():
                if head.pattern.fullmatch(key):
                    return _walk(item, rest)
            return False, None
        if head.key in value:
            return _walk(value[head.key], rest)
        return False, None
    if isinstance(value, list):
        if head.key == "#" and head.pattern is None:
            if not rest:
                return True, len(value)
            results = (_walk(item, rest) for item in value)
            return True, [found for ok, found in results if ok]
        if head.key.isascii() and head.key.isdigit():
            index = int(head.key)
            if index < len(value):
                return _walk(value[index], rest)
    return False, None


def get_path(document: str | bytes, path: str) -> Any:
    """Return the value at a dotted path, raising PathNotFoundError if absent.

    Keys are separated by dots (escape with a backslash), array elements are
    addressed by index, "#" yields an array's length or maps the rest of the
    path over its elements, and "*" / "?" match object keys.
    """
    if isinstance(document, (bytes, bytearray)):
        document = bytes(document).decode("utf-8", errors="replace")
    if not path:
        raise PathNotFoundError("specified path does not exist")
    try:
        value = json.loads(document)
    except ValueError:
        raise PathNotFoundError("specified path does not exist") from None
    found, result = _walk(value, _split_path(path))
    if not found:
        raise PathNotFoundError("specified path does not exist")
    return result


def _compact(item: Any) -> str:
    if isinstance(item, _RawNumber):
        return str(item)
    if isinstance(item, str):
        return json.dumps(item, ensure_ascii=False)
    if item is None:
        return "null"
    if item is True:
        return "true"
    if item is False:
        return "false"
    if isinstance(item, dict):
        members = ",".join(
            f"{json.dumps(key, ensure_ascii=False)}:{_compact(value)}" for key, value in item.items()
        )
        return "{" + members + "}"
    return "[" + ",".join(_compact(element) for element in item) + "]"


def _to_string(item: Any) -> str:
    if item is None:
        return ""
    if item is True:
        return "true"
    if item is False:
        return "false"
    if isinstance(item, str):
        return str(item)
    return _compact(item)


def parse_string_map(json_object: str) -> dict[str, str] | None:
    """Parse a JSON object into a flat mapping of strings.

    Returns None for empty input; raises WrongTypeError if the text is not an
    object. Nested values are kept as compact JSON text.
    """
    if json_object == "":
        return None
    try:
        value = json.loads(
            json_object,
            parse_int=_RawNumber,
            parse_float=_RawNumber,
            parse_constant=_RawNumber,
        )
    except ValueError:
        raise WrongTypeError("wrong type") from None
    if not isinstance(value, dict):
        raise WrongTypeError("wrong type")
    return {key: _to_string(item) for key, item in value.items()}