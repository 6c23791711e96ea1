"""Parsing of the RFC 7239 ``Forwarded`` header."""

from collections.abc import Iterable, Iterator


def _split_unquoted(value: str, sep: str) -> Iterator[str]:
    """Split on ``sep`` outside of double-quoted strings."""
    start = 0
    quoted = False
    escaped = False
    for i, char in enumerate(value):
        if escaped:
            escaped = False
        elif char == "\\" and quoted:
            escaped = True
        elif char == '"':
            quoted = not quoted
        elif char == sep and not quoted:
            yield value[start:i]
            start = i + 1
    yield value[start:]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1]
        # quoted-pair: backslash escapes the next character
        chars = []
        escaped = False
        for char in value:
            if char == "\\" and not escaped:
                escaped = True
                continue
            chars.append(char)
            escaped = False
        return "".join(chars)
    return value


def normalize_node(node: str) -> str:
    """
    Strip the port and IPv6 brackets from a node identifier.

    ``"[2001:db8::1]:4711"`` becomes ``2001:db8::1`` and ``192.0.2.43:47011``
    becomes ``192.0.2.43``. Obfuscated identifiers and ``unknown`` are
    returned as-is.
    """
    node = node.strip()
    if node.startswith("["):
        end = node.find("]")
        if end == -1:
            return node
        return node[1:end]
    if node.count(":") == 1:
        return node.split(":", 1)[0]
    return node


def parse_forwarded_for(values: Iterable[str]) -> list[str]:
    """
    Collect the ``for=`` nodes of one or more ``Forwarded`` header values.

    Elements keep their left-to-right order across values, matching the
    ordering of X-Forwarded-For. An element without a ``for`` parameter
    yields an empty node, so a hop that did not identify its client stops
    the walk instead of being skipped. Blank header values yield nothing.
    """
    nodes = []
    for value in values:
        if not value.strip():
            continue
        for element in _split_unquoted(value, ","):
            node = ""
            for pair in _split_unquoted(element, ";"):
                name, sep, raw = pair.partition("=")
                if sep and name.strip().lower() == "for":
                    node = normalize_node(_unquote(raw.strip()))
                    break
            nodes.append(node)
    return nodes
