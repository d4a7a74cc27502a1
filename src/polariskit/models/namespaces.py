"""
Namespace path codec.

A namespace is an ordered sequence of segments, e.g. ``("accounting", "tax")``.
On the wire the segments are joined with the ASCII unit separator (0x1F),
a byte that can never appear inside a segment. The empty namespace denotes
the catalog root and encodes to the empty string.

Segments are not escaped: passing a segment that contains the separator is a
caller error.
"""

from typing import Iterable, Sequence, Tuple

NAMESPACE_SEPARATOR = "\x1f"

Namespace = Tuple[str, ...]


def encode_namespace(segments: Iterable[str]) -> str:
    """
    Encode a namespace into its wire form.

    Args:
        segments: Namespace segments, outermost first

    Returns:
        Segments joined with the unit separator ("" for the catalog root)
    """
    return NAMESPACE_SEPARATOR.join(segments)


def decode_namespace(wire: str) -> Namespace:
    """
    Decode a wire-format namespace.

    Args:
        wire: Encoded namespace

    Returns:
        Tuple of segments (empty tuple for the catalog root)
    """
    if not wire:
        return ()
    return tuple(wire.split(NAMESPACE_SEPARATOR))


def as_namespace(segments: Iterable[str]) -> Namespace:
    """Normalize any iterable of segments to a namespace tuple."""
    if isinstance(segments, str):
        raise TypeError("A namespace is a sequence of segments, not a string")
    return tuple(segments)


def is_prefix(prefix: Sequence[str], path: Sequence[str]) -> bool:
    """Return True if ``path`` starts with ``prefix`` (equal paths included)."""
    if len(prefix) > len(path):
        return False
    return all(a == b for a, b in zip(prefix, path))


def is_strict_prefix(prefix: Sequence[str], path: Sequence[str]) -> bool:
    """Return True if ``path`` is a strict extension of ``prefix``."""
    return len(path) > len(prefix) and is_prefix(prefix, path)


def format_namespace(path: Sequence[str]) -> str:
    """Dotted display form of a namespace, e.g. ``accounting.tax``."""
    return ".".join(path)
