"""Dotted-numeric version handling.

Versions are compared as integer tuples, never as strings: ``"10.0"`` is newer
than ``"9.9"`` and ``"6.0"`` is newer than ``"5.9.9"``. Shorter tuples are
zero-padded, so ``"6"`` equals ``"6.0.0"``.
"""

from __future__ import annotations

import re

_LEADING_VERSION = re.compile(r"^\s*v?(\d+(?:\.\d+)*)")


def version_tuple(text: str) -> tuple[int, ...] | None:
    """Parse the leading dotted-numeric part of a version string.

    Trailing qualifiers are ignored (``"1.27.4+k3s1"`` -> ``(1, 27, 4)``).
    Returns None when the string does not start with a number.
    """
    m = _LEADING_VERSION.match(text or "")
    if not m:
        return None
    return tuple(int(part) for part in m.group(1).split("."))


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` is older than, equal to or newer than ``b``.

    Raises ValueError if either side is not a dotted-numeric version.
    """
    ta = version_tuple(a)
    tb = version_tuple(b)
    if ta is None or tb is None:
        raise ValueError(f"Cannot compare versions {a!r} and {b!r}")

    width = max(len(ta), len(tb))
    ta = ta + (0,) * (width - len(ta))
    tb = tb + (0,) * (width - len(tb))
    return (ta > tb) - (ta < tb)
