"""Gradle-style version ordering and range matching.

Supports the notations repository content filters use:
  - exact versions             1.2.3
  - prefix ranges              1.2.+  /  +
  - Maven/Ivy bracket ranges   [1.0,2.0)  (,1.5]  [1.0,)  ]1.0,2.0[
"""

from __future__ import annotations

import re
from typing import Protocol

_TOKEN_RE = re.compile(r"\d+|[a-zA-Z]+")

# Numbers outrank every qualifier. Among qualifiers: dev < unknown < rc < ... < sp
_DEV = "dev"
_QUALIFIERS = {
    "rc": 0,
    "snapshot": 1,
    "final": 2,
    "ga": 3,
    "release": 4,
    "sp": 5,
}

_RANGE_RE = re.compile(r"^([\[\]\(])\s*([^,\s]*)\s*,\s*([^,\s]*)\s*([\[\]\)])$")


class VersionMatcher(Protocol):
    def __call__(self, version: str, spec: str) -> bool: ...


def _tokens(version: str) -> list[str]:
    return _TOKEN_RE.findall(version)


def _qualifier_key(token: str) -> tuple[int, int, str]:
    lowered = token.lower()
    if lowered == _DEV:
        return (0, 0, "")
    if lowered in _QUALIFIERS:
        return (2, _QUALIFIERS[lowered], "")
    return (1, 0, token)


def _compare_token(a: str, b: str) -> int:
    a_num, b_num = a.isdigit(), b.isdigit()
    if a_num and b_num:
        return (int(a) > int(b)) - (int(a) < int(b))
    if a_num:
        return 1
    if b_num:
        return -1
    a_key, b_key = _qualifier_key(a), _qualifier_key(b)
    return (a_key > b_key) - (a_key < b_key)


def compare(a: str, b: str) -> int:
    """Return -1, 0 or 1 as Gradle would order *a* against *b*."""
    a_tokens, b_tokens = _tokens(a), _tokens(b)
    for x, y in zip(a_tokens, b_tokens):
        result = _compare_token(x, y)
        if result:
            return result
    if len(a_tokens) == len(b_tokens):
        return 0
    # 1.0 < 1.0.1 but 1.0-rc < 1.0
    longer, sign = (a_tokens, 1) if len(a_tokens) > len(b_tokens) else (b_tokens, -1)
    extra = longer[min(len(a_tokens), len(b_tokens))]
    return sign if extra.isdigit() else -sign


def matches(version: str, spec: str) -> bool:
    """Whether *version* equals or falls inside *spec*."""
    spec = spec.strip()
    version = version.strip()
    if not spec or not version:
        return False

    if spec == "+":
        return True
    if spec.endswith("+"):
        prefix = spec[:-1]
        return version.startswith(prefix)

    m = _RANGE_RE.match(spec)
    if m is None:
        return version == spec or compare(version, spec) == 0

    left, lower, upper, right = m.groups()
    if lower:
        cmp_lower = compare(version, lower)
        if cmp_lower < 0 or (cmp_lower == 0 and left != "["):
            return False
    if upper:
        cmp_upper = compare(version, upper)
        if cmp_upper > 0 or (cmp_upper == 0 and right != "]"):
            return False
    return True
