"""Version parsing, comparison and constraints."""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

_RAW = (
    r"v?([0-9]+(\.[0-9]+)*?)"
    r"(-([0-9]+[0-9A-Za-z\-~]*(\.[0-9A-Za-z\-~]+)*)|(-?([A-Za-z\-~]+[0-9A-Za-z\-~]*(\.[0-9A-Za-z\-~]+)*)))?"
    r"(\+([0-9A-Za-z\-~]+(\.[0-9A-Za-z\-~]+)*))??"
)
_VERSION_RE = re.compile(_RAW, re.ASCII)
_FIND_RE = re.compile(_RAW.replace("*?", "*").replace("))??", "))?"), re.ASCII)
_CONSTRAINT_RE = re.compile(r"\s*(~>|>=|<=|!=|>|<|=)?\s*(" + _RAW + r")\s*", re.ASCII)


class VersionError(ValueError):
    """Raised for malformed versions or constraints."""


@functools.total_ordering
class Version:
    """A parsed version with numeric segments, prerelease and metadata."""

    def __init__(self, segments: tuple[int, ...], original_count: int, prerelease: str, metadata: str) -> None:
        self.segments = segments
        self.original_count = original_count
        self.prerelease = prerelease
        self.metadata = metadata

    def __str__(self) -> str:
        text = ".".join(str(s) for s in self.segments)
        if self.prerelease:
            text += "-" + self.prerelease
        if self.metadata:
            text += "+" + self.metadata
        return text

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"

    def compare(self, other: Version) -> int:
        if str(self) == str(other):
            return 0
        size = max(len(self.segments), len(other.segments))
        mine = self.segments + (0,) * (size - len(self.segments))
        theirs = other.segments + (0,) * (size - len(other.segments))
        if mine != theirs:
            return 1 if mine > theirs else -1
        return _compare_prereleases(self.prerelease, other.prerelease)

    def equal_segments(self, other: Version) -> bool:
        size = max(len(self.segments), len(other.segments))
        return self.segments + (0,) * (size - len(self.segments)) == other.segments + (0,) * (
            size - len(other.segments)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: Version) -> bool:
        return self.compare(other) < 0

    def __hash__(self) -> int:
        segments = list(self.segments)
        while segments and segments[-1] == 0:
            segments.pop()
        return hash((tuple(segments), self.prerelease))


def _compare_part(a: str, b: str) -> int:
    if a == b:
        return 0
    a_num, b_num = a.isdigit(), b.isdigit()
    if a == "":
        return -1 if b_num else 1
    if b == "":
        return 1 if a_num else -1
    if a_num and not b_num:
        return -1
    if not a_num and b_num:
        return 1
    if not a_num:
        return 1 if a > b else -1
    return 1 if int(a) > int(b) else -1


def _compare_prereleases(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return 1
    if not b:
        return -1
    a_parts, b_parts = a.split("."), b.split(".")
    for i in range(max(len(a_parts), len(b_parts))):
        part_a = a_parts[i] if i < len(a_parts) else ""
        part_b = b_parts[i] if i < len(b_parts) else ""
        result = _compare_part(part_a, part_b)
        if result:
            return result
    return 0


def parse_version(text: str) -> Version:
    match = _VERSION_RE.fullmatch(text)
    if match is None:
        raise VersionError(f"Malformed version: {text}")
    parsed = [int(s) for s in match.group(1).split(".")]
    count = len(parsed)
    parsed.extend([0] * (3 - count))
    prerelease = match.group(7) or match.group(4) or ""
    return Version(tuple(parsed), count, prerelease, match.group(10) or "")


def _prerelease_check(v: Version, c: Version) -> bool:
    if c.prerelease and v.prerelease:
        return v.equal_segments(c)
    return not (v.prerelease and not c.prerelease)


def _pessimistic(v: Version, c: Version) -> bool:
    if not _prerelease_check(v, c) or (c.prerelease and not v.prerelease):
        return False
    if v < c:
        return False
    cs = c.original_count
    if cs > v.original_count:
        return False
    if v.segments[: cs - 1] != c.segments[: cs - 1]:
        return False
    return c.segments[cs - 1] <= v.segments[cs - 1]


_CHECKS = {
    "": lambda v, c: v == c,
    "=": lambda v, c: v == c,
    "!=": lambda v, c: v != c,
    ">": lambda v, c: _prerelease_check(v, c) and v.compare(c) == 1,
    "<": lambda v, c: _prerelease_check(v, c) and v.compare(c) == -1,
    ">=": lambda v, c: _prerelease_check(v, c) and v.compare(c) >= 0,
    "<=": lambda v, c: _prerelease_check(v, c) and v.compare(c) <= 0,
    "~>": _pessimistic,
}


@dataclass(frozen=True)
class _Constraint:
    operator: str
    target: Version
    original: str

    def check(self, version: Version) -> bool:
        return _CHECKS[self.operator](version, self.target)


@dataclass(frozen=True)
class Constraints:
    """A conjunction of version constraints."""

    items: tuple[_Constraint, ...] = ()

    def check(self, version: Version) -> bool:
        return all(item.check(version) for item in self.items)

    def __add__(self, other: Constraints) -> Constraints:
        return Constraints(self.items + other.items)

    def __len__(self) -> int:
        return len(self.items)

    def __str__(self) -> str:
        return ", ".join(item.original for item in self.items)


def parse_constraints(text: str) -> Constraints:
    items = []
    for single in text.split(","):
        match = _CONSTRAINT_RE.fullmatch(single)
        if match is None:
            raise VersionError(f"Malformed constraint: {single}")
        target = parse_version(match.group(2))
        items.append(_Constraint(match.group(1) or "", target, single.strip()))
    return Constraints(tuple(items))


def find_version(text: str) -> str:
    """Return the first version found in text, without a leading 'v'."""
    match = _FIND_RE.search(text)
    if match is None:
        return ""
    found = match.group(0)
    return found[1:] if found.startswith("v") else found