"""Version comparison, resolution strategies, uninstall selection and version file lookup."""

from __future__ import annotations

import datetime
import os
import re
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

from tenv import lastuse
from tenv.types import Displayer, LogLevel, PredicateInfo, Settings, VersionFile
from tenv.version import Constraints, VersionError, parse_constraints, parse_version

LATEST_ALLOWED_KEY = "latest-allowed"
LATEST_PRE_KEY = "latest-pre"
LATEST_STABLE_KEY = "latest-stable"
LATEST_KEY = "latest"
MIN_REQUIRED_KEY = "min-required"

LATEST_PREFIX = "latest:"
MIN_PREFIX = "min:"

ALL_KEY = "all"
BUT_LAST_KEY = "but-last"
NOT_USED_FOR_PREFIX = "not-used-for:"
NOT_USED_SINCE_PREFIX = "not-used-since:"

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class ConstraintInfo(Protocol):
    def read_default_constraint(self) -> str: ...


def cmp_version(v1: str, v2: str) -> int:
    """Compare two version strings; unparsable versions sort first."""
    try:
        first = parse_version(v1)
    except VersionError:
        first = None
    try:
        second = parse_version(v2)
    except VersionError:
        second = None

    if first is None:
        return 0 if second is None else -1
    if second is None:
        return 1
    return first.compare(second)


def stable_version(version: str) -> bool:
    """True when the version parses and has no prerelease part."""
    try:
        return parse_version(version).prerelease == ""
    except VersionError:
        return False


def _always_true(_: str) -> bool:
    return True


def _predicate_from_constraint(constraint: Constraints) -> Callable[[str], bool]:
    def predicate(version: str) -> bool:
        try:
            parsed = parse_version(version)
        except VersionError:
            return False
        return constraint.check(parsed)

    return predicate


def _add_default_constraint(
    constraint_info: ConstraintInfo, settings: Settings, requireds: Iterable[str] = ()
) -> Constraints:
    all_requireds = list(requireds)
    default_constraint = constraint_info.read_default_constraint()
    if default_constraint:
        all_requireds.append(default_constraint)
    settings.displayer.log(LogLevel.DEBUG, "Find", constraints=all_requireds)

    constraint = Constraints()
    for required in all_requireds:
        constraint = constraint + parse_constraints(required)
    return constraint


def parse_predicate(
    behaviour_or_constraint: str, display_name: str, constraint_info: ConstraintInfo, settings: Settings
) -> PredicateInfo:
    """Turn a resolution strategy, regexp or constraint into a version predicate."""
    if behaviour_or_constraint in (MIN_REQUIRED_KEY, LATEST_ALLOWED_KEY):
        reverse_order = behaviour_or_constraint != MIN_REQUIRED_KEY
        constraint = _add_default_constraint(constraint_info, settings)
        if len(constraint):
            return PredicateInfo(_predicate_from_constraint(constraint), reverse_order)
        settings.displayer.display(
            f"No {display_name} version requirement found in project files, fallback to {LATEST_KEY} strategy"
        )
        return PredicateInfo(stable_version, True)

    if behaviour_or_constraint in (LATEST_KEY, LATEST_STABLE_KEY):
        return PredicateInfo(stable_version, True)

    if behaviour_or_constraint == LATEST_PRE_KEY:
        return PredicateInfo(_always_true, True)

    if behaviour_or_constraint.startswith((MIN_PREFIX, LATEST_PREFIX)):
        reverse_order = not behaviour_or_constraint.startswith(MIN_PREFIX)
        settings.displayer.display("Use of regexp is discouraged, try version constraint instead")
        pattern = re.compile(behaviour_or_constraint.partition(":")[2])
        return PredicateInfo(lambda version: pattern.search(version) is not None, reverse_order)

    constraint = _add_default_constraint(constraint_info, settings, [behaviour_or_constraint])
    return PredicateInfo(_predicate_from_constraint(constraint), True)


def _parse_int(text: str) -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def _shift_date(today: datetime.date, months: int, days: int) -> datetime.date:
    """Go back by months then days, normalising overflowing days forward."""
    year, month = divmod(today.year * 12 + today.month - 1 - months, 12)
    return datetime.date(year, month + 1, 1) + datetime.timedelta(days=today.day - 1 - days)


def _not_used_for_limit(duration: str) -> datetime.date:
    if not duration:
        raise ValueError("unrecognized duration format")
    amount, unit = duration[:-1], duration[-1]
    if unit in "dD":
        return _shift_date(datetime.date.today(), 0, _parse_int(amount))
    if unit in "mM":
        return _shift_date(datetime.date.today(), _parse_int(amount), 0)
    raise ValueError("unrecognized duration format")


def _parse_date(text: str) -> datetime.date:
    if not _DATE_RE.fullmatch(text):
        raise ValueError(f"cannot parse {text!r} as a date (YYYY-MM-DD)")
    return datetime.date.fromisoformat(text)


def select_versions_to_uninstall(
    behaviour_or_constraint: str, install_path: str, versions: Sequence[str], displayer: Displayer
) -> list[str]:
    """Choose installed versions to remove; versions must be sorted newest first."""
    if behaviour_or_constraint == ALL_KEY:
        return list(versions)

    if behaviour_or_constraint == BUT_LAST_KEY:
        return list(versions[1:])

    if behaviour_or_constraint.startswith(NOT_USED_FOR_PREFIX):
        limit = _not_used_for_limit(behaviour_or_constraint[len(NOT_USED_FOR_PREFIX):])
        return [
            version
            for version in versions
            if lastuse.read(os.path.join(install_path, version), displayer) <= limit
        ]

    if behaviour_or_constraint.startswith(NOT_USED_SINCE_PREFIX):
        since = _parse_date(behaviour_or_constraint[len(NOT_USED_SINCE_PREFIX):])
        return [
            version
            for version in versions
            if lastuse.read(os.path.join(install_path, version), displayer) < since
        ]

    predicate = _predicate_from_constraint(parse_constraints(behaviour_or_constraint))
    return [version for version in versions if predicate(version)]


def _retrieve_version_from_dir(version_files: Sequence[VersionFile], dir_path: str, settings: Settings) -> str:
    for version_file in version_files:
        version = version_file.parser(os.path.join(dir_path, version_file.name), settings)
        if version:
            return version
    return ""


def retrieve_version(version_files: Sequence[VersionFile], settings: Settings) -> str:
    """Search version files from the working directory up to the root, then in the user directory."""
    previous = os.path.abspath(os.fspath(settings.work_path))
    user_path = os.fspath(settings.user_path)

    version = _retrieve_version_from_dir(version_files, previous, settings)
    if version:
        return version

    user_path_done = False
    current = os.path.dirname(previous)
    while current != previous:
        version = _retrieve_version_from_dir(version_files, current, settings)
        if version:
            return version
        if current == user_path:
            user_path_done = True
        previous, current = current, os.path.dirname(current)

    if user_path_done:
        return ""
    return _retrieve_version_from_dir(version_files, user_path, settings)