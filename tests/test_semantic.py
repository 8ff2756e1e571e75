import datetime
import functools
import re

import pytest

from tenv import lastuse
from tenv.parsers import retrieve_flat_version
from tenv.semantic import (
    cmp_version,
    parse_predicate,
    retrieve_version,
    select_versions_to_uninstall,
    stable_version,
)
from tenv.types import InertDisplayer, Settings, VersionFile
from tenv.version import VersionError


class _Info:
    def __init__(self, constraint=""):
        self.constraint = constraint

    def read_default_constraint(self):
        return self.constraint


def _settings(tmp_path, work=None, user=None):
    return Settings(
        root_path=tmp_path / "root",
        work_path=work or tmp_path,
        user_path=user or tmp_path,
        displayer=InertDisplayer(),
        env={},
    )


SORTED = ["1.5.0", "1.5.1", "1.5.2", "1.6.0-alpha5", "1.6.0-beta5", "1.6.0-rc1", "1.6.0"]


def test_cmp_version_sort():
    versions = ["1.6.0-beta5", "1.5.2", "1.6.0-alpha5", "1.6.0", "1.5.1", "1.5.0", "1.6.0-rc1"]
    versions.sort(key=functools.cmp_to_key(lambda a, b: cmp_version(a, b)))
    assert versions == SORTED


def test_cmp_version_adjacent_order():
    assert all(cmp_version(a, b) < 0 for a, b in zip(SORTED, SORTED[1:]))
    assert all(cmp_version(b, a) > 0 for a, b in zip(SORTED, SORTED[1:]))
    assert cmp_version("1.6.0", "1.6") == 0


def test_cmp_version_invalid():
    assert cmp_version("bad", "worse") == 0
    assert cmp_version("bad", "1.0.0") == -1
    assert cmp_version("1.0.0", "bad") == 1


def test_stable_version():
    versions = ["1.5.0", "1.5.1", "1.5.2", "1.6.0-alpha5", "1.6.0-beta5", "1.6.0-rc1", "1.6.0"]
    assert [v for v in versions if stable_version(v)] == ["1.5.0", "1.5.1", "1.5.2", "1.6.0"]


def test_stable_version_invalid():
    assert stable_version("not a version") is False


@pytest.mark.parametrize("key", ["latest", "latest-stable"])
def test_parse_predicate_latest(tmp_path, key):
    info = parse_predicate(key, "Terraform", _Info(), _settings(tmp_path))
    assert info.reverse_order is True
    assert info.predicate("1.6.0") is True
    assert info.predicate("1.6.0-rc1") is False


def test_parse_predicate_latest_pre(tmp_path):
    info = parse_predicate("latest-pre", "Terraform", _Info(), _settings(tmp_path))
    assert info.reverse_order is True
    assert info.predicate("1.6.0-rc1") is True


def test_parse_predicate_min_regexp(tmp_path):
    info = parse_predicate(r"min:^1\.5", "Terraform", _Info(), _settings(tmp_path))
    assert info.reverse_order is False
    assert info.predicate("1.5.2") is True
    assert info.predicate("1.6.0") is False


def test_parse_predicate_latest_regexp(tmp_path):
    info = parse_predicate(r"latest:rc", "Terraform", _Info(), _settings(tmp_path))
    assert info.reverse_order is True
    assert info.predicate("1.6.0-rc1") is True
    assert info.predicate("1.6.0") is False


def test_parse_predicate_bad_regexp(tmp_path):
    with pytest.raises(re.error):
        parse_predicate("latest:[", "Terraform", _Info(), _settings(tmp_path))


def test_parse_predicate_constraint(tmp_path):
    info = parse_predicate(">= 1.5, < 1.6", "Terraform", _Info(), _settings(tmp_path))
    assert info.reverse_order is True
    assert info.predicate("1.5.1") is True
    assert info.predicate("1.6.0") is False
    assert info.predicate("garbage") is False


def test_parse_predicate_constraint_with_default(tmp_path):
    info = parse_predicate(">= 1.5, < 1.6", "Terraform", _Info("!= 1.5.1"), _settings(tmp_path))
    assert info.predicate("1.5.1") is False
    assert info.predicate("1.5.2") is True


def test_parse_predicate_bad_constraint(tmp_path):
    with pytest.raises(VersionError):
        parse_predicate("what?", "Terraform", _Info(), _settings(tmp_path))


def test_parse_predicate_min_required_with_default(tmp_path):
    info = parse_predicate("min-required", "Terraform", _Info("~> 1.5.0"), _settings(tmp_path))
    assert info.reverse_order is False
    assert info.predicate("1.5.2") is True
    assert info.predicate("1.6.0") is False


@pytest.mark.parametrize("key", ["min-required", "latest-allowed"])
def test_parse_predicate_fallback_latest(tmp_path, key):
    info = parse_predicate(key, "Terraform", _Info(), _settings(tmp_path))
    assert info.reverse_order is True
    assert info.predicate("1.6.0") is True
    assert info.predicate("1.6.0-rc1") is False


VERSIONS = ["1.7.0", "1.6.0", "1.5.0"]


def test_select_all(tmp_path):
    assert select_versions_to_uninstall("all", str(tmp_path), VERSIONS, InertDisplayer()) == VERSIONS


def test_select_but_last(tmp_path):
    assert select_versions_to_uninstall("but-last", str(tmp_path), VERSIONS, InertDisplayer()) == ["1.6.0", "1.5.0"]
    assert select_versions_to_uninstall("but-last", str(tmp_path), [], InertDisplayer()) == []


def test_select_constraint(tmp_path):
    result = select_versions_to_uninstall("< 1.7", str(tmp_path), VERSIONS, InertDisplayer())
    assert result == ["1.6.0", "1.5.0"]


def test_select_bad_constraint(tmp_path):
    with pytest.raises(VersionError):
        select_versions_to_uninstall("nope!", str(tmp_path), VERSIONS, InertDisplayer())


@pytest.fixture
def install_dir(tmp_path):
    displayer = InertDisplayer()
    old = tmp_path / "1.5.0"
    old.mkdir()
    (old / lastuse.FILE_NAME).write_text("2000-01-01")
    recent = tmp_path / "1.7.0"
    recent.mkdir()
    lastuse.write_now(recent, displayer)
    (tmp_path / "1.6.0").mkdir()
    return tmp_path


@pytest.mark.parametrize("spec", ["not-used-for:30d", "not-used-for:2M"])
def test_select_not_used_for(install_dir, spec):
    result = select_versions_to_uninstall(spec, str(install_dir), VERSIONS, InertDisplayer())
    assert result == ["1.6.0", "1.5.0"]


def test_select_not_used_since(install_dir):
    result = select_versions_to_uninstall("not-used-since:2020-01-01", str(install_dir), VERSIONS, InertDisplayer())
    assert result == ["1.6.0", "1.5.0"]


def test_select_not_used_since_future(install_dir):
    tomorrow = (datetime.date.today() + datetime.timedelta(days=1)).isoformat()
    result = select_versions_to_uninstall(f"not-used-since:{tomorrow}", str(install_dir), VERSIONS, InertDisplayer())
    assert result == VERSIONS


@pytest.mark.parametrize("spec", ["not-used-for:5x", "not-used-for:abd", "not-used-for:", "not-used-since:2020-1-1"])
def test_select_bad_durations(tmp_path, spec):
    with pytest.raises(ValueError):
        select_versions_to_uninstall(spec, str(tmp_path), VERSIONS, InertDisplayer())


FILE_NAME = ".semantic-test-version-marker"


def test_retrieve_version_in_parent(tmp_path):
    work = tmp_path / "a" / "b"
    work.mkdir(parents=True)
    (tmp_path / "a" / FILE_NAME).write_text(" 1.6.2\n")
    files = [VersionFile(FILE_NAME, retrieve_flat_version)]
    assert retrieve_version(files, _settings(tmp_path, work=work, user=tmp_path / "user")) == "1.6.2"


def test_retrieve_version_prefers_working_dir(tmp_path):
    work = tmp_path / "a"
    work.mkdir()
    (work / FILE_NAME).write_text("1.7.0")
    (tmp_path / FILE_NAME).write_text("1.5.0")
    files = [VersionFile(FILE_NAME, retrieve_flat_version)]
    assert retrieve_version(files, _settings(tmp_path, work=work)) == "1.7.0"


def test_retrieve_version_file_order(tmp_path):
    (tmp_path / "second").write_text("2.0.0")
    (tmp_path / "first").write_text("1.0.0")
    files = [VersionFile("first", retrieve_flat_version), VersionFile("second", retrieve_flat_version)]
    assert retrieve_version(files, _settings(tmp_path)) == "1.0.0"


def test_retrieve_version_from_user_dir(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    user = tmp_path / "home"
    user.mkdir()
    (user / FILE_NAME).write_text("1.8.0")
    files = [VersionFile(FILE_NAME, retrieve_flat_version)]
    assert retrieve_version(files, _settings(tmp_path, work=work, user=user)) == "1.8.0"


def test_retrieve_version_none(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    files = [VersionFile(FILE_NAME, retrieve_flat_version)]
    assert retrieve_version(files, _settings(tmp_path, work=work, user=tmp_path / "missing")) == ""


def test_retrieve_version_parser_error_propagates(tmp_path):
    def failing(path, settings):
        raise ValueError("broken")

    files = [VersionFile(FILE_NAME, failing)]
    with pytest.raises(ValueError, match="broken"):
        retrieve_version(files, _settings(tmp_path))