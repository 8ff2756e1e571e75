"""Management of installed tool versions: resolution, installation and removal."""

from __future__ import annotations

import contextlib
import datetime
import functools
import os
import shutil
import sys
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol

from filelock import FileLock

from tenv import lastuse, parsers
from tenv.semantic import (
    cmp_version,
    parse_predicate,
    retrieve_version,
    select_versions_to_uninstall,
)
from tenv.types import Displayer, LogLevel, PredicateInfo, Settings, VersionFile, display_detection_info
from tenv.version import VersionError, parse_constraints, parse_version

LATEST_ALLOWED_KEY = "latest-allowed"

VERSION_SUFFIX = "VERSION"
DEFAULT_CONSTRAINT_SUFFIX = "DEFAULT_CONSTRAINT"
DEFAULT_VERSION_SUFFIX = "DEFAULT_VERSION"

LOCK_FILE_NAME = ".lock"

_RWE_PERM = 0o755
_RW_PERM = 0o600


class NoCompatibleLocallyError(LookupError):
    """No installed version matches and installation is not allowed."""

    def __init__(self, version: str = "") -> None:
        super().__init__("no compatible version found locally")
        self.version = version


class _NoCompatibleError(LookupError):
    def __init__(self) -> None:
        super().__init__("no compatible version found")


class _EmptyVersionError(ValueError):
    def __init__(self) -> None:
        super().__init__("empty version")


class ReleaseRetriever(Protocol):
    """Source of remote releases for one tool."""

    def install(self, version: str, target_path: str) -> None: ...

    def list_versions(self) -> list[str]: ...


@dataclass(frozen=True)
class DatedVersion:
    use_date: datetime.date
    version: str


class EnvPrefix(str):
    """Prefix of the environment variables that configure one tool."""

    def version(self) -> str:
        return self + VERSION_SUFFIX

    def constraint(self) -> str:
        return self + DEFAULT_CONSTRAINT_SUFFIX

    def default_version(self) -> str:
        return self + DEFAULT_VERSION_SUFFIX


def _remove_path(path: str) -> None:
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except FileNotFoundError:
        pass


def _remove_file(file_path: str, settings: Settings) -> None:
    _remove_path(file_path)
    settings.displayer.display("Removed " + file_path)


def _write_file(file_path: str, content: str, settings: Settings) -> None:
    fd = os.open(file_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _RW_PERM)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(content)
    settings.displayer.display(f"Written {content} in {file_path}")


def _try_parse(text: str) -> str | None:
    """Return the cleaned form of a plain version, or None for other requests."""
    try:
        return str(parse_version(text))
    except VersionError:
        return None


class VersionManager:
    """Resolves, installs and removes versions of one tool."""

    def __init__(
        self,
        settings: Settings,
        env_prefix: str,
        folder_name: str,
        retriever: ReleaseRetriever,
        version_files: Sequence[VersionFile],
    ) -> None:
        self.settings = settings
        self.env_names = EnvPrefix(env_prefix)
        self.folder_name = folder_name
        self.retriever = retriever
        self.version_files = list(version_files)

    @property
    def _displayer(self) -> Displayer:
        return self.settings.displayer

    @contextlib.contextmanager
    def _flush_on_error(self, proxy_call: bool) -> Iterator[None]:
        try:
            yield
        except Exception:
            self._displayer.flush(proxy_call)
            raise

    def _lock(self, install_path: str) -> FileLock:
        return FileLock(os.path.join(install_path, LOCK_FILE_NAME))

    def detect(self, proxy_call: bool) -> str:
        """Resolve the requested version and evaluate it."""
        with self._flush_on_error(proxy_call):
            config_version = self.resolve(LATEST_ALLOWED_KEY)
        return self.evaluate(config_version, proxy_call)

    def evaluate(self, requested_version: str, proxy_call: bool) -> str:
        """Turn a version, strategy or constraint into a concrete version, installing it when allowed."""
        cleaned = _try_parse(requested_version)
        if cleaned is not None:
            if self.settings.skip_install:
                _, installed = self._check_version_installation("", cleaned)
                if not installed:
                    raise self._auto_install_disabled(cleaned)
                self._displayer.flush(proxy_call)
                return cleaned
            self._install_specific_version(cleaned, proxy_call)
            return cleaned

        with self._flush_on_error(proxy_call):
            predicate_info = parse_predicate(requested_version, self.folder_name, self, self.settings)
            install_path = self.install_path()

        if not self.settings.force_remote:
            with self._flush_on_error(proxy_call):
                versions = self._inner_list_local(install_path, predicate_info.reverse_order)
            for version in versions:
                if predicate_info.predicate(version):
                    self._displayer.display("Found compatible version installed locally : " + version)
                    self._displayer.flush(proxy_call)
                    return version
            self._displayer.display("No compatible version found locally, search a remote one...")

        return self._search_install_remote(predicate_info, self.settings.skip_install, proxy_call)

    def install(self, requested_version: str) -> None:
        cleaned = _try_parse(requested_version)
        if cleaned is not None:
            self._install_specific_version(cleaned, False)
            return
        predicate_info = parse_predicate(requested_version, self.folder_name, self, self.settings)
        self._search_install_remote(predicate_info, False, False)

    def install_multiple(self, versions: Sequence[str]) -> None:
        install_path = self.install_path()
        with self._lock(install_path):
            for version in versions:
                self._install_without_lock(install_path, version, False)

    def install_path(self) -> str:
        """Return the installation directory, creating it when missing."""
        dir_path = os.path.join(os.fspath(self.settings.root_path), self.folder_name)
        os.makedirs(dir_path, _RWE_PERM, exist_ok=True)
        return dir_path

    def list_local(self, reverse_order: bool) -> list[DatedVersion]:
        install_path = self.install_path()
        return [
            DatedVersion(lastuse.read(os.path.join(install_path, version), self._displayer), version)
            for version in self._inner_list_local(install_path, reverse_order)
        ]

    def list_remote(self, reverse_order: bool) -> list[str]:
        versions = self.retriever.list_versions()
        return sorted(versions, key=functools.cmp_to_key(cmp_version), reverse=reverse_order)

    def local_set(self) -> set[str]:
        """Names of installed versions; empty when the directory cannot be read."""
        try:
            install_path = self.install_path()
        except OSError as err:
            self._displayer.log(LogLevel.WARN, "Can not create installation directory", error=err)
            return set()
        try:
            with os.scandir(install_path) as entries:
                return {entry.name for entry in entries if entry.is_dir()}
        except OSError as err:
            level = LogLevel.DEBUG if isinstance(err, FileNotFoundError) else LogLevel.WARN
            self._displayer.log(level, "Can not read installed versions", error=err)
            return set()

    def read_default_constraint(self) -> str:
        constraint = self.settings.getenv(self.env_names.constraint())
        if constraint:
            return constraint
        return parsers.retrieve(self.root_constraint_file_path(), self.settings, parsers.no_msg)

    def reset_constraint(self) -> None:
        _remove_file(self.root_constraint_file_path(), self.settings)

    def reset_version(self) -> None:
        _remove_file(self.root_version_file_path(), self.settings)

    def resolve(self, default_strategy: str) -> str:
        """Find the requested version in the environment and version files, else the default strategy."""
        version_env_name = self.env_names.version()
        version = self.settings.getenv(version_env_name)
        if version:
            return display_detection_info(self._displayer, version, version_env_name)

        version = self.resolve_with_version_files()
        if version:
            return version

        default_env_name = self.env_names.default_version()
        version = self.settings.getenv(default_env_name)
        if version:
            return display_detection_info(self._displayer, version, default_env_name)

        version = parsers.retrieve_flat_version(self.root_version_file_path(), self.settings)
        if version:
            return version

        self._displayer.display(
            f"No version files found for {self.folder_name}, fallback to {default_strategy} strategy"
        )
        return default_strategy

    def resolve_with_version_files(self) -> str:
        return retrieve_version(self.version_files, self.settings)

    def root_constraint_file_path(self) -> str:
        return os.path.join(os.fspath(self.settings.root_path), self.folder_name, "constraint")

    def root_version_file_path(self) -> str:
        return os.path.join(os.fspath(self.settings.root_path), self.folder_name, "version")

    def set_constraint(self, constraint: str) -> None:
        parse_constraints(constraint)
        _write_file(self.root_constraint_file_path(), constraint, self.settings)

    def uninstall(self, requested_version: str) -> None:
        """Remove a version, or the versions a strategy selects after confirmation on stdin."""
        install_path = self.install_path()
        with self._lock(install_path):
            cleaned = _try_parse(requested_version)
            if cleaned is not None:
                self._uninstall_specific_version(install_path, cleaned)
                return

            versions = self._inner_list_local(install_path, True)
            selected = select_versions_to_uninstall(requested_version, install_path, versions, self._displayer)
            if not selected:
                self._displayer.display(f"No matching {self.folder_name} versions")
                return

            self._displayer.display(f"Selected {self.folder_name} versions for uninstallation :")
            self._displayer.display(", ".join(selected))
            self._displayer.display("Uninstall ? [y/N]")

            answer = sys.stdin.read(1)
            if not answer:
                raise EOFError("no answer read")
            if answer not in ("y", "Y"):
                return

            for version in selected:
                self._uninstall_specific_version(install_path, version)

    def uninstall_multiple(self, versions: Sequence[str]) -> None:
        install_path = self.install_path()
        with self._lock(install_path):
            for version in versions:
                self._uninstall_specific_version(install_path, version)

    def use(self, requested_version: str, working_dir: bool) -> None:
        """Write the evaluated version in the working directory or the root version file."""
        try:
            detected = self.evaluate(requested_version, False)
        except NoCompatibleLocallyError as err:
            self._displayer.display(str(err))
            detected = err.version

        target = self.version_files[0].name if working_dir else self.root_version_file_path()
        _write_file(target, detected, self.settings)

    def _already_installed(self, version: str, proxy_call: bool) -> None:
        self._displayer.display(f"{self.folder_name} {version} already installed")
        self._displayer.flush(proxy_call)

    def _auto_install_disabled(self, version: str) -> NoCompatibleLocallyError:
        cmd_name = self.folder_name.lower()
        self._displayer.flush(False)
        self._displayer.display(
            f"Auto-install is disabled. To install {self.folder_name} version {version}, "
            "you can set environment variable TENV_AUTO_INSTALL=true, or install it via any of "
            f"the following command: 'tenv {cmd_name} install', 'tenv {cmd_name} install {version}'"
        )
        return NoCompatibleLocallyError(version)

    def _check_version_installation(self, install_path: str, version: str) -> tuple[str, bool]:
        if not install_path:
            install_path = self.install_path()
        try:
            os.stat(os.path.join(install_path, version))
        except FileNotFoundError:
            return install_path, False
        return install_path, True

    def _inner_list_local(self, install_path: str, reverse_order: bool) -> list[str]:
        with os.scandir(install_path) as entries:
            versions = [entry.name for entry in entries if entry.is_dir()]
        return sorted(versions, key=functools.cmp_to_key(cmp_version), reverse=reverse_order)

    def _install_specific_version(self, version: str, proxy_call: bool) -> None:
        if not version:
            self._displayer.flush(proxy_call)
            raise _EmptyVersionError()

        install_path, installed = self._check_version_installation("", version)
        if installed:
            self._already_installed(version, proxy_call)
            return

        with self._lock(install_path):
            self._install_without_lock(install_path, version, proxy_call)

    def _install_without_lock(self, install_path: str, version: str, proxy_call: bool) -> None:
        _, installed = self._check_version_installation(install_path, version)
        if installed:
            self._already_installed(version, proxy_call)
            return

        self._displayer.flush(False)
        self._displayer.display(f"Installing {self.folder_name} {version}")
        self.retriever.install(version, os.path.join(install_path, version))
        self._displayer.display(f"Installation of {self.folder_name} {version} successful")

    def _search_install_remote(self, predicate_info: PredicateInfo, no_install: bool, proxy_call: bool) -> str:
        with self._flush_on_error(proxy_call):
            versions = self.list_remote(predicate_info.reverse_order)

        for version in versions:
            if predicate_info.predicate(version):
                self._displayer.display("Found compatible version remotely : " + version)
                if no_install:
                    raise self._auto_install_disabled(version)
                self._install_specific_version(version, proxy_call)
                return version

        self._displayer.flush(proxy_call)
        raise _NoCompatibleError()

    def _uninstall_specific_version(self, install_path: str, version: str) -> None:
        if not version:
            self._displayer.display(str(_EmptyVersionError()))
            return

        target_path = os.path.join(install_path, version)
        try:
            _remove_path(target_path)
        except OSError as err:
            self._displayer.display(f"Uninstallation of {self.folder_name} {version} failed with error : {err}")
        else:
            self._displayer.display(
                f"Uninstallation of {self.folder_name} {version} successful (directory {target_path} removed)"
            )


def exec_path(install_path: str, version: str, exec_name: str, displayer: Displayer) -> str:
    """Record the use of a version and return the path of its executable."""
    version_path = os.path.join(install_path, version)
    lastuse.write_now(version_path, displayer)
    return os.path.join(version_path, exec_name)