"""Shared types: displayers, settings and version file descriptions."""

from __future__ import annotations

import enum
import os
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO


class LogLevel(enum.Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


def level_warn_or_debug(not_found: bool) -> LogLevel:
    """Missing files are expected and only worth a debug line."""
    return LogLevel.DEBUG if not_found else LogLevel.WARN


class Displayer:
    """Writes user messages and log lines to a stream.

    When ``buffered`` is true, messages are held until :meth:`flush`; a flush
    for a proxy call drops them, a normal flush writes them. After the first
    flush, messages are written immediately.
    """

    def __init__(self, stream: TextIO | None = None, debug: bool = False, buffered: bool = False) -> None:
        self._stream = stream
        self._debug = debug
        self._buffered = buffered
        self._pending: list[str] = []

    def _write(self, line: str) -> None:
        print(line, file=self._stream if self._stream is not None else sys.stderr)

    def display(self, message: str) -> None:
        if self._buffered:
            self._pending.append(message)
        else:
            self._write(message)

    def log(self, level: LogLevel, message: str, **kwargs: object) -> None:
        if level is LogLevel.DEBUG and not self._debug:
            return
        details = "".join(f" {key}={value}" for key, value in kwargs.items())
        self._write(f"[{level.value.upper()}] {message}{details}")

    def flush(self, proxy_call: bool) -> None:
        pending, self._pending = self._pending, []
        self._buffered = False
        if not proxy_call:
            for message in pending:
                self._write(message)

    def is_debug(self) -> bool:
        return self._debug


class InertDisplayer(Displayer):
    """A displayer that shows nothing."""

    def __init__(self) -> None:
        super().__init__()

    def display(self, message: str) -> None:
        pass

    def log(self, level: LogLevel, message: str, **kwargs: object) -> None:
        pass

    def flush(self, proxy_call: bool) -> None:
        pass

    def is_debug(self) -> bool:
        return False


@dataclass
class Settings:
    """Runtime configuration shared by the version management code."""

    root_path: str | os.PathLike = field(default_factory=lambda: Path.home() / ".tenv")
    work_path: str | os.PathLike = "."
    user_path: str | os.PathLike = field(default_factory=Path.home)
    skip_install: bool = True
    force_remote: bool = False
    github_actions: bool = False
    displayer: Displayer = field(default_factory=Displayer)
    env: Mapping[str, str] = field(default_factory=lambda: os.environ)

    def getenv(self, name: str) -> str:
        return self.env.get(name, "")


@dataclass(frozen=True)
class PredicateInfo:
    predicate: Callable[[str], bool]
    reverse_order: bool = True


@dataclass(frozen=True)
class VersionFile:
    name: str
    parser: Callable[[str, Settings], str]


def display_detection_info(displayer: Displayer, version: str, source: str) -> str:
    """Report where a version was found and return it."""
    displayer.display(f"Resolved version from {source} : {version}")
    return version