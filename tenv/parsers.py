"""Readers for version files: flat files, asdf tool files and tgswitch TOML."""

from __future__ import annotations

import tomllib
from collections.abc import Callable, Iterable

from tenv.types import Displayer, Settings, display_detection_info, level_warn_or_debug

TOOL_FILE_NAME = ".tool-versions"


def no_msg(displayer: Displayer, value: str, source: str) -> str:
    """Return the value trimmed, without displaying where it was found."""
    return value.strip()


def _read_bytes(file_path: str, settings: Settings, message: str) -> bytes | None:
    try:
        with open(file_path, "rb") as handle:
            return handle.read()
    except OSError as err:
        settings.displayer.log(level_warn_or_debug(isinstance(err, FileNotFoundError)), message, error=err)
        return None


def retrieve(
    file_path: str, settings: Settings, display_msg: Callable[[Displayer, str, str], str]
) -> str:
    """Return the trimmed content of a file, or "" when absent or empty."""
    data = _read_bytes(file_path, settings, "Failed to read file")
    if data is None:
        return ""
    resolved = data.decode("utf-8", errors="replace").strip()
    if not resolved:
        return ""
    return display_msg(settings.displayer, resolved, file_path)


def retrieve_flat_version(file_path: str, settings: Settings) -> str:
    return retrieve(file_path, settings, display_detection_info)


def parse_tool_versions(file_path: str, lines: Iterable[str], tool_name: str, displayer: Displayer) -> str:
    """Return the last version declared for tool_name in asdf tool file lines."""
    resolved = ""
    for line in lines:
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        parts = trimmed.split()
        if len(parts) >= 2 and parts[0] == tool_name:
            resolved = parts[1].partition("#")[0]
    if not resolved:
        return ""
    return display_detection_info(displayer, resolved, file_path)


def _retrieve_tool(file_path: str, tool_name: str, settings: Settings) -> str:
    try:
        with open(file_path, encoding="utf-8", errors="replace") as handle:
            return parse_tool_versions(file_path, handle, tool_name, settings.displayer)
    except OSError as err:
        settings.displayer.log(
            level_warn_or_debug(isinstance(err, FileNotFoundError)), "Failed to open tool file", error=err
        )
        return ""


def retrieve_tofu_version(file_path: str, settings: Settings) -> str:
    return _retrieve_tool(file_path, "opentofu", settings)


def retrieve_terraform_version(file_path: str, settings: Settings) -> str:
    return _retrieve_tool(file_path, "terraform", settings)


def retrieve_terragrunt_version(file_path: str, settings: Settings) -> str:
    return _retrieve_tool(file_path, "terragrunt", settings)


def retrieve_atmos_version(file_path: str, settings: Settings) -> str:
    return _retrieve_tool(file_path, "atmos", settings)


def retrieve_toml_version(file_path: str, settings: Settings) -> str:
    """Read the ``version`` key of a tgswitch TOML file.

    Raises ValueError when the file is not a flat table of strings.
    """
    data = _read_bytes(file_path, settings, "Failed to read tgswitch file")
    if data is None:
        return ""
    parsed = tomllib.loads(data.decode("utf-8"))
    for key, value in parsed.items():
        if not isinstance(value, str):
            raise ValueError(f"toml: value of {key!r} is not a string")
    resolved = parsed.get("version", "")
    if not resolved:
        return ""
    return display_detection_info(settings.displayer, resolved, file_path)