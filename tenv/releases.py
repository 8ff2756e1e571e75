"""Extraction of release data from remote index documents."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any


class ReleaseFormatError(ValueError):
    """The remote document does not have the expected shape."""

    def __init__(self, message: str = "unexpected API return") -> None:
        super().__init__(message)


class AssetNotFoundError(LookupError):
    """No asset matches the searched platform."""

    def __init__(self, message: str = "asset not found") -> None:
        super().__init__(message)


def extract_asset_urls(searched_os: str, searched_arch: str, value: Any) -> tuple[str, str, str, str]:
    """Return (file name, download URL, sums file name, sums signature file name)."""
    obj = value if isinstance(value, dict) else {}
    builds = obj.get("builds")
    sha_file_name = obj.get("shasums")
    sha_sig_file_name = obj.get("shasums_signature")
    if not isinstance(builds, list) or not isinstance(sha_file_name, str) or not isinstance(sha_sig_file_name, str):
        raise ReleaseFormatError()
    for build in builds:
        entry = build if isinstance(build, dict) else {}
        fields = [entry.get(key) for key in ("os", "arch", "url", "filename")]
        if not all(isinstance(f, str) for f in fields):
            raise ReleaseFormatError()
        os_name, arch, url, file_name = fields
        if os_name == searched_os and arch == searched_arch:
            return file_name, url, sha_file_name, sha_sig_file_name
    raise AssetNotFoundError()


def extract_releases(value: Any) -> list[str]:
    obj = value if isinstance(value, dict) else {}
    versions = obj.get("versions")
    if not isinstance(versions, dict):
        raise ReleaseFormatError()
    return list(versions)


_PLACEHOLDER = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")


@dataclass(frozen=True)
class URLBuilder:
    """Fills ``{{ .Version }}`` and ``{{ .Artifact }}`` in a URL template."""

    template: str
    version: str

    def __post_init__(self) -> None:
        rest = _PLACEHOLDER.sub("", self.template)
        if "{{" in rest or "}}" in rest:
            raise ValueError(f"invalid URL template: {self.template}")

    def build(self, artifact_name: str) -> str:
        values = {"Artifact": artifact_name, "Version": self.version}

        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in values:
                raise ValueError(f"can't evaluate field {name} in URL template")
            return values[name]

        return _PLACEHOLDER.sub(replace, self.template)


def extract_mirror_releases(value: Any) -> list[str]:
    obj = value if isinstance(value, dict) else {}
    versions = obj.get("versions")
    if not isinstance(versions, list):
        raise ReleaseFormatError()
    releases = []
    for desc in versions:
        version = desc.get("id") if isinstance(desc, dict) else None
        if not isinstance(version, str):
            raise ReleaseFormatError()
        releases.append(version)
    return releases