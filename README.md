# tenv

A library for managing the versions of infrastructure-as-code tools such as
OpenTofu, Terraform, Terragrunt and Atmos. It finds the version a project asks
for. It picks a matching release and installs it into a per-tool directory
through a retriever you supply. It also removes versions that are no longer
wanted.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `tenv.version`: versions and constraints

- `parse_version(text)` returns a `Version`. It raises `VersionError` for malformed input.
- `Version.compare(other)` returns -1, 0 or 1.
- A pre-release sorts before its release: `1.6.0-alpha5 < 1.6.0-rc1 < 1.6.0`.
- `parse_constraints(text)` parses a comma-separated list such as `">= 1.5, < 1.7"` or `"~> 1.6"` into `Constraints`.
- `Constraints.check(version)` tells whether a `Version` satisfies every constraint.
- `find_version(text)` pulls the first version out of a name or path and drops a leading `v`.
  - `"terraform/v1.7.1/"` gives `"1.7.1"`.
  - `"index.json"` gives `""`.

### `tenv.semantic`: strategies, uninstall selection and version files

- `cmp_version(v1, v2)` compares version strings. Unparsable strings sort first.
- `stable_version(version)` is true for parsable versions without a pre-release part.
- `parse_predicate(behaviour_or_constraint, display_name, constraint_info, settings)` returns a `PredicateInfo`. That holds a predicate and the order in which candidates are tried. The request can be one of these:
  - `latest` or `latest-stable`: the newest stable version.
  - `latest-pre`: the newest version, pre-releases included.
  - `latest-allowed` or `min-required`: the newest, or oldest, version that matches the default constraint from `constraint_info.read_default_constraint()`. With no default constraint it falls back to `latest`.
  - `latest:<regexp>` or `min:<regexp>`: a Python regular expression searched in version strings.
  - Any other text is read as a version constraint. The default constraint, if any, is combined with it.
- `select_versions_to_uninstall(behaviour_or_constraint, install_path, versions, displayer)` expects `versions` newest first. It accepts these requests:
  - `all`
  - `but-last`
  - `not-used-for:<N>d` or `not-used-for:<N>m`
  - `not-used-since:YYYY-MM-DD`
  - a version constraint

  The "not used" rules read the date recorded in each version's `last-use.txt`.
- `retrieve_version(version_files, settings)` looks for version files.
  - It starts in `settings.work_path` and walks up each parent directory to the filesystem root.
  - It then looks in `settings.user_path`, unless that directory was already visited.
  - In each directory the files are tried in the order given. The first non-empty result wins.

### `tenv.parsers`: version file readers

- `retrieve_flat_version` reads a plain file such as `.terraform-version` and returns its trimmed content.
- `parse_tool_versions` reads asdf `.tool-versions` lines. It returns the last entry for a tool and strips comments, including ones glued to the version. These wrap it for one tool each:
  - `retrieve_tofu_version`
  - `retrieve_terraform_version`
  - `retrieve_terragrunt_version`
  - `retrieve_atmos_version`
- `retrieve_toml_version` reads the `version` key of a tgswitch-style TOML file. It raises `ValueError` if any value is not a string.
- A missing file yields `""`.

### `tenv.releases`: release index documents

- `extract_asset_urls(os, arch, document)` reads a per-version index. It returns the archive name, download URL, checksum file name and signature file name.
- `extract_releases(document)` lists the versions in a releases index.
- `extract_mirror_releases(document)` lists the `id` of each entry in a mirror's `versions` list.
- `URLBuilder(template, version).build(artifact_name)` fills `{{ .Version }}` and `{{ .Artifact }}` in a URL template.
- A document with the wrong shape raises `ReleaseFormatError`.
- A missing platform raises `AssetNotFoundError`.

### `tenv.lastuse`: last-use dates

- `write_now(dir_path, displayer)` writes today's date to `last-use.txt` in the directory.
- `read(dir_path, displayer)` returns the recorded date. It returns `date.min` if the date is missing or unreadable.

### `tenv.types`: shared types

- `Settings` holds these fields:
  - `root_path` (default `~/.tenv`)
  - `work_path`
  - `user_path`
  - `skip_install` (default `True`)
  - `force_remote`
  - the `displayer`
  - an `env` mapping, read through `getenv`
- `Displayer` writes messages to a stream, stderr by default.
  - It can buffer messages until `flush`.
  - A flush for a proxy call drops the buffered messages.
- `InertDisplayer` shows nothing.
- `VersionFile` pairs a file name with a parser.

### `tenv.manager`: the version manager

`VersionManager(settings, env_prefix, folder_name, retriever, version_files)` manages one tool. Installed versions live in `<root_path>/<folder_name>/<version>/`.

`resolve(default_strategy)` looks in this order:

1. the `<prefix>VERSION` environment variable
2. the version files
3. `<prefix>DEFAULT_VERSION`
4. the `version` file under the tool's root directory
5. the default strategy

The other methods:

- `detect(proxy_call)` resolves the request and then evaluates it.
- `evaluate(requested_version, proxy_call)` returns a concrete version.
  - It prefers an installed match unless `force_remote` is set.
  - Otherwise it searches the retriever's list.
  - It installs the match unless `skip_install` is set. In that case it raises `NoCompatibleLocallyError`.
- `install`, `install_multiple`, `uninstall` and `uninstall_multiple` manage installed versions.
  - A file lock in the install directory guards against concurrent changes.
  - `uninstall` with a strategy lists the selection and asks for a `y`/`Y` on stdin.
- `list_local(reverse_order)` returns `DatedVersion` items with their last-use date.
- `list_remote(reverse_order)` returns the retriever's versions, sorted.
- `local_set()` returns the set of installed version names.
- `use(requested_version, working_dir)` evaluates a version and writes it. It writes to the first version file in the working directory, or to the tool's root `version` file.
- `set_constraint` checks a constraint and saves it. `reset_constraint` and `reset_version` remove the saved files. `read_default_constraint` reads `<prefix>DEFAULT_CONSTRAINT` or the saved constraint.

`EnvPrefix` builds the environment variable names from a prefix.

`exec_path(install_path, version, exec_name, displayer)` records today as the version's last use and returns the executable's path.

## Example

```python
from functools import cmp_to_key
from tenv.semantic import cmp_version, stable_version

versions = ["1.6.0-beta5", "1.5.2", "1.6.0", "1.5.0"]
versions.sort(key=cmp_to_key(cmp_version))
# ['1.5.0', '1.5.2', '1.6.0-beta5', '1.6.0']
[v for v in versions if stable_version(v)]
# ['1.5.0', '1.5.2', '1.6.0']
```

A manager with a retriever of your own:

```python
import os
from tenv.manager import VersionManager
from tenv.parsers import retrieve_flat_version
from tenv.types import InertDisplayer, Settings, VersionFile

class LocalRetriever:
    def list_versions(self):
        return ["1.5.0", "1.6.0", "1.7.0-rc1"]

    def install(self, version, target_path):
        os.makedirs(target_path)
        # place the executable in target_path here

settings = Settings(root_path="/tmp/tenv-root", skip_install=False, displayer=InertDisplayer())
manager = VersionManager(
    settings, "TFENV_", "Terraform", LocalRetriever(),
    [VersionFile(".terraform-version", retrieve_flat_version)],
)
manager.evaluate("latest", False)  # installs and returns "1.6.0"
```

## What this package does not do

- It has no command-line program and does not run the tools it installs. `exec_path` only gives the path to call.
- It does not download releases or verify checksums or signatures. Both are left to the `ReleaseRetriever` you pass to `VersionManager`.
- It does not scan `.tf` or `.tofu` files for `required_version`.
- It does not read `terragrunt.hcl` files. `latest-allowed` and `min-required` rely only on the default constraint.