[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tenv"
version = "4.0.0"
description = "Version management for OpenTofu, Terraform, Terragrunt and Atmos: resolve, select, install and uninstall tool versions."
requires-python = ">=3.11"
keywords = ["terraform", "opentofu", "terragrunt", "atmos", "version-manager", "semver"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Installation/Setup",
]
dependencies = [
    "filelock",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tenv"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
