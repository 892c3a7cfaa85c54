# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""The ``.udlgen.yaml`` workspace file: where build artifacts go and which languages to target.

Example::

    build-directory: .udlgen-build
    languages: [python, kotlin]
    cdylib-name: arithmetic_ffi
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ###############
# Public Interface
# ###############

WORKSPACE_CONFIG_FILENAME = ".udlgen.yaml"


class WorkspaceConfigError(Exception):
    """The workspace file is missing, unreadable or malformed."""


@dataclass
class WorkspaceConfig:
    """Settings read from a workspace file.

    Attributes:
        build_directory: Artifact output directory, relative to the workspace file.
        languages: Type oracle names bindings are rendered for, in listed order.
        cdylib_name: Native library the bindings load; None means the namespace name.
    """

    build_directory: str
    languages: list[str] = field(default_factory=list)
    cdylib_name: str | None = None


def load_workspace_config(path: Path) -> WorkspaceConfig:
    """Read and validate the workspace file at *path*.

    Raises:
        WorkspaceConfigError: When the file cannot be read or a setting is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Workspace config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read workspace config file {path}: {exc}") from exc
    return _parse_workspace_config(text, origin=str(path))


def find_workspace_config(start: Path) -> Path | None:
    """Return the nearest `.udlgen.yaml` at or above *start*, or None."""
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.parents):
        config = candidate / WORKSPACE_CONFIG_FILENAME
        if config.is_file():
            return config
    return None


# ################
# Implementation
# ################


def _parse_workspace_config(text: str, origin: str = "<string>") -> WorkspaceConfig:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceConfigError(f"Invalid YAML in {origin}: {exc}") from exc
    if not isinstance(data, dict):
        raise WorkspaceConfigError(f"{origin}: workspace config must be a YAML mapping")

    if "build-directory" not in data:
        raise WorkspaceConfigError(f"{origin}: missing required field 'build-directory'")
    return WorkspaceConfig(
        build_directory=_string(data, "build-directory", origin),
        languages=_language_list(data.get("languages", []), origin),
        cdylib_name=_string(data, "cdylib-name", origin) if "cdylib-name" in data else None,
    )


def _string(data: dict[str, Any], key: str, origin: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise WorkspaceConfigError(f"{origin}: '{key}' must be a string")
    return value


def _language_list(value: Any, origin: str) -> list[str]:
    if not isinstance(value, list):
        raise WorkspaceConfigError(f"{origin}: 'languages' must be a list")
    languages: list[str] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, str):
            raise WorkspaceConfigError(f"{origin}: languages[{index}] must be a string")
        if entry in languages:
            raise WorkspaceConfigError(f"{origin}: language '{entry}' is listed more than once")
        languages.append(entry)
    return languages
