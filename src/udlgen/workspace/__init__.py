# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Workspace configuration for UDLGen."""

from udlgen.workspace.config import (
    WORKSPACE_CONFIG_FILENAME,
    WorkspaceConfig,
    WorkspaceConfigError,
    find_workspace_config,
    load_workspace_config,
)

__all__ = [
    "WORKSPACE_CONFIG_FILENAME",
    "WorkspaceConfig",
    "WorkspaceConfigError",
    "find_workspace_config",
    "load_workspace_config",
]
