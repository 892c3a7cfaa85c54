# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for UDLGen documentation."""

project = "UDLGen"
author = "UDLGen Contributors"
release = "0.1.0"

# The API reference is generated from the Google-style docstrings in src/udlgen.
extensions: list[str] = ["sphinx.ext.autodoc", "sphinx.ext.napoleon"]
autodoc_member_order = "bysource"

html_theme = "alabaster"
