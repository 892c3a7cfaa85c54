# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""UDLGen: interface model builder and FFI protocol for multi-language bindings."""
