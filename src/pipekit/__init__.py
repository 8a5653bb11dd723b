# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""pipekit - fetch and run sandboxed Deno pipes."""

__version__ = "0.1.0"
