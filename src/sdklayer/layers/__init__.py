# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cached layers: the SDK toolchain, the NuGet package cache and the runtime."""
