# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""External ``dotnet`` invocation and launch process derivation."""
