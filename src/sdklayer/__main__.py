# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Allow ``python -m sdklayer``."""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    main()
