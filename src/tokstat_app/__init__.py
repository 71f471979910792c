# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""tokstat terminal front end: static report, interactive dashboard and CLI."""
