# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Whole-document JSON persistence.

Each document is read fully into memory and rewritten fully on every
mutation. Writes go to a sibling temp file that is then renamed over the
target, so a reader sees either the previous or the new document.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from ..core.errors import StorageIOError

lib_logger = logging.getLogger("tokstat_library")


def load_json_document(path: Path, default: Any) -> Any:
    """Load a JSON document, returning `default` if the file does not exist."""
    if not path.exists():
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise StorageIOError(f"Failed to parse {path.name}: {e}") from e
    except OSError as e:
        raise StorageIOError(f"Failed to read {path.name}: {e}") from e


def write_json_document(path: Path, data: Any) -> None:
    """Serialize `data` and atomically replace `path` with it."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except (OSError, TypeError, ValueError) as e:
        raise StorageIOError(f"Failed to write {path.name}: {e}") from e
    lib_logger.debug(f"Wrote {path}")
