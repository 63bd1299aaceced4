"""Project discovery and configuration.

Convention-based discovery: each project has a `.trackplan/` directory
containing `config.json` (lint settings), `events.json` (the event catalog
built from earlier plans) and `trackplan.log`.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from trackplan.rules import DEFAULT_SIMILARITY_THRESHOLD, RULE_ID_RE
from trackplan.types.core import ProjectConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

TRACKPLAN_DIR_NAME = ".trackplan"
CONFIG_FILENAME = "config.json"
CATALOG_FILENAME = "events.json"
CONFIG_VERSION = 1


def default_config() -> ProjectConfig:
    return ProjectConfig(
        version=CONFIG_VERSION,
        similarity_threshold=DEFAULT_SIMILARITY_THRESHOLD,
        disabled_rules=[],
        extra_pii_names=[],
    )


def find_trackplan_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .trackplan/ directory.

    Returns the .trackplan/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / TRACKPLAN_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {TRACKPLAN_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def _valid_config(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    threshold = data.get("similarity_threshold", DEFAULT_SIMILARITY_THRESHOLD)
    if isinstance(threshold, bool) or not isinstance(threshold, int | float) or not 0 < threshold <= 1:
        return False
    for key in ("disabled_rules", "extra_pii_names"):
        value = data.get(key, [])
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            return False
    return all(RULE_ID_RE.match(r.upper()) for r in data.get("disabled_rules", []))


def read_config(trackplan_dir: Path) -> ProjectConfig:
    """Read .trackplan/config.json. Returns defaults if missing or corrupt."""
    defaults = default_config()
    config_path = trackplan_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    if not _valid_config(data):
        logger.warning("Invalid settings in %s, using defaults", config_path)
        return defaults
    merged: ProjectConfig = {**defaults, **data}  # type: ignore[typeddict-item]
    return merged


def write_config(trackplan_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .trackplan/config.json."""
    write_atomic(trackplan_dir / CONFIG_FILENAME, json.dumps(config, indent=2) + "\n")


def write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace()."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise
