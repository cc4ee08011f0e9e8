from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .paths import (
    MANIFEST_NAME,
    PROVER_INPUTS_NAME,
    Flavour,
    bytecode_path,
    find_project_root,
    witness_path,
)

logger = logging.getLogger(__name__)


def _mtime_ns(path: Path) -> int:
    return path.stat().st_mtime_ns


def is_dir_newer_than(directory: Path, target_time_ns: int) -> bool:
    for dirpath, _dirnames, filenames in os.walk(directory):
        for filename in filenames:
            if _mtime_ns(Path(dirpath) / filename) > target_time_ns:
                return True
    return False


def needs_rebuild(pkg: str, start: Optional[Path] = None) -> bool:
    project_root = find_project_root(start or Path.cwd())

    bytecode = project_root / bytecode_path(pkg, Flavour.BB)
    witness = project_root / witness_path(pkg, Flavour.BB)
    if not bytecode.exists() or not witness.exists():
        logger.debug("Target files don't exist, rebuild needed")
        return True

    target_time_ns = min(_mtime_ns(bytecode), _mtime_ns(witness))

    manifest = project_root / MANIFEST_NAME
    if manifest.exists() and _mtime_ns(manifest) > target_time_ns:
        logger.debug("%s is newer than target files, rebuild needed", MANIFEST_NAME)
        return True

    prover_inputs = project_root / PROVER_INPUTS_NAME
    if prover_inputs.exists() and _mtime_ns(prover_inputs) > target_time_ns:
        logger.debug("%s is newer than target files, rebuild needed", PROVER_INPUTS_NAME)
        return True

    src_dir = project_root / "src"
    if src_dir.is_dir() and is_dir_newer_than(src_dir, target_time_ns):
        logger.debug("Source files are newer than target files, rebuild needed")
        return True

    logger.debug("Target files are up to date")
    return False
