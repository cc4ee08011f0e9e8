from __future__ import annotations

import logging
import shutil
from enum import Enum
from pathlib import Path

from ..config import Config
from ..errors import BargoError
from ..output import OperationSummary, Timer
from ..paths import TARGET_ROOT, Flavour, organize_build_artifacts, target_dir
from ..rebuild import needs_rebuild
from ..runner import CmdSpec
from ..tools import nargo_check, nargo_execute
from .common import emit_info, emit_next_steps, emit_success, emit_summary, resolve_package

logger = logging.getLogger(__name__)


class CleanTarget(str, Enum):
    ALL = "all"
    BB = "bb"
    EVM = "evm"
    STARKNET = "starknet"


def clean_path(target: CleanTarget) -> Path:
    if target is CleanTarget.ALL:
        return TARGET_ROOT
    return target_dir(Flavour(target.value))


def run_build(cfg: Config, force: bool = False) -> None:
    pkg = resolve_package(cfg)

    if not cfg.dry_run and not force and not needs_rebuild(pkg):
        emit_success(cfg, "Build is up to date")
        return

    logger.info("Building package %s", pkg)
    timer = Timer()
    cfg.tool_runner.run(nargo_execute(cfg.pkg))

    moves = organize_build_artifacts(pkg, Flavour.BB, dry_run=cfg.dry_run)
    if cfg.dry_run:
        for source, destination in moves:
            cfg.out.print(f"Would move {source} -> {destination}")
        return

    summary = OperationSummary(timer=timer)
    for _source, destination in moves:
        summary.add_operation(f"{destination.name} → {destination.parent}/")
    emit_success(cfg, f"Build completed ({timer.elapsed()})")
    emit_summary(cfg, summary)
    emit_next_steps(
        cfg,
        [
            "Generate an EVM verifier: bargo evm gen",
            "Generate a Cairo verifier: bargo cairo gen",
        ],
    )


def run_check(cfg: Config) -> None:
    logger.info("Checking circuit syntax")
    cfg.tool_runner.run(nargo_check(cfg.pkg))
    if not cfg.dry_run:
        emit_success(cfg, "Check passed")


def run_clean(cfg: Config, target: CleanTarget = CleanTarget.ALL) -> None:
    path = clean_path(target)
    if cfg.dry_run:
        cfg.tool_runner.run(CmdSpec.new("rm", ["-rf", f"{path}/"]))
        return

    if not path.exists():
        emit_info(cfg, f"{path}/ does not exist, nothing to clean")
        return
    try:
        shutil.rmtree(path)
    except OSError as exc:
        raise BargoError(
            f"Failed to remove {path}/: {exc}", ["Check directory permissions"]
        ) from exc
    logger.info("Removed %s", path)
    emit_success(cfg, f"Removed {path}/")


def run_rebuild(cfg: Config, target: CleanTarget = CleanTarget.ALL) -> None:
    run_clean(cfg, target)
    run_build(cfg, force=True)
