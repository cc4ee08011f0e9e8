from __future__ import annotations

import logging
import shutil
import tomllib
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import BargoError, ConfigurationError
from .utils import ensure_dir

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Nargo.toml"
PROVER_INPUTS_NAME = "Prover.toml"
TARGET_ROOT = Path("target")
CONTRACTS_DIR = Path("contracts")
EVM_CONTRACTS_DIR = CONTRACTS_DIR / "evm"
EVM_VERIFIER_PATH = EVM_CONTRACTS_DIR / "src" / "Verifier.sol"
CAIRO_CONTRACTS_DIR = CONTRACTS_DIR / "cairo"


class Flavour(str, Enum):
    BB = "bb"
    EVM = "evm"
    STARKNET = "starknet"


class ArtifactKind(str, Enum):
    BYTECODE = "bytecode"
    WITNESS = "witness"
    PROOF = "proof"
    VK = "vk"
    PUBLIC_INPUTS = "public_inputs"
    CALLDATA = "calldata"


def target_dir(flavour: Flavour) -> Path:
    return TARGET_ROOT / flavour.value


def artifact_filename(pkg: str, kind: ArtifactKind) -> str:
    if kind is ArtifactKind.BYTECODE:
        return f"{pkg}.json"
    if kind is ArtifactKind.WITNESS:
        return f"{pkg}.gz"
    if kind is ArtifactKind.CALLDATA:
        return "calldata.json"
    return kind.value


def artifact_path(pkg: str, flavour: Flavour, kind: ArtifactKind) -> Path:
    return target_dir(flavour) / artifact_filename(pkg, kind)


def bytecode_path(pkg: str, flavour: Flavour = Flavour.BB) -> Path:
    return artifact_path(pkg, flavour, ArtifactKind.BYTECODE)


def witness_path(pkg: str, flavour: Flavour = Flavour.BB) -> Path:
    return artifact_path(pkg, flavour, ArtifactKind.WITNESS)


def proof_path(flavour: Flavour) -> Path:
    return target_dir(flavour) / artifact_filename("", ArtifactKind.PROOF)


def vk_path(flavour: Flavour) -> Path:
    return target_dir(flavour) / artifact_filename("", ArtifactKind.VK)


def public_inputs_path(flavour: Flavour) -> Path:
    return target_dir(flavour) / artifact_filename("", ArtifactKind.PUBLIC_INPUTS)


def calldata_path(flavour: Flavour) -> Path:
    return target_dir(flavour) / artifact_filename("", ArtifactKind.CALLDATA)


def find_project_root(start: Path) -> Path:
    start = start.resolve()
    for path in (start, *start.parents):
        if (path / MANIFEST_NAME).exists():
            logger.debug("Found %s at: %s", MANIFEST_NAME, path / MANIFEST_NAME)
            return path
    raise ConfigurationError(
        f"Could not find {MANIFEST_NAME} in current directory or any parent directory.\n"
        "Make sure you're running bargo from within a Noir project."
    )


def parse_package_name(manifest: Path) -> str:
    try:
        data = tomllib.loads(manifest.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Failed to read {MANIFEST_NAME} at {manifest}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Failed to parse {MANIFEST_NAME} at {manifest}: {exc}") from exc
    package = data.get("package")
    if isinstance(package, dict):
        name = package.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigurationError(
                f"Missing 'name' field in [package] section of {MANIFEST_NAME} at {manifest}"
            )
        return name
    if isinstance(data.get("workspace"), dict):
        logger.warning("Found workspace %s, using directory name as package name", MANIFEST_NAME)
        dir_name = manifest.resolve().parent.name
        if not dir_name:
            raise ConfigurationError("Could not determine package name from workspace directory")
        return dir_name
    raise ConfigurationError(
        f"Failed to parse {MANIFEST_NAME} at {manifest}: expected a [package] or [workspace] table"
    )


def get_package_name(pkg_override: Optional[str] = None, start: Optional[Path] = None) -> str:
    if pkg_override:
        logger.debug("Using package name override: %s", pkg_override)
        return pkg_override
    root = find_project_root(start or Path.cwd())
    return parse_package_name(root / MANIFEST_NAME)


def ensure_target_dir(flavour: Flavour) -> Path:
    path = target_dir(flavour)
    try:
        ensure_dir(path)
    except OSError as exc:
        raise BargoError(
            f"Failed to create {path} directory: {exc}",
            [
                "Check directory permissions",
                "Verify you're running from the project root",
            ],
        ) from exc
    return path


def ensure_contracts_dir(path: Path = CONTRACTS_DIR) -> Path:
    try:
        ensure_dir(path)
    except OSError as exc:
        raise BargoError(
            f"Failed to create contracts directory {path}: {exc}",
            ["Check directory permissions"],
        ) from exc
    return path


def move_generated_project(source: Path, destination: Path) -> None:
    if not source.exists():
        raise BargoError(
            f"Source directory does not exist: {source}",
            [
                "Check that the source directory was created correctly",
                "Ensure the previous generation step completed successfully",
            ],
        )
    if destination.exists():
        shutil.rmtree(destination)
        logger.debug("Removed existing destination: %s", destination)
    ensure_dir(destination.parent)
    shutil.move(str(source), str(destination))
    logger.debug("Moved directory: %s -> %s", source, destination)


def organize_build_artifacts(
    pkg: str, flavour: Flavour, dry_run: bool = False
) -> List[Tuple[Path, Path]]:
    moves = [
        (TARGET_ROOT / artifact_filename(pkg, ArtifactKind.BYTECODE), bytecode_path(pkg, flavour)),
        (TARGET_ROOT / artifact_filename(pkg, ArtifactKind.WITNESS), witness_path(pkg, flavour)),
    ]
    if dry_run:
        return moves
    ensure_target_dir(flavour)
    performed: List[Tuple[Path, Path]] = []
    for source, destination in moves:
        if not source.exists():
            logger.debug("Skipping %s: not produced by the compiler", source)
            continue
        try:
            source.replace(destination)
        except OSError as exc:
            raise BargoError(f"Failed to move {source} to {destination}: {exc}") from exc
        logger.debug("Moved %s -> %s", source, destination)
        performed.append((source, destination))
    return performed
