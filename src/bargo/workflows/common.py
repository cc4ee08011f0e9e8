from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, List, Sequence

import orjson
from dotenv import load_dotenv
from rich.text import Text

from ..config import Config
from ..errors import ConfigurationError, MissingArtifactError, ParseError
from ..output import OperationSummary, Timer, format_operation_result, info, success
from ..paths import get_package_name

logger = logging.getLogger(__name__)

CLASS_HASH_PLACEHOLDER = "<declared-class-hash>"
CONTRACT_ADDRESS_PLACEHOLDER = "<deployed-contract-address>"

_FELT_RE = re.compile(r"0x[0-9a-fA-F]{64}")
_EVM_ADDRESS_RE = re.compile(r"Deployed to:\s*(0x[0-9a-fA-F]{40})")


def resolve_package(cfg: Config) -> str:
    return get_package_name(cfg.pkg)


def validate_files_exist(cfg: Config, paths: Sequence[Path]) -> None:
    if cfg.dry_run:
        logger.debug("Skipping file validation in dry-run mode")
        return
    missing = [path for path in paths if not Path(path).exists()]
    if missing:
        raise MissingArtifactError(missing)


def load_env_file(name: str) -> bool:
    path = Path(name)
    if not path.is_file():
        logger.debug("No %s file found, using process environment", name)
        return False
    loaded = load_dotenv(path, override=False)
    logger.debug("Loaded environment variables from %s", path)
    return loaded


def require_env(cfg: Config, name: str, hint: str) -> str:
    value = os.environ.get(name)
    if value:
        return value
    if cfg.dry_run:
        return f"${name}"
    raise ConfigurationError(
        f"{name} environment variable not found",
        [f"Add {name} to {hint}", f"Or export {name} in your shell"],
    )


def require_secret(cfg: Config, name: str, hint: str) -> str:
    if cfg.dry_run:
        return f"${name}"
    return require_env(cfg, name, hint)


def parse_first_felt(output: str, what: str) -> str:
    match = _FELT_RE.search(output)
    if match is None:
        raise ParseError(f"Could not find {what} in command output")
    return match.group(0)


def parse_last_felt(output: str, what: str) -> str:
    matches = _FELT_RE.findall(output)
    if not matches:
        raise ParseError(f"Could not find {what} in command output")
    return matches[-1]


def parse_deployed_address(output: str) -> str:
    match = _EVM_ADDRESS_RE.search(output)
    if match is None:
        raise ParseError(
            "Could not find contract address after 'Deployed to:' in forge output",
            ["Check the forge output above for deployment errors"],
        )
    return match.group(1)


def parse_calldata(output: str) -> List[str]:
    text = output.strip()
    values: Any = None
    try:
        values = orjson.loads(text)
    except orjson.JSONDecodeError:
        values = text.split()
    if isinstance(values, dict):
        values = values.get("calldata")
    if not isinstance(values, list):
        raise ParseError("Unexpected calldata format returned by garaga")
    felts = [str(value) for value in values]
    if not felts:
        raise ParseError("garaga returned empty calldata")
    return felts


def emit(cfg: Config, message: Text | str) -> None:
    if not cfg.quiet:
        cfg.out.print(message)


def emit_success(cfg: Config, message: str) -> None:
    emit(cfg, success(message, cfg.presentation))


def emit_result(cfg: Config, operation: str, path: Path, timer: Timer) -> None:
    if cfg.dry_run:
        return
    emit_success(cfg, format_operation_result(operation, path, timer))


def emit_next_steps(cfg: Config, steps: Sequence[str]) -> None:
    if cfg.quiet or cfg.dry_run or not steps:
        return
    cfg.out.print()
    cfg.out.print("🎯 Next steps:" if len(steps) > 1 else "🎯 Next step:")
    for step in steps:
        cfg.out.print(f"  • {step}")


def emit_summary(cfg: Config, summary: OperationSummary) -> None:
    if cfg.quiet or cfg.dry_run:
        return
    summary.print(cfg.out, cfg.presentation)


def emit_info(cfg: Config, message: str) -> None:
    emit(cfg, info(message, cfg.presentation))
