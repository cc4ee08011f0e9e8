from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import orjson

from ..breadcrumbs import BreadcrumbKey, BreadcrumbStore
from ..config import CairoDeployConfig, Config
from ..errors import ConfigurationError, ParseError
from ..output import OperationSummary, Timer, format_file_size
from ..paths import (
    EVM_CONTRACTS_DIR,
    EVM_VERIFIER_PATH,
    Flavour,
    bytecode_path,
    calldata_path,
    ensure_contracts_dir,
    ensure_target_dir,
    proof_path,
    public_inputs_path,
    vk_path,
    witness_path,
)
from ..tools import (
    bb_prove,
    bb_verify,
    bb_write_solidity_verifier,
    bb_write_vk,
    cast_calldata,
    cast_send,
    forge_create,
    forge_init,
)
from ..utils import read_json, write_json
from .common import (
    CONTRACT_ADDRESS_PLACEHOLDER,
    emit,
    emit_next_steps,
    emit_result,
    emit_success,
    emit_summary,
    load_env_file,
    parse_deployed_address,
    require_env,
    require_secret,
    resolve_package,
    validate_files_exist,
)

logger = logging.getLogger(__name__)

WORD_SIZE = 32


def _generate_proof_and_vk(cfg: Config, pkg: str, summary: OperationSummary) -> None:
    proof_timer = Timer()
    cfg.tool_runner.run(bb_prove(pkg, Flavour.EVM))
    emit_result(cfg, "EVM proof generated", proof_path(Flavour.EVM), proof_timer)
    summary.add_operation(f"EVM proof ({format_file_size(proof_path(Flavour.EVM))})")

    vk_timer = Timer()
    cfg.tool_runner.run(bb_write_vk(pkg, Flavour.EVM))
    emit_result(cfg, "EVM VK generated", vk_path(Flavour.EVM), vk_timer)
    summary.add_operation(f"Verification key ({format_file_size(vk_path(Flavour.EVM))})")


def run_gen(cfg: Config) -> None:
    pkg = resolve_package(cfg)
    validate_files_exist(cfg, [bytecode_path(pkg), witness_path(pkg)])
    if not cfg.dry_run:
        ensure_contracts_dir()
        ensure_target_dir(Flavour.EVM)

    summary = OperationSummary()
    logger.info("Initializing Foundry project")
    foundry_timer = Timer()
    cfg.tool_runner.run(forge_init())
    emit_result(cfg, "Foundry project initialized", EVM_CONTRACTS_DIR, foundry_timer)
    summary.add_operation("Foundry project structure")

    logger.info("Generating EVM proof with keccak oracle")
    _generate_proof_and_vk(cfg, pkg, summary)

    logger.info("Generating Solidity verifier contract")
    verifier_timer = Timer()
    cfg.tool_runner.run(bb_write_solidity_verifier())
    emit_result(cfg, "Solidity verifier generated", EVM_VERIFIER_PATH, verifier_timer)
    summary.add_operation(f"Solidity verifier ({format_file_size(EVM_VERIFIER_PATH)})")

    emit_summary(cfg, summary)
    emit_next_steps(
        cfg,
        [
            "Deploy the verifier: bargo evm deploy",
            "Generate calldata: bargo evm calldata",
        ],
    )


def run_prove(cfg: Config) -> None:
    pkg = resolve_package(cfg)
    validate_files_exist(cfg, [bytecode_path(pkg), witness_path(pkg)])
    if not cfg.dry_run:
        ensure_target_dir(Flavour.EVM)

    summary = OperationSummary()
    _generate_proof_and_vk(cfg, pkg, summary)
    emit_summary(cfg, summary)
    emit_next_steps(cfg, ["Verify the proof: bargo evm verify"])


def run_verify(cfg: Config) -> None:
    validate_files_exist(
        cfg, [proof_path(Flavour.EVM), vk_path(Flavour.EVM), public_inputs_path(Flavour.EVM)]
    )
    timer = Timer()
    cfg.tool_runner.run(bb_verify(Flavour.EVM))
    if not cfg.dry_run:
        emit_success(cfg, f"EVM proof verified successfully ({timer.elapsed()})")


def _proof_hex(cfg: Config) -> str:
    path = proof_path(Flavour.EVM)
    if cfg.dry_run and not path.exists():
        return "<proof-hex>"
    return "0x" + path.read_bytes().hex()


def _public_input_words(cfg: Config) -> List[str]:
    path = public_inputs_path(Flavour.EVM)
    if cfg.dry_run and not path.exists():
        return ["<public-inputs>"]
    data = path.read_bytes()
    if len(data) % WORD_SIZE:
        raise ParseError(
            f"{path} is not a sequence of {WORD_SIZE}-byte words ({len(data)} bytes)",
            ["Regenerate the proof with `bargo evm prove`"],
        )
    return ["0x" + data[i : i + WORD_SIZE].hex() for i in range(0, len(data), WORD_SIZE)]


def run_calldata(cfg: Config) -> None:
    validate_files_exist(
        cfg, [proof_path(Flavour.EVM), vk_path(Flavour.EVM), public_inputs_path(Flavour.EVM)]
    )
    timer = Timer()
    output = cfg.tool_runner.run_capture(cast_calldata(_proof_hex(cfg), _public_input_words(cfg)))
    if cfg.dry_run:
        return

    calldata = output.strip()
    if not calldata.startswith("0x"):
        raise ParseError("cast calldata did not return hex-encoded calldata")
    target = calldata_path(Flavour.EVM)
    write_json(target, {"calldata": calldata})
    emit_result(cfg, "Calldata generated", target, timer)
    emit_next_steps(cfg, ["Verify on-chain: bargo evm verify-onchain"])


def explorer_url(cfg: Config, network: str, address: str) -> str:
    base = cfg.settings.etherscan_url if network == "mainnet" else cfg.settings.sepolia_etherscan_url
    return f"{base}/address/{address}"


def run_deploy(cfg: Config, network: Optional[str] = None) -> str:
    network = network or cfg.settings.default_network
    validate_files_exist(cfg, [EVM_VERIFIER_PATH])
    load_env_file(cfg.settings.evm_env_file)
    rpc_url = require_env(cfg, "RPC_URL", cfg.settings.evm_env_file)
    private_key = require_secret(cfg, "PRIVATE_KEY", cfg.settings.evm_env_file)

    logger.info("Deploying %s to %s", cfg.settings.evm_verifier_contract, network)
    timer = Timer()
    output = cfg.tool_runner.run_capture(
        forge_create(cfg.settings.evm_verifier_contract, rpc_url, private_key)
    )
    address = parse_deployed_address(output)
    if cfg.dry_run:
        return address

    BreadcrumbStore(Flavour.EVM).write(BreadcrumbKey.CONTRACT_ADDRESS, address)
    emit_success(cfg, f"Verifier deployed at {address} ({timer.elapsed()})")
    emit(cfg, f"   Explorer: {explorer_url(cfg, network, address)}")
    emit_next_steps(cfg, ["Verify on-chain: bargo evm verify-onchain"])
    return address


def resolve_contract_address(cfg: Config, address: Optional[str]) -> str:
    if address:
        return address
    saved = BreadcrumbStore(Flavour.EVM).read(BreadcrumbKey.CONTRACT_ADDRESS)
    if saved:
        return saved
    from_env = os.environ.get("CONTRACT_ADDRESS")
    if from_env:
        return from_env
    if cfg.dry_run:
        return CONTRACT_ADDRESS_PLACEHOLDER
    raise ConfigurationError(
        "No contract address provided and no saved address found",
        [
            "Provide the contract address with --address",
            "Or run 'bargo evm deploy' first to save the contract address",
            "Or set CONTRACT_ADDRESS in your .env file",
        ],
    )


def _saved_calldata(target: Path) -> str:
    try:
        data = read_json(target)
    except orjson.JSONDecodeError as exc:
        raise ParseError(
            f"{target} is not valid JSON", ["Regenerate with `bargo evm calldata`"]
        ) from exc
    if not isinstance(data, dict) or not isinstance(data.get("calldata"), str):
        raise ParseError(
            f"{target} does not contain a calldata string", ["Regenerate with `bargo evm calldata`"]
        )
    return data["calldata"]


def run_verify_onchain(cfg: Config, address: Optional[str] = None) -> None:
    target = calldata_path(Flavour.EVM)
    validate_files_exist(cfg, [target])
    load_env_file(cfg.settings.evm_env_file)
    contract_address = resolve_contract_address(cfg, address)
    rpc_url = require_env(cfg, "RPC_URL", cfg.settings.evm_env_file)
    private_key = require_secret(cfg, "PRIVATE_KEY", cfg.settings.evm_env_file)

    calldata = "<calldata>"
    if target.exists():
        calldata = _saved_calldata(target)

    timer = Timer()
    cfg.tool_runner.run(cast_send(contract_address, calldata, rpc_url, private_key))
    if not cfg.dry_run:
        emit_success(cfg, f"Proof verified on-chain at {contract_address} ({timer.elapsed()})")


class EvmBackend:
    def generate(self, cfg: Config) -> None:
        run_gen(cfg)

    def prove(self, cfg: Config) -> None:
        run_prove(cfg)

    def verify(self, cfg: Config) -> None:
        run_verify(cfg)

    def calldata(self, cfg: Config) -> None:
        run_calldata(cfg)

    def deploy(self, cfg: Config, network: Optional[str] = None) -> None:
        run_deploy(cfg, network)

    def verify_onchain(self, cfg: Config, address: Optional[str] = None) -> None:
        run_verify_onchain(cfg, address)

    def configure(self, config: CairoDeployConfig) -> None:
        raise ConfigurationError(
            "EVM backend does not accept Cairo deploy configuration",
            ["Use --class-hash/--auto-declare/--no-declare only with `bargo cairo deploy`"],
        )
