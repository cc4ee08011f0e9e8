from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from ..breadcrumbs import BreadcrumbKey, BreadcrumbStore, DeployState, deploy_state
from ..config import CairoDeployConfig, Config
from ..errors import ConfigurationError
from ..output import OperationSummary, Timer, format_file_size
from ..paths import (
    CAIRO_CONTRACTS_DIR,
    Flavour,
    bytecode_path,
    calldata_path,
    ensure_contracts_dir,
    ensure_target_dir,
    move_generated_project,
    proof_path,
    public_inputs_path,
    vk_path,
    witness_path,
)
from ..tools import (
    bb_prove,
    bb_verify,
    bb_write_vk,
    cairo_class_artifacts,
    garaga_calldata,
    garaga_gen,
    garaga_verify_onchain,
    scarb_build,
    starkli_declare,
    starkli_deploy,
)
from ..utils import write_json
from .common import (
    CLASS_HASH_PLACEHOLDER,
    CONTRACT_ADDRESS_PLACEHOLDER,
    emit,
    emit_next_steps,
    emit_result,
    emit_success,
    emit_summary,
    load_env_file,
    parse_calldata,
    parse_first_felt,
    parse_last_felt,
    require_env,
    resolve_package,
    validate_files_exist,
)

logger = logging.getLogger(__name__)


def _generate_proof_and_vk(cfg: Config, pkg: str, summary: OperationSummary) -> None:
    proof_timer = Timer()
    cfg.tool_runner.run(bb_prove(pkg, Flavour.STARKNET))
    emit_result(cfg, "Starknet proof generated", proof_path(Flavour.STARKNET), proof_timer)
    summary.add_operation(f"Starknet proof ({format_file_size(proof_path(Flavour.STARKNET))})")

    vk_timer = Timer()
    cfg.tool_runner.run(bb_write_vk(pkg, Flavour.STARKNET))
    emit_result(cfg, "Starknet VK generated", vk_path(Flavour.STARKNET), vk_timer)
    summary.add_operation(f"Verification key ({format_file_size(vk_path(Flavour.STARKNET))})")


def run_gen(cfg: Config) -> None:
    pkg = resolve_package(cfg)
    validate_files_exist(cfg, [bytecode_path(pkg), witness_path(pkg)])
    if not cfg.dry_run:
        ensure_target_dir(Flavour.STARKNET)

    summary = OperationSummary()
    logger.info("Generating Starknet proof and verification key")
    _generate_proof_and_vk(cfg, pkg, summary)

    logger.info("Generating Cairo verifier contract")
    project_name = cfg.settings.cairo_project_name
    gen_timer = Timer()
    cfg.tool_runner.run(garaga_gen(project_name))
    if cfg.dry_run:
        cfg.out.print(f"Would move {project_name} -> {CAIRO_CONTRACTS_DIR}")
        return

    ensure_contracts_dir()
    move_generated_project(Path(project_name), CAIRO_CONTRACTS_DIR)
    emit_result(cfg, "Cairo verifier generated", CAIRO_CONTRACTS_DIR, gen_timer)
    summary.add_operation(f"Cairo verifier project ({CAIRO_CONTRACTS_DIR}/)")

    emit_summary(cfg, summary)
    emit_next_steps(
        cfg,
        [
            "Generate calldata: bargo cairo calldata",
            "Deploy the verifier: bargo cairo deploy",
        ],
    )


def run_prove(cfg: Config) -> None:
    pkg = resolve_package(cfg)
    validate_files_exist(cfg, [bytecode_path(pkg), witness_path(pkg)])
    if not cfg.dry_run:
        ensure_target_dir(Flavour.STARKNET)

    summary = OperationSummary()
    _generate_proof_and_vk(cfg, pkg, summary)
    emit_summary(cfg, summary)
    emit_next_steps(cfg, ["Verify the proof: bargo cairo verify"])


def _proof_artifacts() -> list[Path]:
    return [
        proof_path(Flavour.STARKNET),
        vk_path(Flavour.STARKNET),
        public_inputs_path(Flavour.STARKNET),
    ]


def run_verify(cfg: Config) -> None:
    validate_files_exist(cfg, _proof_artifacts())
    timer = Timer()
    cfg.tool_runner.run(bb_verify(Flavour.STARKNET))
    if not cfg.dry_run:
        emit_success(cfg, f"Starknet proof verified successfully ({timer.elapsed()})")


def run_calldata(cfg: Config) -> None:
    validate_files_exist(cfg, _proof_artifacts())
    logger.info("Generating calldata for Starknet proof verification")
    timer = Timer()
    output = cfg.tool_runner.run_capture(garaga_calldata())
    felts = parse_calldata(output)
    if cfg.dry_run:
        return

    target = calldata_path(Flavour.STARKNET)
    write_json(target, {"calldata": felts})
    emit_result(cfg, "Calldata generated", target, timer)
    summary = OperationSummary(timer=timer)
    summary.add_operation(f"Calldata for proof verification ({format_file_size(target)})")
    emit_summary(cfg, summary)
    emit_next_steps(cfg, ["Verify on-chain: bargo cairo verify-onchain"])


def _starknet_credentials(cfg: Config, network: str) -> Tuple[str, str, str]:
    env_file = cfg.settings.starknet_env_file
    load_env_file(env_file)
    rpc_var = "MAINNET_RPC_URL" if network == "mainnet" else "SEPOLIA_RPC_URL"
    rpc_url = require_env(cfg, rpc_var, env_file)
    account = require_env(cfg, "STARKNET_ACCOUNT", env_file)
    keystore = require_env(cfg, "STARKNET_KEYSTORE", env_file)
    return rpc_url, account, keystore


def run_declare(cfg: Config, network: Optional[str] = None) -> str:
    network = network or cfg.settings.default_network
    validate_files_exist(cfg, [CAIRO_CONTRACTS_DIR])
    rpc_url, account, keystore = _starknet_credentials(cfg, network)

    logger.info("Declaring Cairo verifier contract on %s", network)
    timer = Timer()
    cfg.tool_runner.run(scarb_build())
    contract_class, casm_file = cairo_class_artifacts(
        cfg.settings.cairo_project_name, cfg.settings.cairo_contract_name
    )
    output = cfg.tool_runner.run_capture(
        starkli_declare(contract_class, casm_file, rpc_url, account, keystore)
    )
    if cfg.dry_run:
        return CLASS_HASH_PLACEHOLDER

    class_hash = parse_first_felt(output, "class hash")
    BreadcrumbStore(Flavour.STARKNET).write(BreadcrumbKey.CLASS_HASH, class_hash)
    emit_success(cfg, f"Contract declared with class hash {class_hash} ({timer.elapsed()})")
    return class_hash


def resolve_class_hash(cfg: Config, deploy_config: CairoDeployConfig, network: str) -> str:
    if deploy_config.class_hash:
        return deploy_config.class_hash
    cached = BreadcrumbStore(Flavour.STARKNET).read(BreadcrumbKey.CLASS_HASH)
    if deploy_config.should_declare(cached):
        return run_declare(cfg, network)
    if cached:
        logger.info("Using saved class hash %s", cached)
        return cached
    if cfg.dry_run:
        return CLASS_HASH_PLACEHOLDER
    raise ConfigurationError(
        "No class hash provided and no saved class hash found",
        [
            "Provide the class hash with --class-hash",
            "Or run 'bargo cairo declare' first to save the class hash",
            "Or drop --no-declare to declare automatically",
        ],
    )


def run_deploy(
    cfg: Config,
    deploy_config: Optional[CairoDeployConfig] = None,
    network: Optional[str] = None,
) -> str:
    deploy_config = deploy_config or CairoDeployConfig()
    network = network or cfg.settings.default_network
    class_hash = resolve_class_hash(cfg, deploy_config, network)
    rpc_url, account, keystore = _starknet_credentials(cfg, network)

    logger.info("Deploying Cairo verifier contract with class hash %s", class_hash)
    timer = Timer()
    output = cfg.tool_runner.run_capture(starkli_deploy(class_hash, rpc_url, account, keystore))
    if cfg.dry_run:
        return CONTRACT_ADDRESS_PLACEHOLDER

    address = parse_last_felt(output, "contract address")
    BreadcrumbStore(Flavour.STARKNET).write(BreadcrumbKey.CONTRACT_ADDRESS, address)
    emit_success(cfg, f"Verifier deployed at {address} ({timer.elapsed()})")
    emit(cfg, f"   Explorer: {cfg.settings.voyager_url}/contract/{address}")
    emit_next_steps(cfg, ["Verify on-chain: bargo cairo verify-onchain"])
    return address


def run_verify_onchain(
    cfg: Config, address: Optional[str] = None, network: Optional[str] = None
) -> None:
    network = network or cfg.settings.default_network
    validate_files_exist(cfg, [calldata_path(Flavour.STARKNET)])

    store = BreadcrumbStore(Flavour.STARKNET)
    contract_address = address or store.read(BreadcrumbKey.CONTRACT_ADDRESS)
    if not contract_address:
        if not cfg.dry_run:
            raise ConfigurationError(
                "No contract address provided and no saved address found",
                [
                    "Provide the contract address with --address",
                    "Or run 'bargo cairo deploy' first to save the contract address",
                ],
            )
        contract_address = CONTRACT_ADDRESS_PLACEHOLDER

    logger.debug("Deploy state: %s", deploy_state(store.snapshot()).value)
    timer = Timer()
    cfg.tool_runner.run(garaga_verify_onchain(contract_address, network))
    if not cfg.dry_run:
        emit_success(cfg, f"Proof verified on-chain at {contract_address} ({timer.elapsed()})")


class CairoBackend:
    def __init__(self, deploy_config: Optional[CairoDeployConfig] = None) -> None:
        self.deploy_config = deploy_config or CairoDeployConfig()

    def generate(self, cfg: Config) -> None:
        run_gen(cfg)

    def prove(self, cfg: Config) -> None:
        run_prove(cfg)

    def verify(self, cfg: Config) -> None:
        run_verify(cfg)

    def calldata(self, cfg: Config) -> None:
        run_calldata(cfg)

    def declare(self, cfg: Config, network: Optional[str] = None) -> str:
        return run_declare(cfg, network)

    def deploy(self, cfg: Config, network: Optional[str] = None) -> None:
        run_deploy(cfg, self.deploy_config, network)

    def verify_onchain(
        self, cfg: Config, address: Optional[str] = None, network: Optional[str] = None
    ) -> None:
        run_verify_onchain(cfg, address, network)

    def configure(self, config: CairoDeployConfig) -> None:
        self.deploy_config = config

    def state(self) -> DeployState:
        return deploy_state(BreadcrumbStore(Flavour.STARKNET).snapshot())
