from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from .paths import (
    CAIRO_CONTRACTS_DIR,
    EVM_CONTRACTS_DIR,
    EVM_VERIFIER_PATH,
    Flavour,
    bytecode_path,
    proof_path,
    public_inputs_path,
    target_dir,
    vk_path,
    witness_path,
)
from .runner import CmdSpec

GARAGA_SYSTEM = "ultra_starknet_zk_honk"
EVM_VERIFY_SIGNATURE = "verify(bytes,bytes32[])"

ORACLE_HASH = {
    Flavour.EVM: "keccak",
    Flavour.STARKNET: "starknet",
}


def _output_dir(flavour: Flavour) -> str:
    return f"{target_dir(flavour)}/"


def _oracle_args(flavour: Flavour) -> List[str]:
    oracle = ORACLE_HASH.get(flavour)
    if oracle is None:
        return []
    return ["--oracle_hash", oracle]


def _scheme_args(flavour: Flavour) -> List[str]:
    if flavour is Flavour.STARKNET:
        return ["--scheme", "ultra_honk"]
    return []


def nargo_execute(pkg: Optional[str] = None) -> CmdSpec:
    args = ["execute"]
    if pkg:
        args.extend(["--package", pkg])
    return CmdSpec.new("nargo", args)


def nargo_check(pkg: Optional[str] = None) -> CmdSpec:
    args = ["check"]
    if pkg:
        args.extend(["--package", pkg])
    return CmdSpec.new("nargo", args)


def bb_prove(pkg: str, flavour: Flavour) -> CmdSpec:
    args: List[str] = ["prove", *_scheme_args(flavour), *_oracle_args(flavour)]
    if flavour is Flavour.STARKNET:
        args.append("--zk")
    args.extend(
        [
            "-b",
            str(bytecode_path(pkg, Flavour.BB)),
            "-w",
            str(witness_path(pkg, Flavour.BB)),
            "-o",
            _output_dir(flavour),
        ]
    )
    if flavour is Flavour.EVM:
        args.extend(["--output_format", "bytes_and_fields"])
    return CmdSpec.new("bb", args)


def bb_write_vk(pkg: str, flavour: Flavour) -> CmdSpec:
    args = [
        "write_vk",
        *_oracle_args(flavour),
        "-b",
        str(bytecode_path(pkg, Flavour.BB)),
        "-o",
        _output_dir(flavour),
    ]
    return CmdSpec.new("bb", args)


def bb_verify(flavour: Flavour) -> CmdSpec:
    args: List[str] = ["verify"]
    if flavour is Flavour.STARKNET:
        args.extend([*_scheme_args(flavour), "--zk"])
    args.extend(
        [
            "-p",
            str(proof_path(flavour)),
            "-k",
            str(vk_path(flavour)),
            "-i",
            str(public_inputs_path(flavour)),
            *_oracle_args(flavour),
        ]
    )
    return CmdSpec.new("bb", args)


def bb_write_solidity_verifier(output: Path = EVM_VERIFIER_PATH) -> CmdSpec:
    return CmdSpec.new(
        "bb", ["write_solidity_verifier", "-k", str(vk_path(Flavour.EVM)), "-o", str(output)]
    )


def garaga_gen(project_name: str) -> CmdSpec:
    return CmdSpec.new(
        "garaga",
        [
            "gen",
            "--system",
            GARAGA_SYSTEM,
            "--vk",
            str(vk_path(Flavour.STARKNET)),
            "--project-name",
            project_name,
        ],
    )


def garaga_calldata() -> CmdSpec:
    return CmdSpec.new(
        "garaga",
        [
            "calldata",
            "--system",
            GARAGA_SYSTEM,
            "--vk",
            str(vk_path(Flavour.STARKNET)),
            "--proof",
            str(proof_path(Flavour.STARKNET)),
            "--public-inputs",
            str(public_inputs_path(Flavour.STARKNET)),
        ],
    )


def garaga_verify_onchain(contract_address: str, network: str) -> CmdSpec:
    return CmdSpec.new(
        "garaga",
        [
            "verify-onchain",
            "--system",
            GARAGA_SYSTEM,
            "--contract-address",
            contract_address,
            "--network",
            network,
            "--vk",
            str(vk_path(Flavour.STARKNET)),
            "--proof",
            str(proof_path(Flavour.STARKNET)),
            "--public-inputs",
            str(public_inputs_path(Flavour.STARKNET)),
        ],
    )


def forge_init(directory: Path = EVM_CONTRACTS_DIR) -> CmdSpec:
    return CmdSpec.new("forge", ["init", "--force", str(directory)])


def forge_create(contract_name: str, rpc_url: str, private_key: str) -> CmdSpec:
    return CmdSpec.new(
        "forge",
        [
            "create",
            f"src/Verifier.sol:{contract_name}",
            "--rpc-url",
            rpc_url,
            "--private-key",
            private_key,
            "--broadcast",
        ],
    ).with_cwd(EVM_CONTRACTS_DIR)


def cast_calldata(proof_hex: str, public_inputs: Sequence[str]) -> CmdSpec:
    return CmdSpec.new(
        "cast",
        ["calldata", EVM_VERIFY_SIGNATURE, proof_hex, f"[{','.join(public_inputs)}]"],
    )


def cast_send(address: str, calldata: str, rpc_url: str, private_key: str) -> CmdSpec:
    return CmdSpec.new(
        "cast",
        ["send", address, calldata, "--rpc-url", rpc_url, "--private-key", private_key],
    )


def scarb_build(directory: Path = CAIRO_CONTRACTS_DIR) -> CmdSpec:
    return CmdSpec.new("scarb", ["build"]).with_cwd(directory)


def cairo_class_artifacts(project_name: str, contract_name: str) -> tuple[Path, Path]:
    dev_dir = CAIRO_CONTRACTS_DIR / "target" / "dev"
    stem = f"{project_name}_{contract_name}"
    return (
        dev_dir / f"{stem}.contract_class.json",
        dev_dir / f"{stem}.compiled_contract_class.json",
    )


def starkli_declare(
    contract_class: Path, casm_file: Path, rpc_url: str, account: str, keystore: str
) -> CmdSpec:
    return CmdSpec.new(
        "starkli",
        [
            "declare",
            str(contract_class),
            "--rpc",
            rpc_url,
            "--account",
            account,
            "--keystore",
            keystore,
            "--casm-file",
            str(casm_file),
        ],
    )


def starkli_deploy(class_hash: str, rpc_url: str, account: str, keystore: str) -> CmdSpec:
    return CmdSpec.new(
        "starkli",
        ["deploy", class_hash, "--rpc", rpc_url, "--account", account, "--keystore", keystore],
    )
