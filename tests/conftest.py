from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from rich.console import Console

from bargo.config import Config
from bargo.runner import CmdSpec, DryRunRunner

ENV_VARS = [
    "RPC_URL",
    "PRIVATE_KEY",
    "CONTRACT_ADDRESS",
    "SEPOLIA_RPC_URL",
    "MAINNET_RPC_URL",
    "STARKNET_ACCOUNT",
    "STARKNET_KEYSTORE",
    "NO_COLOR",
    "BARGO_DEFAULT_NETWORK",
    "BARGO_EVM_VERIFIER_CONTRACT",
]

NARGO_TOML = """[package]
name = "demo"
type = "bin"
authors = [""]

[dependencies]
"""


class ScriptedRunner:
    """Live-mode runner double: records every call and replays scripted stdout."""

    def __init__(
        self,
        outputs: Optional[Dict[str, str]] = None,
        effects: Optional[Dict[str, Callable[[CmdSpec], None]]] = None,
    ) -> None:
        self.calls: List[CmdSpec] = []
        self.outputs = outputs or {}
        self.effects = effects or {}

    @staticmethod
    def _key(spec: CmdSpec) -> str:
        if spec.args:
            return f"{spec.cmd} {spec.args[0]}"
        return spec.cmd

    def _lookup(self, table: Dict, spec: CmdSpec):
        key = self._key(spec)
        if key in table:
            return table[key]
        return table.get(spec.cmd)

    def run(self, spec: CmdSpec) -> None:
        self.calls.append(spec)
        effect = self._lookup(self.effects, spec)
        if effect is not None:
            effect(spec)

    def run_capture(self, spec: CmdSpec) -> str:
        self.run(spec)
        return self._lookup(self.outputs, spec) or ""

    def commands(self) -> List[str]:
        return [self._key(spec) for spec in self.calls]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so teardown also removes values loaded from env files
    for name in ENV_VARS:
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "Nargo.toml").write_text(NARGO_TOML, encoding="utf-8")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.nr").write_text("fn main(x: Field) { assert(x != 0); }\n")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def scripted() -> ScriptedRunner:
    return ScriptedRunner()


@pytest.fixture
def buffer() -> io.StringIO:
    return io.StringIO()


def make_config(runner, dry_run: bool = False, pkg: Optional[str] = None, **kwargs) -> Config:
    console = kwargs.pop("console", None) or Console(file=io.StringIO(), width=200)
    return Config(dry_run=dry_run, pkg=pkg, quiet=True, console=console, runner=runner, **kwargs)


def dry_config(buffer: io.StringIO, pkg: Optional[str] = None) -> Config:
    console = Console(file=buffer, width=200, markup=False, highlight=False)
    return Config(dry_run=True, pkg=pkg, quiet=True, console=console, runner=DryRunRunner(console))


def touch(path: Path, content: bytes = b"") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path
