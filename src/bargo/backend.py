from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol

from .config import CairoDeployConfig, Config
from .workflows import CairoBackend, EvmBackend


class BackendKind(str, Enum):
    CAIRO = "cairo"
    EVM = "evm"


class Backend(Protocol):
    def generate(self, cfg: Config) -> None:
        ...

    def prove(self, cfg: Config) -> None:
        ...

    def verify(self, cfg: Config) -> None:
        ...

    def calldata(self, cfg: Config) -> None:
        ...

    def deploy(self, cfg: Config, network: Optional[str] = None) -> None:
        ...

    def verify_onchain(self, cfg: Config, address: Optional[str] = None) -> None:
        ...

    def configure(self, config: CairoDeployConfig) -> None:
        ...


def backend_for(kind: BackendKind) -> Backend:
    if kind is BackendKind.CAIRO:
        return CairoBackend()
    if kind is BackendKind.EVM:
        return EvmBackend()
    raise ValueError(f"unknown backend: {kind}")
