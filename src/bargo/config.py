from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, cast

from pydantic import BaseModel, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console

from .errors import ConfigurationError
from .output import Presentation
from .runner import Runner, runner_for


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BARGO_")

    default_network: str = "sepolia"
    evm_verifier_contract: str = "HonkVerifier"
    cairo_project_name: str = "cairo_verifier"
    cairo_contract_name: str = "UltraStarknetZKHonkVerifier"
    evm_env_file: str = ".env"
    starknet_env_file: str = ".secrets"
    etherscan_url: str = "https://etherscan.io"
    sepolia_etherscan_url: str = "https://sepolia.etherscan.io"
    voyager_url: str = "https://voyager.online"


class CairoDeployConfig(BaseModel):
    class_hash: Optional[str] = None
    auto_declare: bool = True
    no_declare: bool = False

    @model_validator(mode="after")
    def _check_declare_policy(self) -> "CairoDeployConfig":
        if self.auto_declare and self.no_declare:
            raise ValueError("--auto-declare and --no-declare cannot be used together")
        return self

    @classmethod
    def from_flags(
        cls,
        class_hash: Optional[str] = None,
        auto_declare: bool = False,
        no_declare: bool = False,
    ) -> "CairoDeployConfig":
        try:
            return cls(
                class_hash=class_hash,
                auto_declare=auto_declare or not no_declare,
                no_declare=no_declare,
            )
        except ValidationError as exc:
            messages = "; ".join(error["msg"].removeprefix("Value error, ") for error in exc.errors())
            raise ConfigurationError(
                f"Invalid deploy configuration: {messages}",
                ["Pass either --auto-declare or --no-declare, not both"],
            ) from exc

    def should_declare(self, cached_class_hash: Optional[str]) -> bool:
        if self.class_hash or self.no_declare:
            return False
        return self.auto_declare and not cached_class_hash


@dataclass
class Config:
    verbose: bool = False
    dry_run: bool = False
    pkg: Optional[str] = None
    quiet: bool = False
    presentation: Presentation = field(default_factory=Presentation)
    settings: Settings = field(default_factory=Settings)
    console: Optional[Console] = None
    runner: Optional[Runner] = None

    def __post_init__(self) -> None:
        if self.console is None:
            self.console = self.presentation.console()
        if self.runner is None:
            self.runner = runner_for(self.dry_run, self.console)

    @classmethod
    def from_flags(
        cls,
        verbose: bool = False,
        dry_run: bool = False,
        pkg: Optional[str] = None,
        quiet: bool = False,
    ) -> "Config":
        presentation = Presentation.detect()
        return cls(
            verbose=verbose,
            dry_run=dry_run,
            pkg=pkg,
            quiet=quiet,
            presentation=presentation,
        )

    @property
    def out(self) -> Console:
        return cast(Console, self.console)

    @property
    def tool_runner(self) -> Runner:
        return cast(Runner, self.runner)
