import pytest
from pydantic import ValidationError

from bargo.config import CairoDeployConfig, Config, Settings
from bargo.errors import ConfigurationError
from bargo.runner import DryRunRunner, RealRunner

CACHED = "0x" + "a" * 64


def test_settings_defaults() -> None:
    settings = Settings()
    assert settings.default_network == "sepolia"
    assert settings.evm_verifier_contract == "HonkVerifier"
    assert settings.cairo_project_name == "cairo_verifier"


def test_settings_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BARGO_DEFAULT_NETWORK", "mainnet")
    assert Settings().default_network == "mainnet"


def test_config_selects_runner_once() -> None:
    dry = Config.from_flags(dry_run=True)
    live = Config.from_flags()
    assert isinstance(dry.tool_runner, DryRunRunner)
    assert isinstance(live.tool_runner, RealRunner)
    assert dry.tool_runner is dry.runner


def test_config_honours_no_color(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NO_COLOR", "1")
    assert Config.from_flags().presentation.color is False


def test_default_policy_is_auto_declare() -> None:
    config = CairoDeployConfig.from_flags()
    assert config.auto_declare is True
    assert config.no_declare is False


def test_conflicting_flags_rejected() -> None:
    with pytest.raises(ConfigurationError, match="cannot be used together"):
        CairoDeployConfig.from_flags(auto_declare=True, no_declare=True)


def test_model_validator_rejects_conflict() -> None:
    with pytest.raises(ValidationError):
        CairoDeployConfig(auto_declare=True, no_declare=True)


def test_should_declare_policies() -> None:
    auto = CairoDeployConfig.from_flags()
    assert auto.should_declare(None) is True
    assert auto.should_declare(CACHED) is False

    no_declare = CairoDeployConfig.from_flags(no_declare=True)
    assert no_declare.auto_declare is False
    assert no_declare.should_declare(None) is False

    explicit = CairoDeployConfig.from_flags(class_hash=CACHED)
    assert explicit.should_declare(None) is False


def test_config_builds_console_and_runner() -> None:
    cfg = Config.from_flags(quiet=True)
    assert cfg.quiet is True
    assert cfg.out is cfg.console
    assert cfg.tool_runner is cfg.runner
    assert isinstance(cfg.tool_runner, RealRunner)
