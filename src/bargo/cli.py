from __future__ import annotations

from typing import Callable, Optional, cast

import typer

from .backend import BackendKind, backend_for
from .config import CairoDeployConfig, Config
from .errors import BargoError, enhance_error
from .log import setup_logging
from .output import banner
from .workflows import CleanTarget, run_build, run_check, run_clean, run_rebuild
from .workflows.cairo import CairoBackend

app = typer.Typer(help="Build, prove and deploy Noir circuits", no_args_is_help=True)
evm_app = typer.Typer(help="EVM verifier workflow (Foundry)", no_args_is_help=True)
cairo_app = typer.Typer(help="Cairo verifier workflow (Starknet)", no_args_is_help=True)

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Print diagnostic output.")
DRY_RUN_OPTION = typer.Option(False, "--dry-run", help="Print commands without running them.")
PKG_OPTION = typer.Option(None, "--pkg", help="Package name (overrides Nargo.toml).")
QUIET_OPTION = typer.Option(False, "--quiet", "-q", help="Only print errors.")
CLEAN_BACKEND_OPTION = typer.Option(CleanTarget.ALL, "--backend", help="Which artifacts to remove.")
NETWORK_OPTION = typer.Option(None, "--network", help="Target network (default: sepolia).")
ADDRESS_OPTION = typer.Option(None, "--address", help="Verifier contract address.")
CLASS_HASH_OPTION = typer.Option(None, "--class-hash", help="Declared class hash to deploy.")
AUTO_DECLARE_OPTION = typer.Option(
    False, "--auto-declare", help="Declare first unless a class hash is cached (default)."
)
NO_DECLARE_OPTION = typer.Option(False, "--no-declare", help="Never declare; require a class hash.")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = VERBOSE_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    pkg: Optional[str] = PKG_OPTION,
    quiet: bool = QUIET_OPTION,
) -> None:
    setup_logging(verbose=verbose, quiet=quiet)
    ctx.obj = Config.from_flags(verbose=verbose, dry_run=dry_run, pkg=pkg, quiet=quiet)


def _execute(ctx: typer.Context, command: str, action: Callable[[Config], object]) -> None:
    cfg: Config = ctx.obj
    if not cfg.quiet:
        cfg.out.print(banner(command, cfg.presentation))
        cfg.out.print()
    try:
        action(cfg)
    except BargoError as exc:
        enhance_error(exc)
        cfg.presentation.console(stderr=True).print(exc.render())
        raise typer.Exit(code=1) from exc


@app.command("build")
def build(ctx: typer.Context) -> None:
    """Compile the circuit and generate the witness."""
    _execute(ctx, "build", run_build)


@app.command("check")
def check(ctx: typer.Context) -> None:
    """Check the circuit for errors without generating artifacts."""
    _execute(ctx, "check", run_check)


@app.command("clean")
def clean(ctx: typer.Context, backend: CleanTarget = CLEAN_BACKEND_OPTION) -> None:
    """Remove generated artifacts."""
    _execute(ctx, "clean", lambda cfg: run_clean(cfg, backend))


@app.command("rebuild")
def rebuild(ctx: typer.Context, backend: CleanTarget = CLEAN_BACKEND_OPTION) -> None:
    """Clean, then build from scratch."""
    _execute(ctx, "rebuild", lambda cfg: run_rebuild(cfg, backend))


@evm_app.command("gen")
def evm_gen(ctx: typer.Context) -> None:
    """Generate proof, verification key and Solidity verifier."""
    _execute(ctx, "evm gen", backend_for(BackendKind.EVM).generate)


@evm_app.command("prove")
def evm_prove(ctx: typer.Context) -> None:
    """Generate the EVM proof and verification key."""
    _execute(ctx, "evm prove", backend_for(BackendKind.EVM).prove)


@evm_app.command("verify")
def evm_verify(ctx: typer.Context) -> None:
    """Verify the EVM proof locally with bb."""
    _execute(ctx, "evm verify", backend_for(BackendKind.EVM).verify)


@evm_app.command("calldata")
def evm_calldata(ctx: typer.Context) -> None:
    """Encode the proof and public inputs as verifier calldata."""
    _execute(ctx, "evm calldata", backend_for(BackendKind.EVM).calldata)


@evm_app.command("deploy")
def evm_deploy(ctx: typer.Context, network: Optional[str] = NETWORK_OPTION) -> None:
    """Deploy the Solidity verifier with forge."""
    backend = backend_for(BackendKind.EVM)
    _execute(ctx, "evm deploy", lambda cfg: backend.deploy(cfg, network))


@evm_app.command("verify-onchain")
def evm_verify_onchain(ctx: typer.Context, address: Optional[str] = ADDRESS_OPTION) -> None:
    """Submit the saved calldata to the deployed verifier."""
    backend = backend_for(BackendKind.EVM)
    _execute(ctx, "evm verify-onchain", lambda cfg: backend.verify_onchain(cfg, address))


def _cairo_backend() -> CairoBackend:
    return cast(CairoBackend, backend_for(BackendKind.CAIRO))


@cairo_app.command("gen")
def cairo_gen(ctx: typer.Context) -> None:
    """Generate proof, verification key and Cairo verifier project."""
    _execute(ctx, "cairo gen", _cairo_backend().generate)


@cairo_app.command("prove")
def cairo_prove(ctx: typer.Context) -> None:
    """Generate the Starknet proof and verification key."""
    _execute(ctx, "cairo prove", _cairo_backend().prove)


@cairo_app.command("verify")
def cairo_verify(ctx: typer.Context) -> None:
    """Verify the Starknet proof locally with bb."""
    _execute(ctx, "cairo verify", _cairo_backend().verify)


@cairo_app.command("calldata")
def cairo_calldata(ctx: typer.Context) -> None:
    """Generate Starknet verifier calldata with garaga."""
    _execute(ctx, "cairo calldata", _cairo_backend().calldata)


@cairo_app.command("declare")
def cairo_declare(ctx: typer.Context, network: Optional[str] = NETWORK_OPTION) -> None:
    """Build and declare the verifier class on Starknet."""
    backend = _cairo_backend()
    _execute(ctx, "cairo declare", lambda cfg: backend.declare(cfg, network))


@cairo_app.command("deploy")
def cairo_deploy(
    ctx: typer.Context,
    class_hash: Optional[str] = CLASS_HASH_OPTION,
    auto_declare: bool = AUTO_DECLARE_OPTION,
    no_declare: bool = NO_DECLARE_OPTION,
    network: Optional[str] = NETWORK_OPTION,
) -> None:
    """Deploy the verifier, declaring it first when needed."""
    backend = _cairo_backend()

    def action(cfg: Config) -> None:
        backend.configure(
            CairoDeployConfig.from_flags(
                class_hash=class_hash, auto_declare=auto_declare, no_declare=no_declare
            )
        )
        backend.deploy(cfg, network)

    _execute(ctx, "cairo deploy", action)


@cairo_app.command("verify-onchain")
def cairo_verify_onchain(
    ctx: typer.Context,
    address: Optional[str] = ADDRESS_OPTION,
    network: Optional[str] = NETWORK_OPTION,
) -> None:
    """Verify the proof against the deployed Starknet verifier."""
    backend = _cairo_backend()
    _execute(ctx, "cairo verify-onchain", lambda cfg: backend.verify_onchain(cfg, address, network))


app.add_typer(evm_app, name="evm")
app.add_typer(cairo_app, name="cairo")


if __name__ == "__main__":
    app()
