from __future__ import annotations

import os
import subprocess
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from rich.console import Console

from .errors import ToolExecutionError
from .utils import canonical_dumps, digest_hex

CALLDATA_FELTS = 8


@dataclass(frozen=True)
class CmdSpec:
    cmd: str
    args: Tuple[str, ...] = ()
    cwd: Optional[Path] = None
    env: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def new(cls, cmd: str, args: Sequence[object]) -> "CmdSpec":
        return cls(cmd=cmd, args=tuple(str(arg) for arg in args))

    def with_cwd(self, cwd: Path) -> "CmdSpec":
        return replace(self, cwd=Path(cwd))

    def with_env(self, key: str, value: str) -> "CmdSpec":
        return replace(self, env=self.env + ((key, value),))

    def with_envs(self, env_vars: Sequence[Tuple[str, str]]) -> "CmdSpec":
        return replace(self, env=self.env + tuple(env_vars))

    def argv(self) -> List[str]:
        return [self.cmd, *self.args]

    def command_line(self) -> str:
        return " ".join(self.argv())


@dataclass(frozen=True)
class ExecutionRecord:
    spec: CmdSpec
    rendered: str
    output: Optional[str] = None


class Runner(Protocol):
    def run(self, spec: CmdSpec) -> None:
        ...

    def run_capture(self, spec: CmdSpec) -> str:
        ...


def _process_env(spec: CmdSpec) -> Optional[Dict[str, str]]:
    if not spec.env:
        return None
    env = dict(os.environ)
    env.update(dict(spec.env))
    return env


class RealRunner:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(markup=False, highlight=False, soft_wrap=True)

    def _execute(self, spec: CmdSpec) -> subprocess.CompletedProcess[str]:
        try:
            proc = subprocess.run(
                spec.argv(),
                cwd=spec.cwd,
                env=_process_env(spec),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise ToolExecutionError(spec.cmd, None, stderr=str(exc)) from exc
        if proc.returncode != 0:
            raise ToolExecutionError(
                spec.cmd, proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or ""
            )
        return proc

    def run(self, spec: CmdSpec) -> None:
        proc = self._execute(spec)
        if proc.stdout:
            self.console.print(proc.stdout, end="")

    def run_capture(self, spec: CmdSpec) -> str:
        return self._execute(spec).stdout or ""


def render_dry_run(spec: CmdSpec, capturing: bool = False) -> str:
    prefix = ""
    if spec.env:
        prefix = " ".join(f"{key}={value}" for key, value in spec.env) + " "
    suffix = " (capturing output)" if capturing else ""
    if spec.cwd is not None:
        return f"{prefix}Would run in directory '{spec.cwd}'{suffix}: {spec.command_line()}"
    return f"{prefix}Would run{suffix}: {spec.command_line()}"


def simulated_output(spec: CmdSpec) -> str:
    seed = spec.command_line()
    if spec.cmd == "garaga" and "calldata" in spec.args:
        digest = digest_hex(seed, length=4 * CALLDATA_FELTS)
        felts = [f"0x{digest[i * 8:(i + 1) * 8]}" for i in range(CALLDATA_FELTS)]
        return canonical_dumps({"calldata": felts}).decode("utf-8")
    if spec.cmd == "forge" and "create" in spec.args:
        digest = digest_hex(seed, length=64)
        return (
            f"Deployer: 0x{digest[:40]}\n"
            f"Deployed to: 0x{digest[40:80]}\n"
            f"Transaction hash: 0x{digest[64:128]}\n"
        )
    return f"Simulated '{spec.command_line()}' completed successfully"


class DryRunRunner:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(markup=False, highlight=False, soft_wrap=True)
        self._lock = threading.Lock()
        self._history: List[ExecutionRecord] = []

    def _record(self, record: ExecutionRecord) -> None:
        with self._lock:
            self._history.append(record)

    def run(self, spec: CmdSpec) -> None:
        rendered = render_dry_run(spec)
        self._record(ExecutionRecord(spec=spec, rendered=rendered))
        self.console.print(rendered)

    def run_capture(self, spec: CmdSpec) -> str:
        rendered = render_dry_run(spec, capturing=True)
        output = simulated_output(spec)
        self._record(ExecutionRecord(spec=spec, rendered=rendered, output=output))
        self.console.print(rendered)
        return output

    def history(self) -> List[ExecutionRecord]:
        with self._lock:
            return list(self._history)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()


def runner_for(dry_run: bool, console: Optional[Console] = None) -> Runner:
    if dry_run:
        return DryRunRunner(console)
    return RealRunner(console)
