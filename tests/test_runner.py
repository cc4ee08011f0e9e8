import dataclasses
import io
import re
import sys
import threading
from pathlib import Path

import orjson
import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from rich.console import Console

from bargo.errors import ToolExecutionError
from bargo.runner import CmdSpec, DryRunRunner, RealRunner, render_dry_run, runner_for


def _console() -> Console:
    return Console(file=io.StringIO(), width=200)


def test_cmd_spec_builders_return_new_values() -> None:
    base = CmdSpec.new("forge", ["init", Path("contracts/evm")])
    moved = base.with_cwd(Path("contracts"))
    env = moved.with_env("A", "1").with_envs([("B", "2")])

    assert base.args == ("init", "contracts/evm")
    assert base.cwd is None
    assert moved.cwd == Path("contracts")
    assert env.env == (("A", "1"), ("B", "2"))
    assert moved.env == ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        base.cmd = "cast"  # type: ignore[misc]


def test_render_dry_run_formats() -> None:
    spec = CmdSpec.new("nargo", ["execute"])
    assert render_dry_run(spec) == "Would run: nargo execute"
    assert render_dry_run(spec, capturing=True) == "Would run (capturing output): nargo execute"
    assert (
        render_dry_run(spec.with_cwd(Path("contracts/evm")))
        == "Would run in directory 'contracts/evm': nargo execute"
    )
    assert render_dry_run(spec.with_env("A", "1")) == "A=1 Would run: nargo execute"


def test_dry_run_history_in_call_order() -> None:
    runner = DryRunRunner(_console())
    runner.run(CmdSpec.new("nargo", ["execute"]))
    runner.run_capture(CmdSpec.new("bb", ["verify"]))
    runner.run(CmdSpec.new("rm", ["-rf", "target/"]))

    history = runner.history()
    assert [record.spec.cmd for record in history] == ["nargo", "bb", "rm"]
    assert history[0].output is None
    assert history[1].output == "Simulated 'bb verify' completed successfully"

    history.clear()
    assert len(runner.history()) == 3
    runner.clear_history()
    assert runner.history() == []


def test_dry_run_prints_rendered_line() -> None:
    console = _console()
    DryRunRunner(console).run(CmdSpec.new("nargo", ["check"]))
    assert console.file.getvalue().strip() == "Would run: nargo check"


def test_garaga_calldata_payload_is_parseable() -> None:
    runner = DryRunRunner(_console())
    output = runner.run_capture(CmdSpec.new("garaga", ["calldata", "--system", "x"]))
    payload = orjson.loads(output)
    assert payload["calldata"]
    assert all(felt.startswith("0x") for felt in payload["calldata"])


def test_forge_create_payload_has_address() -> None:
    runner = DryRunRunner(_console())
    output = runner.run_capture(CmdSpec.new("forge", ["create", "src/Verifier.sol:HonkVerifier"]))
    assert re.search(r"Deployed to: 0x[0-9a-f]{40}\b", output)


def test_payloads_are_deterministic() -> None:
    spec = CmdSpec.new("garaga", ["calldata", "--vk", "target/starknet/vk"])
    first = DryRunRunner(_console()).run_capture(spec)
    second = DryRunRunner(_console()).run_capture(spec)
    other = DryRunRunner(_console()).run_capture(spec.with_env("X", "1"))
    assert first == second
    assert orjson.loads(other)["calldata"]


def test_history_is_thread_safe() -> None:
    runner = DryRunRunner(_console())

    def worker(index: int) -> None:
        for step in range(25):
            runner.run(CmdSpec.new("nargo", ["execute", str(index), str(step)]))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(runner.history()) == 200


def test_runner_for_selects_strategy() -> None:
    assert isinstance(runner_for(True, _console()), DryRunRunner)
    assert isinstance(runner_for(False, _console()), RealRunner)


def test_real_runner_captures_stdout() -> None:
    runner = RealRunner(_console())
    output = runner.run_capture(CmdSpec.new(sys.executable, ["-c", "print('hello')"]))
    assert output.strip() == "hello"


def test_real_runner_echoes_stdout() -> None:
    console = _console()
    RealRunner(console).run(CmdSpec.new(sys.executable, ["-c", "print('echoed')"]))
    assert "echoed" in console.file.getvalue()


def test_real_runner_env_and_cwd(tmp_path: Path) -> None:
    script = "import os; print(os.environ['BARGO_PROBE'] + '|' + os.getcwd())"
    spec = CmdSpec.new(sys.executable, ["-c", script]).with_cwd(tmp_path).with_env("BARGO_PROBE", "ok")
    value, cwd = RealRunner(_console()).run_capture(spec).strip().split("|")
    assert value == "ok"
    assert Path(cwd).resolve() == tmp_path.resolve()


def test_real_runner_nonzero_exit() -> None:
    script = "import sys; sys.stdout.write('partial'); sys.stderr.write('boom'); sys.exit(3)"
    with pytest.raises(ToolExecutionError) as excinfo:
        RealRunner(_console()).run(CmdSpec.new(sys.executable, ["-c", script]))
    error = excinfo.value
    assert error.exit_code == 3
    assert error.stdout == "partial"
    assert error.stderr == "boom"
    assert "failed with exit code 3" in error.message


def test_real_runner_spawn_failure() -> None:
    with pytest.raises(ToolExecutionError) as excinfo:
        RealRunner(_console()).run(CmdSpec.new("bargo-no-such-tool-xyz", ["--version"]))
    assert excinfo.value.exit_code is None
    assert "Failed to execute command 'bargo-no-such-tool-xyz'" in excinfo.value.message


@settings(
    derandomize=True,
    max_examples=30,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(args=st.lists(st.text(alphabet="abcdef0123456789-_/.", min_size=1, max_size=12), max_size=6))
def test_garaga_payload_deterministic_for_any_args(args: list) -> None:
    spec = CmdSpec.new("garaga", ["calldata", *args])
    first = DryRunRunner(_console()).run_capture(spec)
    assert first == DryRunRunner(_console()).run_capture(spec)
    assert len(orjson.loads(first)["calldata"]) == 8
