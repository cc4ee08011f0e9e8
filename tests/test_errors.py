from pathlib import Path

from bargo.errors import (
    BargoError,
    ConfigurationError,
    MissingArtifactError,
    ToolExecutionError,
    enhance_error,
    suggestions_for,
)


def test_missing_artifact_lists_every_path() -> None:
    error = MissingArtifactError([Path("target/bb/demo.json"), Path("target/bb/demo.gz")])
    assert error.message == "Required files are missing: target/bb/demo.json, target/bb/demo.gz"
    assert error.paths == [Path("target/bb/demo.json"), Path("target/bb/demo.gz")]


def test_render_includes_suggestions() -> None:
    error = BargoError("Something broke", ["Try again"])
    assert error.render() == "❌ Something broke\n\n💡 Suggestions:\n   • Try again"
    assert BargoError("plain").render() == "❌ plain"
    assert str(error) == "Something broke"


def test_enhance_missing_bytecode() -> None:
    error = enhance_error(MissingArtifactError([Path("target/bb/demo.json")]))
    assert "Run `bargo build` to generate bytecode and witness files" in error.suggestions


def test_enhance_missing_proof() -> None:
    error = enhance_error(MissingArtifactError([Path("target/evm/proof")]))
    assert any("prove" in suggestion for suggestion in error.suggestions)


def test_enhance_does_not_duplicate() -> None:
    error = MissingArtifactError([Path("target/bb/demo.json"), Path("target/bb/demo.gz")])
    enhance_error(error)
    count = len(error.suggestions)
    enhance_error(error)
    assert len(error.suggestions) == count
    assert len(set(error.suggestions)) == count


def test_enhance_tool_not_installed() -> None:
    error = ToolExecutionError("bb", None, stderr="[Errno 2] No such file or directory: 'bb'")
    enhance_error(error)
    assert "Install bb (Barretenberg) with `bbup`" in error.suggestions


def test_tool_failure_message() -> None:
    error = ToolExecutionError("nargo", 1, stdout="out", stderr="err")
    assert error.message.startswith("Command 'nargo' failed with exit code 1")
    assert "Stderr: err" in error.message


def test_unknown_message_has_no_suggestions() -> None:
    assert suggestions_for("completely unrelated") == []
    error = enhance_error(ConfigurationError("completely unrelated"))
    assert error.suggestions == []
