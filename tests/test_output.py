import io
import logging
from pathlib import Path

from rich.console import Console

from bargo.log import LOGGER_NAME, level_for, setup_logging
from bargo.output import (
    OperationSummary,
    Presentation,
    Timer,
    banner,
    format_file_size,
    format_operation_result,
    success,
)


def test_styling_follows_presentation() -> None:
    plain = success("done", Presentation(color=False))
    colored = success("done", Presentation(color=True))
    assert plain.plain == colored.plain == "✅ done"
    assert str(plain.style) == ""
    assert str(colored.style) == "green"
    assert banner("build", Presentation()).plain == "🅱️  bargo build"


def test_format_file_size(tmp_path: Path) -> None:
    small = tmp_path / "small"
    small.write_bytes(b"x" * 10)
    medium = tmp_path / "medium"
    medium.write_bytes(b"x" * 2048)
    assert format_file_size(small) == "10 B"
    assert format_file_size(medium) == "2.0 KB"
    assert format_file_size(tmp_path / "missing") == "unknown size"


def test_operation_result_mentions_path(tmp_path: Path) -> None:
    proof = tmp_path / "proof"
    proof.write_bytes(b"p")
    line = format_operation_result("Proof generated", proof, Timer())
    assert line.startswith(f"Proof generated → {proof} (1 B, ")
    assert line.endswith("ms)")


def test_summary_render() -> None:
    summary = OperationSummary()
    assert summary.render(Presentation()) is None

    summary.add_operation("EVM proof (1 B)")
    console = Console(file=io.StringIO(), width=200)
    summary.print(console, Presentation())
    output = console.file.getvalue()
    assert "🎉 Summary:" in output
    assert "• EVM proof (1 B)" in output
    assert "Total time:" in output


def test_log_levels() -> None:
    assert level_for(verbose=False, quiet=True) == logging.ERROR
    assert level_for(verbose=True, quiet=True) == logging.ERROR
    assert level_for(verbose=True, quiet=False) == logging.INFO
    assert level_for(verbose=False, quiet=False) == logging.WARNING


def test_setup_logging_replaces_handlers() -> None:
    setup_logging(verbose=True)
    logger = setup_logging(verbose=True)
    assert logger.name == LOGGER_NAME
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
    assert logger.propagate is False
