import os
from pathlib import Path

import pytest

from bargo.rebuild import needs_rebuild

from conftest import touch

SECOND = 1_000_000_000


def _set_mtime(path: Path, seconds: int) -> None:
    os.utime(path, ns=(seconds * SECOND, seconds * SECOND))


@pytest.fixture
def built(project: Path) -> Path:
    prover = project / "Prover.toml"
    prover.write_text('x = "1"\n', encoding="utf-8")
    for path in (project / "Nargo.toml", prover, project / "src" / "main.nr"):
        _set_mtime(path, 1_000)
    for name in ("demo.json", "demo.gz"):
        _set_mtime(touch(project / "target" / "bb" / name, b"x"), 2_000)
    return project


def test_missing_artifacts_need_rebuild(project: Path) -> None:
    assert needs_rebuild("demo") is True


def test_missing_witness_needs_rebuild(built: Path) -> None:
    (built / "target" / "bb" / "demo.gz").unlink()
    assert needs_rebuild("demo") is True


def test_fresh_artifacts_are_up_to_date(built: Path) -> None:
    assert needs_rebuild("demo") is False


@pytest.mark.parametrize("relative", ["Nargo.toml", "Prover.toml", "src/main.nr"])
def test_touching_any_input_flips_result(built: Path, relative: str) -> None:
    _set_mtime(built / relative, 3_000)
    assert needs_rebuild("demo") is True


def test_new_nested_source_file(built: Path) -> None:
    nested = touch(built / "src" / "lib" / "util.nr", b"fn f() {}")
    _set_mtime(nested, 3_000)
    assert needs_rebuild("demo") is True


def test_oldest_artifact_is_the_reference(built: Path) -> None:
    _set_mtime(built / "target" / "bb" / "demo.gz", 500)
    assert needs_rebuild("demo") is True


def test_missing_src_and_prover_are_skipped(built: Path) -> None:
    (built / "Prover.toml").unlink()
    (built / "src" / "main.nr").unlink()
    (built / "src").rmdir()
    assert needs_rebuild("demo") is False


def test_checks_from_nested_directory(built: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(built / "src")
    assert needs_rebuild("demo") is False
