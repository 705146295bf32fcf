from __future__ import annotations

from pathlib import Path

from rich.console import Console

from quantrack.cli import run_cli


def _console() -> Console:
    return Console(
        record=True,
        force_terminal=False,
        color_system=None,
        width=120,
    )


def test_cli_simulate_with_check() -> None:
    console = _console()

    exit_code = run_cli(
        [
            "simulate",
            "--bins",
            "16",
            "--window",
            "20",
            "--steps",
            "300",
            "--seed",
            "5",
            "--check",
        ],
        console=console,
    )

    output = console.export_text()
    assert exit_code == 0
    assert "population 20 over 16 bins" in output
    assert "Consistent after 320 steps." in output


def test_cli_simulate_rejects_bad_quantile() -> None:
    console = _console()

    exit_code = run_cli(
        ["simulate", "--steps", "10", "--quantiles", "1/2,3/2"], console=console
    )

    assert exit_code == 2
    assert "ratio >= 1" in console.export_text()


def test_cli_simulate_rejects_bad_settings() -> None:
    console = _console()

    exit_code = run_cli(["simulate", "--bins", "0"], console=console)

    output = console.export_text()
    assert exit_code == 2
    assert "Invalid simulation settings" in output
    assert "bins" in output


def test_cli_scan_file(tmp_path: Path) -> None:
    source = tmp_path / "indices.txt"
    source.write_text("0 1 2 3\n4 5 6 7\n")
    console = _console()

    exit_code = run_cli(["scan", str(source), "--quantiles", "1/2"], console=console)

    output = console.export_text()
    assert exit_code == 0
    assert "population 8 over 8 bins" in output
    assert "<- 1/2 (3,4)" in output
    assert "Rejected" not in output


def test_cli_scan_reports_rejects(tmp_path: Path) -> None:
    source = tmp_path / "indices.txt"
    source.write_text("0 1 9 -1 2")
    console = _console()

    exit_code = run_cli(["scan", str(source), "--bins", "4"], console=console)

    output = console.export_text()
    assert exit_code == 0
    assert "population 3 over 4 bins" in output
    assert "Rejected 2 out-of-range samples." in output


def test_cli_scan_missing_file(tmp_path: Path) -> None:
    console = _console()

    exit_code = run_cli(["scan", str(tmp_path / "missing.txt")], console=console)

    assert exit_code == 2
    assert "Input not found" in console.export_text()


def test_cli_scan_invalid_token(tmp_path: Path) -> None:
    source = tmp_path / "indices.txt"
    source.write_text("1 two 3")
    console = _console()

    exit_code = run_cli(["scan", str(source)], console=console)

    assert exit_code == 2
    assert "Invalid bin index" in console.export_text()
