"""CLI behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from flowdoc import cli
from flowdoc.cli import _build_parser
from flowdoc.orchestrator import RunSummary
from flowdoc.parser import ParseError


def test_cli_defaults() -> None:
    args = _build_parser().parse_args([])
    assert args.path == "."
    assert args.local_links is None
    assert args.verbose is False
    assert args.quiet is False
    assert args.config is None


def test_cli_accepts_quiet() -> None:
    assert _build_parser().parse_args(["-q"]).quiet is True


def test_cli_accepts_local_links_and_path() -> None:
    args = _build_parser().parse_args(["--local-links", "-v", "src/pkg"])
    assert args.local_links is True
    assert args.verbose is True
    assert args.path == "src/pkg"


def test_main_reports_summary(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    calls: list[dict] = []

    def fake_run(self, path, *, local_links=None, config=None):  # type: ignore[no-untyped-def]
        calls.append({"path": path, "local_links": local_links})
        return RunSummary(directory=tmp_path, flows=2, documents=[tmp_path / "bla.md"])

    monkeypatch.setattr("flowdoc.cli.Orchestrator.run", fake_run)

    cli.main([str(tmp_path), "--local-links"])

    assert calls == [{"path": str(tmp_path), "local_links": True}]
    assert "Wrote 1 documents with 2 flows." in capsys.readouterr().out


def test_main_exits_for_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(tmp_path / "missing")])
    assert excinfo.value.code == 1


def test_main_exits_on_parse_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(self, path, **kwargs):  # type: ignore[no-untyped-def]
        raise ParseError("unable to parse the directory")

    monkeypatch.setattr("flowdoc.cli.Orchestrator.run", fake_run)

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(tmp_path)])
    assert excinfo.value.code == 1
