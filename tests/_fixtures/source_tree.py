"""Helper utilities for constructing temporary source trees in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from flowdoc.parser import CompilationUnit, SourceParser


class SourceTreeBuilder:
    """Utility for writing Python files into a throwaway project and parsing them."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = (tmp_path / "repo").resolve()
        self.root.mkdir()
        self._parser = SourceParser()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def parse(self, relative: str) -> CompilationUnit:
        """Return the parsed compilation unit for one written file."""
        return self._parser.parse_file(self.root / relative)

    def path(self, relative: str = "") -> Path:
        return self.root / relative if relative else self.root


__all__ = ["SourceTreeBuilder"]
