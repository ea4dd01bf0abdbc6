"""Python source parsing for flow discovery."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .logging import get_logger

_SOURCE_SUFFIX = ".py"
_TEST_PREFIX = "test_"
_TEST_SUFFIX = "_test.py"
_TEST_FILES = {"conftest.py"}


class ParseError(RuntimeError):
    """Raised when a source file or directory cannot be parsed."""


@dataclass(frozen=True)
class CompilationUnit:
    """One parsed source file."""

    path: Path
    tree: ast.Module

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def base_name(self) -> str:
        return self.path.stem


def is_test_file(path: Path) -> bool:
    """Return True for files that only hold tests."""
    name = path.name.lower()
    return name.startswith(_TEST_PREFIX) or name.endswith(_TEST_SUFFIX) or name in _TEST_FILES


class SourceParser:
    """Parses Python files into syntax trees, skipping test-only units."""

    def __init__(self) -> None:
        self.parse_count = 0
        self.logger = get_logger("parser")

    def parse_file(self, path: Path) -> CompilationUnit:
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(f"Unable to read {path}: {exc}") from exc
        try:
            tree = ast.parse(source, filename=str(path))
        except SyntaxError as exc:
            raise ParseError(f"Unable to parse {path}: {exc}") from exc
        return CompilationUnit(path=path, tree=tree)

    def parse_dir(self, directory: Path) -> List[CompilationUnit]:
        """Parse every non-test source file directly inside ``directory``.

        Files are returned in name order so that flow discovery is stable.
        """
        self.parse_count += 1
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            raise ParseError(f"Unable to read directory {directory}: {exc}") from exc

        units: List[CompilationUnit] = []
        for path in entries:
            if path.suffix != _SOURCE_SUFFIX or not path.is_file():
                continue
            if is_test_file(path):
                self.logger.debug("Skipping test file %s", path.name)
                continue
            units.append(self.parse_file(path))
        return units

    def parse_module(self, path: Path) -> List[CompilationUnit]:
        """Parse a package directory or a single-file module.

        A single-file module that only holds tests yields no units.
        """
        if path.is_dir():
            return self.parse_dir(path)
        self.parse_count += 1
        if is_test_file(path):
            self.logger.debug("Skipping test module %s", path.name)
            return []
        return [self.parse_file(path)]


__all__ = ["CompilationUnit", "ParseError", "SourceParser", "is_test_file"]
