"""Lazy, memoized dictionary of modules and their source parts."""

from __future__ import annotations

import ast
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from .logging import get_logger
from .models import Module, PartTable, SourcePart, SourcePartKind
from .parser import ParseError, SourceParser
from .scanner import DeclarationScanner

_IGNORED_ALIASES = {"_", ".", "", "/", "*"}
_SOURCE_SUFFIX = ".py"
_TRY_NODES = (ast.Try, ast.TryStar) if hasattr(ast, "TryStar") else (ast.Try,)


def is_relative_import(import_path: str) -> bool:
    return import_path.startswith(".")


class PackageDictionary:
    """Maps import paths to their modules, parsing each one on first use.

    A module that cannot be located or parsed is reported and left out of the
    cache, so a later lookup tries again.
    """

    def __init__(
        self,
        search_roots: Sequence[Path],
        *,
        working_dir: Path | None = None,
        parser: SourceParser | None = None,
        scanner: DeclarationScanner | None = None,
    ) -> None:
        self.search_roots: List[Path] = [Path(root) for root in search_roots]
        self.working_dir = Path(working_dir) if working_dir is not None else Path.cwd()
        self.parser = parser or SourceParser()
        self.scanner = scanner or DeclarationScanner()
        self.logger = get_logger("packages")
        self._modules: Dict[str, Module] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lookup(self, import_path: str, kind: SourcePartKind, name: str) -> Optional[SourcePart]:
        """Return the part named ``name`` of ``kind`` in ``import_path``."""
        module = self.module(import_path)
        if module is None:
            return None
        return module.get(kind, name)

    def module(self, import_path: str) -> Optional[Module]:
        cached = self._modules.get(import_path)
        if cached is not None:
            return cached
        with self._lock_for(import_path):
            cached = self._modules.get(import_path)
            if cached is not None:
                return cached
            module = self._discover(import_path)
            if module is not None:
                self._modules[import_path] = module
            return module

    def __contains__(self, import_path: object) -> bool:
        return import_path in self._modules

    def resolve_path(self, import_path: str) -> Optional[Path]:
        """Locate the package directory or module file for ``import_path``."""
        if is_relative_import(import_path):
            return _existing_module(self.working_dir / import_path)
        for root in self.search_roots:
            found = _existing_module(root / import_path)
            if found is not None:
                return found
        return None

    def _lock_for(self, import_path: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(import_path)
            if lock is None:
                lock = threading.Lock()
                self._locks[import_path] = lock
            return lock

    def _discover(self, import_path: str) -> Optional[Module]:
        target = self.resolve_path(import_path)
        if target is None:
            self.logger.warning("Unable to locate module '%s' in any search root", import_path)
            return None
        try:
            units = self.parser.parse_module(target)
        except ParseError as exc:
            self.logger.error("Unable to parse additional module '%s': %s", target, exc)
            return None

        parts: PartTable = {}
        for unit in units:
            self.scanner.scan(
                unit,
                parts,
                module_path=import_path,
                directory=unit.path.parent.resolve(),
            )
        self.logger.debug("Discovered %d source parts in '%s'", len(parts), import_path)
        return Module.build(import_path, parts)


class ImportTable:
    """Per-file mapping from local import names to import paths."""

    def __init__(self, imports: Mapping[str, str], packages: PackageDictionary) -> None:
        self.imports = dict(imports)
        self.packages = packages

    @classmethod
    def from_tree(cls, tree: ast.Module, packages: PackageDictionary) -> "ImportTable":
        """Collect the module-level imports of ``tree``.

        Imports guarded by ``if`` or ``try`` blocks count; imports inside
        function and class bodies do not.
        """
        imports: Dict[str, str] = {}
        for node in _module_imports(tree.body):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    key = alias.asname or alias.name
                    _register(imports, key, alias.name.replace(".", "/"))
            else:
                base = _from_base(node.module, node.level)
                for alias in node.names:
                    if alias.name == "*":
                        continue
                    key = alias.asname or alias.name
                    _register(imports, key, "/".join(base + [alias.name]))
        return cls(imports, packages)

    def get_part_for(self, alias: str, kind: SourcePartKind, name: str) -> Optional[SourcePart]:
        import_path = self.imports.get(alias)
        if not import_path:
            return None
        return self.packages.lookup(import_path, kind, name)


def _module_imports(body: Sequence[ast.stmt]) -> Iterator[ast.Import | ast.ImportFrom]:
    for node in body:
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            yield node
        elif isinstance(node, ast.If):
            yield from _module_imports(node.body)
            yield from _module_imports(node.orelse)
        elif isinstance(node, _TRY_NODES):
            yield from _module_imports(node.body)
            for handler in node.handlers:
                yield from _module_imports(handler.body)
            yield from _module_imports(node.orelse)
            yield from _module_imports(node.finalbody)


def _register(imports: Dict[str, str], key: str, import_path: str) -> None:
    if key in _IGNORED_ALIASES:
        return
    imports[key] = import_path


def _from_base(module: Optional[str], level: int) -> List[str]:
    segments: List[str] = []
    if level == 1:
        segments.append(".")
    elif level > 1:
        segments.extend([".."] * (level - 1))
    if module:
        segments.extend(module.split("."))
    return segments


def _existing_module(candidate: Path) -> Optional[Path]:
    if candidate.is_dir():
        return candidate
    source_file = candidate.with_name(candidate.name + _SOURCE_SUFFIX)
    if source_file.is_file():
        return source_file
    return None


__all__ = ["ImportTable", "PackageDictionary", "is_relative_import"]
