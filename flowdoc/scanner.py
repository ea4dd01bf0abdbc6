"""Declaration discovery over parsed compilation units."""

from __future__ import annotations

import ast
from pathlib import Path
from typing import List, Optional

from .extract import has_flow
from .models import CallablePart, FlowPart, PartTable, SourcePart, TypePart
from .parser import CompilationUnit

_TYPE_ALIAS_NODE = getattr(ast, "TypeAlias", None)
_TYPE_FACTORIES = {"NewType"}
_TYPE_ALIAS_ANNOTATIONS = {"TypeAlias"}


def flow_name(name: str) -> str:
    """Cut the port suffix off a flow callable name (``Foo_in`` -> ``Foo``)."""
    leading = len(name) - len(name.lstrip("_"))
    cut = name.find("_", leading)
    if cut > 0:
        return name[:cut]
    return name


def docstring_text(node: ast.AST) -> str:
    """Return the cleaned docstring, newline terminated like comment text."""
    doc = ast.get_docstring(node, clean=True)  # type: ignore[arg-type]
    if not doc:
        return ""
    return doc + "\n"


class DeclarationScanner:
    """Classifies top-level declarations into flows, callables and types."""

    def scan(
        self,
        unit: CompilationUnit,
        parts: PartTable,
        *,
        module_path: str,
        directory: Path,
    ) -> List[FlowPart]:
        """Record every declaration of ``unit`` in ``parts``.

        Returns the flows of this unit in source order. Later declarations
        with an existing ``(kind, name)`` key replace earlier ones.
        """
        flows: List[FlowPart] = []
        for node in unit.tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                part = self._callable_part(node, unit, module_path, directory)
                if isinstance(part, FlowPart):
                    flows.append(part)
                parts[(part.kind, part.name)] = part
                continue
            name = _type_name(node)
            if name is None:
                continue
            parts[(TypePart.kind, name)] = TypePart(
                name=name,
                start_line=_start_line(node),
                end_line=_end_line(node),
                module_path=module_path,
                directory=directory,
                source_file=unit.filename,
            )
        return flows

    @staticmethod
    def _callable_part(
        node: ast.FunctionDef | ast.AsyncFunctionDef,
        unit: CompilationUnit,
        module_path: str,
        directory: Path,
    ) -> SourcePart:
        doc = docstring_text(node)
        if has_flow(doc):
            return FlowPart(
                name=flow_name(node.name),
                raw_doc=doc,
                start_line=_start_line(node),
                end_line=_end_line(node),
                module_path=module_path,
                directory=directory,
                source_file=unit.filename,
                base_name=unit.base_name,
            )
        return CallablePart(
            name=node.name,
            start_line=_start_line(node),
            end_line=_end_line(node),
            module_path=module_path,
            directory=directory,
            source_file=unit.filename,
        )


def _type_name(node: ast.stmt) -> Optional[str]:
    if isinstance(node, ast.ClassDef):
        return node.name
    if _TYPE_ALIAS_NODE is not None and isinstance(node, _TYPE_ALIAS_NODE):
        return node.name.id  # type: ignore[attr-defined]
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        if _dotted_tail(node.annotation) in _TYPE_ALIAS_ANNOTATIONS:
            return node.target.id
        return None
    if (
        isinstance(node, ast.Assign)
        and len(node.targets) == 1
        and isinstance(node.targets[0], ast.Name)
        and isinstance(node.value, ast.Call)
        and _dotted_tail(node.value.func) in _TYPE_FACTORIES
    ):
        return node.targets[0].id
    return None


def _dotted_tail(node: ast.expr) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ""


def _start_line(node: ast.stmt) -> int:
    decorators = getattr(node, "decorator_list", None) or []
    lines = [node.lineno] + [decorator.lineno for decorator in decorators]
    return min(lines)


def _end_line(node: ast.stmt) -> int:
    return node.end_lineno or node.lineno


__all__ = ["DeclarationScanner", "docstring_text", "flow_name"]
