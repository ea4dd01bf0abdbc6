"""Markdown output for discovered flows."""

from __future__ import annotations

import re
from contextlib import ExitStack
from enum import Enum
from pathlib import Path
from typing import IO, Dict, Iterator, List, Optional, Sequence

from .extract import extract_flow_dsl
from .links import LinkResolutionError, LinkResolver
from .logging import get_logger
from .models import FlowPart, PartTable, QualifiedName, SourcePart, SourcePartKind
from .packages import ImportTable
from .render import FlowRenderer

MD_START = "# Flow Documentation For File: "
FLOW_START = "## Flow: "
REFERENCE_TABLE_HEADER = "Components | Data\n---------- | -----\n"
MD_SUFFIX = ".md"

_BUILTIN_TYPES = {
    "Any",
    "None",
    "bool",
    "bytearray",
    "bytes",
    "complex",
    "float",
    "int",
    "object",
    "str",
}
_BARE_CONTAINERS = {
    "Dict",
    "FrozenSet",
    "List",
    "Set",
    "Tuple",
    "dict",
    "frozenset",
    "list",
    "set",
    "tuple",
}
_UNWRAPPED_GENERICS = {
    "FrozenSet",
    "Iterable",
    "Iterator",
    "List",
    "Optional",
    "Sequence",
    "Set",
    "frozenset",
    "list",
    "set",
}
_DROPPED_GENERICS = {"Dict", "Mapping", "MutableMapping", "Tuple", "dict", "tuple"}
_GENERIC_PATTERN = re.compile(r"([A-Za-z_][\w]*)\[(.*)\]")


class DocumentState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class OutputDocument:
    """One Markdown file generated for one source file."""

    def __init__(
        self,
        base_name: str,
        directory: Path,
        imports: ImportTable,
        *,
        source_name: str | None = None,
    ) -> None:
        self.base_name = base_name
        self.directory = Path(directory)
        self.imports = imports
        self.source_name = source_name or f"{base_name}.py"
        self.state = DocumentState.UNOPENED
        self.failed = False
        self._handle: Optional[IO[str]] = None

    @property
    def path(self) -> Path:
        return self.directory / f"{self.base_name}{MD_SUFFIX}"

    def open(self) -> None:
        if self.state is not DocumentState.UNOPENED:
            raise RuntimeError(f"Document {self.path} was already opened")
        self._handle = self.path.open("w", encoding="utf-8")
        self.state = DocumentState.OPEN
        self.write(f"{MD_START}{self.source_name}\n\n")

    def write(self, text: str) -> None:
        if self._handle is None or self.state is not DocumentState.OPEN:
            raise RuntimeError(f"Document {self.path} is not open")
        self._handle.write(text)

    def close(self) -> None:
        if self.state is not DocumentState.OPEN or self._handle is None:
            return
        handle, self._handle = self._handle, None
        self.state = DocumentState.CLOSED
        handle.close()


class DocumentSet:
    """Owns the output documents of one run and closes them on exit."""

    def __init__(self) -> None:
        self._documents: Dict[str, OutputDocument] = {}
        self._stack = ExitStack()

    def __enter__(self) -> "DocumentSet":
        self._stack.__enter__()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._stack.__exit__(*exc_info)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[OutputDocument]:
        return iter(self._documents.values())

    def add(self, document: OutputDocument) -> None:
        self._documents[document.base_name] = document

    def get(self, base_name: str) -> Optional[OutputDocument]:
        return self._documents.get(base_name)

    def open_for(self, flow: FlowPart) -> OutputDocument:
        """Return the opened document of ``flow``, opening it on first use."""
        document = self._documents.get(flow.base_name)
        if document is None:
            raise KeyError(f"Missing output document for flow file: {flow.base_name}")
        if document.state is DocumentState.UNOPENED:
            document.open()
            self._stack.callback(document.close)
        flow.document = document
        return document


class DocumentWriter:
    """Writes one section per flow: prose, diagram and reference table."""

    def __init__(
        self,
        renderer: FlowRenderer,
        resolver: LinkResolver,
        local_parts: PartTable,
    ) -> None:
        self.renderer = renderer
        self.resolver = resolver
        self.local_parts = local_parts
        self.logger = get_logger("writer")

    def write_flow(self, flow: FlowPart, document: OutputDocument) -> None:
        self.logger.info("Processing flow: %s", flow.name)
        document.write(f"{FLOW_START}{flow.name}\n")
        start, dsl, end = extract_flow_dsl(flow.raw_doc)
        document.write(start + "\n")

        result = self.renderer.render(dsl, flow.name)
        if result.info:
            self.logger.info("Renderer: %s", result.info)

        image_name = f"{flow.name}.{self.renderer.image_format}"
        (document.directory / image_name).write_bytes(result.image)
        document.write(f"![Flow: {flow.name}](./{image_name})\n\n")

        self.write_references(document, result.components, result.data_types)
        document.write(end)

    def write_references(
        self,
        document: OutputDocument,
        components: Sequence[QualifiedName],
        data_types: Sequence[QualifiedName],
    ) -> None:
        comps = sort_names(components)
        types = sort_names(filter_types(data_types))
        rows = max(len(comps), len(types))
        if rows == 0:
            return

        document.write(REFERENCE_TABLE_HEADER)
        for index in range(rows):
            left = self.component_cell(comps[index], document) if index < len(comps) else ""
            right = self.type_cell(types[index], document) if index < len(types) else ""
            document.write(f"{left} | {right}\n")
        document.write("\n")

    def component_cell(self, component: QualifiedName, document: OutputDocument) -> str:
        part = self._find(component, document, SourcePartKind.FLOW)
        if part is None:
            part = self._find(component, document, SourcePartKind.CALLABLE)
        return self._cell(component, part, document, "component")

    def type_cell(self, data_type: QualifiedName, document: OutputDocument) -> str:
        part = self._find(data_type, document, SourcePartKind.TYPE)
        return self._cell(data_type, part, document, "type")

    def _find(
        self, name: QualifiedName, document: OutputDocument, kind: SourcePartKind
    ) -> Optional[SourcePart]:
        if not name.module_path:
            return self.local_parts.get((kind, name.local_name))
        return document.imports.get_part_for(name.module_path, kind, name.local_name)

    def _cell(
        self,
        name: QualifiedName,
        part: Optional[SourcePart],
        document: OutputDocument,
        label: str,
    ) -> str:
        text = str(name)
        if part is None:
            self.logger.warning("Unable to resolve %s %s in %s", label, text, document.path.name)
            return text
        try:
            link = self.resolver.link_for(document, part)
        except LinkResolutionError as exc:
            self.logger.warning("Unable to compute link for %s %s: %s", label, text, exc)
            return text
        return f"[{text}]({link})"


def filter_types(types: Sequence[QualifiedName]) -> List[QualifiedName]:
    """Drop built-in and bare container types, unwrapping simple containers."""
    result: List[QualifiedName] = []
    for qualified in types:
        if qualified.module_path:
            result.append(qualified)
            continue
        name = _unwrap(qualified.local_name.strip())
        if name is None or name in _BUILTIN_TYPES or name in _BARE_CONTAINERS:
            continue
        result.append(QualifiedName(module_path="", local_name=name))
    return result


def sort_names(names: Sequence[QualifiedName]) -> List[QualifiedName]:
    return sorted(names, key=lambda name: (name.module_path, name.local_name))


def _unwrap(name: str) -> Optional[str]:
    match = _GENERIC_PATTERN.fullmatch(name)
    while match is not None:
        head, inner = match.group(1), match.group(2).strip()
        if head in _DROPPED_GENERICS:
            return None
        if head not in _UNWRAPPED_GENERICS:
            return name
        name = inner
        match = _GENERIC_PATTERN.fullmatch(name)
    return name


__all__ = [
    "DocumentSet",
    "DocumentState",
    "DocumentWriter",
    "FLOW_START",
    "MD_START",
    "OutputDocument",
    "REFERENCE_TABLE_HEADER",
    "filter_types",
    "sort_names",
]
