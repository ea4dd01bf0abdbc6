"""Core data models shared across flowdoc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple, Union

if TYPE_CHECKING:
    from .writer import OutputDocument


class SourcePartKind(Enum):
    """Closed set of declaration kinds the scanner records."""

    FLOW = "flow"
    CALLABLE = "callable"
    TYPE = "type"


@dataclass
class FlowPart:
    """A callable whose docstring embeds a flow description."""

    name: str
    raw_doc: str
    start_line: int
    end_line: int
    module_path: str
    directory: Path
    source_file: str
    base_name: str
    document: Optional["OutputDocument"] = field(default=None, repr=False, compare=False)

    kind = SourcePartKind.FLOW


@dataclass(frozen=True)
class CallablePart:
    """A plain function declaration."""

    name: str
    start_line: int
    end_line: int
    module_path: str
    directory: Path
    source_file: str

    kind = SourcePartKind.CALLABLE


@dataclass(frozen=True)
class TypePart:
    """A class or type alias declaration."""

    name: str
    start_line: int
    end_line: int
    module_path: str
    directory: Path
    source_file: str

    kind = SourcePartKind.TYPE


SourcePart = Union[FlowPart, CallablePart, TypePart]
PartKey = Tuple[SourcePartKind, str]
PartTable = Dict[PartKey, SourcePart]


@dataclass(frozen=True)
class Module:
    """All source parts of one import path, frozen once discovered."""

    import_path: str
    parts: Mapping[PartKey, SourcePart]

    @classmethod
    def build(cls, import_path: str, parts: PartTable) -> "Module":
        return cls(import_path=import_path, parts=MappingProxyType(dict(parts)))

    def get(self, kind: SourcePartKind, name: str) -> Optional[SourcePart]:
        return self.parts.get((kind, name))


@dataclass(frozen=True)
class QualifiedName:
    """Identifier reported by the flow renderer; empty module means local."""

    module_path: str
    local_name: str

    def __str__(self) -> str:
        if self.module_path:
            return f"{self.module_path}.{self.local_name}"
        return self.local_name


__all__ = [
    "CallablePart",
    "FlowPart",
    "Module",
    "PartKey",
    "PartTable",
    "QualifiedName",
    "SourcePart",
    "SourcePartKind",
    "TypePart",
]
