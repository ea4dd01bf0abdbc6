"""Split a docstring into the prose around an embedded flow description."""

from __future__ import annotations

from typing import List, Optional, Tuple

FLOW_MARKER = "\n\nflow:\n"
DSL_INDENT = "    "


def has_flow(doc: str) -> bool:
    """Return True when the docstring carries the flow marker."""
    return FLOW_MARKER in doc


def extract_flow_dsl(doc: str) -> Tuple[str, str, str]:
    """Return ``(start, flow, end)`` for the given docstring text.

    ``start`` is everything before the marker, keeping one newline. ``flow``
    is the block of lines indented by four spaces that follows the marker,
    with the indentation removed; blank lines inside it are kept. ``end`` is
    the rest of the docstring, newline terminated.
    """
    index = doc.find(FLOW_MARKER)
    if index < 0:
        return doc, "", ""
    start = doc[: index + 1]
    index += len(FLOW_MARKER)

    lines: List[str] = []
    while True:
        line, index = _next_dsl_line(doc, index)
        if line is None:
            break
        lines.append(line)

    end = doc[index:]
    if end and not end.endswith("\n"):
        end += "\n"
    return start, "".join(lines), end


def _next_dsl_line(doc: str, index: int) -> Tuple[Optional[str], int]:
    if index >= len(doc):
        return None, index
    newline = doc.find("\n", index)
    if newline >= 0:
        consumed = newline + 1 - index
        line = doc[index : newline + 1]
    else:
        consumed = len(doc) - index
        line = doc[index:] + "\n"

    if not line.strip():
        return "\n", index + consumed
    if consumed > len(DSL_INDENT) and line.startswith(DSL_INDENT):
        return line[len(DSL_INDENT) :], index + consumed
    return None, index


__all__ = ["DSL_INDENT", "FLOW_MARKER", "extract_flow_dsl", "has_flow"]
