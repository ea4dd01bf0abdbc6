"""Link computation from generated documents to resolved source parts."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import TYPE_CHECKING

from .models import FlowPart, SourcePart

if TYPE_CHECKING:
    from .writer import OutputDocument

_REMOTE_BRANCH = "master"


class LinkResolutionError(RuntimeError):
    """Raised when no link can be computed for a resolved part."""


def flow_anchor(name: str) -> str:
    return f"flow-{name.lower()}"


def line_anchor(start: int, end: int) -> str:
    return f"L{start}-L{end}"


class LinkResolver:
    """Builds relative paths, local paths or remote URLs to source parts.

    Targets inside ``project_root`` are linked relative to the referencing
    document. Targets outside it become absolute paths when ``local_links`` is
    set, otherwise a repository URL derived from the module import path.
    """

    def __init__(self, project_root: Path, working_dir: Path, *, local_links: bool = False) -> None:
        self.project_root = Path(project_root)
        self.working_dir = Path(working_dir)
        self.local_links = local_links

    def link_for(self, document: "OutputDocument", part: SourcePart) -> str:
        if isinstance(part, FlowPart):
            return f"{self._flow_target(document, part)}#{flow_anchor(part.name)}"
        target = self.outside_file_name_for(part.directory / part.source_file, part, document)
        return f"{target}#{line_anchor(part.start_line, part.end_line)}"

    def _flow_target(self, document: "OutputDocument", part: FlowPart) -> str:
        if _same_document(document, part):
            return ""
        target = part.directory / f"{part.base_name}.md"
        return self.outside_file_name_for(target, part, document)

    def outside_file_name_for(
        self, path: Path, part: SourcePart, document: "OutputDocument"
    ) -> str:
        absolute = path if path.is_absolute() else self.working_dir / path
        try:
            relative_to_project = os.path.relpath(absolute, self.project_root)
        except ValueError as exc:
            raise LinkResolutionError(
                f"Unable to relate {absolute} to project root {self.project_root}: {exc}"
            ) from exc

        if not _escapes(relative_to_project):
            try:
                relative = os.path.relpath(absolute, document.directory)
            except ValueError as exc:
                raise LinkResolutionError(
                    f"Unable to relate {absolute} to {document.directory}: {exc}"
                ) from exc
            return Path(relative).as_posix()

        if self.local_links:
            return str(absolute)
        return remote_url_for(part.module_path, absolute.name)


def remote_url_for(import_path: str, filename: str) -> str:
    """Build ``https://host/org/repo/blob/master/<sub path>/<filename>``."""
    segments = import_path.split("/", 3)
    url = "https://" + posixpath.join(*segments[:3]) + f"/blob/{_REMOTE_BRANCH}"
    if len(segments) > 3:
        url += "/" + segments[3]
    return f"{url}/{filename}"


def _escapes(relative: str) -> bool:
    return relative == os.pardir or relative.startswith(os.pardir + os.sep)


def _same_document(document: "OutputDocument", part: FlowPart) -> bool:
    if part.document is not None:
        return part.document is document
    return part.base_name == document.base_name and part.directory == document.directory


__all__ = [
    "LinkResolutionError",
    "LinkResolver",
    "flow_anchor",
    "line_anchor",
    "remote_url_for",
]
