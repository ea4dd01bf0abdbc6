"""Pipeline orchestration for one flowdoc run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .config import FlowDocConfig, load_config
from .links import LinkResolver
from .logging import get_logger
from .models import FlowPart, PartTable
from .packages import ImportTable, PackageDictionary
from .parser import SourceParser
from .render import CommandRenderer, FlowRenderer, RenderError
from .roots import default_search_roots, find_project_root
from .scanner import DeclarationScanner
from .writer import DocumentSet, DocumentState, DocumentWriter, OutputDocument


@dataclass
class RunSummary:
    """Result of processing one directory."""

    directory: Path
    flows: int = 0
    documents: List[Path] = field(default_factory=list)
    failed_documents: List[Path] = field(default_factory=list)


class Orchestrator:
    """Coordinates parsing, discovery, rendering and writing for a directory."""

    def __init__(
        self,
        *,
        renderer: FlowRenderer | None = None,
        parser: SourceParser | None = None,
        scanner: DeclarationScanner | None = None,
    ) -> None:
        self.renderer = renderer
        self.parser = parser or SourceParser()
        self.scanner = scanner or DeclarationScanner()
        self.logger = get_logger("orchestrator")

    def run(
        self,
        path: str | Path,
        *,
        local_links: Optional[bool] = None,
        project_root: Path | None = None,
        search_roots: Sequence[Path] | None = None,
        config: FlowDocConfig | None = None,
    ) -> RunSummary:
        """Write one Markdown document per source file holding flows."""
        directory = Path(path).expanduser().resolve()
        if not directory.exists():
            raise FileNotFoundError(f"Directory not found: {path}")
        if not directory.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {path}")

        config = config or load_config(directory)
        root = Path(project_root or config.project_root or find_project_root(directory))
        if search_roots is None:
            search_roots = default_search_roots(
                root, vendor_dir=config.vendor_dir, extra_roots=config.search_roots
            )
        links_local = config.local_links if local_links is None else local_links
        self.logger.debug("Project root %s, %d search roots", root, len(search_roots))

        renderer = self.renderer or CommandRenderer(
            executable=config.renderer.command,
            image_format=config.renderer.image_format,
        )
        packages = PackageDictionary(
            search_roots,
            working_dir=directory,
            parser=self.parser,
            scanner=self.scanner,
        )
        resolver = LinkResolver(root, directory, local_links=links_local)

        self.logger.info("Parsing the whole directory: %s", directory)
        units = self.parser.parse_dir(directory)

        summary = RunSummary(directory=directory)
        parts: PartTable = {}
        flows: List[FlowPart] = []
        with DocumentSet() as documents:
            for unit in units:
                imports = ImportTable.from_tree(unit.tree, packages)
                documents.add(
                    OutputDocument(unit.base_name, directory, imports, source_name=unit.filename)
                )
                flows.extend(
                    self.scanner.scan(unit, parts, module_path="", directory=directory)
                )
            self.logger.info("Found %d flows.", len(flows))

            writer = DocumentWriter(renderer, resolver, parts)
            for flow in flows:
                self._write_flow(flow, documents, writer, summary)
            self.logger.info("Processed flows with %d source parts.", len(parts))

        for document in documents:
            if document.state is DocumentState.CLOSED and not document.failed:
                summary.documents.append(document.path)
        self.logger.info("Ended %d files.", len(summary.documents))
        return summary

    def _write_flow(
        self,
        flow: FlowPart,
        documents: DocumentSet,
        writer: DocumentWriter,
        summary: RunSummary,
    ) -> None:
        document = documents.get(flow.base_name)
        if document is None:
            raise KeyError(f"Missing output document for flow file: {flow.base_name}")
        if document.failed:
            self.logger.warning("Skipping flow %s: %s failed earlier", flow.name, document.path.name)
            return
        try:
            documents.open_for(flow)
            writer.write_flow(flow, document)
        except (RenderError, OSError) as exc:
            self.logger.error(
                "Unable to write flow %s to %s: %s", flow.name, document.path.name, exc
            )
            document.failed = True
            document.close()
            summary.failed_documents.append(document.path)
            return
        summary.flows += 1


__all__ = ["Orchestrator", "RunSummary"]
