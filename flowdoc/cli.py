"""CLI entrypoint for flowdoc."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .logging import configure_logging
from .orchestrator import Orchestrator
from .parser import ParseError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowdoc",
        description="Generate Markdown flow documentation from Python docstrings.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        help="Only report warnings and errors.",
    )
    parser.add_argument(
        "--local-links",
        action="store_true",
        default=None,
        help="Link to local files instead of remote URLs for code outside the project.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .flowdoc.yml file (defaults to the processed directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log output to this file.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to process (defaults to current directory).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for flowdoc."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logger = configure_logging(
        verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file
    )

    try:
        config = load_config(args.config if args.config is not None else Path(args.path))
        summary = Orchestrator().run(args.path, local_links=args.local_links, config=config)
    except (FileNotFoundError, NotADirectoryError, ConfigError) as exc:
        logger.error("%s", exc)
        parser.exit(1, f"{exc}\n")
    except ParseError as exc:
        logger.error("%s", exc)
        parser.exit(1, f"flowdoc failed: {exc}\nRun with --verbose for more details.\n")

    print(f"Wrote {len(summary.documents)} documents with {summary.flows} flows.")
    if summary.failed_documents:
        names = ", ".join(path.name for path in summary.failed_documents)
        print(f"Failed documents: {names}")


if __name__ == "__main__":
    main(sys.argv[1:])
