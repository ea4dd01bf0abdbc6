"""Project root and module search root discovery."""

from __future__ import annotations

import subprocess
import sysconfig
from pathlib import Path
from typing import Iterable, List, Sequence

from .logging import get_logger

_logger = get_logger("roots")


def find_project_root(start: Path) -> Path:
    """Return the version-control root containing ``start``.

    Asks git first, then looks for a ``.git`` entry in the parents, and
    finally settles for ``start`` itself.
    """
    start = Path(start).resolve()
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=start,
            check=True,
            capture_output=True,
            text=True,
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as exc:
        _logger.debug("git could not report a project root for %s: %s", start, exc)
    else:
        toplevel = completed.stdout.strip()
        if toplevel:
            return Path(toplevel).resolve()

    for candidate in (start, *start.parents):
        if (candidate / ".git").exists():
            return candidate
    return start


def default_search_roots(
    project_root: Path,
    *,
    vendor_dir: str = "vendor",
    extra_roots: Sequence[Path] = (),
) -> List[Path]:
    """Return module search roots: vendored and installed dependencies first,
    then workspace roots, then the standard library.
    """
    project_root = Path(project_root)
    paths = sysconfig.get_paths()

    vendor: List[Path] = [project_root / vendor_dir] if vendor_dir else []
    vendor.extend(Path(paths[key]) for key in ("purelib", "platlib") if key in paths)

    workspace: List[Path] = list(extra_roots)
    workspace.extend([project_root, project_root / "src"])

    stdlib = [Path(paths["stdlib"])] if "stdlib" in paths else []
    return _existing_unique([*vendor, *workspace, *stdlib])


def _existing_unique(candidates: Iterable[Path]) -> List[Path]:
    seen = set()
    roots: List[Path] = []
    for candidate in candidates:
        resolved = Path(candidate).resolve()
        if resolved in seen or not resolved.is_dir():
            continue
        seen.add(resolved)
        roots.append(resolved)
    return roots


__all__ = ["default_search_roots", "find_project_root"]
