"""Tests for the package dictionary and import tables."""

from __future__ import annotations

import ast
from concurrent.futures import ThreadPoolExecutor

import pytest

from flowdoc.models import SourcePartKind
from flowdoc.packages import ImportTable, PackageDictionary
from flowdoc.parser import SourceParser
from tests._fixtures.source_tree import SourceTreeBuilder

_HELPERS = '''
def normalize(value):
    return value


class Record:
    pass


def Clean_in(value):
    """Clean input.

    flow:
        in -> [normalize] -> out
    """
'''


def _dictionary(source_tree: SourceTreeBuilder, *roots) -> PackageDictionary:
    return PackageDictionary(
        list(roots) or [source_tree.path()],
        working_dir=source_tree.path("app"),
        parser=SourceParser(),
    )


def test_import_table_maps_aliases() -> None:
    tree = ast.parse(
        "\n".join(
            [
                "import os",
                "import lib.helpers as h",
                "import pkg.sub",
                "from lib import tools",
                "from lib.deep import util as u",
                "from . import sibling",
                "from ..parent import cousin",
                "from .sub import child",
                "import ignored as _",
                "from lib import *",
            ]
        )
    )
    table = ImportTable.from_tree(tree, PackageDictionary([]))

    assert table.imports == {
        "os": "os",
        "h": "lib/helpers",
        "pkg.sub": "pkg/sub",
        "tools": "lib/tools",
        "u": "lib/deep/util",
        "sibling": "./sibling",
        "cousin": "../parent/cousin",
        "child": "./sub/child",
    }


def test_import_table_reads_module_level_imports_only() -> None:
    tree = ast.parse(
        "\n".join(
            [
                "from typing import TYPE_CHECKING",
                "import lib.helpers as h",
                "if TYPE_CHECKING:",
                "    from lib import models",
                "try:",
                "    import fast.json as json",
                "except ImportError:",
                "    import slow.json as json_fallback",
                "",
                "def load():",
                "    import other.helpers as h",
                "    from lib import hidden",
                "",
                "class Loader:",
                "    from lib import nested",
            ]
        )
    )
    table = ImportTable.from_tree(tree, PackageDictionary([]))

    assert table.imports == {
        "TYPE_CHECKING": "typing/TYPE_CHECKING",
        "h": "lib/helpers",
        "models": "lib/models",
        "json": "fast/json",
        "json_fallback": "slow/json",
    }


def test_import_table_unknown_alias_returns_none() -> None:
    table = ImportTable({}, PackageDictionary([]))
    assert table.get_part_for("missing", SourcePartKind.CALLABLE, "x") is None


def test_lookup_parses_each_module_once(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"lib/helpers/__init__.py": "", "lib/helpers/core.py": _HELPERS})
    packages = _dictionary(source_tree)

    normalize = packages.lookup("lib/helpers", SourcePartKind.CALLABLE, "normalize")
    record = packages.lookup("lib/helpers", SourcePartKind.TYPE, "Record")
    clean = packages.lookup("lib/helpers", SourcePartKind.FLOW, "Clean")

    assert normalize is not None and normalize.source_file == "core.py"
    assert normalize.module_path == "lib/helpers"
    assert normalize.directory == source_tree.path("lib/helpers")
    assert record is not None and (record.start_line, record.end_line) == (5, 6)
    assert clean is not None and clean.base_name == "core"
    assert packages.parser.parse_count == 1
    assert "lib/helpers" in packages


def test_lookup_accepts_single_file_module(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"lib/helpers.py": _HELPERS})
    packages = _dictionary(source_tree)

    part = packages.lookup("lib/helpers", SourcePartKind.CALLABLE, "normalize")

    assert part is not None
    assert part.source_file == "helpers.py"


def test_lookup_ignores_declarations_of_test_modules(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"lib/test_helpers.py": _HELPERS})
    packages = _dictionary(source_tree)

    assert packages.lookup("lib/test_helpers", SourcePartKind.CALLABLE, "normalize") is None


def test_lookup_searches_roots_in_order(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "vendor/lib/helpers.py": "def normalize():\n    pass\n",
            "workspace/lib/helpers.py": _HELPERS,
        }
    )
    packages = _dictionary(
        source_tree, source_tree.path("vendor"), source_tree.path("workspace")
    )

    part = packages.lookup("lib/helpers", SourcePartKind.CALLABLE, "normalize")

    assert part is not None
    assert part.directory == source_tree.path("vendor/lib")
    assert packages.lookup("lib/helpers", SourcePartKind.TYPE, "Record") is None


def test_lookup_resolves_relative_paths_from_working_dir(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"app/flows.py": "", "app/sibling.py": _HELPERS})
    packages = _dictionary(source_tree)

    part = packages.lookup("./sibling", SourcePartKind.CALLABLE, "normalize")

    assert part is not None
    assert part.module_path == "./sibling"


def test_lookup_missing_module_is_not_cached(source_tree: SourceTreeBuilder) -> None:
    packages = _dictionary(source_tree)

    assert packages.lookup("lib/nowhere", SourcePartKind.CALLABLE, "x") is None
    assert "lib/nowhere" not in packages
    assert packages.parser.parse_count == 0


def test_lookup_parse_failure_allows_retry(
    source_tree: SourceTreeBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    source_tree.write({"lib/broken.py": "def broken(:\n"})
    packages = _dictionary(source_tree)

    with caplog.at_level("ERROR", logger="flowdoc"):
        assert packages.lookup("lib/broken", SourcePartKind.CALLABLE, "broken") is None
    assert "Unable to parse additional module" in caplog.text
    assert "lib/broken" not in packages

    source_tree.write({"lib/broken.py": "def broken():\n    pass\n"})
    assert packages.lookup("lib/broken", SourcePartKind.CALLABLE, "broken") is not None
    assert packages.parser.parse_count == 2


def test_module_parts_are_read_only(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"lib/helpers.py": _HELPERS})
    module = _dictionary(source_tree).module("lib/helpers")

    assert module is not None
    with pytest.raises(TypeError):
        module.parts[(SourcePartKind.CALLABLE, "other")] = None  # type: ignore[index]


def test_concurrent_lookups_parse_once(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"lib/helpers.py": _HELPERS})
    packages = _dictionary(source_tree)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(
            pool.map(
                lambda _: packages.lookup("lib/helpers", SourcePartKind.CALLABLE, "normalize"),
                range(16),
            )
        )

    assert all(result is not None for result in results)
    assert packages.parser.parse_count == 1


def test_import_table_delegates_to_dictionary(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"lib/helpers.py": _HELPERS})
    packages = _dictionary(source_tree)
    table = ImportTable.from_tree(ast.parse("from lib import helpers as hp"), packages)

    part = table.get_part_for("hp", SourcePartKind.TYPE, "Record")

    assert part is not None and part.name == "Record"
    assert table.get_part_for("helpers", SourcePartKind.TYPE, "Record") is None
