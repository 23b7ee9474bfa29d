"""Tests for the read-only tree queries."""

import pytest

from mcp_doc_modules.models import (
    KIND_CLASS,
    KIND_FUNCTION,
    KIND_METHOD,
    TAG_MODULE,
    TAG_MODULE_DEFINITION,
)
from mcp_doc_modules.module_converter import organize_modules
from mcp_doc_modules.query_api import create_tree_query_functions, describe_module_tags
from mcp_doc_modules.tag_collector import collect_module_tags


# ---------------------------------------------------------------------------
# Fixtures: three files, one tagged class with a method, one re-export
# ---------------------------------------------------------------------------


@pytest.fixture
def tree(builder):
    core_file = builder.file("core.ts", tags={TAG_MODULE_DEFINITION: "Core"}, short_text="Core runtime.")
    app_file = builder.file("app.ts")
    engine = builder.add(app_file, "Engine", KIND_CLASS, tags={TAG_MODULE: "Core"})
    builder.add(engine, "start", KIND_METHOD)
    builder.add(app_file, "helper", KIND_FUNCTION)
    index_file = builder.file("index.ts")
    builder.ref(index_file, engine)
    return builder.project


@pytest.fixture
def ctx(tree):
    return collect_module_tags(tree)


@pytest.fixture
def fns(tree):
    return create_tree_query_functions(tree)


class TestTreeSummary:
    def test_before_organize(self, fns):
        summary = fns["get_tree_summary"]()
        lines = summary.splitlines()
        assert lines[0] == "Project: docs (7 nodes, 3 top-level)"
        assert lines[1] == "Kinds: class: 1, function: 1, method: 1, module: 3, reference: 1"
        assert lines[2:] == [
            "  [module] core.ts",
            "  [module] app.ts (2 children)",
            "  [module] index.ts (1 children)",
        ]

    def test_reflects_organized_tree(self, ctx, fns):
        organize_modules(ctx)
        summary = fns["get_tree_summary"]()
        assert summary.startswith("Project: docs (4 nodes, 2 top-level)")
        assert "  [module] Core (1 children)" in summary
        assert "  [function] helper" in summary
        assert "reference" not in summary

    def test_empty_project(self):
        from mcp_doc_modules.models import Project

        fns = create_tree_query_functions(Project(id=0, name="empty"))
        assert fns["get_tree_summary"]() == "Project: empty (0 nodes, 0 top-level)"


class TestListModules:
    def test_file_modules(self, fns):
        modules = fns["list_modules"]()
        assert [m["name"] for m in modules] == ["core.ts", "app.ts", "index.ts"]
        app = modules[1]
        assert app["children"] == ["Engine", "helper"]
        assert app["groups"] == ["Classes", "Functions"]

    def test_after_organize(self, ctx, fns):
        organize_modules(ctx)
        assert fns["list_modules"]() == [
            {"id": 1, "name": "Core", "children": ["Engine"], "groups": ["Classes"]},
        ]


class TestFindDeclaration:
    def test_references_skipped(self, fns):
        result = fns["find_declaration"]("Engine")
        assert result["name"] == "Engine"
        assert len(result["matches"]) == 1
        match = result["matches"][0]
        assert match["kind"] == KIND_CLASS
        assert match["path"] == ["app.ts", "Engine"]
        assert match["parent"] == "app.ts"

    def test_nested_path_after_organize(self, ctx, fns):
        organize_modules(ctx)
        match = fns["find_declaration"]("start")["matches"][0]
        assert match == {"id": 4, "kind": KIND_METHOD, "path": ["Core", "Engine", "start"], "parent": "Engine"}

    def test_not_found(self, fns):
        assert fns["find_declaration"]("Missing") == {"error": "declaration 'Missing' not found"}


class TestGetChildren:
    def test_root(self, fns):
        names = [c["name"] for c in fns["get_children"]()]
        assert names == ["core.ts", "app.ts", "index.ts"]

    def test_nested_path(self, fns):
        assert fns["get_children"](["app.ts", "Engine"]) == [
            {"id": 4, "name": "start", "kind": KIND_METHOD},
        ]

    def test_unknown_segment(self, fns):
        assert fns["get_children"](["Nope"]) == {"error": "no container 'Nope' under 'docs'"}
        assert fns["get_children"](["app.ts", "Nope"]) == {"error": "no container 'Nope' under 'app.ts'"}


class TestDescribeModuleTags:
    def test_records(self, ctx):
        assert describe_module_tags(ctx) == {
            "definitions": [
                {"name": "Core", "container": "core.ts", "container_id": 1, "comment": "Core runtime."},
            ],
            "declarations": [
                {"module": "Core", "declaration": "Engine", "declaration_id": 3, "kind": KIND_CLASS},
            ],
        }

    def test_no_tags(self):
        from mcp_doc_modules.models import Project
        from mcp_doc_modules.module_converter import ConversionContext

        assert describe_module_tags(ConversionContext(project=Project(id=0, name="p"))) == {
            "definitions": [],
            "declarations": [],
        }
