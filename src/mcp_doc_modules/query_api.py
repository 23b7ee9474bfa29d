# mcp-doc-modules - Logical module reorganization for documentation trees
# Copyright (C) 2026 Michael Doyle
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing available. See COMMERCIAL-LICENSE.md for details.

"""Read-only queries over a symbol tree.

All functions return plain dicts/strings so results can be shown as-is
by the MCP server or printed in a REPL.
"""

from __future__ import annotations

from collections import Counter
from typing import Callable

from mcp_doc_modules.models import (
    KIND_MODULE,
    Container,
    Node,
    Project,
    Reference,
)
from mcp_doc_modules.module_converter import ConversionContext


def _path_of(node: Node) -> list[str]:
    """Names from the top-level ancestor down to *node* (project excluded)."""
    names: list[str] = []
    current: Node | None = node
    while current is not None and not isinstance(current, Project):
        names.append(current.name)
        current = current.parent
    names.reverse()
    return names


def create_tree_query_functions(project: Project) -> dict[str, Callable]:
    """Create query functions bound to *project*.

    The functions read the tree at call time, so they keep working after
    the tree has been reorganized in place.
    """

    def get_tree_summary() -> str:
        """Counts by kind plus the top-level listing."""
        counts = Counter(node.kind for node in project.walk())
        top_level = project.children or []
        parts = [
            f"Project: {project.name} ({sum(counts.values())} nodes, "
            f"{len(top_level)} top-level)",
        ]
        if counts:
            by_kind = ", ".join(f"{kind}: {n}" for kind, n in sorted(counts.items()))
            parts.append(f"Kinds: {by_kind}")
        for node in top_level:
            n_children = len(node.children or ()) if isinstance(node, Container) else 0
            suffix = f" ({n_children} children)" if n_children else ""
            parts.append(f"  [{node.kind}] {node.name}{suffix}")
        return "\n".join(parts)

    def list_modules() -> list[dict]:
        """Top-level module containers with their direct children."""
        result = []
        for node in project.children or ():
            if node.kind != KIND_MODULE or not isinstance(node, Container):
                continue
            result.append({
                "id": node.id,
                "name": node.name,
                "children": [c.name for c in node.children or ()],
                "groups": [g.title for g in node.groups or ()],
            })
        return result

    def find_declaration(name: str) -> dict:
        """Where declarations named *name* currently live. References are skipped."""
        matches = [
            node for node in project.walk()
            if node.name == name and not isinstance(node, Reference)
        ]
        if not matches:
            return {"error": f"declaration '{name}' not found"}
        return {
            "name": name,
            "matches": [
                {
                    "id": node.id,
                    "kind": node.kind,
                    "path": _path_of(node),
                    "parent": node.parent.name if node.parent is not None else None,
                }
                for node in matches
            ],
        }

    def get_children(path: list[str] | None = None) -> list[dict] | dict:
        """Children of the container reached by following *path* names from the root."""
        container: Container = project
        for name in path or ():
            found = next(
                (c for c in container.children or () if c.name == name and isinstance(c, Container)),
                None,
            )
            if found is None:
                return {"error": f"no container '{name}' under '{container.name}'"}
            container = found
        return [
            {"id": c.id, "name": c.name, "kind": c.kind}
            for c in container.children or ()
        ]

    return {
        "get_tree_summary": get_tree_summary,
        "list_modules": list_modules,
        "find_declaration": find_declaration,
        "get_children": get_children,
    }


def describe_module_tags(ctx: ConversionContext) -> dict:
    """Collected ``@moduledefinition`` / ``@module`` records as plain data."""
    return {
        "definitions": [
            {
                "name": d.name,
                "container": d.container.name,
                "container_id": d.container.id,
                "comment": d.comment.short_text,
            }
            for d in ctx.definitions
        ],
        "declarations": [
            {
                "module": d.module_name,
                "declaration": d.declaration.name,
                "declaration_id": d.declaration.id,
                "kind": d.declaration.kind,
            }
            for d in ctx.declarations.values()
        ],
    }
