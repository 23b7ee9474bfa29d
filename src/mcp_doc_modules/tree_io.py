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

"""JSON serialization of symbol trees.

Layout of a node::

    {
        "id": 3,
        "name": "Engine",
        "kind": "class",
        "comment": {"shortText": "...", "text": "...", "tags": [{"tag": "module", "text": "Core"}]},
        "flags": ["exported"],
        "children": [...],
        "groups": [{"title": "Methods", "kind": "method", "children": [4, 5]}],
        "target": 7
    }

``target`` is only present on references. Group children are ids of the
same container's children. A comment may also be given as a raw
doc-comment string, which is parsed on load.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mcp_doc_modules.models import (
    KIND_PROJECT,
    KIND_REFERENCE,
    Comment,
    CommentTag,
    Container,
    Declaration,
    KindGroup,
    Node,
    Project,
    Reference,
)
from mcp_doc_modules.tag_collector import parse_comment

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_project(data: dict[str, Any]) -> Project:
    """Build a Project from its JSON form. Raises ValueError on malformed input."""
    if not isinstance(data, dict):
        raise ValueError(f"tree must be a JSON object, got {type(data).__name__}")
    kind = data.get("kind", KIND_PROJECT)
    if kind != KIND_PROJECT:
        raise ValueError(f"root node must be of kind '{KIND_PROJECT}', got '{kind}'")

    project = Project(id=_require_id(data), name=_require_name(data))
    pending_groups: list[tuple[Container, list[dict[str, Any]]]] = []
    _load_container_body(data, project, project, pending_groups)

    for container, groups_data in pending_groups:
        container.groups = [_load_group(g, container) for g in groups_data]

    for node in project.nodes.values():
        if isinstance(node, Reference) and node.target_id not in project.nodes:
            raise ValueError(
                f"reference '{node.name}' (#{node.id}) points at unknown node #{node.target_id}"
            )

    logger.debug("Loaded project '%s' with %d nodes", project.name, len(project.nodes))
    return project


def load_project_file(path: str | Path) -> Project:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return load_project(data)


def _require_id(data: dict[str, Any]) -> int:
    node_id = data.get("id")
    if not isinstance(node_id, int) or isinstance(node_id, bool):
        raise ValueError(f"node {data.get('name', '<unnamed>')!r} has no integer 'id'")
    return node_id


def _require_name(data: dict[str, Any]) -> str:
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError(f"node #{data.get('id')} has no 'name'")
    return name


def _load_node(
    data: dict[str, Any],
    parent: Container,
    project: Project,
    pending_groups: list[tuple[Container, list[dict[str, Any]]]],
) -> Node:
    if not isinstance(data, dict):
        raise ValueError(f"child of '{parent.name}' must be a JSON object, got {type(data).__name__}")
    node_id = _require_id(data)
    name = _require_name(data)
    kind = data.get("kind")
    if not isinstance(kind, str) or not kind:
        raise ValueError(f"node '{name}' (#{node_id}) has no 'kind'")

    node: Node
    if kind == KIND_REFERENCE or "target" in data:
        target = data.get("target")
        if not isinstance(target, int):
            raise ValueError(f"reference '{name}' (#{node_id}) has no integer 'target'")
        node = Reference(id=node_id, name=name, parent=parent, target_id=target)
        project.register(node)
        return node

    node = Declaration(
        id=node_id,
        name=name,
        kind=kind,
        parent=parent,
        comment=_load_comment(data.get("comment")),
        flags=_load_flags(data, name, node_id),
    )
    project.register(node)
    _load_container_body(data, node, project, pending_groups)
    return node


def _load_flags(data: dict[str, Any], name: str, node_id: int) -> set[str]:
    flags = data.get("flags", [])
    if not isinstance(flags, list) or not all(isinstance(flag, str) for flag in flags):
        raise ValueError(f"node '{name}' (#{node_id}) has 'flags' that are not a list of strings")
    return set(flags)


def _load_container_body(
    data: dict[str, Any],
    container: Container,
    project: Project,
    pending_groups: list[tuple[Container, list[dict[str, Any]]]],
) -> None:
    if "children" in data:
        if not isinstance(data["children"], list):
            raise ValueError(f"'children' of '{container.name}' must be a list")
        container.children = [
            _load_node(child, container, project, pending_groups) for child in data["children"]
        ]
    # Groups point at children by id, resolved once the whole tree is known
    if "groups" in data:
        pending_groups.append((container, data["groups"]))


def _load_group(data: dict[str, Any], container: Container) -> KindGroup:
    by_id = {child.id: child for child in container.children or ()}
    members: list[Node] = []
    for child_id in data.get("children", ()):
        child = by_id.get(child_id)
        if child is None:
            raise ValueError(
                f"group '{data.get('title')}' of '{container.name}' lists #{child_id}, "
                f"which is not a child of that container"
            )
        members.append(child)
    return KindGroup(title=data.get("title", ""), kind=data.get("kind", ""), children=members)


def _load_comment(data: Any) -> Comment | None:
    if data is None:
        return None
    if isinstance(data, str):
        return parse_comment(data)
    return Comment(
        short_text=data.get("shortText", ""),
        text=data.get("text", ""),
        tags=[
            CommentTag(tag_name=t.get("tag", "").lower(), text=t.get("text", ""))
            for t in data.get("tags", ())
        ],
    )


# ---------------------------------------------------------------------------
# Dumping
# ---------------------------------------------------------------------------


def dump_project(project: Project) -> dict[str, Any]:
    """JSON-ready dict of *project*; inverse of :func:`load_project`."""
    return _dump_node(project)


def save_project_file(project: Project, path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dump_project(project), f, indent=2)
        f.write("\n")


def _dump_node(node: Node) -> dict[str, Any]:
    data: dict[str, Any] = {"id": node.id, "name": node.name, "kind": node.kind}

    if isinstance(node, Reference):
        data["target"] = node.target_id
        return data

    if isinstance(node, Declaration):
        if node.comment is not None and not node.comment.is_empty:
            data["comment"] = _dump_comment(node.comment)
        if node.flags:
            data["flags"] = sorted(node.flags)

    if isinstance(node, Container):
        if node.children is not None:
            data["children"] = [_dump_node(child) for child in node.children]
        if node.groups is not None:
            data["groups"] = [
                {"title": g.title, "kind": g.kind, "children": [c.id for c in g.children]}
                for g in node.groups
            ]
    return data


def _dump_comment(comment: Comment) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if comment.short_text:
        data["shortText"] = comment.short_text
    if comment.text:
        data["text"] = comment.text
    if comment.tags:
        data["tags"] = [{"tag": t.tag_name, "text": t.text} for t in comment.tags]
    return data
