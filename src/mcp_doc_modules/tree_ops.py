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

"""Tree-mutation primitives shared by the reorganization phases.

Every move is remove-then-add: a node is stripped from its old owner's
children and kind-groups before it is attached to the new owner, so no
node is ever listed in two containers at once. Reference nodes are
transparent to matching: a reference "is" its target for lookups.
"""

from __future__ import annotations

import logging

from mcp_doc_modules.models import (
    GROUP_TITLES,
    KIND_ENUM_MEMBER,
    KIND_PRIORITY,
    Container,
    KindGroup,
    Node,
    Project,
    Reference,
)

logger = logging.getLogger(__name__)

_KIND_RANK: dict[str, int] = {kind: i for i, kind in enumerate(KIND_PRIORITY)}


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def matches(candidate: Node, target: Node) -> bool:
    """True if *candidate* is *target* by id, or a reference pointing at it."""
    if candidate.id == target.id:
        return True
    return isinstance(candidate, Reference) and candidate.targets(target)


def find_reference_index(nodes: list[Node], target: Node) -> int:
    """Index of the first reference in *nodes* pointing at *target*, or -1."""
    for i, child in enumerate(nodes):
        if isinstance(child, Reference) and child.targets(target):
            return i
    return -1


# ---------------------------------------------------------------------------
# Kind-groups
# ---------------------------------------------------------------------------


def group_title(kind: str) -> str:
    return GROUP_TITLES.get(kind, kind.replace("_", " ").capitalize())


def find_group(container: Container, kind: str) -> KindGroup | None:
    for group in container.groups or ():
        if group.kind == kind:
            return group
    return None


def add_to_group(node: Node, container: Container) -> None:
    """Register *node* in *container*'s kind-group for its kind.

    A reference to *node* already in that group is replaced in place by
    the node itself, so a reference and its target never sit side by side.
    A missing group is created.
    """
    if container.groups is None:
        container.groups = []

    group = find_group(container, node.kind)
    if group is None:
        container.groups.append(KindGroup(title=group_title(node.kind), kind=node.kind, children=[node]))
        return

    pointer_index = find_reference_index(group.children, node)
    if pointer_index >= 0:
        group.children[pointer_index] = node
    elif not any(c.id == node.id for c in group.children):
        group.children.append(node)


def remove_from_groups(node: Node, container: Container) -> None:
    """Drop every group entry of *container* matching *node*; drop emptied groups."""
    if not container.groups:
        return
    for group in list(container.groups):
        before = len(group.children)
        group.children = [c for c in group.children if not matches(c, node)]
        if len(group.children) != before and not group.children:
            container.groups.remove(group)


# ---------------------------------------------------------------------------
# Structural moves
# ---------------------------------------------------------------------------


def remove_from_container(node: Node, container: Container) -> list[Node]:
    """Strip *node* (and references to it) from *container*'s children and groups.

    Returns the child entries that were removed.
    """
    removed: list[Node] = []
    if container.children:
        removed = [c for c in container.children if matches(c, node)]
        if removed:
            container.children = [c for c in container.children if not matches(c, node)]
    remove_from_groups(node, container)
    return removed


def detach(node: Node) -> None:
    """Remove *node* from its current parent's structures and clear the parent edge."""
    old_parent = node.parent
    if old_parent is not None:
        if old_parent.children:
            old_parent.children = [c for c in old_parent.children if c is not node]
        remove_from_groups_exact(node, old_parent)
    node.parent = None


def remove_from_groups_exact(node: Node, container: Container) -> None:
    """Like remove_from_groups, but only the entry that *is* node (not references)."""
    if not container.groups:
        return
    for group in list(container.groups):
        if any(c is node for c in group.children):
            group.children = [c for c in group.children if c is not node]
            if not group.children:
                container.groups.remove(group)


def reparent(declaration: Node, container: Container) -> Node | None:
    """Make *container* the single owner of *declaration* and group it there.

    A reference to *declaration* in the child sequence is replaced by the
    declaration itself and returned, detached, so the caller can drop it from
    the id table. Idempotent: a declaration already owned by
    *container* and already in the right kind-group is left untouched.
    """
    if declaration.parent is not container:
        detach(declaration)
        declaration.parent = container
        logger.debug("Moved '%s' (#%d) into '%s'", declaration.name, declaration.id, container.name)

    if container.children is None:
        container.children = []
    children = container.children

    pointer: Node | None = None
    if not any(c is declaration for c in children):
        pointer_index = find_reference_index(children, declaration)
        if pointer_index >= 0:
            pointer = children[pointer_index]
            children[pointer_index] = declaration
        else:
            children.append(declaration)

    add_to_group(declaration, container)

    # The replaced reference may still be listed in a group of another kind
    if pointer is not None:
        remove_from_groups_exact(pointer, container)
        pointer.parent = None
    return pointer


def remove_from_project(project: Project, container: Container) -> None:
    """Delete a top-level container: children, kind-groups, and id table."""
    if project.children:
        project.children = [c for c in project.children if c is not container]
    remove_from_groups(container, project)
    project.forget(container)
    container.parent = None
    logger.debug("Removed container '%s' (#%d) from project", container.name, container.id)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def sort_key(node: Node) -> tuple[int, int, str]:
    """Kind priority, then case-insensitive name.

    Enum members keep declaration order (their ids) instead of sorting by name.
    Unknown kinds sort after all known kinds.
    """
    rank = _KIND_RANK.get(node.kind, len(KIND_PRIORITY))
    if node.kind == KIND_ENUM_MEMBER:
        return (rank, node.id, "")
    return (rank, 0, node.name.lower())


def group_sort_key(group: KindGroup) -> int:
    return _KIND_RANK.get(group.kind, len(KIND_PRIORITY))
