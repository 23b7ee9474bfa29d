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

"""Reorganize a documentation tree by logical module.

Symbols tagged ``@module <name>`` are moved into a top-level container
named after the logical module instead of the file that defines them.
The pass has three phases that must run in order:

1. convert: locate or create each target module and move tagged
   declarations into it
2. prune: promote untagged symbols to the project root and delete the
   file containers left empty
3. sort: order children and kind-groups by kind priority, then name
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from mcp_doc_modules.models import (
    FLAG_EXPORTED,
    KIND_MODULE,
    Container,
    Declaration,
    ModuleDeclaration,
    ModuleDefinition,
    Node,
    Project,
    Reference,
)
from mcp_doc_modules.tree_ops import (
    group_sort_key,
    remove_from_container,
    remove_from_project,
    reparent,
    sort_key,
)

logger = logging.getLogger(__name__)


@dataclass
class ConversionContext:
    """Everything one reorganization pass reads and mutates."""

    project: Project
    definitions: list[ModuleDefinition] = field(default_factory=list)
    # Keyed by declaration id
    declarations: dict[int, ModuleDeclaration] = field(default_factory=dict)
    # Module names that had no @moduledefinition and were created empty
    synthesized_modules: list[str] = field(default_factory=list)
    # Ids of top-level containers acting as logical modules, whatever their kind
    module_ids: set[int] = field(default_factory=set)

    def add_definition(self, definition: ModuleDefinition) -> None:
        self.definitions.append(definition)

    def add_declaration(self, declaration: ModuleDeclaration) -> None:
        self.declarations[declaration.declaration.id] = declaration

    def find_definition(self, name: str) -> ModuleDefinition | None:
        for definition in self.definitions:
            if definition.name == name:
                return definition
        return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def organize_modules(ctx: ConversionContext) -> ConversionContext:
    """Run convert, prune and sort, strictly in that order."""
    convert_declarations(ctx)
    remove_empty_containers(ctx)
    sort_all(ctx)
    return ctx


def convert_declarations(ctx: ConversionContext) -> ConversionContext:
    """Move every ``@module`` declaration into its top-level module."""
    project = ctx.project
    moved = 0

    for record in list(ctx.declarations.values()):
        declaration = record.declaration
        module = _resolve_module(ctx, record.module_name)
        if module is declaration:
            logger.debug("'%s' is its own module, leaving it in place", declaration.name)
            continue

        _remove_from_other_containers(project, declaration, module)
        _move(project, declaration, module)
        moved += 1

    logger.info("Converted %d @module declarations", moved)
    return ctx


def remove_empty_containers(ctx: ConversionContext) -> ConversionContext:
    """Promote untagged symbols to the root and delete emptied module containers.

    Walks the top-level children backwards since deletions shift the
    indices of everything after the deleted container. Symbols promoted
    to the root are appended past the current index, so they are never
    visited themselves.
    """
    project = ctx.project
    removed = 0

    for i in range(len(project.children or ()) - 1, -1, -1):
        container = project.children[i]
        if not isinstance(container, Declaration):
            continue
        if container.kind != KIND_MODULE and container.id not in ctx.module_ids:
            continue

        if container.children:
            _move_unmoduled_declarations(ctx, container)
        if not container.children:
            remove_from_project(project, container)
            removed += 1

    logger.info("Removed %d empty module containers", removed)
    return ctx


def sort_all(ctx: ConversionContext) -> ConversionContext:
    """Recursively sort every child sequence and kind-group of the tree."""
    _sort_container(ctx.project)
    return ctx


# ---------------------------------------------------------------------------
# Convert
# ---------------------------------------------------------------------------


def _resolve_module(ctx: ConversionContext, name: str) -> Container:
    """Find the top-level module *name*, promoting or creating it if needed."""
    project = ctx.project

    for child in project.children or ():
        if child.name == name and isinstance(child, Container):
            return child

    definition = ctx.find_definition(name)
    if definition is not None and project.get(definition.container.id) is definition.container:
        return _create_module_from_definition(ctx, definition)

    logger.warning(
        "No @moduledefinition was found for '%s'; creating an empty module. "
        "Make sure every @module tag refers to an existing @moduledefinition.",
        name,
    )
    return _create_empty_module(ctx, name)


def _create_module_from_definition(ctx: ConversionContext, definition: ModuleDefinition) -> Container:
    project = ctx.project
    container = definition.container
    _move(project, container, project)
    ctx.module_ids.add(container.id)
    container.name = definition.name

    if isinstance(container, Declaration) and definition.comment.short_text.strip():
        container.comment = definition.comment

    logger.debug("Promoted @moduledefinition '%s' (#%d) to top level", definition.name, container.id)
    return container


def _create_empty_module(ctx: ConversionContext, name: str) -> Declaration:
    # Only what is needed to hold children: no comment, no inherited metadata.
    module = ctx.project.create_declaration(name, KIND_MODULE)
    module.children = []
    module.flags.add(FLAG_EXPORTED)
    _move(ctx.project, module, ctx.project)
    ctx.module_ids.add(module.id)
    ctx.synthesized_modules.append(name)
    return module


def _move(project: Project, node: Node, container: Container) -> None:
    """Reparent *node* and forget any reference it replaced in *container*."""
    pointer = reparent(node, container)
    if pointer is not None:
        project.forget(pointer)


def _remove_from_other_containers(project: Project, declaration: Declaration, target: Container) -> None:
    """Strip *declaration* and its references from every top-level container but *target*."""
    for container in list(project.children or ()):
        if container is target or not isinstance(container, Container):
            continue
        for removed in remove_from_container(declaration, container):
            if isinstance(removed, Reference):
                project.forget(removed)
                removed.parent = None


# ---------------------------------------------------------------------------
# Prune
# ---------------------------------------------------------------------------


def _move_unmoduled_declarations(ctx: ConversionContext, container: Container) -> None:
    """Move every child of *container* that has no ``@module`` tag to the project root.

    References are dropped rather than promoted: without their container
    they have nothing left to alias.
    """
    project = ctx.project
    for child in reversed(list(container.children or ())):
        if child.id in ctx.declarations:
            continue

        remove_from_container(child, container)
        if isinstance(child, Reference):
            project.forget(child)
            child.parent = None
        elif isinstance(child, Declaration):
            _move(project, child, project)


# ---------------------------------------------------------------------------
# Sort
# ---------------------------------------------------------------------------


def _sort_container(container: Container) -> None:
    if container.children:
        for child in container.children:
            if isinstance(child, Container):
                _sort_container(child)
        container.children.sort(key=sort_key)

    if container.groups:
        container.groups.sort(key=group_sort_key)
        for group in container.groups:
            group.children.sort(key=sort_key)
