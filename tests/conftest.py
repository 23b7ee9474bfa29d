"""Shared helpers: a small tree builder and a structural invariant check."""

import pytest

from mcp_doc_modules.models import (
    KIND_MODULE,
    Comment,
    CommentTag,
    Container,
    Declaration,
    KindGroup,
    Project,
    Reference,
)
from mcp_doc_modules.tree_ops import add_to_group


class TreeBuilder:
    """Builds trees the way the upstream analysis stage hands them over:
    children plus a kind-group entry for every child."""

    def __init__(self, name: str = "docs"):
        self.project = Project(id=0, name=name)
        self._next_id = 1

    def _new_id(self) -> int:
        node_id = self._next_id
        self._next_id += 1
        return node_id

    def add(
        self,
        parent: Container,
        name: str,
        kind: str,
        tags: dict[str, str] | None = None,
        short_text: str = "",
    ) -> Declaration:
        comment = None
        if tags or short_text:
            comment = Comment(
                short_text=short_text,
                tags=[CommentTag(tag_name=k, text=v) for k, v in (tags or {}).items()],
            )
        decl = Declaration(id=self._new_id(), name=name, kind=kind, parent=parent, comment=comment)
        self.project.register(decl)
        if parent.children is None:
            parent.children = []
        parent.children.append(decl)
        add_to_group(decl, parent)
        return decl

    def file(self, name: str, **kwargs) -> Declaration:
        return self.add(self.project, name, KIND_MODULE, **kwargs)

    def ref(self, parent: Container, target: Declaration, group_kind: str | None = None) -> Reference:
        """Reference to *target* inside *parent*.

        By default the reference sits in the group of its target's kind, the
        way re-exports are listed next to real declarations.
        """
        ref = Reference(id=self._new_id(), name=target.name, parent=parent, target_id=target.id)
        self.project.register(ref)
        if parent.children is None:
            parent.children = []
        parent.children.append(ref)
        if parent.groups is None:
            parent.groups = []
        kind = group_kind or target.kind
        for group in parent.groups:
            if group.kind == kind:
                group.children.append(ref)
                break
        else:
            parent.groups.append(KindGroup(title=kind, kind=kind, children=[ref]))
        return ref


@pytest.fixture
def builder():
    return TreeBuilder()


def assert_tree_consistent(project: Project) -> None:
    """Check ownership, parent edges and kind-group invariants for the whole tree."""
    owners: dict[int, int] = {}
    stack: list[Container] = [project]
    while stack:
        container = stack.pop()
        children = container.children or []

        ids = [c.id for c in children]
        assert len(ids) == len(set(ids)), f"duplicate child in '{container.name}'"

        for child in children:
            assert child.parent is container, f"'{child.name}' has wrong parent"
            if isinstance(child, Declaration):
                assert child.id not in owners, f"'{child.name}' owned twice"
                owners[child.id] = container.id
                stack.append(child)

        for group in container.groups or []:
            assert group.children, f"empty group '{group.title}' in '{container.name}'"
            for member in group.children:
                assert any(member is c for c in children), (
                    f"group '{group.title}' of '{container.name}' lists '{member.name}', "
                    f"which is not a child"
                )

        grouped = [m for g in container.groups or [] for m in g.children]
        for child in children:
            if isinstance(child, Declaration):
                assert sum(1 for m in grouped if m is child) == 1, (
                    f"'{child.name}' is not in exactly one group of '{container.name}'"
                )
            # A reference and its target never both appear in one container
            if isinstance(child, Reference):
                assert not any(c.id == child.target_id for c in children)
