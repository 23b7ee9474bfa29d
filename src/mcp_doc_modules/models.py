"""Symbol tree models for documentation module reorganization."""

from __future__ import annotations

from dataclasses import dataclass, field

# Node kinds. Order of KIND_PRIORITY is the presentation order of a container.
KIND_PROJECT = "project"
KIND_MODULE = "module"
KIND_NAMESPACE = "namespace"
KIND_ENUM = "enum"
KIND_ENUM_MEMBER = "enum_member"
KIND_CLASS = "class"
KIND_INTERFACE = "interface"
KIND_TYPE_ALIAS = "type_alias"
KIND_CONSTRUCTOR = "constructor"
KIND_EVENT = "event"
KIND_PROPERTY = "property"
KIND_VARIABLE = "variable"
KIND_FUNCTION = "function"
KIND_ACCESSOR = "accessor"
KIND_METHOD = "method"
KIND_OBJECT_LITERAL = "object_literal"
KIND_REFERENCE = "reference"

KIND_PRIORITY: tuple[str, ...] = (
    KIND_MODULE,
    KIND_NAMESPACE,
    KIND_ENUM,
    KIND_ENUM_MEMBER,
    KIND_CLASS,
    KIND_INTERFACE,
    KIND_TYPE_ALIAS,
    KIND_CONSTRUCTOR,
    KIND_EVENT,
    KIND_PROPERTY,
    KIND_VARIABLE,
    KIND_FUNCTION,
    KIND_ACCESSOR,
    KIND_METHOD,
    KIND_OBJECT_LITERAL,
)

GROUP_TITLES: dict[str, str] = {
    KIND_MODULE: "Modules",
    KIND_NAMESPACE: "Namespaces",
    KIND_ENUM: "Enumerations",
    KIND_ENUM_MEMBER: "Enumeration members",
    KIND_CLASS: "Classes",
    KIND_INTERFACE: "Interfaces",
    KIND_TYPE_ALIAS: "Type aliases",
    KIND_CONSTRUCTOR: "Constructors",
    KIND_EVENT: "Events",
    KIND_PROPERTY: "Properties",
    KIND_VARIABLE: "Variables",
    KIND_FUNCTION: "Functions",
    KIND_ACCESSOR: "Accessors",
    KIND_METHOD: "Methods",
    KIND_OBJECT_LITERAL: "Object literals",
    KIND_REFERENCE: "References",
}

# Comment tags understood by the tag collector (without the leading @)
TAG_MODULE = "module"
TAG_MODULE_DEFINITION = "moduledefinition"

FLAG_EXPORTED = "exported"


@dataclass
class CommentTag:
    """A block tag inside a doc comment, e.g. ``@module Core``."""

    tag_name: str  # lowercase, without "@"
    text: str = ""


@dataclass
class Comment:
    """A parsed doc comment."""

    short_text: str = ""
    text: str = ""
    tags: list[CommentTag] = field(default_factory=list)

    def has_tag(self, tag_name: str) -> bool:
        return any(t.tag_name == tag_name for t in self.tags)

    def get_tag(self, tag_name: str) -> CommentTag | None:
        for t in self.tags:
            if t.tag_name == tag_name:
                return t
        return None

    def remove_tags(self, tag_name: str) -> None:
        self.tags = [t for t in self.tags if t.tag_name != tag_name]

    @property
    def is_empty(self) -> bool:
        return not self.short_text.strip() and not self.text.strip() and not self.tags


# Nodes compare by identity (eq=False): two distinct nodes are never equal,
# even if they carry the same name. Stable ids are compared explicitly.


@dataclass(eq=False)
class Node:
    """Any node of the symbol tree."""

    id: int
    name: str
    kind: str
    parent: Container | None = field(default=None, repr=False)


@dataclass(eq=False)
class Container(Node):
    """A node that can hold children and kind-groups."""

    children: list[Node] | None = field(default=None, repr=False)
    groups: list[KindGroup] | None = field(default=None, repr=False)


@dataclass(eq=False)
class Declaration(Container):
    """A documented symbol: module, class, function, etc."""

    comment: Comment | None = None
    flags: set[str] = field(default_factory=set)


@dataclass(eq=False)
class Reference(Node):
    """Non-owning alias of a declaration (re-export, rename)."""

    target_id: int = -1
    kind: str = KIND_REFERENCE

    def targets(self, node: Node) -> bool:
        return self.target_id == node.id


@dataclass(eq=False)
class KindGroup:
    """Presentation index of a container's children that share one kind."""

    title: str
    kind: str
    children: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class Project(Container):
    """Root of the symbol tree. Owns the id table of every registered node."""

    kind: str = KIND_PROJECT
    nodes: dict[int, Node] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self.nodes[self.id] = self

    # ------------------------------------------------------------------
    # Id table
    # ------------------------------------------------------------------

    def register(self, node: Node) -> None:
        """Add a node to the id table. Ids must be unique within a project."""
        existing = self.nodes.get(node.id)
        if existing is not None and existing is not node:
            raise ValueError(f"duplicate node id {node.id} ('{existing.name}' and '{node.name}')")
        self.nodes[node.id] = node

    def forget(self, node: Node) -> None:
        """Drop a node and all of its descendants from the id table."""
        stack = [node]
        while stack:
            current = stack.pop()
            if self.nodes.get(current.id) is current:
                del self.nodes[current.id]
            if isinstance(current, Container) and current.children:
                stack.extend(current.children)

    def get(self, node_id: int) -> Node | None:
        return self.nodes.get(node_id)

    def resolve(self, ref: Reference) -> Node | None:
        """The declaration a reference points at, if it is still registered."""
        return self.nodes.get(ref.target_id)

    def next_id(self) -> int:
        return max(self.nodes, default=0) + 1

    def create_declaration(
        self,
        name: str,
        kind: str,
        parent: Container | None = None,
    ) -> Declaration:
        """Create and register a new declaration. Does not attach it to *parent*'s children."""
        decl = Declaration(id=self.next_id(), name=name, kind=kind, parent=parent)
        self.register(decl)
        return decl

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def walk(self):
        """Depth-first iteration over every node below the project, in child order."""
        stack: list[Node] = list(reversed(self.children or []))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Container) and node.children:
                stack.extend(reversed(node.children))


@dataclass
class ModuleDefinition:
    """A container carrying ``@moduledefinition``: eligible to become a top-level module."""

    name: str
    comment: Comment
    container: Container  # The container the tag was declared on


@dataclass
class ModuleDeclaration:
    """A declaration carrying ``@module``: must end up inside the named module."""

    module_name: str
    declaration: Declaration
