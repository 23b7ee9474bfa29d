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

"""Collect ``@moduledefinition`` and ``@module`` tags from a symbol tree.

Comments are expected to be parsed already (see :func:`parse_comment` for
raw doc-comment bodies). Consumed tags are removed from the comments so
they do not show up in rendered output.
"""

from __future__ import annotations

import logging
import re

from mcp_doc_modules.models import (
    TAG_MODULE,
    TAG_MODULE_DEFINITION,
    Comment,
    CommentTag,
    Declaration,
    ModuleDeclaration,
    ModuleDefinition,
    Project,
)
from mcp_doc_modules.module_converter import ConversionContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Comment parsing
# ---------------------------------------------------------------------------

# Leading "/**", "*" and trailing "*/" decoration of a block comment line
_COMMENT_OPEN_RE = re.compile(r"^\s*/\*\*?\s?")
_COMMENT_CLOSE_RE = re.compile(r"\s*\*/\s*$")
_COMMENT_STAR_RE = re.compile(r"^\s*\*\s?")

# "@tag rest of line"
_TAG_RE = re.compile(r"^@(\w+)\s*(.*)$")


def _strip_decoration(raw: str) -> list[str]:
    lines = raw.splitlines()
    result: list[str] = []
    for idx, line in enumerate(lines):
        if idx == 0:
            line = _COMMENT_OPEN_RE.sub("", line, count=1)
        if idx == len(lines) - 1:
            line = _COMMENT_CLOSE_RE.sub("", line, count=1)
        line = _COMMENT_STAR_RE.sub("", line, count=1)
        result.append(line.rstrip())
    return result


def parse_comment(raw: str) -> Comment:
    """Parse a doc-comment body into short text, body text and block tags.

    The short text is the first paragraph; everything up to the first tag
    line is the body text. A tag's text runs until the next tag line.
    """
    short_lines: list[str] = []
    text_lines: list[str] = []
    tags: list[CommentTag] = []
    in_short = True

    for line in _strip_decoration(raw):
        stripped = line.strip()
        m = _TAG_RE.match(stripped)
        if m:
            tags.append(CommentTag(tag_name=m.group(1).lower(), text=m.group(2)))
            continue
        if tags:
            tags[-1].text = f"{tags[-1].text}\n{line}" if tags[-1].text else stripped
            continue
        if in_short:
            if not stripped:
                if short_lines:
                    in_short = False
                continue
            short_lines.append(stripped)
        else:
            text_lines.append(line)

    for tag in tags:
        tag.text = tag.text.strip()

    return Comment(
        short_text=" ".join(short_lines),
        text="\n".join(text_lines).strip(),
        tags=tags,
    )


def _module_name(tag: CommentTag) -> str:
    """Module name from tag text: first line, surrounding quotes removed."""
    first_line = tag.text.strip().split("\n", 1)[0].strip()
    if len(first_line) >= 2 and first_line[0] == first_line[-1] and first_line[0] in "\"'":
        first_line = first_line[1:-1].strip()
    return first_line


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


def collect_module_tags(project: Project, ctx: ConversionContext | None = None) -> ConversionContext:
    """Walk *project* and record every module definition and declaration.

    Returns the context (a new one bound to *project* unless *ctx* is given)
    ready to be passed to :func:`~mcp_doc_modules.module_converter.organize_modules`.
    """
    if ctx is None:
        ctx = ConversionContext(project=project)

    for node in list(project.walk()):
        if not isinstance(node, Declaration) or node.comment is None:
            continue
        comment = node.comment

        definition_tag = comment.get_tag(TAG_MODULE_DEFINITION)
        if definition_tag is not None:
            comment.remove_tags(TAG_MODULE_DEFINITION)
            name = _module_name(definition_tag)
            if name:
                ctx.add_definition(ModuleDefinition(name=name, comment=comment, container=node))
                logger.debug("@moduledefinition '%s' on '%s' (#%d)", name, node.name, node.id)
            else:
                logger.warning("Ignoring @moduledefinition without a name on '%s'", node.name)

        module_tag = comment.get_tag(TAG_MODULE)
        if module_tag is not None:
            comment.remove_tags(TAG_MODULE)
            name = _module_name(module_tag)
            if name:
                ctx.add_declaration(ModuleDeclaration(module_name=name, declaration=node))
                logger.debug("@module '%s' on '%s' (#%d)", name, node.name, node.id)
            else:
                logger.warning("Ignoring @module without a name on '%s'", node.name)

    logger.info(
        "Collected %d module definitions and %d module declarations",
        len(ctx.definitions),
        len(ctx.declarations),
    )
    return ctx
