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

"""MCP server for logical module reorganization of documentation trees.

Loads a JSON symbol tree, collects its ``@moduledefinition`` / ``@module``
tags and exposes the reorganization pass and tree queries as MCP tools.

Usage:
    DOC_TREE_PATH=/path/to/tree.json python -m mcp_doc_modules.server

Environment:
    DOC_TREE_PATH              JSON tree loaded at startup and on reload
    DOC_TREE_OUTPUT            where organize_modules writes its result (optional)
    MCP_DOC_MODULES_LOG_LEVEL  log level of the mcp_doc_modules loggers (default WARNING)
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent
import mcp.types as types

from mcp_doc_modules.models import Project
from mcp_doc_modules.module_converter import ConversionContext, organize_modules
from mcp_doc_modules.query_api import create_tree_query_functions, describe_module_tags
from mcp_doc_modules.tag_collector import collect_module_tags
from mcp_doc_modules.tree_io import dump_project, load_project, load_project_file, save_project_file

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level state
# ---------------------------------------------------------------------------

server = Server("mcp-doc-modules")

_tree_path: str = ""
_project: Project | None = None
_ctx: ConversionContext | None = None
_query_fns: dict | None = None
_organized: bool = False


def _format_result(value: object) -> str:
    """Format a query result as readable text."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, default=str)
    return str(value)


def _configure_logging() -> None:
    level_name = os.environ.get("MCP_DOC_MODULES_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    # stdout carries the MCP protocol, so logs go to stderr
    logging.basicConfig(stream=sys.stderr, level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("mcp_doc_modules").setLevel(level)


def _set_tree(project: Project) -> None:
    """Make *project* the current tree and collect its module tags."""
    global _project, _ctx, _query_fns, _organized

    _project = project
    _ctx = collect_module_tags(project)
    _query_fns = create_tree_query_functions(project)
    _organized = False


def _load_tree() -> None:
    """Load (or reload) the tree named by DOC_TREE_PATH."""
    global _tree_path, _project, _ctx, _query_fns

    _tree_path = os.environ.get("DOC_TREE_PATH", "")
    if not _tree_path:
        print("[mcp-doc-modules] DOC_TREE_PATH not set; waiting for an inline tree", file=sys.stderr)
        _project = None
        _ctx = None
        _query_fns = None
        return

    print(f"[mcp-doc-modules] Loading tree: {_tree_path}", file=sys.stderr)
    _set_tree(load_project_file(_tree_path))
    print(
        f"[mcp-doc-modules] Loaded {len(_project.nodes)} nodes, "
        f"{len(_ctx.definitions)} module definitions, "
        f"{len(_ctx.declarations)} module declarations",
        file=sys.stderr,
    )


def _organize(output_path: str | None) -> dict:
    """Run the reorganization pass on the current tree and report what changed."""
    global _organized

    organize_modules(_ctx)
    _organized = True

    result: dict = {
        "project": _project.name,
        "top_level": [node.name for node in _project.children or ()],
        "synthesized_modules": list(_ctx.synthesized_modules),
    }
    if output_path:
        save_project_file(_project, output_path)
        result["output"] = output_path
    return result


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

TOOLS = [
    Tool(
        name="get_tree_summary",
        description="Overview of the loaded documentation tree: node counts by kind and the top-level listing.",
        inputSchema={
            "type": "object",
            "properties": {},
        },
    ),
    Tool(
        name="list_module_tags",
        description="List the collected @moduledefinition and @module records of the loaded tree.",
        inputSchema={
            "type": "object",
            "properties": {},
        },
    ),
    Tool(
        name="organize_modules",
        description=(
            "Regroup symbols by their @module tags: move tagged symbols into top-level logical modules, "
            "promote untagged symbols, drop emptied file containers and sort the tree."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "tree": {
                    "type": "object",
                    "description": "Inline JSON tree to organize instead of the loaded one. Becomes the current tree.",
                },
                "output_path": {
                    "type": "string",
                    "description": "Write the organized tree here (default: DOC_TREE_OUTPUT, if set).",
                },
            },
        },
    ),
    Tool(
        name="find_declaration",
        description="Find where a declaration currently lives: id, kind and path of container names.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Declaration name (e.g. 'Engine').",
                },
            },
            "required": ["name"],
        },
    ),
    Tool(
        name="get_children",
        description="List the children of a container, reached by a path of names from the root.",
        inputSchema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Container names from the top level down. Omit for the project root.",
                },
            },
        },
    ),
    Tool(
        name="get_tree",
        description="The current tree as JSON.",
        inputSchema={
            "type": "object",
            "properties": {},
        },
    ),
    Tool(
        name="reload",
        description="Reload the tree from DOC_TREE_PATH, discarding any reorganization.",
        inputSchema={
            "type": "object",
            "properties": {},
        },
    ),
]


# ---------------------------------------------------------------------------
# MCP handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def list_tools() -> list[Tool]:
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    arguments = arguments or {}

    try:
        if name == "reload":
            _load_tree()
            if _project is None:
                return [TextContent(type="text", text="Error: DOC_TREE_PATH is not set.")]
            return [TextContent(type="text", text="Tree reloaded successfully.")]

        if name == "organize_modules" and arguments.get("tree") is not None:
            _set_tree(load_project(arguments["tree"]))

        if _project is None or _query_fns is None:
            return [TextContent(type="text", text="Error: no tree loaded. Set DOC_TREE_PATH or pass a tree.")]

        if name == "get_tree_summary":
            result = _query_fns["get_tree_summary"]()

        elif name == "list_module_tags":
            result = describe_module_tags(_ctx)

        elif name == "organize_modules":
            if _organized:
                return [TextContent(type="text", text="Error: tree is already organized. Call reload first.")]
            output_path = arguments.get("output_path") or os.environ.get("DOC_TREE_OUTPUT")
            result = _organize(output_path)

        elif name == "find_declaration":
            result = _query_fns["find_declaration"](arguments["name"])

        elif name == "get_children":
            result = _query_fns["get_children"](arguments.get("path"))

        elif name == "get_tree":
            result = dump_project(_project)

        else:
            return [TextContent(type="text", text=f"Error: unknown tool '{name}'")]

        return [TextContent(type="text", text=_format_result(result))]

    except Exception as e:
        tb = traceback.format_exc()
        print(f"[mcp-doc-modules] Error in {name}: {tb}", file=sys.stderr)
        return [TextContent(type="text", text=f"Error: {e}")]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def main():
    _configure_logging()
    try:
        _load_tree()
    except (OSError, ValueError) as e:
        logger.warning("Could not load %s: %s", _tree_path, e)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main_sync():
    """Synchronous entry point for console_scripts."""
    import asyncio

    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
