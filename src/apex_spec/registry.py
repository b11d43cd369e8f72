# registry.py
# Tool registry: the set of tool names a TOOLS block may declare.
#
# The validator never reaches for a global registry; callers pass one in.
# Names under the mcp__ prefix are brokered externally and always trusted.

import logging

logger = logging.getLogger(__name__)

MCP_PREFIX = "mcp__"

VALID_TOOLS: tuple[str, ...] = (
    # Code intelligence
    "code_search",
    "code_edit",
    "code_read",
    "code_write",
    # Vector / embedding
    "vector_search",
    "vector_store",
    "vector_delete",
    # Graph
    "graph_query",
    "graph_store",
    "graph_delete",
    # Long-term memory
    "memory.query",
    "memory.store",
    "memory.delete",
    "memory.consolidate",
    # Shell / system
    "unix_action",
    "bash",
    "shell",
    # Files
    "read_file",
    "write_file",
    "edit_file",
    "glob",
    "grep",
    # Web
    "web_fetch",
    "web_search",
    # Generic
    "mcp_tool",
)


class ToolRegistry:
    """
    A {tool-set, allow-unknown} pair.

    new(), empty() and permissive() are named configurations of the same
    structure; hosts extend or restrict them with add_tool()/add_tools().
    """

    def __init__(self, tools=None, allow_unknown: bool = False) -> None:
        self._tools: set[str] = set(VALID_TOOLS if tools is None else tools)
        self._allow_unknown = allow_unknown

    @classmethod
    def new(cls) -> "ToolRegistry":
        return cls()

    @classmethod
    def empty(cls) -> "ToolRegistry":
        return cls(tools=())

    @classmethod
    def permissive(cls) -> "ToolRegistry":
        return cls(tools=(), allow_unknown=True)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_tool(self, name: str) -> None:
        self._tools.add(name)

    def add_tools(self, names) -> None:
        self._tools.update(names)

    def set_allow_unknown(self, allow: bool) -> None:
        self._allow_unknown = allow

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def tools(self) -> frozenset[str]:
        return frozenset(self._tools)

    @property
    def allow_unknown(self) -> bool:
        return self._allow_unknown

    def is_valid(self, name: str) -> bool:
        if self._allow_unknown:
            return True
        if name in self._tools:
            return True
        return name.startswith(MCP_PREFIX)

    def validate(self, name: str) -> str | None:
        """Return an error message for an unknown tool, None if it is valid."""
        if self.is_valid(name):
            return None
        logger.debug("Registry rejected tool %r", name)
        return f"Unknown tool '{name}' not in registry"

    def __contains__(self, name: str) -> bool:
        return self.is_valid(name)

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={len(self._tools)}, allow_unknown={self._allow_unknown})"


def extract_tool_name(line: str) -> str:
    """
    Tool name from a raw TOOLS line.

    Cut before the first '(', else the first space, else the first '"',
    checked in that order. Bare names come back trimmed.
    """
    trimmed = line.strip()
    for delimiter in ("(", " ", '"'):
        index = trimmed.find(delimiter)
        if index != -1:
            return trimmed[:index].strip()
    return trimmed
