"""Built-in note tools operating on a vault directory."""

from palace.tool.builtin.list_notes import ListNotesTool
from palace.tool.builtin.read_note import ReadNoteTool
from palace.tool.builtin.registration import register_builtin_tools
from palace.tool.builtin.search_vault import SearchVaultTool
from palace.tool.builtin.write_note import WriteNoteTool

__all__ = [
    "ListNotesTool",
    "ReadNoteTool",
    "SearchVaultTool",
    "WriteNoteTool",
    "register_builtin_tools",
]
