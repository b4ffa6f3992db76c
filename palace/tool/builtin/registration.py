"""Registration helpers for built-in tools."""

from pathlib import Path

from palace.tool.builtin.list_notes import ListNotesTool
from palace.tool.builtin.read_note import ReadNoteTool
from palace.tool.builtin.search_vault import SearchVaultTool
from palace.tool.builtin.write_note import WriteNoteTool
from palace.tool.registry import ToolRegistry


def register_builtin_tools(registry: ToolRegistry, vault_root: Path | str) -> None:
    """Register the note tools for a vault.

    Example:
        registry = ToolRegistry()
        register_builtin_tools(registry, Path("~/notes").expanduser())
    """
    root = Path(vault_root)

    # Read-only
    registry.register(SearchVaultTool(root))
    registry.register(ReadNoteTool(root))
    registry.register(ListNotesTool(root))

    # Destructive
    registry.register(WriteNoteTool(root))
