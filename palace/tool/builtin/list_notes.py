"""List notes tool."""

import asyncio
from pathlib import Path
from typing import Any

from palace.tool.builtin.vault import VaultTool, handle_vault_errors, mtime_ms, to_json
from palace.tool.registry import error_payload


class ListNotesTool(VaultTool):
    """Lists markdown notes in the vault or one folder, newest first."""

    def __init__(self, vault_root: Path) -> None:
        super().__init__(
            vault_root,
            name="list_notes",
            description=(
                "List markdown notes in the vault or a specific folder. "
                "Returns paths, sizes, and modification times."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "folder": {
                        "type": "string",
                        "description": 'Folder path to list (empty or "/" for root)',
                    },
                    "recursive": {
                        "type": "boolean",
                        "description": "Whether to list recursively (default: false)",
                    },
                    "limit": {
                        "type": "integer",
                        "minimum": 1,
                        "description": "Maximum number of results (default: 50)",
                    },
                },
                "required": [],
            },
        )

    @handle_vault_errors
    async def run(self, folder: str = "", recursive: bool = False, limit: int = 50) -> str:
        folder = folder.strip()
        directory = self.resolve(folder)
        if not directory.is_dir():
            return error_payload(f"Folder not found: {folder}")

        # Listing the root without a folder covers the whole vault
        if not folder.strip("/"):
            recursive = True

        def collect() -> list[dict[str, Any]]:
            notes = self.markdown_files(directory, recursive=recursive)
            entries = [
                {
                    "path": self.relative(note),
                    "name": note.stem,
                    "size": note.stat().st_size,
                    "modified": mtime_ms(note),
                }
                for note in notes
            ]
            entries.sort(key=lambda entry: entry["modified"], reverse=True)
            return entries

        entries = await asyncio.to_thread(collect)
        shown = entries[:limit]
        return to_json({
            "folder": folder or "/",
            "total": len(entries),
            "shown": len(shown),
            "notes": shown,
        })
