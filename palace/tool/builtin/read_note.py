"""Read note tool."""

import asyncio
from pathlib import Path

from palace.tool.builtin.vault import VaultTool, handle_vault_errors, mtime_ms, to_json
from palace.tool.registry import error_payload


class ReadNoteTool(VaultTool):
    def __init__(self, vault_root: Path) -> None:
        super().__init__(
            vault_root,
            name="read_note",
            description=(
                "Read the full content of a note by its path. "
                "Use search_vault first to find the path."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": 'Full path to the note file (e.g. "folder/note.md")',
                    },
                },
                "required": ["path"],
            },
        )

    @handle_vault_errors
    async def run(self, path: str) -> str:
        note = self.resolve(path)
        if not note.is_file():
            return error_payload(f"File not found: {path}")

        content = await asyncio.to_thread(note.read_text, encoding="utf-8", errors="replace")
        return to_json({
            "path": self.relative(note),
            "content": content,
            "size": len(content),
            "modified": mtime_ms(note),
        })
