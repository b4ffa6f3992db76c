"""Write note tool: create, overwrite, or append to a note."""

import asyncio
import os
import tempfile
from pathlib import Path

from palace.tool.builtin.vault import VaultTool, handle_vault_errors, to_json
from palace.tool.registry import error_payload

WRITE_MODES = ("create", "overwrite", "append")


def atomic_write_text(path: Path, content: str) -> None:
    """Write via temp file + rename so a note is never left half-written."""
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class WriteNoteTool(VaultTool):
    def __init__(self, vault_root: Path) -> None:
        super().__init__(
            vault_root,
            name="write_note",
            description="Create a new note or overwrite an existing note in the vault.",
            parameters={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": 'Full path for the note (e.g. "folder/new-note.md")',
                    },
                    "content": {
                        "type": "string",
                        "description": "Markdown content to write",
                    },
                    "mode": {
                        "type": "string",
                        "enum": list(WRITE_MODES),
                        "description": (
                            "Write mode: create (fail if exists), overwrite, "
                            "or append (default: create)"
                        ),
                    },
                },
                "required": ["path", "content"],
            },
        )

    @handle_vault_errors
    async def run(self, path: str, content: str, mode: str = "create") -> str:
        note = self.resolve(path)
        if note == self.root or note.is_dir():
            return error_payload(f"Not a file path: {path}")

        exists = note.exists()
        if mode == "create" and exists:
            return error_payload(
                f'File already exists: {path}. Use mode "overwrite" or "append".'
            )

        def write() -> None:
            note.parent.mkdir(parents=True, exist_ok=True)
            text = content
            if mode == "append" and exists:
                text = note.read_text(encoding="utf-8") + "\n" + content
            atomic_write_text(note, text)

        await asyncio.to_thread(write)
        return to_json({"success": True, "path": self.relative(note), "mode": mode})
