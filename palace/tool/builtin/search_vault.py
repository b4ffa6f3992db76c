"""Search vault tool: case-insensitive keyword search over note names and bodies."""

import asyncio
from pathlib import Path

from palace.tool.builtin.vault import VaultTool, handle_vault_errors, to_json

# Characters of context on each side of a content match
SNIPPET_CONTEXT = 80
# Length of the leading excerpt used when only the file name matched
PREVIEW_LENGTH = 160


def make_snippet(content: str, match_at: int, match_length: int) -> str:
    """Excerpt around a match, newlines flattened, "..." marking truncation.

    A negative match_at means no content match; the note's opening is used.
    """
    if match_at < 0:
        snippet = content[:PREVIEW_LENGTH].replace("\n", " ").strip()
        if len(content) > PREVIEW_LENGTH:
            snippet += "..."
        return snippet

    start = max(0, match_at - SNIPPET_CONTEXT)
    end = min(len(content), match_at + match_length + SNIPPET_CONTEXT)
    snippet = content[start:end].replace("\n", " ").strip()
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet += "..."
    return snippet


class SearchVaultTool(VaultTool):
    def __init__(self, vault_root: Path) -> None:
        super().__init__(
            vault_root,
            name="search_vault",
            description=(
                "Search for notes in the vault by keyword. "
                "Returns matching file paths and content snippets."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "minLength": 1,
                        "description": "Search keyword or phrase",
                    },
                    "limit": {
                        "type": "integer",
                        "minimum": 1,
                        "description": "Maximum number of results (default: 10)",
                    },
                },
                "required": ["query"],
            },
        )

    @handle_vault_errors
    async def run(self, query: str, limit: int = 10) -> str:
        needle = query.lower()

        def search() -> list[dict[str, str]]:
            results: list[dict[str, str]] = []
            for note in sorted(self.markdown_files()):
                if len(results) >= limit:
                    break
                content = note.read_text(encoding="utf-8", errors="replace")
                match_at = content.lower().find(needle)
                if match_at < 0 and needle not in note.stem.lower():
                    continue
                results.append({
                    "path": self.relative(note),
                    "snippet": make_snippet(content, match_at, len(needle)),
                })
            return results

        results = await asyncio.to_thread(search)
        if not results:
            return to_json({"message": f'No notes found matching "{query}"', "results": []})
        return to_json({"results": results})
