"""Tests for the built-in note tools over a temporary vault."""

import json
import os
from pathlib import Path

import pytest

from palace.tool import ToolRegistry
from palace.tool.builtin import (
    ListNotesTool,
    ReadNoteTool,
    SearchVaultTool,
    WriteNoteTool,
    register_builtin_tools,
)
from palace.tool.builtin.search_vault import make_snippet


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    (tmp_path / "projects").mkdir()
    (tmp_path / ".obsidian").mkdir()

    notes = {
        "inbox.md": "Buy flour.\nCall the plumber.",
        "projects/rust.md": "# Rust\n\nOwnership and borrowing notes.",
        "projects/garden.md": "Tomatoes need sun.",
        "projects/readme.txt": "not a note",
        ".obsidian/workspace.md": "hidden config",
    }
    for mtime, (rel, text) in enumerate(notes.items(), start=1):
        path = tmp_path / rel
        path.write_text(text, encoding="utf-8")
        os.utime(path, (mtime * 1000, mtime * 1000))
    return tmp_path


def _json(text: str) -> dict:
    return json.loads(text)


class TestListNotes:
    @pytest.mark.asyncio
    async def test_root_lists_whole_vault_newest_first(self, vault: Path) -> None:
        result = _json(await ListNotesTool(vault).execute({}))

        assert result["folder"] == "/"
        assert result["total"] == 3
        assert [n["path"] for n in result["notes"]] == [
            "projects/garden.md",
            "projects/rust.md",
            "inbox.md",
        ]
        assert result["notes"][0]["name"] == "garden"
        assert result["notes"][0]["modified"] == 3_000_000

    @pytest.mark.asyncio
    async def test_folder_non_recursive(self, vault: Path) -> None:
        result = _json(await ListNotesTool(vault).execute({"folder": "projects"}))
        assert result["folder"] == "projects"
        assert {n["name"] for n in result["notes"]} == {"rust", "garden"}

    @pytest.mark.asyncio
    async def test_limit(self, vault: Path) -> None:
        result = _json(await ListNotesTool(vault).execute({"limit": 1}))
        assert result["total"] == 3
        assert result["shown"] == 1

    @pytest.mark.asyncio
    async def test_missing_folder(self, vault: Path) -> None:
        result = _json(await ListNotesTool(vault).execute({"folder": "nope"}))
        assert result == {"error": "Folder not found: nope"}


class TestReadNote:
    @pytest.mark.asyncio
    async def test_read(self, vault: Path) -> None:
        result = _json(await ReadNoteTool(vault).execute({"path": "projects/rust.md"}))
        assert result["path"] == "projects/rust.md"
        assert result["content"].startswith("# Rust")
        assert result["size"] == len(result["content"])

    @pytest.mark.asyncio
    async def test_missing_file(self, vault: Path) -> None:
        result = _json(await ReadNoteTool(vault).execute({"path": "ghost.md"}))
        assert result == {"error": "File not found: ghost.md"}

    @pytest.mark.asyncio
    async def test_path_escape_is_rejected(self, vault: Path) -> None:
        result = _json(await ReadNoteTool(vault).execute({"path": "../../etc/passwd"}))
        assert "outside the vault" in result["error"]

    @pytest.mark.asyncio
    async def test_leading_slash_is_vault_relative(self, vault: Path) -> None:
        result = _json(await ReadNoteTool(vault).execute({"path": "/inbox.md"}))
        assert result["path"] == "inbox.md"


class TestSearchVault:
    @pytest.mark.asyncio
    async def test_content_match_is_case_insensitive(self, vault: Path) -> None:
        result = _json(await SearchVaultTool(vault).execute({"query": "OWNERSHIP"}))
        assert [r["path"] for r in result["results"]] == ["projects/rust.md"]
        assert "Ownership" in result["results"][0]["snippet"]

    @pytest.mark.asyncio
    async def test_name_match(self, vault: Path) -> None:
        result = _json(await SearchVaultTool(vault).execute({"query": "garden"}))
        assert result["results"][0]["snippet"] == "Tomatoes need sun."

    @pytest.mark.asyncio
    async def test_hidden_notes_are_skipped(self, vault: Path) -> None:
        result = _json(await SearchVaultTool(vault).execute({"query": "hidden config"}))
        assert result == {"message": 'No notes found matching "hidden config"', "results": []}

    @pytest.mark.asyncio
    async def test_limit(self, vault: Path) -> None:
        result = _json(await SearchVaultTool(vault).execute({"query": "e", "limit": 2}))
        assert len(result["results"]) == 2

    def test_snippet_markers(self) -> None:
        content = "a" * 100 + "NEEDLE" + "b" * 100
        snippet = make_snippet(content, 100, len("needle"))
        assert snippet.startswith("...")
        assert snippet.endswith("...")
        assert "NEEDLE" in snippet
        assert len(snippet) == 3 + 80 + 6 + 80 + 3

    def test_snippet_flattens_newlines(self) -> None:
        assert make_snippet("line one\nline two", 0, 4) == "line one line two"


class TestWriteNote:
    @pytest.mark.asyncio
    async def test_create_with_parent_dirs(self, vault: Path) -> None:
        tool = WriteNoteTool(vault)
        result = _json(await tool.execute({"path": "new/deep/idea.md", "content": "hi"}))

        assert result == {"success": True, "path": "new/deep/idea.md", "mode": "create"}
        assert (vault / "new/deep/idea.md").read_text(encoding="utf-8") == "hi"

    @pytest.mark.asyncio
    async def test_create_refuses_existing(self, vault: Path) -> None:
        result = _json(await WriteNoteTool(vault).execute({"path": "inbox.md", "content": "x"}))
        assert "already exists" in result["error"]
        assert (vault / "inbox.md").read_text(encoding="utf-8").startswith("Buy flour")

    @pytest.mark.asyncio
    async def test_overwrite(self, vault: Path) -> None:
        await WriteNoteTool(vault).execute(
            {"path": "inbox.md", "content": "fresh", "mode": "overwrite"}
        )
        assert (vault / "inbox.md").read_text(encoding="utf-8") == "fresh"

    @pytest.mark.asyncio
    async def test_append_joins_with_newline(self, vault: Path) -> None:
        await WriteNoteTool(vault).execute(
            {"path": "projects/garden.md", "content": "Water daily.", "mode": "append"}
        )
        text = (vault / "projects/garden.md").read_text(encoding="utf-8")
        assert text == "Tomatoes need sun.\nWater daily."

    @pytest.mark.asyncio
    async def test_escape_is_rejected(self, vault: Path) -> None:
        result = _json(await WriteNoteTool(vault).execute({"path": "../evil.md", "content": "x"}))
        assert "error" in result
        assert not (vault.parent / "evil.md").exists()

    @pytest.mark.asyncio
    async def test_invalid_mode_rejected_by_schema(self, vault: Path) -> None:
        registry = ToolRegistry()
        registry.register(WriteNoteTool(vault))
        result = _json(await registry.execute(
            "write_note", {"path": "x.md", "content": "x", "mode": "delete"}
        ))
        assert "must be one of" in result["error"]


class TestRegistration:
    def test_registers_all_note_tools(self, vault: Path) -> None:
        registry = ToolRegistry()
        register_builtin_tools(registry, vault)
        assert sorted(registry.names) == ["list_notes", "read_note", "search_vault", "write_note"]
