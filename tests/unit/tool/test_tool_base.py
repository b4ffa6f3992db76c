"""Tests for BaseTool argument validation and FunctionTool adaptation."""

from typing import Any

import pytest

from palace.tool import BaseTool, FunctionTool, Tool, ToolArgumentError


class RecordingTool(BaseTool):
    def __init__(self) -> None:
        super().__init__(
            name="record",
            description="Record the arguments it receives",
            parameters={
                "type": "object",
                "properties": {
                    "path": {"type": "string"},
                    "limit": {"type": "integer", "minimum": 1},
                    "mode": {"type": "string", "enum": ["a", "b"]},
                },
                "required": ["path"],
            },
        )
        self.received: dict[str, Any] | None = None

    async def run(self, **kwargs: Any) -> str:
        self.received = kwargs
        return "ok"


class TestValidation:
    @pytest.mark.asyncio
    async def test_valid_arguments_pass_through(self) -> None:
        tool = RecordingTool()
        assert await tool.execute({"path": "a.md", "limit": 3}) == "ok"
        assert tool.received == {"path": "a.md", "limit": 3}

    @pytest.mark.asyncio
    async def test_missing_required(self) -> None:
        with pytest.raises(ToolArgumentError, match="'path' is a required property"):
            await RecordingTool().execute({})

    @pytest.mark.asyncio
    async def test_wrong_type_names_parameter(self) -> None:
        with pytest.raises(ToolArgumentError, match="Parameter 'limit' has wrong type"):
            await RecordingTool().execute({"path": "a", "limit": "ten"})

    @pytest.mark.asyncio
    async def test_enum_violation(self) -> None:
        with pytest.raises(ToolArgumentError, match="must be one of"):
            await RecordingTool().execute({"path": "a", "mode": "c"})

    @pytest.mark.asyncio
    async def test_unknown_keys_dropped_with_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        tool = RecordingTool()
        with caplog.at_level("WARNING", logger="palace.tool.base"):
            await tool.execute({"path": "a", "invented": True})

        assert tool.received == {"path": "a"}
        assert "invented" in caplog.text

    def test_error_carries_tool_name(self) -> None:
        with pytest.raises(ToolArgumentError) as exc_info:
            RecordingTool().validate_arguments({"limit": 0})
        assert exc_info.value.tool_name == "record"
        assert exc_info.value.message.startswith("record:")


class TestFunctionTool:
    @pytest.mark.asyncio
    async def test_async_function(self) -> None:
        async def shout(text: str) -> str:
            return text.upper()

        tool = FunctionTool(
            "shout", "Uppercase text",
            {"type": "object", "properties": {"text": {"type": "string"}}},
            shout,
        )
        assert await tool.execute({"text": "hi"}) == "HI"

    @pytest.mark.asyncio
    async def test_non_string_result_is_stringified(self) -> None:
        tool = FunctionTool("count", "Count", {"type": "object", "properties": {}}, lambda: 3)
        assert await tool.execute({}) == "3"

    def test_satisfies_tool_protocol(self) -> None:
        tool = FunctionTool("noop", "Nothing", {"type": "object"}, lambda: "")
        assert isinstance(tool, Tool)
        assert isinstance(RecordingTool(), Tool)
