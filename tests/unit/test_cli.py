"""Tests for the command line: argument parsing, logging setup, commands."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from palace.cli.arg_parser import parse_args
from palace.cli.bootstrap import configure_logging
from palace.cli.main import EXIT_ERROR, default_output_path, main
from palace.core.types import CompletionResult
from palace.display import set_console


@pytest.fixture
def palace_logger() -> Iterator[logging.Logger]:
    """Restore the palace logger after configure_logging() rewires it."""
    logger = logging.getLogger("palace")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def console() -> Iterator[Console]:
    recording = Console(record=True, width=120, highlight=False)
    set_console(recording)
    yield recording
    set_console(None)


class FakeProvider:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.closed = False

    async def complete(self, messages: Any, tools: Any = None, **kwargs: Any) -> CompletionResult:
        return CompletionResult(content=f"{self.reply}: {messages[-1].content}")

    async def aclose(self) -> None:
        self.closed = True


class TestArgParser:
    def test_chat_options(self) -> None:
        args = parse_args(["-v", "chat", "hello", "-m", "gpt-4o-mini", "--max-iterations", "3",
                           "--no-stream", "--vault", "/notes"])
        assert args.command == "chat"
        assert args.verbose
        assert args.message == "hello"
        assert args.model == "gpt-4o-mini"
        assert args.max_iterations == 3
        assert args.no_stream
        assert not args.no_tools
        assert args.vault == Path("/notes")

    def test_translate_options(self) -> None:
        args = parse_args(["translate", "essay.md", "--to", "German", "-o", "out.md"])
        assert args.file == Path("essay.md")
        assert args.target_lang == "German"
        assert args.output == Path("out.md")

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])


class TestDefaultOutputPath:
    @pytest.mark.parametrize("lang,expected", [
        ("German", "essay.german.md"),
        ("Simplified Chinese", "essay.simplified-chinese.md"),
        ("  ", "essay.translated.md"),
    ])
    def test_slug(self, lang: str, expected: str) -> None:
        assert default_output_path(Path("docs/essay.md"), lang) == Path("docs") / expected


class TestConfigureLogging:
    def test_console_handler_only(self, palace_logger: logging.Logger) -> None:
        configure_logging("info")
        assert len(palace_logger.handlers) == 1
        assert palace_logger.handlers[0].level == logging.INFO
        assert palace_logger.level == logging.INFO
        assert palace_logger.propagate is False

    def test_file_handler_records_debug(
        self, palace_logger: logging.Logger, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "logs" / "palace.log"
        configure_logging(logging.WARNING, log_file)

        logging.getLogger("palace.test").debug("quiet detail")
        for handler in palace_logger.handlers:
            handler.flush()

        assert len(palace_logger.handlers) == 2
        assert "quiet detail" in log_file.read_text(encoding="utf-8")

    def test_reconfigure_replaces_handlers(self, palace_logger: logging.Logger) -> None:
        configure_logging("DEBUG")
        configure_logging("ERROR")
        assert len(palace_logger.handlers) == 1


class TestMain:
    @pytest.fixture
    def config_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "provider": {"api_key": "k"},
            "translator": {"target_lang": "Dutch"},
        }), encoding="utf-8")
        return path

    def test_translate_writes_output(
        self,
        config_file: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        palace_logger: logging.Logger,
        console: Console,
    ) -> None:
        provider = FakeProvider("NL")
        monkeypatch.setattr("palace.cli.main.create_provider", lambda config, model_id=None: provider)
        source = tmp_path / "note.md"
        source.write_text("Good morning", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_file), "translate", str(source)])

        assert exc_info.value.code == 0
        assert (tmp_path / "note.dutch.md").read_text(encoding="utf-8") == "NL: Good morning"
        assert provider.closed

    def test_missing_source_file(
        self,
        config_file: Path,
        tmp_path: Path,
        palace_logger: logging.Logger,
        console: Console,
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_file), "translate", str(tmp_path / "ghost.md")])

        assert exc_info.value.code == EXIT_ERROR
        assert "Cannot read" in console.export_text()

    def test_config_error_reported(
        self, tmp_path: Path, palace_logger: logging.Logger, console: Console
    ) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text('{"provider": {"colour": "blue"}}', encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(bad), "chat", "hi"])

        assert exc_info.value.code == EXIT_ERROR
        assert "Config validation failed" in console.export_text()
