"""Entry point for the palace command line.

Commands:
    palace chat "What did I write about sourdough?"
    palace translate notes/essay.md --to German
"""

from __future__ import annotations

import argparse
import asyncio
import re
import signal
from pathlib import Path

from dotenv import load_dotenv
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from palace.agent import AgentRunner
from palace.cli.arg_parser import parse_args
from palace.cli.bootstrap import configure_logging
from palace.config import Config, load_config
from palace.core.cancel import CancellationToken
from palace.core.errors import PalaceError
from palace.core.types import Delta, Message, Role
from palace.core.utils import truncate
from palace.display import get_console
from palace.provider import create_provider
from palace.tool import ToolRegistry
from palace.tool.builtin import register_builtin_tools
from palace.translator import Translator

EXIT_ERROR = 1
EXIT_CANCELLED = 130  # 128 + SIGINT


def _install_interrupt(token: CancellationToken) -> None:
    """Route Ctrl-C to the token instead of killing the event loop."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handler support
        pass


def _remove_interrupt() -> None:
    try:
        asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
    except (NotImplementedError, RuntimeError):
        pass


async def cmd_chat(args: argparse.Namespace, config: Config) -> int:
    console = get_console()

    agent_config = config.agent
    updates: dict[str, object] = {}
    if args.max_iterations is not None:
        updates["max_iterations"] = max(1, args.max_iterations)
    if args.no_stream:
        updates["stream"] = False
    if updates:
        agent_config = agent_config.model_copy(update=updates)

    registry = ToolRegistry()
    vault_root = args.vault or Path(config.vault.root)
    if config.vault.enabled and not args.no_tools:
        register_builtin_tools(registry, vault_root)

    def on_delta(delta: Delta) -> None:
        if delta.content:
            console.print(delta.content, end="", markup=False, soft_wrap=True)

    def on_tool_call(name: str, call_id: str) -> None:
        console.print(f"\n[dim]→ {escape(name)}[/]")

    def on_tool_result(name: str, call_id: str, result: str) -> None:
        console.print(f"[dim]  {escape(truncate(result.replace(chr(10), ' '), 120))}[/]")

    provider = create_provider(config.provider, model_id=args.model)
    runner = AgentRunner(
        provider,
        registry,
        agent_config,
        on_delta=on_delta,
        on_tool_call=on_tool_call,
        on_tool_result=on_tool_result,
    )

    token = CancellationToken()
    _install_interrupt(token)
    try:
        result = await runner.run([Message(Role.USER, args.message)], cancel_token=token)
    except asyncio.CancelledError:
        console.print("\n[yellow]Cancelled[/]")
        return EXIT_CANCELLED
    finally:
        _remove_interrupt()
        await provider.aclose()

    console.print()
    if result.halted_at_iteration_limit:
        console.print(
            f"[yellow]Stopped after {result.iterations} iterations without a final answer.[/]"
        )
        console.print(result.text, markup=False)
    return 0


def default_output_path(source: Path, target_lang: str) -> Path:
    """`essay.md` translated to "Simplified Chinese" -> `essay.simplified-chinese.md`."""
    slug = re.sub(r"[^\w]+", "-", target_lang.strip().lower()).strip("-") or "translated"
    return source.with_name(f"{source.stem}.{slug}.md")


async def cmd_translate(args: argparse.Namespace, config: Config) -> int:
    console = get_console()

    translator_config = config.translator
    if args.target_lang:
        translator_config = translator_config.model_copy(update={"target_lang": args.target_lang})

    try:
        source = args.file.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Cannot read {escape(str(args.file))}: {escape(str(e))}[/]")
        return EXIT_ERROR

    output = args.output or default_output_path(args.file, translator_config.target_lang)
    provider = create_provider(config.provider, model_id=args.model)
    translator = Translator(provider, translator_config)

    token = CancellationToken()
    _install_interrupt(token)
    try:
        with Progress(
            TextColumn("[bold]Translating"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        ) as progress:
            task_id = progress.add_task("translate", total=None)

            def on_progress(current: int, total: int) -> None:
                progress.update(task_id, completed=current - 1, total=total)

            translated = await translator.translate_document(
                source, on_progress=on_progress, cancel_token=token
            )
    except asyncio.CancelledError:
        console.print("[yellow]Cancelled[/]")
        return EXIT_CANCELLED
    finally:
        _remove_interrupt()
        await provider.aclose()

    output.write_text(translated, encoding="utf-8")
    console.print(f"[green]Wrote {escape(str(output))}[/]")
    return 0


async def run_command(args: argparse.Namespace, config: Config) -> int:
    if args.command == "chat":
        return await cmd_chat(args, config)
    if args.command == "translate":
        return await cmd_translate(args, config)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the palace CLI."""
    # Load .env file if present
    load_dotenv()

    args = parse_args(argv)
    console = get_console()

    try:
        config = load_config(args.config)
        log_file = Path(config.logging.file) if config.logging.file else None
        configure_logging("DEBUG" if args.verbose else config.logging.level, log_file)
        exit_code = asyncio.run(run_command(args, config))
    except PalaceError as e:
        console.print(f"[red]Error:[/] {escape(e.message)}")
        exit_code = EXIT_ERROR
    except KeyboardInterrupt:
        exit_code = EXIT_CANCELLED

    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
