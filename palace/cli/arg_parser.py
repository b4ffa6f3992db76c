"""Argument parsing for the palace CLI."""

import argparse
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="palace",
        description="Tool-calling chat agent for your notes, over any OpenAI-compatible API",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file to use instead of ~/.palace and ./.palace layering",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging on stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # chat - one agent run
    chat_parser = subparsers.add_parser(
        "chat",
        help="Ask the agent a question",
        description="Run the agent once, streaming its answer and tool activity.",
    )
    chat_parser.add_argument("message", help="The question or instruction")
    chat_parser.add_argument("--model", "-m", help="Model ID (overrides provider.model)")
    chat_parser.add_argument(
        "--max-iterations",
        type=int,
        dest="max_iterations",
        help="Maximum model round-trips (overrides agent.max_iterations)",
    )
    chat_parser.add_argument(
        "--no-stream",
        action="store_true",
        dest="no_stream",
        help="Request whole responses instead of streaming",
    )
    chat_parser.add_argument(
        "--no-tools",
        action="store_true",
        dest="no_tools",
        help="Offer no tools to the model",
    )
    chat_parser.add_argument("--vault", type=Path, help="Notes directory (overrides vault.root)")

    # translate - document translation
    translate_parser = subparsers.add_parser(
        "translate",
        help="Translate a markdown file",
        description="Translate a markdown file chunk by chunk, preserving formatting.",
    )
    translate_parser.add_argument("file", type=Path, help="Markdown file to translate")
    translate_parser.add_argument(
        "--to",
        dest="target_lang",
        help="Target language (overrides translator.target_lang)",
    )
    translate_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output path (default: <name>.<lang>.md next to the input)",
    )
    translate_parser.add_argument("--model", "-m", help="Model ID (overrides provider.model)")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)
