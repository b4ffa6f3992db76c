"""Markdown document translation.

Long documents are split into chunks on paragraph boundaries, translated one
request at a time, and joined back together. Each chunk is a single
non-streaming completion with no tools.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING

from palace.core.errors import ProviderError, TranslationError
from palace.core.types import Message, Role

if TYPE_CHECKING:
    from palace.config.schema import TranslatorConfig
    from palace.core.cancel import CancellationToken
    from palace.core.interfaces import AsyncProvider

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]  # (current, total)

DEFAULT_SYSTEM_PROMPT = """\
You are a professional translator. Translate the following content to {target_lang}.

Rules:
1. Preserve all Markdown formatting, including headings, lists, links, images, code blocks, and inline code.
2. Do not translate content inside code blocks (``` or `).
3. Do not translate URLs, file paths, or variable names.
4. Keep the original paragraph structure.
5. Only output the translated content, do not add explanations or notes."""

_PARAGRAPH_BREAK = re.compile(r"\n\n+")


def split_into_chunks(content: str, max_chunk_size: int) -> list[str]:
    """Split a document into chunks of at most max_chunk_size characters.

    Paragraphs are packed greedily, joined by a blank line. A paragraph that
    is longer than the limit on its own is split on line breaks instead; a
    single line longer than the limit becomes an oversized chunk rather than
    being cut mid-line.
    """
    if len(content) <= max_chunk_size:
        return [content]

    chunks: list[str] = []
    current = ""

    def flush() -> None:
        nonlocal current
        if current.strip():
            chunks.append(current.strip())
        current = ""

    for paragraph in _PARAGRAPH_BREAK.split(content):
        if len(paragraph) > max_chunk_size:
            flush()
            for line in paragraph.split("\n"):
                if current.strip() and len(current) + 1 + len(line) > max_chunk_size:
                    flush()
                    current = line
                else:
                    current = f"{current}\n{line}" if current else line
            continue

        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) > max_chunk_size and current.strip():
            flush()
            current = paragraph
        else:
            current = candidate

    flush()
    return chunks


class Translator:
    """Translates markdown documents through a chat-completion provider.

    Example:
        translator = Translator(provider, config.translator)
        text = await translator.translate_document(source, on_progress=show)
    """

    def __init__(self, provider: AsyncProvider, config: TranslatorConfig) -> None:
        self._provider = provider
        self._config = config

    @property
    def system_prompt(self) -> str:
        template = self._config.system_prompt or DEFAULT_SYSTEM_PROMPT
        return template.replace("{target_lang}", self._config.target_lang)

    def split(self, content: str) -> list[str]:
        return split_into_chunks(content, self._config.max_chunk_size)

    async def translate_chunk(
        self,
        text: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Translate one chunk.

        Raises:
            ProviderError: If the request fails or the reply has no content.
        """
        messages = [
            Message(Role.SYSTEM, self.system_prompt),
            Message(Role.USER, text),
        ]
        result = await self._provider.complete(
            messages,
            temperature=self._config.temperature,
            cancel_token=cancel_token,
        )
        if not result.content:
            raise ProviderError("API returned an empty translation")
        return result.content

    async def translate_document(
        self,
        content: str,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Translate a whole document, chunk by chunk, in order.

        Args:
            content: Markdown source.
            on_progress: Called with (current, total) before each chunk.
            cancel_token: Checked before each chunk and passed to the provider.

        Raises:
            TranslationError: If any chunk fails; names the chunk.
            asyncio.CancelledError: If cancel_token is cancelled.
        """
        chunks = self.split(content)
        total = len(chunks)
        logger.debug("Translating %d chars in %d chunk(s) to %s",
                     len(content), total, self._config.target_lang)

        translated: list[str] = []
        for number, chunk in enumerate(chunks, start=1):
            if cancel_token:
                cancel_token.raise_if_cancelled()
            if on_progress:
                on_progress(number, total)
            try:
                translated.append(await self.translate_chunk(chunk, cancel_token))
            except ProviderError as e:
                raise TranslationError(number, total, e.message) from e

        return "\n\n".join(translated)
