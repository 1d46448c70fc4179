"""Claude-powered answer generation, context assembly and templated fallbacks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from anthropic import Anthropic, AnthropicError
from anthropic.types import TextBlock

from src.config import settings
from src.ingestion.models import Chunk
from src.retrieval.search import ScoredChunk

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"
TRUNCATION_MARKER = "..."
ALLOWED_HISTORY_ROLES = {"user", "assistant"}

SYSTEM_PROMPT_TEMPLATE = """شما دستیار هوشمند "گنج حضور" هستید که توسط پرویز شهبازی اجرا می‌شود. وظیفه شما کمک به کاربران در یافتن و درک محتوای برنامه‌های معنوی و عرفانی است.

از اطلاعات زیر برای پاسخ دادن به سوال کاربر استفاده کنید. اگر پاسخ در متن زیر نیست، صادقانه بگویید که نمی‌دانید و پیشنهاد دهید کاربر جستجوی دیگری انجام دهد.

همیشه منابع خود را ذکر کنید (شماره برنامه).

متن مرجع:
{context}"""

EMPTY_COMPLETION_MESSAGE = "متاسفانه نتوانستم پاسخی تولید کنم."
NO_RESULTS_MESSAGE = (
    "متاسفانه اطلاعات مرتبطی پیدا نکردم. لطفاً سوال خود را به شکل دیگری مطرح کنید "
    "یا از شماره برنامه خاصی بپرسید."
)
NO_PROGRAM_MESSAGE = (
    "اطلاعات مرتبطی پیدا کردم اما نمی‌توانم پاسخ دقیقی بدهم. لطفاً سوال خود را واضح‌تر مطرح کنید."
)
MAX_FALLBACK_PROGRAMS = 3


@dataclass(frozen=True)
class GenerationSuccess:
    text: str
    model: str | None = None


@dataclass(frozen=True)
class GenerationFailure:
    reason: str


GenerationResult = GenerationSuccess | GenerationFailure


def program_label(chunk: Chunk) -> str:
    """Bracketed reference shown before each chunk in the context."""
    if chunk.program_number:
        title = chunk.title or f"برنامه {chunk.program_number}"
        return f"[برنامه #{chunk.program_number}: {title}]"
    return "[متن عمومی]"


def build_context(chunks: Sequence[Chunk], max_chars: int = 3000) -> str:
    """Concatenate labelled chunks, cutting the result at *max_chars*."""
    if not chunks:
        return ""
    context = CONTEXT_SEPARATOR.join(f"{program_label(c)}\n{c.text}" for c in chunks)
    if len(context) > max_chars:
        context = context[:max_chars] + TRUNCATION_MARKER
    return context


def collect_sources(hits: Sequence[ScoredChunk]) -> list[dict[str, Any]]:
    """One source per program number, first (best) hit wins."""
    sources: dict[int, dict[str, Any]] = {}
    for hit in hits:
        number = hit.chunk.program_number
        if not number or number in sources:
            continue
        sources[number] = {
            "program_number": number,
            "title": hit.chunk.title,
            "score": round(hit.score, 6),
        }
    return list(sources.values())


def fallback_response(chunks: Sequence[Chunk]) -> str:
    """Templated answer used when generation is unavailable or fails."""
    if not chunks:
        return NO_RESULTS_MESSAGE

    program_numbers: list[int] = []
    for chunk in chunks:
        if chunk.program_number and chunk.program_number not in program_numbers:
            program_numbers.append(chunk.program_number)

    if not program_numbers:
        return NO_PROGRAM_MESSAGE

    listed = "، ".join(str(n) for n in program_numbers[:MAX_FALLBACK_PROGRAMS])
    remaining = len(program_numbers) - MAX_FALLBACK_PROGRAMS
    more = f"و {remaining} برنامه دیگر." if remaining > 0 else ""
    return (
        f"بر اساس جستجوی شما، اطلاعات مرتبطی در برنامه‌های {listed} پیدا کردم. {more}"
        "\n\nبرای مشاهده متن کامل، می‌توانید به صفحات این برنامه‌ها مراجعه کنید."
    )


def recent_history(
    history: Sequence[dict[str, Any]] | None, max_turns: int = 3
) -> list[dict[str, str]]:
    """The last *max_turns* usable turns, shaped for the Messages API.

    Turns without a role or content, or with a role other than user/assistant,
    are dropped. A leading assistant turn is dropped too, since the
    conversation must open with the user.
    """
    if not history or max_turns <= 0:
        return []
    turns = [
        {"role": str(t["role"]), "content": str(t["content"])}
        for t in history[-max_turns:]
        if t.get("role") in ALLOWED_HISTORY_ROLES and t.get("content")
    ]
    while turns and turns[0]["role"] != "user":
        turns.pop(0)
    return turns


def generate_answer(
    message: str,
    context: str,
    history: Sequence[dict[str, Any]] | None = None,
    client: Anthropic | None = None,
) -> GenerationResult:
    """Answer *message* with Claude, grounded in *context*.

    Args:
        message: The user's question.
        context: Output of :func:`build_context`.
        history: Earlier ``{"role", "content"}`` turns; only the most recent
            ``settings.history_turns`` are sent.
        client: Anthropic client (a new one is built from settings if omitted).

    Returns:
        :class:`GenerationSuccess` with the answer text, or
        :class:`GenerationFailure` if the provider call failed.
    """
    messages = recent_history(history, settings.history_turns)
    messages.append({"role": "user", "content": message})

    client = client or Anthropic(api_key=settings.anthropic_api_key)
    try:
        response = client.messages.create(
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            system=SYSTEM_PROMPT_TEMPLATE.format(context=context),
            messages=messages,  # type: ignore[arg-type]
        )
    except AnthropicError as exc:
        logger.warning("Generation provider error: %s", exc)
        return GenerationFailure(reason=str(exc) or type(exc).__name__)

    # We always request plain text, so the first block should be a TextBlock
    block = response.content[0] if response.content else None
    if block is not None and not isinstance(block, TextBlock):
        return GenerationFailure(reason=f"Expected TextBlock from Claude, got {type(block).__name__}")

    text = block.text.strip() if block is not None else ""
    return GenerationSuccess(text=text or EMPTY_COMPLETION_MESSAGE, model=response.model)
