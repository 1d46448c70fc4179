"""Character-window chunking for transcript text."""

from __future__ import annotations

import re
from collections.abc import Iterable

from src.ingestion.models import Chunk, Transcript
from src.pipeline_config import PipelineConfig

_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")

# Characters after which a window may end early
_BOUNDARY_CHARS = (".", "?", "!", "\n")

GENERAL_TITLE = "متن عمومی"


def clean_text(text: str | None) -> str:
    """Strip URLs and HTML-like tags, then collapse whitespace to single spaces."""
    if not text:
        return ""
    text = _URL_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()


def _last_boundary(text: str, start: int, end: int) -> int:
    """Index of the last boundary character in ``text[start:end]``, or -1."""
    return max(text.rfind(ch, start, end) for ch in _BOUNDARY_CHARS)


def split_into_chunks(
    text: str,
    max_length: int = 1000,
    overlap: int = 200,
    min_length: int = 50,
) -> list[str]:
    """Split *text* into overlapping windows of at most *max_length* characters.

    A window is shortened to end just after the last sentence-ending mark or
    line break inside it, but only when that boundary lies past the window's
    midpoint. The next window starts *overlap* characters before the previous
    end, always moving forward by at least one character.

    Args:
        text: Text to split (normally already cleaned).
        max_length: Maximum characters per chunk.
        overlap: Characters shared by consecutive windows.
        min_length: Stripped chunks shorter than this are dropped.

    Returns:
        The chunk strings in document order. Text that already fits in one
        window is returned unchanged as the only element.
    """
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")
    if overlap < 0:
        raise ValueError(f"overlap must not be negative, got {overlap}")
    if len(text) <= max_length:
        return [text]

    pieces: list[str] = []
    start = 0
    while start < len(text):
        end = min(start + max_length, len(text))

        if end < len(text):
            boundary = _last_boundary(text, start, end)
            if boundary > start + max_length * 0.5:
                end = boundary + 1

        pieces.append(text[start:end].strip())
        if end >= len(text):
            break

        # overlap >= window length would stall or move backwards
        start = max(end - overlap, start + 1)

    return [p for p in pieces if len(p) >= min_length]


def resolve_title(program_number: int | None, program_titles: dict[int, str]) -> str:
    """Display title for a program, falling back to generic labels."""
    if program_number is None:
        return GENERAL_TITLE
    return program_titles.get(program_number) or f"برنامه {program_number}"


def chunk_transcript(
    transcript: Transcript,
    config: PipelineConfig,
    program_titles: dict[int, str] | None = None,
) -> list[Chunk]:
    """Clean, split and wrap one transcript into :class:`Chunk` records."""
    text = clean_text(transcript.text)
    if not text or len(text) < config.min_transcript_length:
        return []

    pieces = split_into_chunks(
        text,
        max_length=config.chunk_size,
        overlap=config.chunk_overlap,
        min_length=config.min_chunk_length,
    )
    if config.max_chunks_per_transcript > 0:
        pieces = pieces[: config.max_chunks_per_transcript]

    title = resolve_title(transcript.program_number, program_titles or {})
    return [
        Chunk(
            id=f"{config.source}_{transcript.transcript_id}_{idx}",
            text=piece,
            chunk_index=idx,
            program_number=transcript.program_number,
            title=title,
            message_id=transcript.transcript_id,
            date=transcript.date,
            views=transcript.views,
            source=config.source,
        )
        for idx, piece in enumerate(pieces)
    ]


def chunk_transcripts(
    transcripts: Iterable[Transcript],
    config: PipelineConfig | None = None,
    program_titles: dict[int, str] | None = None,
) -> list[Chunk]:
    """Chunk every transcript, preserving input order."""
    config = config or PipelineConfig()
    chunks: list[Chunk] = []
    for transcript in transcripts:
        chunks.extend(chunk_transcript(transcript, config, program_titles))
    return chunks
