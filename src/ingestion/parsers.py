"""Parsers for the transcript export and the program/video mapping file."""

from __future__ import annotations

import json
import logging
from typing import Any

from src.ingestion.models import Transcript

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int | None:
    """Coerce ints and digit strings; anything else becomes ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_transcript_record(item: dict[str, Any], index: int) -> Transcript | None:
    """Build a :class:`Transcript` from one exported record.

    Both snake_case and camelCase keys are accepted (``message_id`` /
    ``messageId``, ``program_number`` / ``programNumber``). Records without
    text yield ``None``.
    """
    text = item.get("text")
    if not isinstance(text, str) or not text.strip():
        return None

    message_id = item.get("message_id", item.get("messageId"))
    transcript_id = str(message_id) if message_id is not None else f"msg_{index}"

    return Transcript(
        transcript_id=transcript_id,
        text=text,
        date=item.get("date"),
        program_number=_as_int(item.get("program_number", item.get("programNumber"))),
        views=_as_int(item.get("views")),
        forwards=_as_int(item.get("forwards")),
    )


def parse_transcripts(content: str) -> list[Transcript]:
    """Parse the transcript export.

    Supported formats::

        [{"message_id": 1, "text": "...", "program_number": 12}, ...]

        {"total_transcripts": 2, "transcripts": [{...}, {...}]}

    Raises:
        ValueError: If the content is not JSON or has neither shape.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Transcript file is not valid JSON: {exc}") from exc

    if isinstance(data, dict) and isinstance(data.get("transcripts"), list):
        records = data["transcripts"]
    elif isinstance(data, list):
        records = data
    else:
        keys = list(data.keys()) if isinstance(data, dict) else type(data).__name__
        msg = f"Unrecognized transcripts format. Expected a list or a 'transcripts' key, got: {keys}"
        raise ValueError(msg)

    transcripts: list[Transcript] = []
    for index, item in enumerate(records):
        if not isinstance(item, dict):
            logger.warning("Skipping transcript %d: not an object", index)
            continue
        transcript = parse_transcript_record(item, index)
        if transcript is None:
            logger.debug("Skipping transcript %d: no text", index)
            continue
        transcripts.append(transcript)
    return transcripts


def parse_program_titles(content: str) -> dict[int, str]:
    """Extract ``program_number -> title`` from the video mapping export.

    Expected shape::

        {"data": {"mapped": [{"program_number": 12, "video": {"title": "..."}}]}}

    Entries without a video title get the generic ``برنامه {n}`` label.
    """
    data = json.loads(content)
    inner = data.get("data") if isinstance(data, dict) else None
    mapped = inner.get("mapped") or [] if isinstance(inner, dict) else []

    titles: dict[int, str] = {}
    for entry in mapped:
        if not isinstance(entry, dict):
            continue
        number = _as_int(entry.get("program_number"))
        if number is None:
            continue
        video = entry.get("video") or {}
        title = video.get("title") if isinstance(video, dict) else None
        titles[number] = title or f"برنامه {number}"
    return titles
