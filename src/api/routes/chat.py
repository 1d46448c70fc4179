"""Chat endpoint: answer questions from the transcript archive."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_chat_service
from src.api.models import ChatRequest, ChatResponse, SourceRef
from src.retrieval.chat import ChatService, MessageValidationError

router = APIRouter()


@router.post("/api/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    service: Annotated[ChatService, Depends(get_chat_service)],
) -> ChatResponse:
    """Answer a message using the archive.

    Empty or over-long messages get a 400 before any embedding or search.
    Provider outages never fail the request: search falls back to keyword
    matching and the answer to a template listing matching programs.
    """
    history = [turn.model_dump() for turn in request.history or []]
    try:
        answer = service.answer(request.message, history)
    except MessageValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return ChatResponse(
        response=answer.response,
        sources=[SourceRef(**source) for source in answer.sources],
    )
