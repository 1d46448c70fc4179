"""Tests for API endpoints (fixture stores, no external API keys required)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from src.api import main as main_module
from src.api.dependencies import get_search_engine
from src.api.main import GENERIC_ERROR, app
from src.ingestion.embeddings import EmbeddingSuccess
from src.retrieval.chat import EMPTY_MESSAGE_ERROR, MESSAGE_TOO_LONG_ERROR
from src.retrieval.generation import NO_RESULTS_MESSAGE, GenerationSuccess


def test_health(api_client):
    client = api_client(None)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestChatEndpoint:
    def test_malformed_body_is_422(self, api_client) -> None:
        client = api_client(None)
        assert client.post("/api/chat", json=["not", "an", "object"]).status_code == 422

    def test_missing_or_null_message_is_400(
        self, api_client, sample_chunks, make_document
    ) -> None:
        embedder = MagicMock()
        client = api_client(make_document(sample_chunks), embedder=embedder)

        for body in ({}, {"message": None}):
            response = client.post("/api/chat", json=body)
            assert response.status_code == 400
            assert response.json()["detail"] == EMPTY_MESSAGE_ERROR

        embedder.assert_not_called()

    def test_empty_message_is_400(self, api_client, sample_chunks, make_document) -> None:
        embedder = MagicMock()
        client = api_client(make_document(sample_chunks), embedder=embedder)

        response = client.post("/api/chat", json={"message": "   "})

        assert response.status_code == 400
        assert response.json()["detail"] == EMPTY_MESSAGE_ERROR
        embedder.assert_not_called()

    def test_long_message_is_400(self, api_client, sample_chunks, make_document) -> None:
        client = api_client(make_document(sample_chunks))
        response = client.post("/api/chat", json={"message": "ب" * 600})
        assert response.status_code == 400
        assert response.json()["detail"] == MESSAGE_TOO_LONG_ERROR

    def test_templated_answer_with_sources(self, api_client, sample_chunks, make_document) -> None:
        client = api_client(make_document(sample_chunks))

        response = client.post("/api/chat", json={"message": "سلام برنامه"})

        assert response.status_code == 200
        body = response.json()
        assert "101، 102" in body["response"]
        assert [s["program_number"] for s in body["sources"]] == [101, 102]
        assert body["sources"][0]["title"] == "برنامه 101"

    def test_generated_answer_receives_history(
        self, api_client, sample_chunks, make_document
    ) -> None:
        generator = MagicMock(return_value=GenerationSuccess(text="پاسخ"))
        client = api_client(make_document(sample_chunks), generator=generator)

        response = client.post(
            "/api/chat",
            json={
                "message": "سلام برنامه",
                "history": [{"role": "user", "content": "قبلی"}, {"role": "assistant"}],
            },
        )

        assert response.status_code == 200
        assert response.json()["response"] == "پاسخ"
        history = generator.call_args.args[2]
        assert history == [
            {"role": "user", "content": "قبلی"},
            {"role": "assistant", "content": None},
        ]

    def test_no_store_answers_politely(self, api_client) -> None:
        client = api_client(None)
        response = client.post("/api/chat", json={"message": "سلام"})
        assert response.status_code == 200
        assert response.json() == {"response": NO_RESULTS_MESSAGE, "sources": []}

    def test_unexpected_error_is_500_with_persian_message(self, api_client) -> None:
        client = api_client(None, raise_server_exceptions=False)
        broken = MagicMock()
        broken.mode_for.side_effect = RuntimeError("boom")
        app.dependency_overrides[get_search_engine] = lambda: broken

        response = client.post("/api/chat", json={"message": "سلام"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == GENERIC_ERROR
        assert body["sources"] == []
        assert "boom" not in response.text


class TestSearchEndpoint:
    def test_lexical_search(self, api_client, sample_chunks, make_document) -> None:
        client = api_client(make_document(sample_chunks))

        response = client.get("/api/search", params={"q": "سلام برنامه", "top_k": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == "lexical"
        assert [r["id"] for r in body["results"]] == [c.id for c in sample_chunks[:2]]
        assert body["results"][0]["score"] == 13

    def test_semantic_search(self, api_client, make_chunk, make_document) -> None:
        a = make_chunk("alpha", program_number=1, embedding=[1.0, 0.0])
        b = make_chunk("beta", program_number=2, embedding=[0.0, 1.0])
        client = api_client(
            make_document([a, b]), embedder=lambda q: EmbeddingSuccess([[0.0, 1.0]])
        )

        body = client.get("/api/search", params={"q": "anything", "top_k": 1}).json()

        assert body["mode"] == "semantic"
        assert [r["program_number"] for r in body["results"]] == [2]

    def test_requires_query(self, api_client) -> None:
        client = api_client(None)
        assert client.get("/api/search").status_code == 422
        assert client.get("/api/search", params={"q": ""}).status_code == 422

    def test_empty_store(self, api_client) -> None:
        body = api_client(None).get("/api/search", params={"q": "سلام"}).json()
        assert body["results"] == []


class TestProgramChunksEndpoint:
    def test_returns_program_chunks(self, api_client, sample_chunks, make_document) -> None:
        client = api_client(make_document(sample_chunks))
        response = client.get("/api/programs/101/chunks")
        assert response.status_code == 200
        assert [c["chunk_index"] for c in response.json()] == [0, 1]

    def test_unknown_program_is_404(self, api_client, sample_chunks, make_document) -> None:
        client = api_client(make_document(sample_chunks))
        assert client.get("/api/programs/999/chunks").status_code == 404


class TestStoreEndpoint:
    def test_loaded(self, api_client, sample_chunks, make_document) -> None:
        body = api_client(make_document(sample_chunks)).get("/api/store").json()
        assert body["loaded"] is True
        assert body["total_chunks"] == 4
        assert body["has_embeddings"] is False

    def test_not_loaded(self, api_client) -> None:
        body = api_client(None).get("/api/store").json()
        assert body == {
            "loaded": False,
            "version": None,
            "created_at": None,
            "total_chunks": 0,
            "total_transcripts": 0,
            "has_embeddings": False,
            "embedding_model": None,
        }


def test_run_serves_on_configured_host_and_port():
    with patch("src.api.main.settings") as mock_settings, patch("src.api.main.uvicorn.run") as run:
        mock_settings.api_host = "127.0.0.1"
        mock_settings.api_port = 9001
        mock_settings.log_level = "DEBUG"
        main_module.run()

    run.assert_called_once_with(app, host="127.0.0.1", port=9001, log_level="debug")
