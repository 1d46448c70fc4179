"""Flat-file JSON vector store: one document, saved whole, loaded once."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from src.ingestion.models import VectorStoreDocument

logger = logging.getLogger(__name__)


class VectorStore:
    """Reads and writes the chunk/embedding document at *path*.

    ``load()`` memoizes the parsed document on the instance, so one store
    object is meant to be built at startup and shared by every request.
    There is no append or update operation: re-ingestion overwrites the file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._document: VectorStoreDocument | None = None

    def save(self, document: VectorStoreDocument) -> Path:
        """Write *document* as JSON, creating the parent directory if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(document.to_dict(), ensure_ascii=False, indent=2)

        # Write next to the target then swap, so readers never see a partial file
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(
            "Saved %d chunks to %s (%.2f MB)",
            document.total_chunks,
            self.path,
            self.path.stat().st_size / 1024 / 1024,
        )
        return self.path

    def load(self) -> VectorStoreDocument | None:
        """Return the parsed document, reading the file on first use.

        A missing or corrupt file is logged and reported as ``None`` so search
        degrades to "no results"; the next call tries again.
        """
        if self._document is not None:
            return self._document

        try:
            raw = self.path.read_text(encoding="utf-8")
            document = VectorStoreDocument.from_dict(json.loads(raw))
        except FileNotFoundError:
            logger.error("Vector store not found at %s", self.path)
            return None
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Could not load vector store %s: %s", self.path, exc)
            return None

        logger.info(
            "Loaded %d chunks from %s (embeddings: %s)",
            document.total_chunks,
            self.path,
            document.has_embeddings,
        )
        self._document = document
        return document

    @property
    def is_loaded(self) -> bool:
        return self._document is not None

