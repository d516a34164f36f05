"""
pagesmith Kernel — Assembly Layer

Sits between the pure kernel (reducer, renderer, importer) and the outside
world (document storage, the CLI). Coordinates the lifecycle of a document.

Operations: create, load, save, import_markup, publish, delete

This is where IO happens. Everything it calls into is pure.

Workspace documents are stored as serialized JSON (the lossless format).
Published documents are stored as exported markup.
"""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from pathlib import Path

from pagesmith.config import settings
from pagesmith.kernel.serialization import load_document
from pagesmith.kernel.store import DocumentStore

logger = logging.getLogger(__name__)

_DOC_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class DocumentNotFound(Exception):
    """Document does not exist in storage."""
    pass


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------

class DocumentStorage:
    """
    Abstract storage interface.
    Implement with files for the CLI, or in-memory for tests.
    """

    async def get(self, doc_id: str) -> str | None:
        """Fetch a serialized document. Returns None if not found."""
        raise NotImplementedError

    async def put(self, doc_id: str, text: str) -> None:
        """Write a serialized document (workspace)."""
        raise NotImplementedError

    async def put_published(self, doc_id: str, markup: str) -> None:
        """Write exported markup (published)."""
        raise NotImplementedError

    async def delete(self, doc_id: str) -> None:
        """Delete a document from the workspace and published areas."""
        raise NotImplementedError


class MemoryStorage(DocumentStorage):
    """In-memory storage for testing."""

    def __init__(self) -> None:
        self.workspace: dict[str, str] = {}
        self.published: dict[str, str] = {}

    async def get(self, doc_id: str) -> str | None:
        return self.workspace.get(doc_id)

    async def put(self, doc_id: str, text: str) -> None:
        self.workspace[doc_id] = text

    async def put_published(self, doc_id: str, markup: str) -> None:
        self.published[doc_id] = markup

    async def delete(self, doc_id: str) -> None:
        self.workspace.pop(doc_id, None)
        self.published.pop(doc_id, None)


class FileStorage(DocumentStorage):
    """
    Directory-backed storage.

        <root>/<doc_id>.json             workspace
        <root>/published/<doc_id>.html   published
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root if root is not None else settings.STORAGE_DIR)

    def _workspace_path(self, doc_id: str) -> Path:
        return self.root / f"{_check_id(doc_id)}.json"

    def _published_path(self, doc_id: str) -> Path:
        return self.root / "published" / f"{_check_id(doc_id)}.html"

    async def get(self, doc_id: str) -> str | None:
        path = self._workspace_path(doc_id)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def put(self, doc_id: str, text: str) -> None:
        await asyncio.to_thread(_write, self._workspace_path(doc_id), text)

    async def put_published(self, doc_id: str, markup: str) -> None:
        await asyncio.to_thread(_write, self._published_path(doc_id), markup)

    async def delete(self, doc_id: str) -> None:
        for path in (self._workspace_path(doc_id), self._published_path(doc_id)):
            path.unlink(missing_ok=True)


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _check_id(doc_id: str) -> str:
    if not _DOC_ID_RE.match(doc_id or ""):
        raise ValueError(f"Invalid document id: {doc_id!r}")
    return doc_id


# ---------------------------------------------------------------------------
# Assembly class
# ---------------------------------------------------------------------------

class EditorAssembly:
    """
    Manages the lifecycle of a stored document.
    Coordinates store + renderer + importer + storage.
    """

    def __init__(self, storage: DocumentStorage):
        self._storage = storage
        self._locks: dict[str, asyncio.Lock] = {}

    def _get_lock(self, doc_id: str) -> asyncio.Lock:
        """Per-document lock so concurrent saves of one document serialize."""
        if doc_id not in self._locks:
            self._locks[doc_id] = asyncio.Lock()
        return self._locks[doc_id]

    # -- create --

    def create(self) -> tuple[str, DocumentStore]:
        """
        Start a new empty document.
        Does NOT save; the caller persists when ready.
        """
        return uuid.uuid4().hex, DocumentStore()

    # -- load --

    async def load(self, doc_id: str) -> DocumentStore:
        """
        Read a document from storage into a fresh editing session.
        Raises DocumentNotFound, or DocumentValidationError if it is corrupt.
        """
        text = await self._storage.get(doc_id)
        if text is None:
            raise DocumentNotFound(doc_id)

        elements, global_styles = load_document(text)
        store = DocumentStore(elements, global_styles)
        logger.info("assembly: loaded %s (%d top-level elements)", doc_id, len(elements))
        return store

    # -- save --

    async def save(self, doc_id: str, store: DocumentStore) -> None:
        """Write the document's JSON form to the workspace."""
        text = store.export_json()
        async with self._get_lock(doc_id):
            try:
                await self._storage.put(doc_id, text)
            except OSError:
                logger.warning("assembly: save of %s failed, retrying once", doc_id)
                await self._storage.put(doc_id, text)
        logger.info("assembly: saved %s (%d bytes)", doc_id, len(text.encode("utf-8")))

    # -- import --

    async def import_markup(self, doc_id: str, markup: str) -> DocumentStore:
        """
        Replace a document's tree with the parse of markup and save it.
        A missing document is created.
        """
        try:
            store = await self.load(doc_id)
        except DocumentNotFound:
            store = DocumentStore()

        store.import_markup(markup)
        await self.save(doc_id, store)
        logger.info("assembly: imported %d chars of markup into %s", len(markup), doc_id)
        return store

    # -- publish --

    async def publish(self, doc_id: str, store: DocumentStore, viewport: str | None = None) -> str:
        """Export clean markup and write it to the published area."""
        markup = store.export_markup(viewport)
        await self._storage.put_published(doc_id, markup)
        logger.info("assembly: published %s (%d bytes)", doc_id, len(markup.encode("utf-8")))
        return markup

    # -- delete --

    async def delete(self, doc_id: str) -> None:
        await self._storage.delete(doc_id)
        self._locks.pop(doc_id, None)
        logger.info("assembly: deleted %s", doc_id)
