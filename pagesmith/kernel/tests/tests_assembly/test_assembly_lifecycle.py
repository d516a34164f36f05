"""
pagesmith Assembly -- Lifecycle Tests

create → save → load → import → publish → delete through EditorAssembly,
against in-memory storage. Loading is lossless: the tree read back equals
the tree saved.
"""

import asyncio
import json

import pytest

from pagesmith.kernel.assembly import DocumentNotFound, EditorAssembly, MemoryStorage
from pagesmith.kernel.serialization import DocumentValidationError
from pagesmith.kernel.store import DocumentStore

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def assembly(storage):
    return EditorAssembly(storage)


class FlakyStorage(MemoryStorage):
    """Fails the first `failures` writes with OSError."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def put(self, doc_id, text):
        self.attempts += 1
        if self.failures:
            self.failures -= 1
            raise OSError("disk hiccup")
        await super().put(doc_id, text)


# ============================================================================
# create / save / load
# ============================================================================


class TestCreateSaveLoad:
    def test_create_is_empty_and_unsaved(self, assembly, storage):
        doc_id, store = assembly.create()
        assert len(doc_id) == 32
        assert store.state.elements == []
        assert storage.workspace == {}

    def test_create_ids_unique(self, assembly):
        assert assembly.create()[0] != assembly.create()[0]

    @pytest.mark.asyncio
    async def test_save_writes_json(self, assembly, storage, sample_tree):
        await assembly.save("doc", DocumentStore(sample_tree))
        data = json.loads(storage.workspace["doc"])
        assert [n["id"] for n in data["elements"]] == ["h1", "cols", "d1"]

    @pytest.mark.asyncio
    async def test_load_round_trip(self, assembly, sample_tree):
        original = DocumentStore(sample_tree, {"contentWidth": "640px"})
        await assembly.save("doc", original)
        loaded = await assembly.load("doc")
        assert loaded.state.elements == original.state.elements
        assert loaded.state.global_styles == original.state.global_styles
        assert not loaded.state.history.can_undo

    @pytest.mark.asyncio
    async def test_load_missing(self, assembly):
        with pytest.raises(DocumentNotFound):
            await assembly.load("ghost")

    @pytest.mark.asyncio
    async def test_load_corrupt(self, assembly, storage):
        storage.workspace["bad"] = "{not json"
        with pytest.raises(DocumentValidationError):
            await assembly.load("bad")

    @pytest.mark.asyncio
    async def test_save_retries_once(self, sample_tree):
        storage = FlakyStorage(failures=1)
        await EditorAssembly(storage).save("doc", DocumentStore(sample_tree))
        assert storage.attempts == 2
        assert "doc" in storage.workspace

    @pytest.mark.asyncio
    async def test_save_gives_up_after_retry(self, sample_tree):
        storage = FlakyStorage(failures=2)
        with pytest.raises(OSError):
            await EditorAssembly(storage).save("doc", DocumentStore(sample_tree))
        assert storage.attempts == 2

    @pytest.mark.asyncio
    async def test_concurrent_saves_serialize(self, assembly, storage):
        stores = []
        for i in range(5):
            store = DocumentStore()
            store.add_widget("text")
            store.update(store.state.elements[0]["id"], {"text": f"v{i}"})
            stores.append(store)

        await asyncio.gather(*(assembly.save("doc", s) for s in stores))
        saved = json.loads(storage.workspace["doc"])
        assert saved["elements"][0]["settings"]["text"] in {f"v{i}" for i in range(5)}


# ============================================================================
# import / publish / delete
# ============================================================================


class TestImportPublishDelete:
    @pytest.mark.asyncio
    async def test_import_creates_missing_document(self, assembly, storage):
        store = await assembly.import_markup("fresh", "<h1>Hi</h1>")
        assert store.state.elements[0]["type"] == "heading"
        assert "fresh" in storage.workspace

    @pytest.mark.asyncio
    async def test_import_replaces_and_keeps_styles(self, assembly, sample_tree):
        await assembly.save("doc", DocumentStore(sample_tree, {"bodyBackground": "#123456"}))
        store = await assembly.import_markup("doc", "<p>replaced</p>")
        assert [n["type"] for n in store.state.elements] == ["text"]
        assert store.state.global_styles["bodyBackground"] == "#123456"
        assert store.undo()

    @pytest.mark.asyncio
    async def test_publish(self, assembly, storage, sample_tree):
        store = DocumentStore(sample_tree)
        markup = await assembly.publish("doc", store)
        assert storage.published["doc"] == markup
        assert markup.startswith("<!DOCTYPE html>")
        assert "data-element-id" not in markup
        assert "doc" not in storage.workspace

    @pytest.mark.asyncio
    async def test_publish_viewport(self, assembly, storage):
        store = DocumentStore([{"id": "s", "type": "spacer", "settings": {"height": {"desktop": "40px", "mobile": "8px"}}}])
        markup = await assembly.publish("doc", store, "mobile")
        assert "height: 8px" in markup

    @pytest.mark.asyncio
    async def test_delete(self, assembly, storage, sample_tree):
        store = DocumentStore(sample_tree)
        await assembly.save("doc", store)
        await assembly.publish("doc", store)
        await assembly.delete("doc")
        assert storage.workspace == {}
        assert storage.published == {}
        with pytest.raises(DocumentNotFound):
            await assembly.load("doc")
