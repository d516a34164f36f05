"""
pagesmith Assembly -- Storage Tests

MemoryStorage and FileStorage behave the same through the DocumentStorage
interface: workspace JSON and published markup are kept apart, missing
documents read as None, delete removes both.

FileStorage additionally refuses document ids that could escape its root.
"""

import pytest

from pagesmith.kernel.assembly import FileStorage, MemoryStorage


@pytest.fixture(params=["memory", "file"])
def storage(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    return FileStorage(tmp_path)


class TestStorageInterface:
    @pytest.mark.asyncio
    async def test_missing_is_none(self, storage):
        assert await storage.get("nope") is None

    @pytest.mark.asyncio
    async def test_put_then_get(self, storage):
        await storage.put("doc-1", '{"elements": []}')
        assert await storage.get("doc-1") == '{"elements": []}'

    @pytest.mark.asyncio
    async def test_overwrite(self, storage):
        await storage.put("doc", "one")
        await storage.put("doc", "two")
        assert await storage.get("doc") == "two"

    @pytest.mark.asyncio
    async def test_published_separate_from_workspace(self, storage):
        await storage.put_published("doc", "<html></html>")
        assert await storage.get("doc") is None

    @pytest.mark.asyncio
    async def test_delete(self, storage):
        await storage.put("doc", "x")
        await storage.put_published("doc", "<p>x</p>")
        await storage.delete("doc")
        assert await storage.get("doc") is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_quiet(self, storage):
        await storage.delete("never-saved")


class TestFileStorage:
    @pytest.mark.asyncio
    async def test_layout(self, tmp_path):
        storage = FileStorage(tmp_path)
        await storage.put("doc", "{}")
        await storage.put_published("doc", "<p>ü</p>")
        assert (tmp_path / "doc.json").read_text(encoding="utf-8") == "{}"
        assert (tmp_path / "published" / "doc.html").read_text(encoding="utf-8") == "<p>ü</p>"

    @pytest.mark.asyncio
    async def test_creates_root(self, tmp_path):
        storage = FileStorage(tmp_path / "nested" / "dir")
        await storage.put("doc", "{}")
        assert (tmp_path / "nested" / "dir" / "doc.json").exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("doc_id", ["../escape", "a/b", "", "with space", "x.json"])
    async def test_rejects_unsafe_ids(self, tmp_path, doc_id):
        storage = FileStorage(tmp_path)
        with pytest.raises(ValueError):
            await storage.put(doc_id, "{}")
        with pytest.raises(ValueError):
            await storage.get(doc_id)

    def test_default_root_from_settings(self):
        from pagesmith.config import settings

        assert str(FileStorage().root) == str(FileStorage(settings.STORAGE_DIR).root)
