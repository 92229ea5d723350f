import asyncio
import copy

import pytest
from pymongo import ReturnDocument

from campaign_stats.repository import CampaignRepository


class InMemoryCollection:
    """Motor-like collection whose find-and-modify calls apply in one step."""

    def __init__(self, documents=()):
        self.documents = [copy.deepcopy(d) for d in documents]

    def _match(self, query):
        for document in self.documents:
            if all(document.get(k) == v for k, v in query.items()):
                return document
        return None

    async def find_one(self, query):
        await asyncio.sleep(0)
        document = self._match(query)
        return copy.deepcopy(document) if document is not None else None

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        await asyncio.sleep(0)
        document = self._match(query)
        if document is None:
            return None
        before = copy.deepcopy(document)
        document.update(update["$set"])
        return before if return_document == ReturnDocument.BEFORE else copy.deepcopy(document)

    async def find_one_and_delete(self, query):
        await asyncio.sleep(0)
        document = self._match(query)
        if document is None:
            return None
        self.documents.remove(document)
        return document


@pytest.fixture
def collection():
    return InMemoryCollection([
        {"_id": "oid-1", "campaign_id": "c1", "title": "Spring", "reach": 4, "likes": 0, "is_published": False},
    ])


@pytest.fixture
def repo(collection):
    return CampaignRepository(collection=collection)


@pytest.mark.asyncio
async def test_get_strips_internal_fields(repo):
    record = await repo.get("c1")
    assert record["campaign_id"] == "c1"
    assert "_id" not in record


@pytest.mark.asyncio
async def test_update_returns_before_and_after(repo):
    before, after = await repo.update("c1", {"is_published": True})
    assert before["is_published"] is False
    assert after["is_published"] is True
    assert after["reach"] == 4
    assert "updated_at" in after
    assert "_id" not in before and "_id" not in after


@pytest.mark.asyncio
async def test_concurrent_deletes_emit_one_before(repo, collection):
    results = await asyncio.gather(repo.delete("c1"), repo.delete("c1"))
    removed = [r for r in results if r is not None]
    assert len(removed) == 1
    assert removed[0]["reach"] == 4
    assert collection.documents == []


@pytest.mark.asyncio
async def test_concurrent_updates_chain_before_and_after(repo, collection):
    first, second = await asyncio.gather(
        repo.update("c1", {"reach": 10}),
        repo.update("c1", {"likes": 3}),
    )
    # The second write sees the first one in its before image
    assert first[0]["reach"] == 4
    assert second[0]["reach"] == 10
    assert second[1]["reach"] == 10
    assert second[1]["likes"] == 3
    stored = collection.documents[0]
    assert stored["reach"] == 10 and stored["likes"] == 3


@pytest.mark.asyncio
async def test_missing_record(repo):
    assert await repo.get("nope") is None
    assert await repo.update("nope", {"reach": 1}) is None
    assert await repo.delete("nope") is None
