"""Tests for vector store clients."""

import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx
import pytest

from rag.vector_store import (
    InMemoryVectorStore,
    PineconeVectorStore,
    VectorStore,
    VectorStoreError,
    vector_store_from_settings,
)


def test_in_memory_fetch_and_delete():
    store = InMemoryVectorStore()
    store.upsert("v1", {"chunk": "hello", "adminId": "a1"})
    store.upsert("v2", {"chunk": "world", "adminId": "a1"})

    fetched = asyncio.run(store.fetch(["v1", "missing"]))
    assert fetched == {"v1": {"metadata": {"chunk": "hello", "adminId": "a1"}}}

    asyncio.run(store.delete(["v1"]))
    assert asyncio.run(store.fetch(["v1", "v2"])).keys() == {"v2"}


def test_in_memory_query_filters_by_admin():
    store = InMemoryVectorStore()
    store.upsert("mine-close", {"adminId": "a1"}, [1.0, 0.0])
    store.upsert("mine-far", {"adminId": "a1"}, [0.0, 1.0])
    store.upsert("theirs", {"adminId": "a2"}, [1.0, 0.0])

    matches = asyncio.run(store.query_similar([1.0, 0.1], 5, "a1"))
    assert [m["id"] for m in matches] == ["mine-close", "mine-far"]
    assert matches[0]["score"] > matches[1]["score"]


def test_in_memory_satisfies_protocol():
    assert isinstance(InMemoryVectorStore(), VectorStore)


def test_pinecone_requires_credentials():
    with pytest.raises(VectorStoreError):
        PineconeVectorStore("", "host")


def test_pinecone_fetch():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["ids"] = request.url.params.get_list("ids")
        seen["key"] = request.headers.get("Api-Key")
        return httpx.Response(200, json={"vectors": {
            "v1": {"id": "v1", "metadata": {"chunk": "hello"}},
        }})

    store = PineconeVectorStore("pk", "idx.pinecone.io", transport=httpx.MockTransport(handler))
    fetched = asyncio.run(store.fetch(["v1", "v2"]))
    assert fetched == {"v1": {"metadata": {"chunk": "hello"}}}
    assert seen["path"] == "/vectors/fetch"
    assert seen["ids"] == ["v1", "v2"]
    assert seen["key"] == "pk"


def test_pinecone_fetch_batches_ids():
    batches = []

    def handler(request: httpx.Request):
        batches.append(len(request.url.params.get_list("ids")))
        return httpx.Response(200, json={"vectors": {}})

    store = PineconeVectorStore("pk", "idx.pinecone.io", transport=httpx.MockTransport(handler))
    asyncio.run(store.fetch([f"v{i}" for i in range(250)]))
    assert batches == [100, 100, 50]


def test_pinecone_query_filters_admin():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"matches": [{"id": "v1", "score": 0.9, "metadata": {"chunk": "x"}}]})

    store = PineconeVectorStore("pk", "idx.pinecone.io", namespace="ns", transport=httpx.MockTransport(handler))
    matches = asyncio.run(store.query_similar([0.1, 0.2], 3, "a1"))
    assert matches == [{"id": "v1", "score": 0.9, "metadata": {"chunk": "x"}}]
    assert seen["path"] == "/query"
    assert seen["body"]["filter"] == {"adminId": {"$eq": "a1"}}
    assert seen["body"]["topK"] == 3
    assert seen["body"]["namespace"] == "ns"


def test_pinecone_delete():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={})

    store = PineconeVectorStore("pk", "idx.pinecone.io", transport=httpx.MockTransport(handler))
    asyncio.run(store.delete(["v1", "v2"]))
    assert seen["path"] == "/vectors/delete"
    assert seen["body"] == {"ids": ["v1", "v2"]}


def test_pinecone_error_status():
    store = PineconeVectorStore(
        "pk", "idx.pinecone.io",
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
    )
    with pytest.raises(VectorStoreError):
        asyncio.run(store.fetch(["v1"]))


def test_store_from_settings():
    class _Unconfigured:
        pinecone_api_key = None
        pinecone_index_host = None

    class _Configured:
        pinecone_api_key = "pk"
        pinecone_index_host = "idx.pinecone.io"
        pinecone_namespace = ""

    assert isinstance(vector_store_from_settings(_Unconfigured()), InMemoryVectorStore)
    store = vector_store_from_settings(_Configured())
    assert isinstance(store, PineconeVectorStore)
    assert store.base_url == "https://idx.pinecone.io"


def test_in_memory_query_scores_are_cosine():
    store = InMemoryVectorStore()
    store.upsert("same", {"adminId": "a1"}, [3.0, 4.0])
    store.upsert("opposite", {"adminId": "a1"}, [-3.0, -4.0])
    store.upsert("zero", {"adminId": "a1"}, [0.0, 0.0])
    store.upsert("wrong-dim", {"adminId": "a1"}, [1.0, 0.0, 0.0])

    scores = {m["id"]: m["score"] for m in asyncio.run(store.query_similar([6.0, 8.0], 10, "a1"))}
    assert scores["same"] == pytest.approx(1.0)
    assert scores["opposite"] == pytest.approx(-1.0)
    assert scores["zero"] == 0.0
    assert scores["wrong-dim"] == 0.0
    assert all(isinstance(s, float) for s in scores.values())
