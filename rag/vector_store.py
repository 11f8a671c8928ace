"""
Vector store client interface and implementations.

Provides:
  - VectorStore: Protocol for fetching, querying and deleting chunk vectors.
  - PineconeVectorStore: Pinecone data-plane REST client (httpx).
  - InMemoryVectorStore: Dict-backed store for tests and local development.

Chunk text lives in each vector's metadata under "chunk"; the owning admin
under "adminId".
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import httpx
import numpy as np

logger = logging.getLogger("sitebrief.vectors")

FETCH_BATCH = 100


class VectorStoreError(Exception):
   """Raised when the vector store cannot be reached or answers with an error."""


@runtime_checkable
class VectorStore(Protocol):
   """Protocol for the chunk vector index."""

   async def fetch(self, ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
      """Return {id: {"metadata": {...}}} for the ids that exist."""
      ...

   async def query_similar(
      self, embedding: Sequence[float], k: int, admin_id: str
   ) -> List[Dict[str, Any]]:
      """Top-k matches for one admin: [{"id", "score", "metadata"}]."""
      ...

   async def delete(self, ids: Sequence[str]) -> None:
      ...


class PineconeVectorStore:
   """
   Pinecone data-plane client.

   index_host is the per-index host shown in the Pinecone console,
   e.g. "my-index-abc123.svc.us-east-1-aws.pinecone.io".
   """

   def __init__(
      self,
      api_key: str,
      index_host: str,
      namespace: str = "",
      timeout_s: float = 20,
      transport: Optional[httpx.AsyncBaseTransport] = None,
   ):
      if not api_key or not index_host:
         raise VectorStoreError("Pinecone requires PINECONE_KEY and PINECONE_INDEX_HOST")
      host = index_host.rstrip("/")
      if not host.startswith("http"):
         host = f"https://{host}"
      self.base_url = host
      self.api_key = api_key
      self.namespace = namespace
      self.timeout_s = timeout_s
      self.transport = transport

   def _client(self) -> httpx.AsyncClient:
      return httpx.AsyncClient(
         base_url=self.base_url,
         timeout=self.timeout_s,
         headers={"Api-Key": self.api_key, "Content-Type": "application/json"},
         transport=self.transport,
      )

   async def _request(self, client: httpx.AsyncClient, method: str, path: str, **kwargs) -> Dict[str, Any]:
      try:
         resp = await client.request(method, path, **kwargs)
      except httpx.HTTPError as e:
         raise VectorStoreError(f"Pinecone request failed: {e}") from e
      if resp.status_code != 200:
         raise VectorStoreError(f"Pinecone returned {resp.status_code}: {resp.text[:200]}")
      if not resp.content:
         return {}
      return resp.json()

   async def fetch(self, ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
      out: Dict[str, Dict[str, Any]] = {}
      ids = list(ids)
      async with self._client() as client:
         for start in range(0, len(ids), FETCH_BATCH):
            params: List[tuple] = [("ids", i) for i in ids[start:start + FETCH_BATCH]]
            if self.namespace:
               params.append(("namespace", self.namespace))
            data = await self._request(client, "GET", "/vectors/fetch", params=params)
            for vid, vec in (data.get("vectors") or {}).items():
               out[vid] = {"metadata": vec.get("metadata") or {}}
      return out

   async def query_similar(
      self, embedding: Sequence[float], k: int, admin_id: str
   ) -> List[Dict[str, Any]]:
      payload: Dict[str, Any] = {
         "vector": list(embedding),
         "topK": k,
         "includeMetadata": True,
         "filter": {"adminId": {"$eq": admin_id}},
      }
      if self.namespace:
         payload["namespace"] = self.namespace
      async with self._client() as client:
         data = await self._request(client, "POST", "/query", json=payload)
      return [
         {"id": m.get("id"), "score": m.get("score", 0.0), "metadata": m.get("metadata") or {}}
         for m in data.get("matches") or []
      ]

   async def delete(self, ids: Sequence[str]) -> None:
      ids = list(ids)
      if not ids:
         return
      payload: Dict[str, Any] = {"ids": ids}
      if self.namespace:
         payload["namespace"] = self.namespace
      async with self._client() as client:
         await self._request(client, "POST", "/vectors/delete", json=payload)


class InMemoryVectorStore:
   """
   Dict-backed vector store.

   Cosine similarity (numpy) over stored values; no persistence.
   """

   def __init__(self):
      self._vectors: Dict[str, Dict[str, Any]] = {}

   def upsert(self, vector_id: str, metadata: Dict[str, Any], values: Optional[Sequence[float]] = None) -> None:
      self._vectors[vector_id] = {"metadata": dict(metadata), "values": list(values or [])}

   async def fetch(self, ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
      return {
         i: {"metadata": dict(self._vectors[i]["metadata"])}
         for i in ids
         if i in self._vectors
      }

   async def query_similar(
      self, embedding: Sequence[float], k: int, admin_id: str
   ) -> List[Dict[str, Any]]:
      scored = []
      for vid, vec in self._vectors.items():
         if vec["metadata"].get("adminId") != admin_id:
            continue
         scored.append({"id": vid, "score": _cosine(embedding, vec["values"]), "metadata": dict(vec["metadata"])})
      scored.sort(key=lambda m: m["score"], reverse=True)
      return scored[:k]

   async def delete(self, ids: Sequence[str]) -> None:
      for i in ids:
         self._vectors.pop(i, None)


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
   va = np.asarray(a, dtype=np.float32)
   vb = np.asarray(b, dtype=np.float32)
   if va.size == 0 or va.shape != vb.shape:
      return 0.0
   na = np.linalg.norm(va)
   nb = np.linalg.norm(vb)
   if na == 0 or nb == 0:
      return 0.0
   return float(np.dot(va, vb) / (na * nb))


def vector_store_from_settings(settings) -> VectorStore:
   """Pinecone when configured, otherwise an empty in-memory store."""
   api_key = getattr(settings, "pinecone_api_key", None)
   host = getattr(settings, "pinecone_index_host", None)
   if api_key and host:
      return PineconeVectorStore(api_key, host, namespace=getattr(settings, "pinecone_namespace", ""))
   logger.warning("Pinecone not configured; using in-memory vector store")
   return InMemoryVectorStore()
