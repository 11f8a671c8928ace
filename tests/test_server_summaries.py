"""Tests for the /summaries endpoints."""

import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from fastapi.testclient import TestClient

from rag.vector_store import InMemoryVectorStore
from server.app import app
from server.config import PipelineConfig, Settings
from server.db.session import get_db, init_db, reset_engine
from server.dependencies import get_pipeline_config, get_provider, get_settings, get_vector_store
from server.services.chunk_repository import record_chunks
from server.services.llm.provider import FakeProvider, LLMError


ADMIN = "admin-1"
HEADERS = {"X-Admin-Id": ADMIN}
URL = "https://acme.test/"

CHUNKS = [
    ("v0", 0, "[SECTION 1] Hero\nWelcome"),
    ("v1", 1, "[SECTION 1] Hero\n to our product"),
    ("v2", 2, "[SECTION 2] Pricing\n$10/mo"),
]


def _question(text, sales=False):
    q = {"question": text, "options": ["Yes", "No"], "tags": ["visibility_gap", "conversion_risk"]}
    if sales:
        q["optionFlows"] = []
    return q


def _responder(system, user):
    if user.startswith("Analyze this web page and extract key business intelligence"):
        return {"pageType": "homepage", "businessVertical": "saas"}
    return {
        "sectionSummary": "Summary.",
        "leadQuestions": [_question("L1?"), _question("L2?")],
        "salesQuestions": [_question("S1?", True), _question("S2?", True)],
    }


class _Client:
    def __init__(self, tmp, provider):
        reset_engine()
        self.settings = Settings(database_url=f"sqlite:///{Path(tmp) / 'test.db'}")
        init_db(self.settings)
        self.provider = provider
        self.store = InMemoryVectorStore()
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_provider] = lambda: self.provider
        app.dependency_overrides[get_vector_store] = lambda: self.store
        app.dependency_overrides[get_pipeline_config] = lambda: PipelineConfig(
            min_block_chars=1, chunk_batch_pause_s=0.0,
        )
        self.http = TestClient(app)

    def add_chunks(self, url=URL, chunks=CHUNKS, admin_id=ADMIN):
        with get_db(self.settings) as db:
            record_chunks(db, admin_id, url, chunks)


@pytest.fixture
def client():
    with tempfile.TemporaryDirectory() as tmp:
        c = _Client(tmp, FakeProvider(responder=_responder))
        try:
            yield c
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def test_generate_summary(client):
    client.add_chunks()
    r = client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["source"] == "pinecone_chunks"
    assert body["cached"] is False
    assert body["strategy"] == "sectioned"
    sections = body["summary"]["sections"]
    assert [s["sectionName"] for s in sections] == ["Hero", "Pricing"]
    assert sections[1]["sectionContent"] == "$10/mo"
    assert body["summary"]["pageType"] == "homepage"


def test_second_request_regenerates(client):
    client.add_chunks()
    client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    r = client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["cached"] is False
    assert r.json()["source"] == "pinecone_chunks"
    assert len(client.provider.calls) == 6

    r = client.http.post("/summaries", json={"url": URL, "regenerate": True}, headers=HEADERS)
    assert r.json()["cached"] is False
    assert len(client.provider.calls) == 9


def test_unknown_page_404(client):
    r = client.http.post("/summaries", json={"url": "https://acme.test/missing"}, headers=HEADERS)
    assert r.status_code == 404
    assert r.json()["error"] == "Page not found"


def test_insufficient_content_400(client):
    client.add_chunks(chunks=[("t0", 0, "short")])
    r = client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    assert r.status_code == 400
    assert r.json()["error"] == "Insufficient content in chunks to generate summary"


def test_generation_failure_500(client):
    client.provider = FakeProvider(error=LLMError(kind="unavailable", message="down"))
    client.add_chunks(chunks=[("p0", 0, "A plain page without any markers, long enough to summarize.")])
    r = client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to generate summary"


def test_unexpected_error_becomes_generation_failure(client):
    client.provider = FakeProvider(responder=lambda system, user: 1 / 0)
    client.add_chunks(chunks=[("p0", 0, "A plain page without any markers, long enough to summarize.")])
    r = client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to generate summary"


def test_unparseable_model_output_500(client):
    client.provider = FakeProvider(canned="{not json")
    client.add_chunks(chunks=[("p0", 0, "A plain page without any markers, long enough to summarize.")])
    r = client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to generate summary"


def test_error_responses_documented(client):
    responses = app.openapi()["paths"]["/summaries"]["post"]["responses"]
    for status in ("400", "404", "500"):
        schema = responses[status]["content"]["application/json"]["schema"]
        assert schema["$ref"].endswith("/ErrorResponse")


def test_missing_admin_header_401(client):
    r = client.http.post("/summaries", json={"url": URL})
    assert r.status_code == 401


@pytest.mark.parametrize("body", [
    {},
    {"url": ""},
    {"url": "not a url"},
    {"url": "ftp://acme.test/file"},
    {"url": "https://acme.test/" + "a" * 2100},
])
def test_invalid_request_422(client, body):
    r = client.http.post("/summaries", json=body, headers=HEADERS)
    assert r.status_code == 422


def test_list_pages(client):
    client.add_chunks()
    r = client.http.get("/summaries", headers=HEADERS)
    assert r.status_code == 200
    assert r.json() == {"success": True, "pages": []}

    client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    pages = client.http.get("/summaries", headers=HEADERS).json()["pages"]
    assert len(pages) == 1
    assert pages[0]["url"] == URL
    assert pages[0]["has_structured_summary"] is True
    assert pages[0]["summary_generated_at"]

    other = client.http.get("/summaries", headers={"X-Admin-Id": "admin-2"}).json()
    assert other["pages"] == []


def test_get_stored_summary(client):
    client.add_chunks()
    r = client.http.get("/summaries/page", params={"url": URL}, headers=HEADERS)
    assert r.status_code == 404

    client.http.post("/summaries", json={"url": URL}, headers=HEADERS)
    r = client.http.get("/summaries/page", params={"url": URL}, headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["cached"] is True
    assert len(r.json()["summary"]["sections"]) == 2


def test_delete_page(client):
    client.add_chunks()
    for vid, _, text in CHUNKS:
        client.store.upsert(vid, {"chunk": text, "adminId": ADMIN})
    client.http.post("/summaries", json={"url": URL}, headers=HEADERS)

    r = client.http.request("DELETE", "/summaries", json={"url": URL}, headers=HEADERS)
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert client.http.get("/summaries", headers=HEADERS).json()["pages"] == []

    r = client.http.request("DELETE", "/summaries", json={"url": URL}, headers=HEADERS)
    assert r.status_code == 404
