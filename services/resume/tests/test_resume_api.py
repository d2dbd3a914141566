from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from libs.core.llm_provider import LLMProviderError, LLMResponse
from libs.tools.resume_pdf import PdfRenderError
from services.resume.app import main as main_module
from services.resume.app.main import create_app
from services.resume.resume_core import Settings

RESUME = {
    "name": "Ada Lovelace",
    "title": "Staff Engineer",
    "contact": {"email": "ada@example.com"},
    "summary": "Builds analytical engines.",
    "skills": {"core": ["Python"]},
    "experience": [
        {"company": "Analytical Co", "role": "Staff Engineer", "bullets": ["Cut costs by 30%."]}
    ],
}


class _FakeProvider:
    model = "fake-model"

    def __init__(self, outputs: list[object]) -> None:
        self._outputs = list(outputs)
        self.calls: list[dict] = []

    def generate(self, system_text, user_text, *, json_schema=None, timeout_s=None):
        self.calls.append({"system_text": system_text, "user_text": user_text})
        next_item = self._outputs.pop(0)
        if isinstance(next_item, Exception):
            raise next_item
        return LLMResponse(content=str(next_item))


def _client(tmp_path: Path, provider, **overrides) -> TestClient:
    settings = Settings(data_dir=tmp_path, generation_timeout_s=5.0, **overrides)
    return TestClient(create_app(settings=settings, provider=provider))


def test_health(tmp_path: Path) -> None:
    response = _client(tmp_path, _FakeProvider([])).get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_about_me_round_trip(tmp_path: Path) -> None:
    client = _client(tmp_path, _FakeProvider([]))

    assert client.get("/api/aboutme").json() == {"content": ""}
    response = client.put("/api/aboutme", json={"content": "Ten years of data work."})
    assert response.json() == {"ok": True}
    assert client.get("/api/aboutme").json() == {"content": "Ten years of data work."}

    bad = client.put("/api/aboutme", json={"content": 5})
    assert bad.status_code == 400
    assert bad.json() == {"error": "content must be a string"}


def test_generate_records_history(tmp_path: Path) -> None:
    provider = _FakeProvider([json.dumps(RESUME)])
    client = _client(tmp_path, provider)

    response = client.post(
        "/api/generate",
        json={"targetText": "Staff Engineer at Acme", "aboutMe": "Ten years of data work."},
    )

    assert response.status_code == 200
    assert response.json() == {"resume": RESUME}
    history = client.get("/api/history").json()["items"]
    assert len(history) == 1
    assert history[0]["targetText"] == "Staff Engineer at Acme"
    assert "<h1>Ada Lovelace</h1>" in history[0]["resultHtml"]
    assert history[0]["timestamp"]


def test_generate_reads_stored_about_me(tmp_path: Path) -> None:
    provider = _FakeProvider([json.dumps(RESUME)])
    client = _client(tmp_path, provider, history_enabled=False)
    client.put("/api/aboutme", json={"content": "Stored background."})

    response = client.post("/api/generate", json={"targetText": "Job", "aboutMe": "  "})

    assert response.status_code == 200
    assert "ABOUT_ME:\nStored background.\n" in provider.calls[0]["user_text"]
    assert client.get("/api/history").json() == {"items": []}


def test_generate_without_about_me_is_bad_request(tmp_path: Path) -> None:
    provider = _FakeProvider([])
    response = _client(tmp_path, provider).post("/api/generate", json={"targetText": "Job"})

    assert response.status_code == 400
    assert "About Me" in response.json()["error"]
    assert provider.calls == []


def test_generate_provider_failure_is_bad_gateway(tmp_path: Path) -> None:
    provider = _FakeProvider([LLMProviderError("bad key", 401), LLMProviderError("bad key", 401)])
    response = _client(tmp_path, provider).post(
        "/api/generate", json={"targetText": "Job", "aboutMe": "About"}
    )
    assert response.status_code == 502
    assert response.json() == {"error": "Failed to generate resume"}


def test_invalid_model_output_hides_raw_text(tmp_path: Path) -> None:
    provider = _FakeProvider(["garbage one", "garbage two"])
    response = _client(tmp_path, provider).post(
        "/api/generate", json={"targetText": "Job", "aboutMe": "About"}
    )
    assert response.status_code == 502
    assert "garbage" not in response.text


def test_generate_timeout_is_gateway_timeout(tmp_path: Path) -> None:
    release = threading.Event()

    class _HangingProvider:
        model = "hanging"

        def generate(self, system_text, user_text, *, json_schema=None, timeout_s=None):
            release.wait(5)
            return LLMResponse(content=json.dumps(RESUME))

    settings = Settings(data_dir=tmp_path, generation_timeout_s=0.2)
    client = TestClient(create_app(settings=settings, provider=_HangingProvider()))
    try:
        response = client.post("/api/generate", json={"targetText": "Job", "aboutMe": "About"})
    finally:
        release.set()
    assert response.status_code == 504
    assert "try again" in response.json()["error"]


def test_refine(tmp_path: Path) -> None:
    revised = {**RESUME, "summary": "Shorter."}
    provider = _FakeProvider([json.dumps(revised)])

    response = _client(tmp_path, provider).post(
        "/api/refine", json={"resume": RESUME, "feedback": "shorter summary"}
    )

    assert response.status_code == 200
    assert response.json() == {"resume": revised}
    assert provider.calls[0]["user_text"].endswith("FEEDBACK:\nshorter summary")


@pytest.mark.parametrize(
    "body",
    [
        {"resume": "text", "feedback": "condense"},
        {"resume": {"name": "Ada"}, "feedback": "condense"},
        {"feedback": "condense"},
        {"resume": RESUME, "feedback": ""},
    ],
)
def test_refine_rejects_bad_input(tmp_path: Path, body: dict) -> None:
    provider = _FakeProvider([])
    response = _client(tmp_path, provider).post("/api/refine", json=body)
    assert response.status_code == 400
    assert response.json()["error"]
    assert provider.calls == []


def test_render_returns_html(tmp_path: Path) -> None:
    response = _client(tmp_path, _FakeProvider([])).post("/api/render", json={"resume": RESUME})
    assert response.status_code == 200
    assert "<h2>Staff Engineer</h2>" in response.json()["html"]


def test_export_docx(tmp_path: Path) -> None:
    response = _client(tmp_path, _FakeProvider([])).post(
        "/api/export/docx", json={"resume": RESUME, "filename": 'ada "final"'}
    )
    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="ada final.docx"'
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert response.content[:2] == b"PK"


def test_export_docx_default_filename(tmp_path: Path) -> None:
    response = _client(tmp_path, _FakeProvider([])).post("/api/export/docx", json={"resume": RESUME})
    assert response.headers["content-disposition"] == 'attachment; filename="resume.docx"'


@pytest.mark.parametrize(
    ("path", "body", "field"),
    [
        ("/api/generate", {"targetText": 5, "aboutMe": "About"}, "targetText"),
        ("/api/generate", {"targetText": "Job", "aboutMe": ["About"]}, "aboutMe"),
        ("/api/refine", {"resume": RESUME, "feedback": 5}, "feedback"),
        ("/api/render", {"resume": "text"}, "resume"),
    ],
)
def test_malformed_body_is_bad_request(tmp_path: Path, path: str, body: dict, field: str) -> None:
    provider = _FakeProvider([])
    response = _client(tmp_path, provider).post(path, json=body)

    assert response.status_code == 400
    assert list(response.json()) == ["error"]
    assert field in response.json()["error"]
    assert provider.calls == []


def test_non_json_body_is_bad_request(tmp_path: Path) -> None:
    response = _client(tmp_path, _FakeProvider([])).post(
        "/api/generate", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request")


def test_export_pdf_failure_is_server_error(tmp_path: Path, monkeypatch) -> None:
    def _broken_render(resume):  # type: ignore[no-untyped-def]
        raise PdfRenderError("WeasyPrint is unavailable")

    monkeypatch.setattr(main_module, "render_resume_pdf", _broken_render)
    response = _client(tmp_path, _FakeProvider([])).post("/api/export/pdf", json={"resume": RESUME})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to export PDF"}
