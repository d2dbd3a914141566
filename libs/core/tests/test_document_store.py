from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from libs.core import document_store


def test_about_me_defaults_to_empty(tmp_path: Path) -> None:
    store = document_store.AboutMeStore(tmp_path)
    assert store.read() == ""


def test_about_me_round_trip_creates_directory(tmp_path: Path) -> None:
    store = document_store.AboutMeStore(tmp_path / "nested")
    store.write("Ten years building résumé tooling.")
    assert store.read() == "Ten years building résumé tooling."
    assert (tmp_path / "nested" / "aboutme.txt").exists()


def test_about_me_rejects_non_string(tmp_path: Path) -> None:
    with pytest.raises(document_store.DocumentStoreError):
        document_store.AboutMeStore(tmp_path).write(42)  # type: ignore[arg-type]


def test_data_root_uses_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RESUME_DATA_DIR", str(tmp_path))
    assert document_store.data_root() == tmp_path.resolve()
    assert document_store.HistoryStore().path == tmp_path.resolve() / "history.jsonl"


def test_history_lists_newest_first(tmp_path: Path) -> None:
    store = document_store.HistoryStore(tmp_path)
    assert store.list() == []

    first = store.append("Job A", "<article>A</article>")
    second = store.append("Job B", "<article>B</article>")

    assert first.timestamp.tzinfo is not None
    entries = store.list()
    assert [entry.target_text for entry in entries] == ["Job B", "Job A"]
    assert entries[0].result_html == second.result_html


def test_history_skips_malformed_lines(tmp_path: Path) -> None:
    path = tmp_path / "history.jsonl"
    good = {
        "target_text": "Job A",
        "result_html": "<p>A</p>",
        "timestamp": datetime(2024, 1, 1, tzinfo=timezone.utc).isoformat(),
    }
    path.write_text(
        "not json\n" + json.dumps(good) + "\n" + json.dumps({"target_text": "x"}) + "\n\n",
        encoding="utf-8",
    )

    entries = document_store.HistoryStore(tmp_path).list()
    assert len(entries) == 1
    assert entries[0].target_text == "Job A"


def test_history_treats_naive_timestamps_as_utc(tmp_path: Path) -> None:
    store = document_store.HistoryStore(tmp_path)
    store.append("Job New", "<p>new</p>")
    naive = {
        "target_text": "Job Old",
        "result_html": "<p>old</p>",
        "timestamp": "2024-01-01T09:30:00",
    }
    with store.path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(naive) + "\n")

    entries = store.list()
    assert [entry.target_text for entry in entries] == ["Job New", "Job Old"]
    assert entries[1].timestamp == datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)
