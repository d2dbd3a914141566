from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from .logging import get_logger
from .models import HistoryEntry

LOGGER = get_logger("document_store")

ABOUT_ME_FILENAME = "aboutme.txt"
HISTORY_FILENAME = "history.jsonl"


class DocumentStoreError(RuntimeError):
    pass


def data_root() -> Path:
    return Path(os.getenv("RESUME_DATA_DIR", "./data")).resolve()


class AboutMeStore:
    """Single free-text "About Me" document kept as a UTF-8 file."""

    def __init__(self, root: Path | None = None) -> None:
        self.path = (root or data_root()) / ABOUT_ME_FILENAME

    def read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as exc:
            raise DocumentStoreError(f"about_me_read_failed:{exc}") from exc

    def write(self, content: str) -> None:
        if not isinstance(content, str):
            raise DocumentStoreError("content must be a string")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise DocumentStoreError(f"about_me_write_failed:{exc}") from exc


class HistoryStore:
    """Append-only log of generated resumes, one JSON object per line."""

    def __init__(self, root: Path | None = None) -> None:
        self.path = (root or data_root()) / HISTORY_FILENAME
        self._lock = threading.Lock()

    def append(self, target_text: str, result_html: str) -> HistoryEntry:
        entry = HistoryEntry(
            target_text=target_text,
            result_html=result_html,
            timestamp=datetime.now(timezone.utc),
        )
        line = entry.model_dump_json()
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            except OSError as exc:
                raise DocumentStoreError(f"history_append_failed:{exc}") from exc
        return entry

    def list(self) -> list[HistoryEntry]:
        with self._lock:
            try:
                lines = self.path.read_text(encoding="utf-8").splitlines()
            except FileNotFoundError:
                return []
            except OSError as exc:
                raise DocumentStoreError(f"history_read_failed:{exc}") from exc
        entries: list[HistoryEntry] = []
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                entry = HistoryEntry.model_validate(json.loads(line))
            except (json.JSONDecodeError, ValidationError) as exc:
                LOGGER.warning("history_line_skipped", line=number, error=str(exc))
                continue
            if entry.timestamp.tzinfo is None:
                # Hand-edited lines may lack an offset; treat them as UTC.
                entry = entry.model_copy(update={"timestamp": entry.timestamp.replace(tzinfo=timezone.utc)})
            entries.append(entry)
        # Newest first; lines are written in order, so ties keep reverse file order.
        entries.reverse()
        entries.sort(key=lambda entry: entry.timestamp, reverse=True)
        return entries
