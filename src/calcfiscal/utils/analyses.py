"""Saved entry analyses — snapshots of the loaded invoices and their results.

Each snapshot stores the export report (not the engine objects), so a saved
analysis still reads correctly after the rule table changes.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from filelock import FileLock

from calcfiscal import config as _config
from calcfiscal.models.invoice import Invoice
from calcfiscal.services.export import export_report

logger = logging.getLogger(__name__)


def _analyses_path() -> Path:
    return _config.get_analyses_path()


def _backup_corrupt(path: Path) -> Path:
    """Rename a corrupt file to a timestamped backup before it gets overwritten."""
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
    backup = path.with_name(f"{path.name}.corrupt.{ts}")
    path.rename(backup)
    logger.warning("Corrupt file backed up: %s → %s", path, backup)
    return backup


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during read-modify-write."""
    ap = _analyses_path()
    ap.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(ap.with_suffix(".lock"))
    with lock:
        yield


def _load() -> list[dict[str, Any]]:
    ap = _analyses_path()
    if not ap.exists():
        return []
    try:
        return json.loads(ap.read_text())
    except (json.JSONDecodeError, ValueError):
        _backup_corrupt(ap)
        return []


def _save(entries: list[dict[str, Any]]) -> None:
    ap = _analyses_path()
    ap.parent.mkdir(parents=True, exist_ok=True)
    tmp = ap.with_suffix(".tmp")
    tmp.write_text(json.dumps(entries, indent=2, ensure_ascii=False) + "\n")
    os.replace(tmp, ap)


def save_analysis(name: str, invoices: Iterable[Invoice], destination_state: str) -> dict[str, Any]:
    """Append a snapshot of *invoices* and return the stored entry."""
    invoices = list(invoices)
    if not invoices:
        raise ValueError("Nenhuma nota carregada para salvar")
    entry: dict[str, Any] = {
        "id": uuid.uuid4().hex[:12],
        "name": name.strip() or f"Análise {destination_state}",
        "destination_state": destination_state,
        "saved_at": datetime.now(UTC).isoformat(timespec="seconds"),
        "document_keys": [inv.document_key for inv in invoices],
        "report": export_report(invoices),
    }
    with _locked():
        entries = _load()
        entries.append(entry)
        _save(entries)
    logger.info("Analysis %s saved (%d invoice(s))", entry["id"], len(invoices))
    return entry


def list_analyses(destination_state: str | None = None) -> list[dict[str, Any]]:
    """Return all saved analyses, optionally filtered by destination state."""
    with _locked():
        entries = _load()
    if destination_state:
        entries = [e for e in entries if e.get("destination_state") == destination_state]
    return entries


def find_analysis(analysis_id: str) -> dict[str, Any] | None:
    with _locked():
        entries = _load()
    return next((e for e in entries if e.get("id") == analysis_id), None)


def remove_analysis(analysis_id: str) -> bool:
    """Remove a saved analysis by id."""
    with _locked():
        entries = _load()
        filtered = [e for e in entries if e.get("id") != analysis_id]
        if len(filtered) == len(entries):
            return False
        _save(filtered)
        return True
