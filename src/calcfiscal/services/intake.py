from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from calcfiscal.config import ESTADOS
from calcfiscal.services.exceptions import DuplicateDocumentError, InvoiceParseError
from calcfiscal.services.invoice_collection import InvoiceCollection, LoadResult
from calcfiscal.services.nfe_parser import parse_file

logger = logging.getLogger(__name__)


@dataclass
class FileOutcome:
    path: Path
    result: LoadResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def expand_paths(paths: Iterable[Path]) -> list[Path]:
    """Expand directories into their ``*.xml`` files (sorted); keep files as given."""
    expanded: list[Path] = []
    for path in paths:
        if path.is_dir():
            expanded.extend(sorted(p for p in path.iterdir() if p.suffix.lower() == ".xml"))
        else:
            expanded.append(path)
    return expanded


def load_paths(
    collection: InvoiceCollection,
    paths: Iterable[Path],
    *,
    adopt_state: bool = False,
) -> list[FileOutcome]:
    """Parse and load every NF-e file into *collection*, one outcome per file.

    A failing file never affects the others. With *adopt_state*, the first
    invoice loaded into an empty collection switches the destination state to
    the invoice's own ``destUF``. A file that fails leaves the state untouched.
    """
    outcomes: list[FileOutcome] = []
    for path in expand_paths(paths):
        try:
            parsed = parse_file(path)
            dest_uf = str(parsed["capa"].get("destUF") or "").upper()
            if adopt_state and len(collection) == 0 and dest_uf in ESTADOS:
                # only a document that builds cleanly may switch the state
                collection.build(parsed, path.name)
                collection.set_destination_state(dest_uf)
            result = collection.load(parsed, path.name)
        except (InvoiceParseError, DuplicateDocumentError) as e:
            logger.warning("Failed to load %s: %s", path, e)
            outcomes.append(FileOutcome(path, error=e))
            continue
        outcomes.append(FileOutcome(path, result=result))
    return outcomes
