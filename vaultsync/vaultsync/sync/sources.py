"""Loading source documents from a JSON export and filtering them by date."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from pathlib import Path

from ..errors import SetupFailure
from ..models import SourceDocument, effective_date

logger = logging.getLogger(__name__)


def parse_documents(data) -> list[SourceDocument]:
    """Documents from a parsed export: `{"docs": [...]}` or a bare list."""
    if isinstance(data, dict):
        raw_docs = data.get("docs")
    else:
        raw_docs = data
    if not isinstance(raw_docs, list):
        raise SetupFailure("Invalid document export: expected a list of documents or {\"docs\": [...]}")

    documents = []
    for index, raw in enumerate(raw_docs):
        if not isinstance(raw, dict) or not raw.get("id"):
            logger.warning("Skipping document #%d: no id", index)
            continue
        documents.append(SourceDocument.from_dict(raw))
    return documents


def load_documents(path: Path) -> list[SourceDocument]:
    """Read a JSON export file.

    Raises SetupFailure when the file cannot be read or has the wrong shape.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SetupFailure(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SetupFailure(f"{path} is not valid JSON: {e}") from e
    documents = parse_documents(data)
    logger.debug("Loaded %d document(s) from %s", len(documents), path)
    return documents


def filter_documents_by_date(
    documents: Iterable[SourceDocument],
    days_back: int,
    now: datetime,
    tz=None,
) -> list[SourceDocument]:
    """Documents whose effective date falls within the last `days_back` days.

    `days_back == 0` keeps everything.
    """
    documents = list(documents)
    if days_back <= 0:
        return documents
    cutoff = now - timedelta(days=days_back)
    kept = [doc for doc in documents if effective_date(doc, now, tz) >= cutoff]
    if len(kept) != len(documents):
        logger.debug("Date filter kept %d of %d document(s)", len(kept), len(documents))
    return kept
