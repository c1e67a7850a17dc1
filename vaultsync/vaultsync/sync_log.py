"""
Append-only log of sync passes.

One JSON object per line in `.vaultsync/sync.log` under the store root:
what ran, when, and what it wrote or failed to write.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

LOG_DIR = ".vaultsync"
LOG_FILENAME = "sync.log"


@dataclass
class SyncLogEntry:
    """A single pass in the sync log."""
    timestamp: str
    operation: str
    counts: dict[str, int] = field(default_factory=dict)
    failures: list[dict[str, str]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "operation": self.operation,
            "counts": self.counts,
            "failures": self.failures,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SyncLogEntry":
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            counts=data.get("counts", {}),
            failures=data.get("failures", []),
            metadata=data.get("metadata", {}),
        )


def get_sync_log_path(store_root: Path) -> Path:
    return store_root / LOG_DIR / LOG_FILENAME


def log_pass(
    store_root: Path,
    operation: str,
    counts: dict[str, int] | None = None,
    failures: list[tuple[str, str]] | None = None,
    metadata: dict[str, Any] | None = None,
) -> SyncLogEntry:
    """
    Append one pass to the sync log.

    Args:
        store_root: Root directory of the store
        operation: "sync", "full-sync" or "migrate"
        counts: Summary counts for the pass
        failures: (identity or path, reason) pairs
        metadata: Additional context (input file, ...)

    Returns:
        The written entry
    """
    entry = SyncLogEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        counts=counts or {},
        failures=[{"target": target, "reason": reason} for target, reason in failures or []],
        metadata=metadata or {},
    )

    log_path = get_sync_log_path(store_root)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")
    return entry


def read_sync_log(store_root: Path, last_n: int | None = None) -> list[SyncLogEntry]:
    """Entries oldest first; only the last `last_n` when given."""
    log_path = get_sync_log_path(store_root)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(SyncLogEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError) as e:
                logger.debug("Skipping malformed sync log line: %s", e)

    if last_n is not None:
        return entries[-last_n:] if last_n > 0 else []
    return entries


def format_sync_entry(entry: SyncLogEntry) -> str:
    """Human-readable form of one entry."""
    lines = [f"[{entry.timestamp}] {entry.operation}"]
    nonzero = [f"{value} {key}" for key, value in entry.counts.items() if value]
    if nonzero:
        lines.append(f"  {', '.join(nonzero)}")
    for failure in entry.failures:
        lines.append(f"  failed: {failure.get('target')}: {failure.get('reason')}")
    for key, value in entry.metadata.items():
        lines.append(f"  {key}: {value}")
    return "\n".join(lines)
