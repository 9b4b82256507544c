"""Shared test helpers."""

import os
from datetime import datetime, timezone
from pathlib import Path

import orjson
from PySide6.QtCore import QCoreApplication


def iso(moment: datetime) -> str:
    """RFC 3339 UTC timestamp as written by Claude Code."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def usage_entry(
    timestamp: datetime,
    input_tokens: int = 0,
    output_tokens: int = 0,
    cache_creation: int = 0,
    cache_read: int = 0,
    model: str = "claude-3-5-sonnet",
    cwd: str | None = None,
    cost_usd: float | None = None,
    session_id: str | None = None,
) -> dict:
    usage = {"input_tokens": input_tokens, "output_tokens": output_tokens}
    if cache_creation:
        usage["cache_creation_input_tokens"] = cache_creation
    if cache_read:
        usage["cache_read_input_tokens"] = cache_read
    entry = {
        "type": "assistant",
        "timestamp": iso(timestamp),
        "message": {"role": "assistant", "model": model, "usage": usage},
    }
    if cwd is not None:
        entry["cwd"] = cwd
    if cost_usd is not None:
        entry["costUSD"] = cost_usd
    if session_id is not None:
        entry["sessionId"] = session_id
    return entry


def write_session(path: Path, entries: list, mtime: float | None = None) -> Path:
    """Write entries as JSONL. Strings are written verbatim (for malformed lines)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [e if isinstance(e, str) else orjson.dumps(e).decode() for e in entries]
    path.write_text("\n".join(lines) + "\n")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def wait_for_worker(scheduler):
    """Wait for a running refresh worker to finish and deliver its signal."""
    if scheduler._worker is not None:
        scheduler._worker.wait(5000)
    QCoreApplication.processEvents()
