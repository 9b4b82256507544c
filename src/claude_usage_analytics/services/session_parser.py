"""Streaming JSONL parser for Claude Code session logs.

Only lines that carry real token usage are turned into records; everything
else (tool results, summaries, malformed JSON) is skipped without failing the
file.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterator

import orjson

from claude_usage_analytics.types import Session, TokenUsage, UsageRecord

logger = logging.getLogger(__name__)

# Max size for a single JSONL line (10MB)
MAX_LINE_SIZE = 10 * 1024 * 1024


def read_lines(file_path: str | Path) -> list[str]:
    """Read the non-blank lines of a session file.

    OSError (missing file, permissions, deleted mid-scan) propagates so the
    caller can skip the file.
    """
    with open(file_path, "r", encoding="utf-8", errors="replace") as f:
        return [line.strip() for line in f if line.strip()]


def decode_line(line: str) -> dict | None:
    if len(line) > MAX_LINE_SIZE:
        return None
    try:
        raw = orjson.loads(line)
    except orjson.JSONDecodeError:
        return None
    return raw if isinstance(raw, dict) else None


def stream_timed_lines(file_path: str | Path) -> Iterator[tuple[datetime, UsageRecord | None]]:
    """Yield ``(timestamp, record)`` for every line with a valid timestamp.

    ``record`` is None for lines without token usage (user prompts, tool
    results). Lines without a timestamp are dropped.
    """
    path = Path(file_path)
    session_id = path.stem
    for line_num, line in enumerate(read_lines(path), start=1):
        raw = decode_line(line)
        if raw is None:
            logger.debug("Undecodable line %d in %s", line_num, path.name)
            continue
        timestamp = parse_timestamp(raw.get("timestamp"))
        if timestamp is None:
            continue
        yield timestamp, parse_usage_entry(raw, session_id=session_id)


def stream_usage_records(file_path: str | Path) -> Iterator[UsageRecord]:
    """Stream-parse a session file, yielding valid usage records in file order."""
    for _, record in stream_timed_lines(file_path):
        if record is not None:
            yield record


def parse_usage_records(file_path: str | Path) -> list[UsageRecord]:
    return list(stream_usage_records(file_path))


def parse_activity(file_path: str | Path) -> tuple[list[UsageRecord], list[datetime]]:
    """Usage records plus the timestamp of every timestamped line, in one read."""
    records = []
    timestamps = []
    for timestamp, record in stream_timed_lines(file_path):
        timestamps.append(timestamp)
        if record is not None:
            records.append(record)
    return records, timestamps


def parse_usage_entry(raw: dict, session_id: str = "") -> UsageRecord | None:
    """Turn one decoded log line into a UsageRecord.

    Returns None unless the line has a timestamp, a ``message.usage`` object
    and at least one positive token count.
    """
    timestamp = parse_timestamp(raw.get("timestamp"))
    if timestamp is None:
        return None

    message = raw.get("message")
    if not isinstance(message, dict):
        return None
    raw_usage = message.get("usage")
    if not isinstance(raw_usage, dict):
        return None

    usage = TokenUsage(
        input_tokens=_token_count(raw_usage.get("input_tokens")),
        output_tokens=_token_count(raw_usage.get("output_tokens")),
        cache_creation_tokens=_token_count(raw_usage.get("cache_creation_input_tokens")),
        cache_read_tokens=_token_count(raw_usage.get("cache_read_input_tokens")),
    )
    if not usage.has_usage:
        return None

    model = message.get("model")
    cost = raw.get("costUSD")
    tier = raw_usage.get("service_tier")
    cwd = raw.get("cwd")
    sid = raw.get("sessionId")
    return UsageRecord(
        timestamp=timestamp,
        usage=usage,
        model=model if isinstance(model, str) and model else "unknown",
        cost_usd=float(cost) if isinstance(cost, (int, float)) and not isinstance(cost, bool) else 0.0,
        service_tier=tier if isinstance(tier, str) else "",
        entry_type=raw.get("type", "") if isinstance(raw.get("type"), str) else "",
        cwd=cwd if isinstance(cwd, str) else "",
        session_id=sid if isinstance(sid, str) and sid else session_id,
    )


def parse_session(file_path: str | Path) -> Session | None:
    """Build Session metadata for a log file, or None for an empty file."""
    path = Path(file_path)
    stat = path.stat()
    message_count = len(read_lines(path))
    if message_count == 0:
        return None
    return Session(
        id=path.stem,
        file_path=str(path),
        project_dir=path.parent.name,
        last_modified=stat.st_mtime,
        message_count=message_count,
    )


def find_last_cwd(file_path: str | Path) -> str | None:
    """Return the most recent ``cwd`` recorded in a session file."""
    for line in reversed(read_lines(file_path)):
        raw = decode_line(line)
        if raw is None:
            continue
        cwd = raw.get("cwd")
        if isinstance(cwd, str) and cwd:
            return cwd
    return None


def parse_timestamp(ts_value) -> datetime | None:
    """Parse an RFC 3339 timestamp ("2026-02-13T12:00:00.000Z")."""
    if not isinstance(ts_value, str) or not ts_value:
        return None
    try:
        parsed = datetime.fromisoformat(ts_value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def _token_count(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)
