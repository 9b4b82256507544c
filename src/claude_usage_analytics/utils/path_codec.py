"""Encode and decode Claude Code project path ↔ directory name."""

from pathlib import PurePosixPath

ORPHANED_PREFIX = "Orphaned: "
UNKNOWN_PREFIX = "Unknown: "


def encode_path(path: str) -> str:
    """Encode a filesystem path to a Claude project directory name.

    /home/wiz/AI/LLM → -home-wiz-AI-LLM
    """
    if not path:
        return ""
    return path.replace("/", "-").replace("\\", "-")


def reconstruct_path(sanitized: str) -> str:
    """Reverse the directory-name sanitization.

    -home-wiz-AI-LLM → /home/wiz/AI/LLM

    The encoding is lossy (a hyphen in the real path is indistinguishable
    from a separator), so the result must still be checked for existence.
    Raises ValueError for names that were not produced from an absolute path.
    """
    if not sanitized.startswith("-"):
        raise ValueError(f"Cannot reconstruct path from non-standard name: {sanitized!r}")
    return "/" + sanitized[1:].replace("-", "/")


def display_name_from_sanitized(sanitized: str) -> str:
    """Best-effort display name for a project whose path cannot be resolved.

    -home-wiz-AI-LLM → LLM
    """
    last = sanitized.rsplit("-", 1)[-1]
    if last:
        return last
    return sanitized.replace("-", "/")


def display_name_from_path(path: str) -> str:
    """Last path segment of a resolved project path."""
    name = PurePosixPath(path).name
    return name or path


def orphaned_marker(path: str) -> str:
    return f"{ORPHANED_PREFIX}{path}"


def unknown_marker(sanitized: str) -> str:
    return f"{UNKNOWN_PREFIX}{sanitized}"
