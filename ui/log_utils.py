"""Shared logging utilities."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "gateway.log"

SECRET_PARAMS = frozenset({"key"})


def write_incoming_log(
    method: str,
    url: str,
    headers: dict[str, str],
    body_size: int,
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single incoming request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "url": redact_url(url),
        "headers": _redact_headers(headers),
        "body_size": body_size,
    }
    return _write_json(log_root / "incoming", payload)


def write_forward_log(
    method: str,
    target: str,
    backend: str,
    status: int,
    *,
    path: str,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single forwarded request log entry, grouped by backend."""
    folder = log_root / "forward" / backend

    # Cleanup old logs in backend folder (keep only latest)
    _cleanup_folder(folder)

    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "target": target,
        "backend": backend,
        "path": path,
        "status": status,
    }
    return _write_json(folder, payload)


def _cleanup_folder(folder: Path) -> int:
    """Delete all but the most recent log file in a folder."""
    if not folder.exists():
        return 0

    files = sorted(folder.glob("*.json"))
    if len(files) <= 1:
        return 0

    deleted = 0
    # Delete all but the last file (most recent by filename timestamp)
    for old_file in files[:-1]:
        try:
            old_file.unlink()
            deleted += 1
        except OSError:
            pass
    return deleted


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path = CLI_LOG_FILE,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> None:
    """Remove request logs left by a previous run."""
    for folder in ("incoming", "forward"):
        for file_path in (log_root / folder).rglob("*.json"):
            try:
                file_path.unlink()
            except OSError:
                pass


def redact_url(url: str) -> str:
    """Mask secret query parameters such as the gateway key."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    params = [
        (name, _mask(value) if name in SECRET_PARAMS else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(params)))


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        lower = key.lower()
        if "key" in lower or "authorization" in lower or lower == "cookie":
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
