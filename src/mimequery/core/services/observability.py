"""Stderr event log for a mimequery run.

Each event is one line on stderr, so stdout stays clean for results:

- ``MIMEQUERY_LOG_FORMAT=json``: compact JSON objects.
- otherwise: ``<timestamp> <run_id> <LEVEL> <event> key=value ...``.

Every event carries ``timestamp``, ``run_id``, ``level`` and ``event``; the
remaining fields depend on the event. ``debug`` events (the probe trace of a
lookup) are only written with ``MIMEQUERY_DEBUG=1`` and are never silenced.
Everything else is dropped under ``MIMEQUERY_LOG_SILENT=1``.
"""

import json
import os
import sys
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional

from mimequery.core.services.error_codes import ErrorCode, MimeQueryError

RUN_ID_ENV = "MIMEQUERY_RUN_ID"
LOG_FORMAT_ENV = "MIMEQUERY_LOG_FORMAT"
DEBUG_ENV = "MIMEQUERY_DEBUG"
SILENT_ENV = "MIMEQUERY_LOG_SILENT"

_HEADER_FIELDS = ("timestamp", "run_id", "level", "event")

_current_run_id: Optional[str] = None


def get_run_id() -> str:
    """Return MIMEQUERY_RUN_ID when it is a UUIDv4, else a fresh UUIDv4.

    JSON envelopes only accept version 4 ids, so logs and envelopes of one
    run agree on the id.
    """
    candidate = os.environ.get(RUN_ID_ENV)
    if candidate:
        try:
            parsed = uuid.UUID(candidate)
        except ValueError:
            parsed = None
        if parsed is not None and parsed.version == 4:
            return str(parsed)
    return str(uuid.uuid4())


def get_current_run_id() -> str:
    global _current_run_id
    if _current_run_id is None:
        _current_run_id = get_run_id()
    return _current_run_id


def get_log_format() -> str:
    return os.environ.get(LOG_FORMAT_ENV, "text")


def is_debug_enabled() -> bool:
    return os.environ.get(DEBUG_ENV) == "1"


def is_log_silenced() -> bool:
    return os.environ.get(SILENT_ENV) == "1" and not is_debug_enabled()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _text_value(value: Any) -> str:
    if isinstance(value, str) and value and not any(c.isspace() or c in '"=' for c in value):
        return value
    return json.dumps(value, default=str)


def _render_text(entry: Dict[str, Any]) -> str:
    head = [entry["timestamp"], entry["run_id"], entry["level"].upper(), entry["event"]]
    fields = [
        f"{key}={_text_value(value)}"
        for key, value in entry.items()
        if key not in _HEADER_FIELDS
    ]
    return " ".join(head + fields)


def emit(event: str, level: str = "info", **fields: Any) -> None:
    """Write one event to stderr. Fields set to None are left out."""
    if level == "debug":
        if not is_debug_enabled():
            return
    elif is_log_silenced():
        return

    entry: Dict[str, Any] = {
        "timestamp": _timestamp(),
        "run_id": get_current_run_id(),
        "level": level,
        "event": event,
    }
    entry.update((key, value) for key, value in fields.items() if value is not None)

    if get_log_format() == "json":
        line = json.dumps(entry, separators=(",", ":"), default=str)
    else:
        line = _render_text(entry)
    print(line, file=sys.stderr, flush=True)


def log_debug(event: str, **fields: Any) -> None:
    emit(event, level="debug", **fields)


def log_search_candidate(candidate: Any) -> None:
    """Trace one mimeapps.list candidate before it is scanned."""
    log_debug(
        "mimeapps_candidate",
        path=str(candidate.path),
        tier=candidate.tier.value,
        source=candidate.source,
        desktop=candidate.desktop,
    )


def log_candidate_skipped(stage: str, error: MimeQueryError) -> None:
    """Warn that a file which exists was stepped over by a best-effort search."""
    emit(
        "candidate_skipped",
        level="warning",
        stage=stage,
        code=error.code.value,
        path=(error.details or {}).get("path"),
        message=error.message,
    )


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


@contextmanager
def timed_query(event: str, **fields: Any) -> Generator[Dict[str, Any], None, None]:
    """Log one ``event`` with the outcome and duration of the wrapped query.

    The yielded dict collects result fields (``binary``, ``mime_type``...)
    that are added to the event on success. Failures are logged at ``error``
    level with their code and re-raised.

        with timed_query("default_app_query", mime_type="text/html") as result:
            result["binary"] = "/usr/bin/firefox"
    """
    start = time.monotonic()
    result: Dict[str, Any] = {}
    try:
        yield result
    except Exception as exc:
        code = exc.code if isinstance(exc, MimeQueryError) else ErrorCode.UNKNOWN_ERROR
        emit(
            event,
            level="error",
            outcome="failed",
            duration_ms=_elapsed_ms(start),
            code=code.value,
            **fields,
        )
        raise
    emit(event, outcome="ok", duration_ms=_elapsed_ms(start), **{**fields, **result})
