"""JSON output envelope formatter for the mimequery CLI.

Key guarantees:
- Deterministic key ordering
- Recursive key sorting on all nested dicts
- Sorted warnings, always present (defaults to [])
- data always present (defaults to {})
- timestamp only included when explicitly requested
- run_id is a full UUIDv4
- Single-line JSON output
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import click
from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from mimequery.core.services.error_codes import ErrorCode

OUTPUT_SCHEMA_VERSION = "1.0"
SCHEMA_FILE_NAME = "output.schema.v1.json"

_ENVELOPE_KEY_ORDER = [
    "output_schema_version",
    "success",
    "command",
    "run_id",
    "timestamp",
    "data",
    "warnings",
    "error",
]

_SCHEMA_VALIDATOR: Draft7Validator | None = None
_SCHEMA_LOAD_FAILED: bool = False
_SCHEMA_WARNING_EMITTED: bool = False

logger = logging.getLogger(__name__)


def _find_schema_path() -> Path | None:
    candidate = Path(__file__).resolve().parents[2] / "schemas" / SCHEMA_FILE_NAME
    return candidate if candidate.exists() else None


def _get_schema_validator() -> Draft7Validator | None:
    global _SCHEMA_VALIDATOR, _SCHEMA_LOAD_FAILED
    if _SCHEMA_VALIDATOR is not None or _SCHEMA_LOAD_FAILED:
        return _SCHEMA_VALIDATOR

    schema_path = _find_schema_path()
    if schema_path is None:
        _SCHEMA_LOAD_FAILED = True
        return None

    try:
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        Draft7Validator.check_schema(schema)
        _SCHEMA_VALIDATOR = Draft7Validator(schema)
    except (OSError, json.JSONDecodeError, SchemaError, ValueError):
        _SCHEMA_LOAD_FAILED = True
        return None
    return _SCHEMA_VALIDATOR


def _reset_schema_cache() -> None:
    """Reset the module-level schema validator cache (for testing only)."""
    global _SCHEMA_VALIDATOR, _SCHEMA_LOAD_FAILED, _SCHEMA_WARNING_EMITTED
    _SCHEMA_VALIDATOR = None
    _SCHEMA_LOAD_FAILED = False
    _SCHEMA_WARNING_EMITTED = False


def _validate_envelope(envelope: dict[str, Any]) -> None:
    validator = _get_schema_validator()
    if validator is None:
        global _SCHEMA_WARNING_EMITTED
        if not _SCHEMA_WARNING_EMITTED:
            logger.warning("Schema validator unavailable, skipping envelope validation.")
            _SCHEMA_WARNING_EMITTED = True
        return
    errors = sorted(validator.iter_errors(envelope), key=str)
    if errors:
        messages = "; ".join(error.message for error in errors[:3])
        raise ValueError(f"output envelope failed schema validation: {messages}")


def _sort_key_index(key: str) -> tuple[int, str]:
    """Return a sort key that preserves canonical order for known keys."""
    try:
        return (_ENVELOPE_KEY_ORDER.index(key), key)
    except ValueError:
        return (len(_ENVELOPE_KEY_ORDER), key)


def _recursively_sort_keys(obj: Any) -> Any:
    """Recursively sort dictionary keys for deterministic output."""
    if isinstance(obj, dict):
        return {k: _recursively_sort_keys(v) for k, v in sorted(obj.items())}
    if isinstance(obj, list):
        return [_recursively_sort_keys(item) for item in obj]
    return obj


def _sort_warnings(warnings: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort warnings by (path, code, message)."""

    def _key(w: dict[str, Any]) -> tuple:
        return (
            str(w.get("path", "")),
            w.get("code", ""),
            w.get("message", ""),
        )

    return sorted(warnings, key=_key)


def generate_run_id() -> str:
    return str(uuid.uuid4())


def _normalize_run_id(run_id: str | None) -> str:
    """Validate or generate a UUIDv4 run_id."""
    if run_id is None:
        return generate_run_id()
    try:
        parsed = uuid.UUID(str(run_id))
    except (ValueError, AttributeError, TypeError):
        return generate_run_id()
    if parsed.version != 4:
        return generate_run_id()
    return str(parsed)


def format_envelope(
    *,
    command: str,
    success: bool,
    data: dict | None = None,
    warnings: list | None = None,
    error: dict | None = None,
    include_timestamp: bool = False,
    run_id: str | None = None,
) -> str:
    """Build a JSON envelope as a deterministic single-line string.

    Args:
        command: CLI subcommand name (e.g. "default-app", "search-paths").
        success: Whether the command completed without fatal error.
        data: Command-specific payload. Defaults to {}.
        warnings: Non-fatal issues such as skipped candidate files. Defaults to [].
        error: Operational error object (code, message, optional details).
        include_timestamp: If True, include ISO 8601 UTC timestamp.
        run_id: Override run_id (must be a UUIDv4).

    Returns:
        A single-line JSON string with no trailing newline.
    """
    envelope: dict[str, Any] = {
        "output_schema_version": OUTPUT_SCHEMA_VERSION,
        "success": success,
        "command": command,
        "run_id": _normalize_run_id(run_id),
    }

    if include_timestamp:
        envelope["timestamp"] = (
            datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        )

    envelope["data"] = _recursively_sort_keys(data if data is not None else {})
    envelope["warnings"] = [
        _recursively_sort_keys(w) for w in _sort_warnings(warnings or [])
    ]

    if error is not None:
        envelope["error"] = _recursively_sort_keys(error)

    ordered: dict[str, Any] = {}
    for key in sorted(envelope.keys(), key=_sort_key_index):
        ordered[key] = envelope[key]

    try:
        _validate_envelope(ordered)
    except ValueError as e:
        logger.exception("Envelope schema validation failed")
        click.echo(f"WARN: Envelope schema validation failed: {e}", err=True)

    return json.dumps(ordered, separators=(",", ":"), default=str)


def format_error_envelope(
    *,
    command: str,
    error_code: ErrorCode,
    message: str,
    details: dict | None = None,
    include_timestamp: bool = False,
    run_id: str | None = None,
) -> str:
    """Build an error envelope as a deterministic single-line string.

    Convenience wrapper around format_envelope for operational error responses.
    """
    error_obj: dict[str, Any] = {"code": error_code.value, "message": message}
    if details is not None:
        error_obj["details"] = details

    return format_envelope(
        command=command,
        success=False,
        error=error_obj,
        include_timestamp=include_timestamp,
        run_id=run_id,
    )
