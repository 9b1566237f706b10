import json

from mimequery.core.services.error_codes import ErrorCode
from mimequery.core.services.output_formatter import (
    OUTPUT_SCHEMA_VERSION,
    _get_schema_validator,
    format_envelope,
    format_error_envelope,
)

RUN_ID = "00000000-0000-4000-8000-000000000000"


def test_envelope_key_order_and_defaults():
    line = format_envelope(command="default-app", success=True, data={"b": 1, "a": 2}, run_id=RUN_ID)
    assert "\n" not in line
    envelope = json.loads(line)
    assert list(envelope.keys()) == [
        "output_schema_version",
        "success",
        "command",
        "run_id",
        "data",
        "warnings",
    ]
    assert envelope["output_schema_version"] == OUTPUT_SCHEMA_VERSION
    assert list(envelope["data"].keys()) == ["a", "b"]
    assert envelope["warnings"] == []
    assert envelope["run_id"] == RUN_ID


def test_timestamp_only_when_requested():
    assert "timestamp" not in json.loads(format_envelope(command="x", success=True))
    envelope = json.loads(format_envelope(command="x", success=True, include_timestamp=True))
    assert envelope["timestamp"].endswith("Z")


def test_invalid_run_id_is_replaced():
    envelope = json.loads(format_envelope(command="x", success=True, run_id="nope"))
    assert envelope["run_id"] != "nope"
    assert len(envelope["run_id"]) == 36


def test_warnings_are_sorted():
    warnings = [
        {"code": "IO_FAILURE", "message": "m", "path": "/b"},
        {"code": "INVALID_ENCODING", "message": "m", "path": "/a"},
    ]
    envelope = json.loads(format_envelope(command="x", success=True, warnings=warnings))
    assert [w["path"] for w in envelope["warnings"]] == ["/a", "/b"]


def test_error_envelope():
    envelope = json.loads(
        format_error_envelope(
            command="default-app",
            error_code=ErrorCode.NOT_FOUND,
            message="No results for mime query: text/html",
            details={"query": "text/html"},
            run_id=RUN_ID,
        )
    )
    assert envelope["success"] is False
    assert envelope["error"]["code"] == "NOT_FOUND"
    assert envelope["error"]["details"]["query"] == "text/html"
    assert list(envelope.keys())[-1] == "error"


def test_packaged_schema_is_loaded():
    assert _get_schema_validator() is not None


def test_envelopes_validate_against_schema():
    validator = _get_schema_validator()
    envelope = json.loads(
        format_envelope(
            command="default-app",
            success=True,
            data={"binary": "/usr/bin/x"},
            warnings=[{"code": "IO_FAILURE", "message": "m", "path": "/p", "stage": "scan_mimeapps_list"}],
            include_timestamp=True,
        )
    )
    assert list(validator.iter_errors(envelope)) == []
