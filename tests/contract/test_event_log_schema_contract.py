from __future__ import annotations

import json

import jsonschema
import pytest

from colrecon.models.event_record import EventRecord

"""Session event log JSON Lines contract test."""

EVENT_LOG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "file", "header", "event_type", "detail"],
    "properties": {
        "timestamp": {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}T.*Z$"},
        "file": {"type": "string"},
        "header": {"type": ["string", "null"]},
        "event_type": {"type": "string", "pattern": "^[A-Z][A-Z_]*$"},
        "detail": {"type": "string"},
    },
}


@pytest.mark.parametrize(
    "header,event_type",
    [
        ("E-mail", "ASSIGN"),
        ("Notes", "CONFLICT_OPENED"),
        (None, "PROCEED_BLOCKED"),
        (None, "HANDED_OFF"),
    ],
)
def test_event_record_matches_schema(header, event_type):
    line = EventRecord.create("contacts.csv", header, event_type, "detail").to_json_line()
    jsonschema.validate(json.loads(line), EVENT_LOG_SCHEMA)


def test_event_log_schema_rejects_extra_key():
    record = {
        "timestamp": "2026-01-02T10:12:33.000001Z",
        "file": "contacts.csv",
        "header": "E-mail",
        "event_type": "ASSIGN",
        "detail": "matched to 'email'",
        "extra": "not allowed",
    }
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(record, EVENT_LOG_SCHEMA)
