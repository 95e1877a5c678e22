"""Tests for inbound message validation."""

import json

import pytest

from sheet_risk.errors import ValidationError
from sheet_risk.validation import parse_message
from tests.helpers import make_body, make_payload


def test_valid_message_parses() -> None:
    msg = parse_message(make_body())
    assert msg.spreadsheet_id == "sheet-1"
    assert msg.row_index == 2
    assert msg.owner_id == "owner-1"
    assert msg.sync_timestamp.year == 2025
    assert msg.input_data["Actual Hours"] == "1,460"


def test_accepts_camel_case_keys() -> None:
    body = json.dumps(
        {
            "ownerId": "o-9",
            "spreadsheetId": "sheet-9",
            "sheetRange": "Sheet1!A:Z",
            "rowIndex": 7,
            "projectIdentifier": "Data Lake",
            "syncTimestamp": "2025-03-01T08:00:00+00:00",
            "inputData": {"Project": "Data Lake"},
        }
    )
    msg = parse_message(body)
    assert msg.spreadsheet_id == "sheet-9"
    assert msg.row_index == 7
    assert msg.owner_id == "o-9"


@pytest.mark.parametrize("alias", ["owner_id", "userId", "connectionId"])
def test_owner_aliases(alias: str) -> None:
    payload = make_payload()
    del payload["userId"]
    payload[alias] = "abc"
    assert parse_message(json.dumps(payload)).owner_id == "abc"


def test_owner_is_optional() -> None:
    payload = make_payload()
    del payload["userId"]
    assert parse_message(json.dumps(payload)).owner_id is None


def test_accepts_bytes_body() -> None:
    assert parse_message(make_body().encode()).row_index == 2


def test_extra_keys_ignored() -> None:
    assert parse_message(make_body(source="edit-trigger")).project_identifier == "Benefits Portal"


def test_missing_project_identifier_rejected() -> None:
    payload = make_payload()
    del payload["project_identifier"]
    with pytest.raises(ValidationError) as exc:
        parse_message(json.dumps(payload))
    assert exc.value.field == "project_identifier"


@pytest.mark.parametrize("row_index", [-1, 0, "3", 2.5, True, None])
def test_row_index_must_be_positive_int(row_index) -> None:
    with pytest.raises(ValidationError) as exc:
        parse_message(make_body(row_index=row_index))
    assert exc.value.field == "row_index"


@pytest.mark.parametrize("field", ["spreadsheet_id", "sheet_range"])
def test_empty_ids_rejected(field: str) -> None:
    with pytest.raises(ValidationError) as exc:
        parse_message(make_body(**{field: ""}))
    assert exc.value.field == field


@pytest.mark.parametrize("ts", ["yesterday", "2025-13-45T00:00:00Z", 1737368100, ""])
def test_sync_timestamp_must_be_datetime(ts) -> None:
    with pytest.raises(ValidationError) as exc:
        parse_message(make_body(sync_timestamp=ts))
    assert exc.value.field == "sync_timestamp"


def test_input_data_must_be_object() -> None:
    with pytest.raises(ValidationError) as exc:
        parse_message(make_body(input_data=["not", "a", "map"]))
    assert exc.value.field == "input_data"


@pytest.mark.parametrize("body", ["{not json", "[1, 2]", "42", ""])
def test_malformed_body_rejected(body: str) -> None:
    with pytest.raises(ValidationError) as exc:
        parse_message(body)
    assert exc.value.field == "body"
    assert exc.value.reason
