import json

import pytest

from event_analytics.exceptions import SchemaLoadError
from event_analytics.schema import EventSchema, json_pointer


def order(**overrides):
    payload = {
        "type": "Order Completed",
        "timestamp": "2019-10-29T03:03:54Z",
        "userId": "alice",
        "revenue": 12.5,
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    "payload",
    [
        order(),
        order(revenue=3),
        {"type": "Page Viewed", "timestamp": "2019-10-29T03:03:54.123+09:00", "userId": "a", "url": "/"},
        {"type": "Heartbeat", "timestamp": "2019-10-29T03:03:54Z", "userId": "a"},
    ],
)
def test_valid_events_have_no_violations(event_schema, payload):
    assert event_schema.validate(payload) == []


def test_missing_variant_field_is_reported(event_schema):
    payload = order()
    del payload["revenue"]

    violations = [v.model_dump() for v in event_schema.validate(payload)]

    assert violations == [{"instancePath": "", "schemaPath": "/allOf/1/then/required"}]


def test_wrong_field_type_points_at_the_field(event_schema):
    violations = [v.model_dump() for v in event_schema.validate(order(revenue="12.50"))]

    assert violations == [
        {"instancePath": "/revenue", "schemaPath": "/allOf/1/then/properties/revenue/type"}
    ]


def test_unknown_type_is_rejected(event_schema):
    violations = event_schema.validate(order(type="Refund Issued"))

    assert [v.instancePath for v in violations] == ["/type"]


def test_bad_timestamp_is_rejected(event_schema):
    violations = event_schema.validate(order(timestamp="yesterday"))

    assert [v.instancePath for v in violations] == ["/timestamp"]


def test_non_object_is_rejected(event_schema):
    assert event_schema.validate([1, 2, 3]) != []


def test_violations_are_sorted(event_schema):
    violations = event_schema.validate({"type": "Page Viewed", "userId": 7})

    keys = [(v.instancePath, v.schemaPath) for v in violations]
    assert keys == sorted(keys)
    assert len(keys) >= 3


def test_json_pointer_escapes_segments():
    assert json_pointer([]) == ""
    assert json_pointer(["a/b", "c~d", 0]) == "/a~1b/c~0d/0"


def test_load_missing_file(tmp_path):
    with pytest.raises(SchemaLoadError):
        EventSchema.load(tmp_path / "missing.json")


def test_load_non_json_file(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text("type: object\n", encoding="utf-8")

    with pytest.raises(SchemaLoadError):
        EventSchema.load(path)


def test_load_invalid_schema(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(json.dumps({"type": "not-a-type"}), encoding="utf-8")

    with pytest.raises(SchemaLoadError):
        EventSchema.load(path)


def test_load_custom_schema(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(json.dumps({"type": "object", "required": ["userId"]}), encoding="utf-8")

    schema = EventSchema.load(path)

    assert schema.validate({"userId": "a"}) == []
    assert len(schema.validate({})) == 1


@pytest.mark.parametrize(
    "timestamp",
    ["2019-13-45T03:03:54Z", "2019-02-30T00:00:00Z", "2016-12-31T23:59:60Z"],
)
def test_impossible_timestamps_fail_the_format_check(event_schema, timestamp):
    violations = [v.model_dump() for v in event_schema.validate(order(timestamp=timestamp))]

    assert violations == [
        {"instancePath": "/timestamp", "schemaPath": "/properties/timestamp/format"}
    ]
