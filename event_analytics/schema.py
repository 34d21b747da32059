"""Event schema loading and validation.

The ingest endpoint never trusts a request body: it is parsed as generic JSON
and checked against a JSON Schema document loaded from disk at startup. Only
payloads with zero violations are stored.

The validation rules themselves are implemented by the `jsonschema` library;
this module only loads the schema and reshapes errors into
`{"instancePath": ..., "schemaPath": ...}` pairs for API responses.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from pydantic import BaseModel, TypeAdapter

from .exceptions import SchemaLoadError

logger = logging.getLogger(__name__)

# `date-time` strings must parse the same way the event models parse them, so
# every accepted payload can be decoded later. Leap seconds and impossible
# calendar dates fail here.
format_checker = FormatChecker(formats=())
_datetime = TypeAdapter(datetime)


@format_checker.checks("date-time", raises=ValueError)
def is_datetime(instance: Any) -> bool:
    if not isinstance(instance, str):
        return True
    _datetime.validate_python(instance)
    return True


class SchemaViolation(BaseModel):
    """One reason an instance failed validation.

    Both paths are JSON Pointers; the empty string means the document root.
    """

    instancePath: str
    schemaPath: str


def json_pointer(parts: Iterable[Any]) -> str:
    """Render path segments as a JSON Pointer (RFC 6901)."""
    return "".join(
        "/" + str(part).replace("~", "~0").replace("/", "~1") for part in parts
    )


class EventSchema:
    """A checked JSON Schema plus the validator built from it."""

    def __init__(self, schema: dict[str, Any]) -> None:
        if not isinstance(schema, dict):
            raise SchemaLoadError("event schema must be a JSON object")

        validator_cls = validator_for(schema, default=Draft202012Validator)
        try:
            validator_cls.check_schema(schema)
        except SchemaError as e:
            raise SchemaLoadError(f"invalid event schema: {e.message}") from e

        self.schema = schema
        self._validator = validator_cls(schema, format_checker=format_checker)

    @classmethod
    def load(cls, path: str | Path) -> EventSchema:
        """Read and check a schema file."""
        try:
            schema = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SchemaLoadError(f"cannot read event schema {path}: {e}") from e

        logger.info("[Schema] Loaded event schema from %s", path)
        return cls(schema)

    def validate(self, instance: Any) -> list[SchemaViolation]:
        """Return every violation, sorted by instance path then schema path.

        An empty list means the instance is valid.
        """
        violations = [
            SchemaViolation(
                instancePath=json_pointer(error.absolute_path),
                schemaPath=json_pointer(error.absolute_schema_path),
            )
            for error in self._validator.iter_errors(instance)
        ]
        return sorted(violations, key=lambda v: (v.instancePath, v.schemaPath))
