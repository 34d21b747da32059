"""Exceptions raised by the service's schema and storage layers."""

from __future__ import annotations


class SchemaLoadError(Exception):
    """The event schema file is missing, is not JSON, or is not a valid schema."""


class StoreError(Exception):
    """A storage backend failed to read or write events."""
