"""Service configuration.

Everything is read from environment variables so the same code runs locally,
in a container, or next to a managed database without edits.

Defaults match a developer machine with MongoDB and PostgreSQL on localhost.
"""

from __future__ import annotations

import os
from pathlib import Path

# --- Storage backend ------------------------------------------------------------
# "mongo" stores raw documents; "postgres" stores them in a jsonb column.
EVENT_STORE: str = os.getenv("EVENT_STORE", "mongo")

# --- MongoDB --------------------------------------------------------------------
MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB: str = os.getenv("MONGO_DB", "example")
MONGO_COLLECTION: str = os.getenv("MONGO_COLLECTION", "events")

# --- PostgreSQL -----------------------------------------------------------------
POSTGRES_DSN: str = os.getenv(
    "POSTGRES_DSN", "postgres://postgres@localhost?sslmode=disable"
)

# --- Event schema ---------------------------------------------------------------
# The bundled schema lives next to this file. Point this at another JSON Schema
# document to change what the ingest endpoint accepts.
EVENT_SCHEMA_PATH: Path = Path(
    os.getenv("EVENT_SCHEMA_PATH", str(Path(__file__).with_name("event.schema.json")))
)

# --- HTTP -----------------------------------------------------------------------
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Base URL used by event_analytics.client
ANALYTICS_API_URL: str = os.getenv("ANALYTICS_API_URL", "http://localhost:3000")
