"""Analytics event ingestion and lifetime-value service."""
