"""Run the analytics server: `python -m event_analytics`."""

from __future__ import annotations

import logging

import uvicorn

from .config import HOST, LOG_LEVEL, PORT


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run("event_analytics.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    main()
