"""Runtime configuration, read from the environment."""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _optional_int(name):
    value = os.environ.get(name)
    return int(value) if value not in (None, "") else None


class Config:
    LOG_LEVEL = os.environ.get("KINGDOMS_LOG_LEVEL", "INFO").upper()
    ALLOWED_ORIGINS = os.environ.get("ALLOWED_ORIGINS", "*").split(",")
    # Seeds decks, ids and room codes; leave unset in production
    RANDOM_SEED = _optional_int("KINGDOMS_RANDOM_SEED")
    # Finished rooms older than this are purged
    STALE_ROOM_SECONDS = int(os.environ.get("KINGDOMS_STALE_ROOM_SECONDS", "21600"))
    HOST = os.environ.get("KINGDOMS_HOST", "127.0.0.1")
    PORT = int(os.environ.get("KINGDOMS_PORT", "8000"))


def configure_logging(level=None):
    """Set up root logging once, for the CLI and the server."""
    logging.basicConfig(
        level=level or Config.LOG_LEVEL,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
