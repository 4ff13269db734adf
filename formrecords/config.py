"""Configuration and logging setup for formrecords.

Settings are read from the process environment; a ``.env`` file in the
working directory is loaded first when present.

    FORMRECORDS_STORAGE    memory | sqlite      (default: memory)
    FORMRECORDS_DB_PATH    SQLite file path     (default: formrecords.db)
    FORMRECORDS_LOG_LEVEL  logging level name   (default: INFO)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

STORAGE_BACKENDS = ("memory", "sqlite")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        storage: Storage backend name, one of STORAGE_BACKENDS
        db_path: Database file used by the sqlite backend
        log_level: Logging level name for the ``formrecords`` logger
    """
    storage: str = "memory"
    db_path: str = "formrecords.db"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.storage not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend {self.storage!r}; expected one of {', '.join(STORAGE_BACKENDS)}"
            )
        # getLevelName maps registered names to their numeric level
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level {self.log_level!r}")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from the environment (and an optional .env file)."""
        load_dotenv(dotenv_path)
        return cls(
            storage=os.getenv("FORMRECORDS_STORAGE", "memory").strip().lower(),
            db_path=os.getenv("FORMRECORDS_DB_PATH", "formrecords.db"),
            log_level=os.getenv("FORMRECORDS_LOG_LEVEL", "INFO").strip().upper(),
        )


def configure_logging(settings: Settings) -> logging.Logger:
    """Attach a stream handler to the ``formrecords`` logger at the configured level.

    Calling it again only adjusts the level; handlers are not duplicated.
    """
    logger = logging.getLogger("formrecords")
    logger.setLevel(settings.log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


__all__ = ["Settings", "STORAGE_BACKENDS", "configure_logging"]
